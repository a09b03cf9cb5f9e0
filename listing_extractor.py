#!/usr/bin/env python3
"""
Patient search results extractor.
Reads the rows of the CureMD Patient Search results, either from the page
itself or from the first embedded frame that holds them.
"""

import re
from dataclasses import dataclass, field
from typing import List, Optional

from pydantic import ValidationError

from models import PatientSummary

ANCHOR_PREFIX = "anchorPatientName"
LOAD_PATIENT_PATTERN = re.compile(r"LoadPatient\((\d+),")

# Row field -> id prefix of the sibling element that holds it
ROW_FIELDS = {
    'accountNumber': "spanPatientAccount",
    'ssn': "spanPatientSSN",
    'phone': "spanPatientPhone",
    'dob': "spanPatientDOB",
    'chart': "spanPatientLocationOrChart",
    'patientBalance': "spanPatientBalance",
    'planBalance': "spanPatientPlan",
}

MAIN_DOCUMENT = "current page"


@dataclass
class ListingResult:
    patients: List[PatientSummary] = field(default_factory=list)
    source: str = MAIN_DOCUMENT
    rows_found: int = 0


def _text_of(document, element_id):
    element = document.find(id=element_id)
    if element is None:
        return None
    return element.get_text().strip()


def find_row_anchors(document):
    return document.find_all("a", id=lambda value: bool(value) and value.startswith(ANCHOR_PREFIX))


def parse_patient_row(document, anchor, index):
    """
    Build a PatientSummary from one result row.

    Args:
        document: Parsed document holding the row
        anchor: The row's patient-name anchor
        index: 1-based position of the anchor in the listing

    Returns:
        PatientSummary, or None if the row's patient id cannot be derived
    """
    match = LOAD_PATIENT_PATTERN.search(anchor.get('href') or "")
    if not match:
        return None

    suffix = anchor['id'][len(ANCHOR_PREFIX):]
    row = {
        'index': index,
        'hiddenPatientId': match.group(1),
        'patientName': anchor.get_text().strip(),
    }
    for key, prefix in ROW_FIELDS.items():
        row[key] = _text_of(document, f"{prefix}{suffix}")
    return PatientSummary.model_validate(row)


def extract_patients_from_document(document):
    """
    Extract search result rows from one document.

    Args:
        document: BeautifulSoup document

    Returns:
        Tuple of (rows_found, patients). rows_found is 0 when the document
        has no result rows at all.
    """
    anchors = find_row_anchors(document)
    patients = []
    for position, anchor in enumerate(anchors, start=1):
        try:
            patient = parse_patient_row(document, anchor, position)
        except (ValidationError, KeyError) as e:
            print(f"⚠️  Skipping patient {position}: {e}")
            continue
        if patient is None:
            print(f"⚠️  Skipping patient {position}: Could not extract ID")
            continue
        patients.append(patient)
    return len(anchors), patients


def extract_listing(snapshot) -> Optional[ListingResult]:
    """
    Extract the patient listing from a page snapshot.

    The main document is tried first. Only when it has no result rows are the
    embedded frames searched, in order, stopping at the first one that yields
    patients. Frames that could not be read are skipped.

    Args:
        snapshot: PageSnapshot

    Returns:
        ListingResult, or None when no result rows exist anywhere
    """
    rows_found, patients = extract_patients_from_document(snapshot.document)
    if rows_found:
        return ListingResult(patients=patients, source=MAIN_DOCUMENT, rows_found=rows_found)

    fallback = None
    for frame in snapshot.frames:
        if not frame.reachable:
            continue
        rows_found, patients = extract_patients_from_document(frame.document)
        if not rows_found:
            continue
        source = f'iframe "{frame.name or "unnamed"}"'
        if patients:
            print(f"✅ Found patients in {source}")
            return ListingResult(patients=patients, source=source, rows_found=rows_found)
        if fallback is None:
            fallback = ListingResult(patients=[], source=source, rows_found=rows_found)

    return fallback
