#!/usr/bin/env python3
"""
Output helpers.
File naming, JSON writing, and the console summaries printed after each run.
"""

import json
import os
import re
from pathlib import Path


def get_output_dir():
    default_dir = Path(__file__).parent / "scraped-data"
    return Path(os.getenv('CUREMD_OUTPUT_DIR', str(default_dir)))


def _safe_name(value):
    # path separators and other unsafe characters become underscores
    return re.sub(r"[^\w.-]+", "_", value).strip(".")


def build_output_filename(result):
    """
    File name for an extraction result, from the patient's name and id.

    Args:
        result: Dictionary returned by extract_patient_details

    Returns:
        e.g. "patient_demographics_Jane_Doe_12345.json"
    """
    metadata = result.get('metadata') or {}
    info = (result.get('extractedData') or {}).get('patientInfo') or {}
    patient_id = metadata.get('patientId') or metadata.get('accountNumber') or "unknown"
    patient_name = f"{info.get('firstName') or ''}_{info.get('lastName') or ''}"
    return f"patient_demographics_{_safe_name(patient_name)}_{_safe_name(str(patient_id))}.json"


def save_json(data, output_path):
    """Write data as pretty-printed UTF-8 JSON, creating parent directories."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)
    return output_path


def save_extraction(result, output_dir=None):
    output_dir = Path(output_dir) if output_dir else get_output_dir()
    output_path = save_json(result, output_dir / build_output_filename(result))
    print(f"\n✓ JSON file saved: {output_path}")
    return output_path


def print_extraction_summary(result):
    info = result['extractedData']['patientInfo']
    providers = result['extractedData']['providers']
    print("\n📊 Summary:")
    print(f"- Patient: {info.get('firstName')} {info.get('lastName')}")
    print(f"- Patient ID: {info.get('patientId')}")
    print(f"- Account #: {info.get('accountNumber')}")
    print(f"- DOB: {info.get('dateOfBirth')}")
    print(f"- Location: {providers.get('location')}")

    context = result.get('searchContext')
    if isinstance(context, dict):
        print("\n✓ Linked to search context:")
        print(f"  - Hidden ID: {context.get('hiddenPatientId')}")
        print(f"  - Account #: {context.get('accountNumber')}")


def print_listing(listing):
    print(f"Found {len(listing.patients)} patient(s) in {listing.source}:\n")
    for patient in listing.patients:
        print(f"{patient.index}. {patient.patient_name}")
        print(f"   Hidden ID: {patient.hidden_patient_id}")
        print(f"   Account #: {patient.account_number}")
        print(f"   DOB: {patient.dob}")
        print(f"   Phone: {patient.phone}")
        print("")


def print_slot_table(slots, limit=5):
    """Print the first few slots as a fixed-width table."""
    columns = ["date", "time", "provider", "facility", "visitType", "duration"]
    rows = [[str(slot.get(c) if slot.get(c) is not None else "") for c in columns]
            for slot in (s.to_json_dict() for s in slots[:limit])]
    widths = [max([len(c)] + [len(r[i]) for r in rows]) for i, c in enumerate(columns)]
    print("  ".join(c.ljust(w) for c, w in zip(columns, widths)))
    print("  ".join("-" * w for w in widths))
    for row in rows:
        print("  ".join(v.ljust(w) for v, w in zip(row, widths)))
