#!/usr/bin/env python3
"""
Cross-page correlation.
Carries a selected search result (or the whole listing) from the search page to
the patient details page through the tab's sessionStorage.
"""

import json
from typing import Dict, List, MutableMapping, Optional

from models import PatientSummary
from portal_urls import get_details_url

CURRENT_PATIENT_KEY = "curemd_current_patient"
SEARCH_RESULTS_KEY = "curemd_search_results"


class CorrelationStore:
    """
    JSON key-value store over a string mapping (sessionStorage, or a dict).

    There is no locking: two pages writing the same key race and the last
    write wins.
    """

    def __init__(self, storage: Optional[MutableMapping[str, str]] = None):
        self.storage = storage if storage is not None else {}
        self._written: Dict[str, str] = {}

    def put(self, key, value):
        raw = json.dumps(value, ensure_ascii=False)
        self.storage[key] = raw
        self._written[key] = raw

    def get(self, key):
        """Stored value for key, or None if it is missing or not valid JSON."""
        raw = self.storage.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except (TypeError, ValueError):
            return None

    def pending_writes(self):
        """Raw values written through this store since it was created."""
        return dict(self._written)


def load_search_context(store):
    """The search result that led to the current page, or None."""
    return store.get(CURRENT_PATIENT_KEY)


class PatientSelection:
    """
    Handle over one page of search results.

    Selecting a patient writes it to the store under CURRENT_PATIENT_KEY so
    the details page extraction can link back to it.

    Args:
        patients: List of PatientSummary
        store: CorrelationStore
        base_url: CureMD application base URL (optional)
    """

    def __init__(self, patients: List[PatientSummary], store: CorrelationStore, base_url=None):
        self.patients = list(patients)
        self.store = store
        self.base_url = base_url

    def __len__(self):
        return len(self.patients)

    def details_url(self, patient):
        return get_details_url(patient.hidden_patient_id, base_url=self.base_url)

    def find(self, index):
        for patient in self.patients:
            if patient.index == index:
                return patient
        return None

    def select(self, index):
        """
        Select a patient by the index shown in the listing.

        Args:
            index: 1-based sequence index of the row

        Returns:
            The selected PatientSummary

        Raises:
            ValueError: If no listed patient has that index
        """
        patient = self.find(index)
        if patient is None:
            shown = ", ".join(str(p.index) for p in self.patients) or "none"
            raise ValueError(f"Invalid index {index}. Available: {shown}")
        self.store.put(CURRENT_PATIENT_KEY, patient.to_json_dict())
        return patient

    def select_all(self):
        """Yield every patient in listing order, selecting each in turn."""
        for patient in self.patients:
            yield self.select(patient.index)

    def remember_listing(self):
        self.store.put(SEARCH_RESULTS_KEY, [p.to_json_dict() for p in self.patients])
