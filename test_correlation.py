#!/usr/bin/env python3
"""
Tests for the correlation store and patient selection handle.
"""

import json

import pytest

from correlation import (
    CURRENT_PATIENT_KEY,
    SEARCH_RESULTS_KEY,
    CorrelationStore,
    PatientSelection,
    load_search_context,
)
from models import PatientSummary

BASE_URL = "https://app4.curemd.net/curemdc"


def sample_patients():
    return [
        PatientSummary(index=1, hidden_patient_id="101", patient_name="ALPHA, ANN", account_number="A-1"),
        PatientSummary(index=3, hidden_patient_id="103", patient_name="GAMMA, GUS", dob="03/03/1973",
                       patient_balance="$12.50"),
    ]


def test_round_trip_across_page_loads():
    """A tuple written on one page load reads back deep-equal on the next."""
    session_storage = {}
    patient = sample_patients()[1]

    CorrelationStore(session_storage).put(CURRENT_PATIENT_KEY, patient.to_json_dict())

    next_load = CorrelationStore(session_storage)
    restored = next_load.get(CURRENT_PATIENT_KEY)
    assert restored == patient.to_json_dict()
    assert PatientSummary.model_validate(restored) == patient


def test_missing_and_corrupt_values_read_as_none():
    store = CorrelationStore({CURRENT_PATIENT_KEY: "{\"index\": 1,"})
    assert store.get(CURRENT_PATIENT_KEY) is None
    assert store.get("never_written") is None
    assert load_search_context(store) is None


def test_last_write_wins():
    storage = {}
    first, second = CorrelationStore(storage), CorrelationStore(storage)
    first.put(CURRENT_PATIENT_KEY, {"hiddenPatientId": "1"})
    second.put(CURRENT_PATIENT_KEY, {"hiddenPatientId": "2"})
    assert CorrelationStore(storage).get(CURRENT_PATIENT_KEY) == {"hiddenPatientId": "2"}


def test_pending_writes_hold_serialized_values():
    store = CorrelationStore({"unrelated": "x"})
    store.put(CURRENT_PATIENT_KEY, {"hiddenPatientId": "7"})
    assert store.pending_writes() == {CURRENT_PATIENT_KEY: json.dumps({"hiddenPatientId": "7"})}


def test_select_writes_current_patient():
    store = CorrelationStore()
    selection = PatientSelection(sample_patients(), store, base_url=BASE_URL)

    patient = selection.select(3)

    assert patient.hidden_patient_id == "103"
    assert store.get(CURRENT_PATIENT_KEY)["hiddenPatientId"] == "103"
    assert selection.details_url(patient) == (
        f"{BASE_URL}/Patient/datPatient.aspx?intPatient_ID=103&PatientId=103"
    )


def test_select_invalid_index_raises_and_writes_nothing():
    store = CorrelationStore()
    selection = PatientSelection(sample_patients(), store, base_url=BASE_URL)
    with pytest.raises(ValueError):
        selection.select(2)
    assert store.get(CURRENT_PATIENT_KEY) is None


def test_select_all_visits_each_patient_in_order():
    store = CorrelationStore()
    selection = PatientSelection(sample_patients(), store, base_url=BASE_URL)
    seen = []
    for patient in selection.select_all():
        seen.append(store.get(CURRENT_PATIENT_KEY)["hiddenPatientId"])
    assert seen == ["101", "103"]


def test_remember_listing_stores_every_row():
    store = CorrelationStore()
    selection = PatientSelection(sample_patients(), store, base_url=BASE_URL)
    selection.remember_listing()
    stored = store.get(SEARCH_RESULTS_KEY)
    assert [row["index"] for row in stored] == [1, 3]
    assert stored[1]["patientBalance"] == "$12.50"
