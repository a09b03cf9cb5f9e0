#!/usr/bin/env python3
"""
Tests for patient details extraction.
"""

import json

from correlation import CURRENT_PATIENT_KEY
from field_resolver import FieldResolver
from page_snapshot import PageSnapshot
from patient_schema import PATIENT_SCHEMA, SCHEMA_VERSION, iter_fields
from record_extractor import extract_all_inputs, extract_patient_details, extract_sections

DETAILS_URL = "https://app4.curemd.net/curemdc/Patient/datPatient.aspx?intPatient_ID=4411&PatientId=4411"

PARTIAL_PAGE = """
<html><body>
<form>
    <input type="hidden" id="intPatient_ID" value="4411">
    <input type="text" id="txtVFNAME" value="Jane">
    <select id="cmbVSEX">
        <option value="">Select</option>
        <option value="F" selected>Female</option>
    </select>
    <input type="checkbox" id="chkNewsletter" checked>
    <input type="text" id="txtUnmappedField" value="kept anyway">
    <input type="text" id="txtEmpty" value="">
    <textarea id="txtNotes">call after 5pm</textarea>
</form>
</body></html>
"""


def _leaf(data, dotted):
    node = data
    for part in dotted.split("."):
        node = node[part]
    return node


def test_partial_page_fills_present_fields_and_nulls_the_rest():
    """Three populated schema fields; every other schema key is present and None."""
    snapshot = PageSnapshot.from_html(PARTIAL_PAGE, url=DETAILS_URL)
    result = extract_patient_details(snapshot)
    data = result["extractedData"]

    assert data["patientInfo"]["patientId"] == "4411"
    assert data["patientInfo"]["firstName"] == "Jane"
    assert data["patientInfo"]["gender"] == "Female"

    populated = {"patientInfo.patientId", "patientInfo.firstName", "patientInfo.gender"}
    for name, _spec in iter_fields():
        if name not in populated:
            assert _leaf(data, name) is None, name
    assert len(list(iter_fields())) > 40


def test_output_shape_matches_schema_on_empty_page():
    result = extract_patient_details(PageSnapshot.from_html("<html></html>"))
    assert set(result["extractedData"]) == set(PATIENT_SCHEMA)
    assert set(result["extractedData"]["addresses"]) == {"current", "alternate"}
    assert set(result["extractedData"]["insurance"]) == {"primary", "secondary"}
    assert result["rawInputs"] == {}
    assert result["searchContext"] is None


def test_raw_inputs_cover_unmapped_fields():
    snapshot = PageSnapshot.from_html(PARTIAL_PAGE)
    raw = extract_all_inputs(snapshot.document)
    assert raw["txtUnmappedField"] == "kept anyway"
    assert raw["txtVFNAME"] == "Jane"
    # selects keep their underlying value in the raw map
    assert raw["cmbVSEX"] == "F"
    assert raw["txtNotes"] == "call after 5pm"
    assert "txtEmpty" not in raw
    assert "intPatient_ID" not in raw
    assert "chkNewsletter" not in raw


def test_failing_section_does_not_stop_the_others(capsys):
    snapshot = PageSnapshot.from_html(PARTIAL_PAGE)

    class BrokenResolver(FieldResolver):
        def resolve(self, logical_field):
            if logical_field is PATIENT_SCHEMA["contactInfo"]["mobile"]:
                raise RuntimeError("malformed fragment")
            return super().resolve(logical_field)

    data = extract_sections(BrokenResolver(snapshot.document, PATIENT_SCHEMA))

    assert data["patientInfo"]["firstName"] == "Jane"
    assert data["contactInfo"] == {key: None for key in PATIENT_SCHEMA["contactInfo"]}
    assert data["providers"]["location"] is None
    assert "Error extracting contactInfo" in capsys.readouterr().out


def test_search_context_is_merged_from_session_storage():
    context = {"index": 1, "hiddenPatientId": "4411", "accountNumber": "A-100", "patientName": "DOE, JANE"}
    snapshot = PageSnapshot.from_html(
        PARTIAL_PAGE,
        url=DETAILS_URL,
        session_storage={CURRENT_PATIENT_KEY: json.dumps(context)},
    )
    result = extract_patient_details(snapshot)
    assert result["searchContext"] == context


def test_corrupt_search_context_is_treated_as_none():
    snapshot = PageSnapshot.from_html(
        PARTIAL_PAGE,
        session_storage={CURRENT_PATIENT_KEY: "{not json"},
    )
    assert extract_patient_details(snapshot)["searchContext"] is None


def test_metadata_block():
    snapshot = PageSnapshot.from_html(PARTIAL_PAGE, url=DETAILS_URL)
    metadata = extract_patient_details(snapshot)["metadata"]
    assert metadata["patientId"] == "4411"
    assert metadata["accountNumber"] is None
    assert metadata["pageUrl"] == DETAILS_URL
    assert metadata["schemaVersion"] == SCHEMA_VERSION
    assert metadata["extractedAt"].endswith("Z")


def test_full_variant_page_uses_alternate_ids():
    html = """
    <input id="TxtVAcc" value="A-100">
    <select id="cmbTitle"><option selected>Mrs.</option></select>
    <input id="txtVAddress1" value="12 Main St">
    <input id="txtZip" value="10001">
    <input type="checkbox" id="chkSameAsAbove" checked>
    <input id="txtCPhone" value="555-0100">
    <select id="cmbMaritalStatus"><option value="M" selected>Married</option></select>
    <input type="hidden" id="isMdnSupportContact" value="1">
    <a id="lnkDaisey">Enrolled</a>
    <table><tr><td>Chart No.</td><td><input value="CH-9"></td></tr></table>
    """
    data = extract_patient_details(PageSnapshot.from_html(html))["extractedData"]
    assert data["patientInfo"]["accountNumber"] == "A-100"
    assert data["patientInfo"]["title"] == "Mrs."
    assert data["patientInfo"]["maritalStatus"] == "Married"
    assert data["patientInfo"]["chartNumber"] == "CH-9"
    assert data["addresses"]["current"]["address1"] == "12 Main St"
    assert data["addresses"]["current"]["zip"] == "10001"
    assert data["addresses"]["alternate"]["sameAsAbove"] is True
    assert data["contactInfo"]["mobile"] == "555-0100"
    assert data["supportContact"]["isRequired"] is True
    assert data["clinicalInfo"]["isDaiseyEnrolled"] is True


def test_nested_sections_are_filled_by_dotted_path():
    html = """
    <input type="text" id="txtvaddress1" value="1 Main St">
    <input type="text" id="txtMailingCity" value="Albany">
    <input type="text" id="txtSInsuranceName" value="Acme Health">
    """
    resolver = FieldResolver(PageSnapshot.from_html(html).document, PATIENT_SCHEMA)
    data = extract_sections(resolver)
    assert data['addresses']['current']['address1'] == "1 Main St"
    assert data['addresses']['alternate']['city'] == "Albany"
    assert data['insurance']['secondary']['insuranceName'] == "Acme Health"
    assert data['insurance']['primary']['insuranceName'] is None
