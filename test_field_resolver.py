#!/usr/bin/env python3
"""
Tests for the field resolver read rules and candidate fallback.
"""

import pytest
from bs4 import BeautifulSoup

from field_resolver import FieldResolver, by_label, by_text, candidates
from patient_schema import PATIENT_SCHEMA


def make_resolver(html, table=None):
    return FieldResolver(BeautifulSoup(html, "html.parser"), table)


def test_missing_field_resolves_to_none():
    """A field with no candidate on the page is absent, not an error."""
    resolver = make_resolver("<html><body><p>nothing here</p></body></html>")
    assert resolver.resolve(candidates("txtVFNAME", "txtFirst", by_label("First Name"))) is None


def test_every_schema_field_is_absent_on_empty_page():
    resolver = make_resolver("<html><body></body></html>", PATIENT_SCHEMA)
    assert resolver.resolve("patientInfo.firstName") is None
    assert resolver.resolve("addresses.alternate.sameAsAbove") is None
    assert resolver.resolve("clinicalInfo.isDaiseyEnrolled") is None
    assert resolver.resolve("supportContact.isRequired") is None


def test_select_returns_displayed_text_not_code():
    html = """
    <select id="cmbVSEX">
        <option value="">-- Select --</option>
        <option value="F" selected>Female</option>
        <option value="M">Male</option>
    </select>
    """
    resolver = make_resolver(html)
    assert resolver.get_value("cmbVSEX") == "Female"


def test_select_without_selected_option_reads_first_option():
    html = '<select id="cmbPronoun"><option value="0">  Not   specified </option><option value="1">She/Her</option></select>'
    assert make_resolver(html).get_value("cmbPronoun") == "Not specified"


def test_checkbox_reads_as_boolean():
    html = '<input type="checkbox" id="chkVIP" checked><input type="checkbox" id="chkDeceased">'
    resolver = make_resolver(html)
    assert resolver.get_value("chkVIP") is True
    assert resolver.get_value("chkDeceased") is False


def test_radio_group_returns_checked_member_value():
    html = """
    <input type="radio" id="rdoContactPhone" name="contact" value="phone">
    <input type="radio" id="rdoContactEmail" name="contact" value="email" checked>
    """
    resolver = make_resolver(html)
    assert resolver.get_value("rdoContactPhone") == "email"


def test_radio_group_with_nothing_checked_is_absent():
    html = '<input type="radio" id="rdoA" name="grp" value="a"><input type="radio" id="rdoB" name="grp" value="b">'
    assert make_resolver(html).get_value("rdoA") is None


def test_present_blank_text_returns_empty_string():
    resolver = make_resolver('<input type="text" id="txtVMNAME" value="">')
    assert resolver.get_value("txtVMNAME") == ""
    assert resolver.resolve(candidates("txtVMNAME")) == ""


def test_textarea_reads_content():
    resolver = make_resolver('<textarea id="txtVComments">Prefers morning visits</textarea>')
    assert resolver.get_value("txtVComments") == "Prefers morning visits"


def test_first_non_empty_candidate_wins():
    html = '<input id="cmbVTitle" value=""><select id="cmbTitle"><option selected>Dr.</option></select>'
    resolver = make_resolver(html)
    assert resolver.resolve(candidates("cmbVTitle", "cmbTitle")) == "Dr."


def test_id_candidates_are_tried_before_labels():
    html = """
    <table><tr><td>Previous</td><td><input id="other" value="FromLabel"></td></tr></table>
    <input id="txtPreviousFirstName" value="FromId">
    """
    resolver = make_resolver(html)
    spec = candidates(by_label("Previous"), "txtPreviousFirstName")
    assert resolver.resolve(spec) == "FromId"


def test_label_fallback_reads_next_sibling_control():
    html = """
    <table>
        <tr><td>Chart No.</td><td><input type="text" name="chart" value="CH-778"></td></tr>
    </table>
    """
    resolver = make_resolver(html)
    assert resolver.resolve(candidates("txtChartNo", by_label("Chart No."))) == "CH-778"


def test_label_fallback_uses_first_match_in_document_order():
    html = """
    <div><label>Previous Name</label><span><input value="First"></span></div>
    <div><label>Previous Address</label><span><input value="Second"></span></div>
    """
    assert make_resolver(html).get_value_by_label("Previous") == "First"


def test_label_fallback_reads_select_text():
    html = '<div><label>Marital</label><div><select><option value="2" selected>Married</option></select></div></div>'
    assert make_resolver(html).get_value_by_label("Marital") == "Married"


def test_text_flag_locator():
    html = '<a id="lnkDaisey">Daisey: Enrolled</a>'
    resolver = make_resolver(html)
    assert resolver.resolve(candidates(by_text("lnkDaisey", "Enrolled"))) is True
    resolver = make_resolver('<a id="lnkDaisey">Enroll now</a>')
    assert resolver.resolve(candidates(by_text("lnkDaisey", "Enrolled"))) is False


def test_transform_applies_only_to_present_values():
    spec = candidates("isMdnSupportContact", transform=lambda v: v == "1")
    assert make_resolver('<input type="hidden" id="isMdnSupportContact" value="1">').resolve(spec) is True
    assert make_resolver('<input type="hidden" id="isMdnSupportContact" value="0">').resolve(spec) is False
    assert make_resolver("<div></div>").resolve(spec) is None


def test_unknown_logical_name_raises_key_error():
    resolver = make_resolver("<div></div>", PATIENT_SCHEMA)
    with pytest.raises(KeyError):
        resolver.resolve("patientInfo.favouriteColour")
