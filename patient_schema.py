#!/usr/bin/env python3
"""
Patient details schema.
Maps every logical field of the CureMD patient details page to the element ids
(and, where needed, label text) it has been seen under across page variants.

When the portal renames a control, add the new id to the candidate list here;
the resolver itself does not change.
"""

from field_resolver import by_label, by_text, candidates

SCHEMA_VERSION = "2025.12"


def _equals_one(value):
    return value == "1"


PATIENT_SCHEMA = {
    'patientInfo': {
        'patientId': candidates("intPatient_ID"),
        'accountNumber': candidates("TxtVAcc"),
        'chartNumber': candidates("txtChartNo", by_label("Chart No.")),
        'title': candidates("cmbVTitle", "cmbTitle"),
        'firstName': candidates("txtVFNAME"),
        'middleName': candidates("txtVMNAME"),
        'lastName': candidates("txtVLNAME"),
        'suffix': candidates("cmbSuffix", "cmbSupportSuffix"),
        'preferredName': candidates("txtVPREFNAME"),
        'pronoun': candidates("cmbPronoun"),
        'dateOfBirth': candidates("txtDDOB"),
        'age': candidates("txtAge", "patAgeSupportContact"),
        'ssn': candidates("txtVSSN"),
        'gender': candidates("cmbVSEX", "cmbSEX"),
        'genderIdentity': candidates("cmbGenderIdentity"),
        'sexualOrientation': candidates("cmbSexualOrientation"),
        'maritalStatus': candidates("cmbvstatus", "cmbMaritalStatus", "cmbVSTATUS"),
    },
    'addresses': {
        'current': {
            'address1': candidates("txtvaddress1", "txtVAddress1"),
            'address2': candidates("txtvaddress2", "txtVAddress2"),
            'city': candidates("txtvcity", "txtVCity"),
            'state': candidates("txtVSTATE", "cmbState"),
            'zip': candidates("txtVZIP", "SelectZipPatient", "txtZip"),
            'county': candidates("txtVCounty"),
            'country': candidates("ddlCountry", "cmbCountry"),
        },
        'alternate': {
            'sameAsAbove': candidates("chkMailingAddress", "chkSameAsAbove"),
            'address1': candidates("txtMailingAddress1", "txtAlternateAddress1"),
            'address2': candidates("txtMailingAddress2", "txtAlternateAddress2"),
            'city': candidates("txtMailingCity", "txtAlternateCity"),
            'state': candidates("cmbMailingState", "cmbAlternateState"),
            'zip': candidates("txtMailingZipCode", "txtAlternateZip"),
            'county': candidates("txtMailingCounty", "txtAlternateCounty"),
            'country': candidates("ddlPrtCountry", "cmbMailingCountry", "cmbAlternateCountry"),
        },
    },
    'contactInfo': {
        'mobile': candidates("txtVPHONE", "txtCPhone", "txtMobile"),
        'phoneType': candidates("cmbPhoneTypes", "cmbPhoneTypesX"),
        'homePhone': candidates("txtVHPHONE"),
        'workPhone': candidates("txtVWPHONE"),
        'email': candidates("txtVEmail"),
        'preferredContactMethod': candidates("cmbPreferredContact"),
        'textViaEmail': candidates("txtTextViaEmail"),
        'otherContacts': candidates("txtOtherContacts", "Txt_1_0"),
    },
    'insurance': {
        'primary': {
            'insuranceName': candidates("txtPInsuranceName"),
            'policyNumber': candidates("txtVIDNum"),
            'groupNumber': candidates("txtVGroupNum"),
            'subscriberId': candidates("txtPSubscriberId"),
            'relationToInsured': candidates("cmbRelationship"),
            'planId': candidates("hdniPlanId"),
        },
        'secondary': {
            'insuranceName': candidates("txtSInsuranceName"),
            'policyNumber': candidates("txtSecVIDNUM"),
            'groupNumber': candidates("txtSecVGroupNum"),
            'subscriberId': candidates("txtSSubscriberId"),
            'relationToInsured': candidates("cmbSecRelationship"),
        },
    },
    'providers': {
        'location': candidates("cmbILOCID"),
        'primaryProvider': candidates("PrimaryCareText", "TxtRefPRVName"),
        'primaryCarePhone': candidates("PrimaryCarePhone"),
        'primaryCareSpecialty': candidates("cmbSpecprimary"),
        'referringProvider': candidates("txtReferringProvider", "cmbIPRVID"),
        'billingProvider': candidates("cmbBilling_Provider"),
        'renderingProvider': candidates("cmbIPRVID"),
        'referralSource': candidates("cmbFindUS", "cmbReferralSource"),
        'sourceDetails': candidates("txtSourceDetails"),
        'agency': candidates("cmbAgency"),
    },
    'demographics': {
        'race': candidates("txtRace_txtField", "ctrltxtRace", "hdnRaceName"),
        'ethnicity': candidates("ddlEthnicity", "cmbEthnicity"),
        'language': candidates("txtLanguage_txtField", "ctrltxtLanguage", "hdnMultipleLanguages"),
        'limitedEnglishProficiency': candidates("chkLimitedEnglish"),
        'religion': candidates("ddlReligion", "cmbReligion"),
        'education': candidates("ddlEducation"),
    },
    'employment': {
        'workStatus': candidates("cmbVWSTATUS", "cmbEmploymentStatus", "cmbWorkStatus"),
        'employer': candidates("txtEmployer"),
        'occupation': candidates("txtOccupation"),
        'studentStatus': candidates("cmbStudentStatus"),
    },
    'emergencyContact': {
        'name': candidates("txtEmergencyContactName"),
        'relationship': candidates("cmbEmergencyRelationship"),
        'phone': candidates("txtEmergencyPhone"),
        'address': candidates("txtEmergencyAddress"),
    },
    'clinicalInfo': {
        'isDeceased': candidates("chkDeceased"),
        'deceasedDate': candidates("txtDeceasedDate"),
        'isVIP': candidates("chkVIP"),
        'isTestPatient': candidates("hdnIsTestPatient"),
        'comments': candidates("txtVComments"),
        'isDaiseyEnrolled': candidates(by_text("lnkDaisey", "Enrolled")),
    },
    'previousNames': {
        'firstName': candidates("txtPreviousFirstName", by_label("Previous")),
        'lastName': candidates("txtPreviousLastName"),
    },
    'mothersMaiden': {
        'firstName': candidates("txtMotherFirstName"),
        'lastName': candidates("txtMotherLastName"),
    },
    'commonWell': {
        'enabled': candidates("toggleCommonWellHeaderButton", "patientToggleCheckbox"),
        'consentId': candidates("hdnConsentID"),
        'isPersonFlowCompleted': candidates("hdnCWPersonFlowCompleted"),
        'isBackloadSent': candidates("isCommonWellBackloadSent"),
    },
    'supportContact': {
        'isRequired': candidates("isMdnSupportContact", transform=_equals_one),
        'title': candidates("cmbSupportTitle"),
        'suffix': candidates("cmbSupportSuffix"),
        'isTitleType': candidates("isTitleSupportContact"),
    },
}

# Fields that also go into the metadata block of every extraction
METADATA_FIELDS = {
    'patientId': "patientInfo.patientId",
    'accountNumber': "patientInfo.accountNumber",
}


def iter_fields(node=None, prefix=""):
    """
    Walk the schema and yield (dotted_name, FieldSpec) pairs in table order.
    """
    node = PATIENT_SCHEMA if node is None else node
    for key, value in node.items():
        name = f"{prefix}.{key}" if prefix else key
        if isinstance(value, dict):
            yield from iter_fields(value, name)
        else:
            yield name, value
