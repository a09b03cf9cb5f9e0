#!/usr/bin/env python3
"""
URL knowledge for the two portals.
CureMD patient pages and the eClinicalWorks appointment search endpoint.
"""

import os
from urllib.parse import urlencode

DEFAULT_CUREMD_BASE_URL = "https://app4.curemd.net/curemdc"

# Patient details page (the target of a search result row)
DETAILS_PAGE = "Patient/datPatient.aspx"
DETAILS_PAGE_MARKER = "datPatient.aspx"

ECW_SEARCH_PATH = "/mobiledoc/Controller"


def get_curemd_base_url():
    return os.getenv('CUREMD_BASE_URL', DEFAULT_CUREMD_BASE_URL).rstrip("/")


def get_details_url(patient_id, base_url=None):
    """
    Get the patient details URL for an internal patient id.

    Args:
        patient_id: Hidden patient id taken from a search result row
        base_url: CureMD base URL (default: CUREMD_BASE_URL or the public app4 host)

    Returns:
        Details page URL string

    Examples:
        >>> get_details_url("12345", base_url="https://app4.curemd.net/curemdc")
        'https://app4.curemd.net/curemdc/Patient/datPatient.aspx?intPatient_ID=12345&PatientId=12345'
    """
    base = (base_url or get_curemd_base_url()).rstrip("/")
    query = urlencode({'intPatient_ID': patient_id, 'PatientId': patient_id})
    return f"{base}/{DETAILS_PAGE}?{query}"


def is_details_page(url):
    return DETAILS_PAGE_MARKER in (url or "")


def get_search_url(origin, result_size):
    """
    Get the appointment search endpoint URL.

    Args:
        origin: Scheme and host of the eClinicalWorks instance, e.g. "https://ecw.example.org"
        result_size: Maximum number of results requested

    Returns:
        Endpoint URL string
    """
    if not origin:
        raise ValueError("origin is required (set ECW_BASE_URL or pass --origin)")
    query = urlencode({'action': "searchappt", 'project': "WebEMR", 'resultSize': result_size})
    return f"{origin.rstrip('/')}{ECW_SEARCH_PATH}?{query}"
