#!/usr/bin/env python3
"""
ECW Appointment Search
Sends one appointment search to an eClinicalWorks instance and flattens the
per-provider results into a single list of slots.

INPUT: a JSON params file, e.g.
    {
        "providers": [123456, {"id": 789012, "vrule": 2, "name": "Dr. Smith"}],
        "visitType": "VISIT_TYPE_CODE",
        "startDate": "01/20/2026",
        "duration": 15
    }
OUTPUT: slots as JSON (stdout or --out file)
"""

import json
import os
import sys
from pathlib import Path
from typing import Any, Dict, List

import requests
from dotenv import load_dotenv
from pydantic import ValidationError

from models import SearchParams, SlotRecord
from output import print_slot_table, save_json
from portal_urls import get_search_url


class SearchError(Exception):
    """Base class for appointment search failures."""


class SearchConfigError(SearchError):
    """The search parameters are invalid; no request was sent."""


class SearchRequestError(SearchError):
    """The search request failed or returned something unusable."""


def load_search_params(raw) -> SearchParams:
    """
    Validate raw search parameters.

    Args:
        raw: Dictionary of parameters (camelCase keys) or a SearchParams

    Returns:
        SearchParams with every optional field defaulted

    Raises:
        SearchConfigError: If providers or visitType is missing, or any field is invalid
    """
    if isinstance(raw, SearchParams):
        return raw
    if not isinstance(raw, dict):
        raise SearchConfigError("search parameters must be an object")
    try:
        return SearchParams.model_validate(raw)
    except ValidationError as e:
        problems = []
        for error in e.errors():
            location = ".".join(str(part) for part in error['loc']) or "params"
            problems.append(f"{location}: {error['msg']}")
        raise SearchConfigError("; ".join(problems)) from e


def _flag(value):
    return "1" if value else "0"


def build_criteria(params: SearchParams) -> List[Dict[str, Any]]:
    return [{
        'vt': params.visit_type,
        'facility': params.facility,
        'visitStartDate': params.start_date,
        'visitStartTime': params.start_time,
        'visitEndTime': params.end_time,
        'waitTime': str(params.next_appt_after),
        'sameTimeAppt': _flag(params.start_at_same_time),
        'reason': params.reason,
        'specialty': params.specialty,
        'gender': params.gender,
        'language': params.language,
        'showOnlyResidents': _flag(params.show_only_residents),
        'acceptingNewPatient': _flag(params.accepting_new_patient),
        'providerandvrule': [p.to_criteria() for p in params.providers],
    }]


def build_form_data(params: SearchParams) -> Dict[str, str]:
    """Form body for the search endpoint; every field is always sent."""
    return {
        'criteria': json.dumps(build_criteria(params), separators=(",", ":")),
        'startDate': params.start_date,
        'startTimefrm': params.start_time,
        'endTimefrm': params.end_time,
        'nSchDuration': str(params.duration),
        'dayPref': params.day_pref,
        'excludeBookedSlots': _flag(params.exclude_booked_slots),
        'excludeBlockedSlots': _flag(params.exclude_blocked_slots),
    }


def build_headers(csrf_token=None):
    headers = {
        'Content-Type': "application/x-www-form-urlencoded; charset=UTF-8",
        'Accept': "application/json, text/plain, */*",
        'X-Requested-With': "XMLHttpRequest",
        'isajaxrequest': "true",
    }
    if csrf_token:
        headers['X-CSRF-Token'] = csrf_token
    return headers


def _missing(value):
    return value is None or value == ""


def flatten_results(response_data) -> List[SlotRecord]:
    """
    Flatten the group -> results response into one list of slots.

    A slot keeps its own duration; the group's duration only fills it in when
    the slot has none. Order follows the response.

    Raises:
        SearchRequestError: If the body is not a list of groups
    """
    if not isinstance(response_data, list):
        raise SearchRequestError("Malformed response body: expected a list of result groups")

    slots = []
    for group in response_data:
        if not isinstance(group, dict):
            raise SearchRequestError("Malformed response body: result group is not an object")
        results = group.get('results')
        if not isinstance(results, list):
            continue
        for slot in results:
            if not isinstance(slot, dict):
                raise SearchRequestError("Malformed response body: slot is not an object")
            duration = slot.get('slotduration')
            if _missing(duration):
                duration = slot.get('duration')
            if _missing(duration):
                duration = group.get('duration')
            slots.append(SlotRecord(
                slot_date=slot.get('date'),
                slot_time=slot.get('startTime'),
                slot_datetime=slot.get('datetime'),
                provider_name=slot.get('providerName'),
                provider_id=slot.get('providerId'),
                facility_name=slot.get('facilityName'),
                facility_id=slot.get('facilityId'),
                visit_type=slot.get('visitType'),
                duration=duration,
            ))
    return slots


def search_appointments(raw_params, origin, session=None, csrf_token=None) -> List[SlotRecord]:
    """
    Run one appointment search.

    Args:
        raw_params: Search parameters (dict or SearchParams)
        origin: Scheme and host of the eClinicalWorks instance
        session: requests.Session carrying the logged-in cookies (optional)
        csrf_token: Value for the X-CSRF-Token header (optional)

    Returns:
        List of SlotRecord

    Raises:
        SearchConfigError: Invalid parameters (nothing is sent)
        SearchRequestError: Network error, non-200 status, or malformed body
    """
    params = load_search_params(raw_params)
    url = get_search_url(origin, params.result_size)
    session = session or requests.Session()

    print("Sending request...")
    try:
        response = session.post(url, data=build_form_data(params), headers=build_headers(csrf_token))
    except requests.exceptions.RequestException as e:
        raise SearchRequestError(f"Network error: {e}") from e

    if response.status_code != 200:
        raise SearchRequestError(f"HTTP {response.status_code}")

    try:
        data = response.json()
    except ValueError as e:
        raise SearchRequestError(f"Malformed response body: {e}") from e

    return flatten_results(data)


def build_session(cookie=None):
    session = requests.Session()
    if cookie:
        session.headers['Cookie'] = cookie
    return session


def main():
    """Main entry point."""
    import argparse

    load_dotenv()

    parser = argparse.ArgumentParser(description="Search eClinicalWorks appointment slots")
    parser.add_argument(
        "--params",
        type=str,
        required=True,
        help="Path to a JSON file with the search parameters"
    )
    parser.add_argument(
        "--origin",
        type=str,
        default=os.getenv('ECW_BASE_URL'),
        help="eClinicalWorks origin, e.g. https://ecw.example.org (default: ECW_BASE_URL)"
    )
    parser.add_argument(
        "--cookie",
        type=str,
        default=os.getenv('ECW_COOKIE'),
        help="Cookie header of a logged-in browser session (default: ECW_COOKIE)"
    )
    parser.add_argument(
        "--csrf-token",
        type=str,
        default=os.getenv('ECW_CSRF_TOKEN'),
        help="CSRF token sent as X-CSRF-Token (default: ECW_CSRF_TOKEN)"
    )
    parser.add_argument(
        "--out",
        type=str,
        default=None,
        help="Write the slots JSON to this file instead of stdout"
    )

    args = parser.parse_args()

    params_file = Path(args.params)
    if not params_file.exists():
        print(f"❌ Error: File not found: {params_file}")
        sys.exit(1)

    try:
        with open(params_file, "r", encoding="utf-8") as f:
            raw_params = json.load(f)
    except json.JSONDecodeError as e:
        print(f"❌ Error: {params_file} is not valid JSON: {e}")
        sys.exit(1)

    print("🚀 ECW Search Starting...")
    try:
        slots = search_appointments(
            raw_params,
            args.origin,
            session=build_session(args.cookie),
            csrf_token=args.csrf_token,
        )
    except SearchConfigError as e:
        print(f"❌ Error: {e}")
        sys.exit(1)
    except (SearchRequestError, ValueError) as e:
        print(f"💥 Search failed: {e}")
        sys.exit(1)

    print(f"✅ Found {len(slots)} slots")
    if slots:
        print_slot_table(slots)

    output = [slot.to_json_dict() for slot in slots]
    if args.out:
        output_path = save_json(output, args.out)
        print(f"📋 Results saved to {output_path}")
    else:
        print(json.dumps(output, indent=2, ensure_ascii=False))


if __name__ == "__main__":
    main()
