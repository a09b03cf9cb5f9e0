#!/usr/bin/env python3
"""
CureMD Patient Data Extractor
A Playwright-based tool that reads the Patient Search results, opens the chosen
patient's details page, and extracts the full demographic record as JSON.
"""

import asyncio
import os
import sys
from pathlib import Path

from dotenv import load_dotenv
from playwright.async_api import async_playwright, TimeoutError as PlaywrightTimeoutError

from correlation import CorrelationStore, PatientSelection
from listing_extractor import extract_listing
from output import print_extraction_summary, print_listing, save_extraction
from page_capture import capture_snapshot, push_session_storage, wait_for_patient_page
from portal_urls import get_curemd_base_url, is_details_page
from record_extractor import extract_patient_details


class NoResultsFound(Exception):
    """The page has no patient search results, in the document or any frame."""


async def extract_current_details(page, output_dir=None):
    """Extract, summarize and save the details page currently loaded in page."""
    snapshot = await capture_snapshot(page)
    result = extract_patient_details(snapshot)
    print_extraction_summary(result)
    save_extraction(result, output_dir)
    return result


async def open_and_extract(page, selection, patient, output_dir=None):
    """
    Hand a selected patient to the details page and extract it.

    The selection has already been written to the correlation store; it is
    pushed into sessionStorage before navigating so the details page can read
    it back.
    """
    details_url = selection.details_url(patient)
    print(f"✓ Opening patient details for: {patient.patient_name}")
    print(f"  Hidden ID: {patient.hidden_patient_id}")
    print(f"  Account #: {patient.account_number}")
    print(f"  URL: {details_url}\n")

    await push_session_storage(page, selection.store)
    await page.goto(details_url, wait_until="domcontentloaded", timeout=60000)
    try:
        await page.wait_for_load_state("networkidle", timeout=30000)
    except PlaywrightTimeoutError:
        print("⚠️  Page load timeout, continuing anyway...")
    return await extract_current_details(page, output_dir)


async def run_from_search_page(page, index=None, open_all=False, base_url=None, output_dir=None):
    """
    Read the search results on page and extract the selected patient(s).

    Args:
        page: Playwright page showing Patient Search results
        index: Listing index of the patient to open (optional)
        open_all: Extract every listed patient in turn
        base_url: CureMD base URL for details links
        output_dir: Where to save JSON files

    Returns:
        List of extraction results (empty if the operator still has to choose)

    Raises:
        NoResultsFound: If no result rows exist on the page or in its frames
    """
    snapshot = await capture_snapshot(page)
    listing = extract_listing(snapshot)
    if listing is None:
        raise NoResultsFound("Could not find any patient results.")
    if not listing.patients:
        raise NoResultsFound(
            f"Found {listing.rows_found} result row(s) in {listing.source}, "
            "but none had a readable patient ID."
        )

    print_listing(listing)

    store = CorrelationStore(dict(snapshot.session_storage))
    selection = PatientSelection(listing.patients, store, base_url=base_url)
    selection.remember_listing()

    if open_all:
        print(f"Opening {len(selection)} patient(s)...")
        results = []
        for patient in selection.select_all():
            results.append(await open_and_extract(page, selection, patient, output_dir))
        return results

    if index is None and len(selection) == 1:
        index = selection.patients[0].index

    if index is None:
        await push_session_storage(page, store)
        print("📋 Multiple patients found. To open a specific patient, run again with:")
        print("   --index N   (e.g. --index 1)")
        print("   --all       (extract every patient in the list)")
        return []

    patient = selection.select(index)
    return [await open_and_extract(page, selection, patient, output_dir)]


async def run_extractor(start_url=None, index=None, open_all=False, headless=False,
                        slow_mo=250, output_dir=None, wait_timeout=300.0):
    """
    Open the portal in a browser and extract patient data.

    Args:
        start_url: Page to open first (optional; otherwise the last session page)
        index: Listing index of the patient to open (optional)
        open_all: Extract every patient in the listing
        headless: Run browser in headless mode (default: False)
        slow_mo: Slow down operations by milliseconds (default: 250)
        output_dir: Where to save JSON files (default: CUREMD_OUTPUT_DIR)
        wait_timeout: Seconds to wait for a patient page (default: 300)

    Returns:
        List of extraction results
    """
    print("=== CureMD Patient Data Extractor ===")
    print(f"   Mode: {'Headless' if headless else 'Visible'}")
    base_url = get_curemd_base_url()

    base_dir = Path(__file__).parent
    user_data_dir = base_dir / ".browser-data"
    user_data_dir.mkdir(exist_ok=True)

    async with async_playwright() as p:
        # Persistent context keeps the login session between runs
        context = await p.chromium.launch_persistent_context(
            user_data_dir=str(user_data_dir),
            headless=headless,
            slow_mo=slow_mo,
            viewport=None,
        )
        print("💡 Tip: You can login manually in the browser window")
        print("   Your login session will be saved and reused in future runs")

        page = context.pages[0] if context.pages else await context.new_page()
        try:
            if start_url:
                print(f"📡 Navigating to {start_url}")
                await page.goto(start_url, wait_until="domcontentloaded", timeout=60000)

            if not await wait_for_patient_page(page, timeout=wait_timeout):
                raise NoResultsFound("No patient search results or details page was reached.")

            if is_details_page(page.url):
                return [await extract_current_details(page, output_dir)]

            return await run_from_search_page(
                page, index=index, open_all=open_all, base_url=base_url, output_dir=output_dir
            )
        finally:
            await context.close()
            print("✅ Browser context closed")


def main():
    """Main entry point."""
    import argparse

    load_dotenv()

    parser = argparse.ArgumentParser(description="Extract patient demographics from CureMD")
    parser.add_argument(
        "--url",
        type=str,
        default=os.getenv('CUREMD_START_URL'),
        help="Page to open first (default: CUREMD_START_URL)"
    )
    parser.add_argument(
        "--index",
        type=int,
        default=None,
        help="Listing index of the patient to open when several are found"
    )
    parser.add_argument(
        "--all",
        action="store_true",
        help="Extract every patient in the search results"
    )
    parser.add_argument(
        "--output-dir",
        type=str,
        default=None,
        help="Directory for JSON output (default: CUREMD_OUTPUT_DIR or ./scraped-data)"
    )
    parser.add_argument(
        "--headless",
        action="store_true",
        help="Run browser in headless mode"
    )
    parser.add_argument(
        "--no-slow",
        action="store_true",
        help="Disable slow motion (faster execution)"
    )
    parser.add_argument(
        "--wait",
        type=float,
        default=300.0,
        help="Seconds to wait for a patient page (default: 300)"
    )

    args = parser.parse_args()

    try:
        results = asyncio.run(run_extractor(
            start_url=args.url,
            index=args.index,
            open_all=args.all,
            headless=args.headless,
            slow_mo=0 if args.no_slow else 250,
            output_dir=args.output_dir,
            wait_timeout=args.wait,
        ))
        print(f"\n✨ Extracted {len(results)} patient record(s)")
        sys.exit(0)
    except NoResultsFound as error:
        print(f"\n❌ Error: {error}")
        print("Make sure you're on the Patient Search results page with results displayed.")
        print("\nTip: Perform a search first to see patient results, then run this script.")
        sys.exit(1)
    except ValueError as error:
        print(f"\n❌ {error}")
        sys.exit(1)
    except Exception as error:
        print(f"\n💥 Extraction failed: {error}")
        import traceback
        traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()
