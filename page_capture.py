#!/usr/bin/env python3
"""
Playwright page capture.
Copies a live portal page into a PageSnapshot, pushes correlation writes into
the tab's sessionStorage, and waits for the operator to reach a usable page.
"""

import asyncio
import time

from playwright.async_api import Error as PlaywrightError

from listing_extractor import ANCHOR_PREFIX
from page_snapshot import FrameSnapshot, PageSnapshot
from portal_urls import is_details_page

# Serialize the document with live form state written into attributes.
# Works on a clone so the page the operator is looking at is left untouched.
SNAPSHOT_SCRIPT = """
() => {
    const source = document.documentElement;
    const clone = source.cloneNode(true);
    const live = source.querySelectorAll('input, select, textarea');
    const copied = clone.querySelectorAll('input, select, textarea');
    live.forEach((el, i) => {
        const target = copied[i];
        if (!target) return;
        if (el.tagName === 'SELECT') {
            Array.from(el.options).forEach((opt, j) => {
                const copy = target.options[j];
                if (!copy) return;
                if (opt.selected) copy.setAttribute('selected', 'selected');
                else copy.removeAttribute('selected');
            });
        } else if (el.tagName === 'TEXTAREA') {
            target.textContent = el.value;
        } else if (el.type === 'checkbox' || el.type === 'radio') {
            if (el.checked) target.setAttribute('checked', 'checked');
            else target.removeAttribute('checked');
        } else {
            target.setAttribute('value', el.value);
        }
    });
    return '<!DOCTYPE html>' + clone.outerHTML;
}
"""

SESSION_STORAGE_SCRIPT = """
() => {
    const items = {};
    for (let i = 0; i < sessionStorage.length; i++) {
        const key = sessionStorage.key(i);
        items[key] = sessionStorage.getItem(key);
    }
    return items;
}
"""

SET_SESSION_ITEM_SCRIPT = "([key, value]) => sessionStorage.setItem(key, value)"

HAS_ROWS_SCRIPT = f"() => document.querySelector('a[id^=\"{ANCHOR_PREFIX}\"]') !== null"


async def capture_frame(frame):
    """Snapshot of one embedded frame; html is None if it cannot be read."""
    name = frame.name or "unnamed"
    try:
        html = await frame.evaluate(SNAPSHOT_SCRIPT)
    except PlaywrightError as e:
        print(f"⚠️  Could not read frame {name}: {e}")
        html = None
    return FrameSnapshot(name=name, url=frame.url, html=html)


async def capture_snapshot(page):
    """
    Capture the current state of a page.

    Args:
        page: Playwright page object

    Returns:
        PageSnapshot
    """
    html = await page.evaluate(SNAPSHOT_SCRIPT)
    try:
        session_storage = await page.evaluate(SESSION_STORAGE_SCRIPT)
    except PlaywrightError as e:
        print(f"⚠️  Could not read sessionStorage: {e}")
        session_storage = {}

    frames = []
    for frame in page.frames:
        if frame is page.main_frame:
            continue
        frames.append(await capture_frame(frame))

    return PageSnapshot(
        url=page.url,
        html=html,
        frames=frames,
        session_storage=dict(session_storage or {}),
    )


async def push_session_storage(page, store):
    """Write the store's pending values into the tab's sessionStorage."""
    for key, raw in store.pending_writes().items():
        await page.evaluate(SET_SESSION_ITEM_SCRIPT, [key, raw])


async def page_has_results(page):
    for frame in page.frames:
        try:
            if await frame.evaluate(HAS_ROWS_SCRIPT):
                return True
        except PlaywrightError:
            continue
    return False


async def wait_for_patient_page(page, timeout=300.0, check_interval=2.0):
    """
    Wait until the page shows search results or a patient details page.

    Args:
        page: Playwright page object
        timeout: Seconds to wait before giving up (default: 300)
        check_interval: Seconds between checks (default: 2)

    Returns:
        True if a usable page was reached, False on timeout
    """
    deadline = time.monotonic() + timeout
    announced = False
    while time.monotonic() < deadline:
        if page.is_closed():
            raise RuntimeError("Page was closed unexpectedly")
        if is_details_page(page.url) or await page_has_results(page):
            print(f"✅ Ready! Current URL: {page.url}")
            return True
        if not announced:
            print("⏳ Waiting for Patient Search results or a patient details page...")
            print("   Log in, run a patient search, and the script will continue automatically")
            announced = True
        await asyncio.sleep(check_interval)
    print("⚠️  Timed out waiting for a patient page")
    return False
