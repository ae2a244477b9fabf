"""
Resolution of the sketch IDs to download, by search term, user, curation or explicit ID.
"""

import logging
import re
from typing import Iterable, List

from playwright.async_api import Browser, BrowserType, Error as PlaywrightError, Page

from .api import FETCH_ERRORS, OpenProcessingApi
from .config import (
    CREATE_SKETCH_HREF,
    MIN_SEARCH_TERM_LENGTH,
    SHOW_MORE_ACTIVE_CLASS,
    SHOW_MORE_SELECTOR,
    SKETCH_LINK_SELECTOR,
    Mode,
    Settings,
)

logger = logging.getLogger(__name__)

SKETCH_HREF_PATTERN = re.compile(r"/sketch/(\d+)")

CLICK_SHOW_MORE_JS = """([selector, activeClass]) => {
    const button = document.querySelector(selector);
    if (button && button.classList.contains(activeClass)) {
        button.click();
        return true;
    }
    return false;
}"""

COLLECT_HREFS_JS = "links => links.map(link => link.getAttribute('href') || '')"


def extract_sketch_ids(hrefs: Iterable[str]) -> List[str]:
    """Sketch IDs found in the given hrefs, unique and in order of appearance."""
    ids: List[str] = []
    seen = set()
    for href in hrefs:
        if not href or href == CREATE_SKETCH_HREF:
            continue
        match = SKETCH_HREF_PATTERN.search(href)
        if not match:
            continue
        sketch_id = match.group(1)
        if sketch_id not in seen:
            seen.add(sketch_id)
            ids.append(sketch_id)
    return ids


async def load_all_results(page: Page, delay_ms: int) -> int:
    """Click "show more" until the control goes inactive. Returns the number of clicks."""
    clicks = 0
    while await page.evaluate(CLICK_SHOW_MORE_JS, [SHOW_MORE_SELECTOR, SHOW_MORE_ACTIVE_CLASS]):
        clicks += 1
        logger.debug(f'Clicked "Show More" {clicks} times, waiting for more sketches to load...')
        await page.wait_for_timeout(delay_ms)
    logger.debug('No more "Show More" button found, proceeding to scrape sketch IDs...')
    return clicks


async def _close_browser(browser: Browser) -> None:
    try:
        await browser.close()
    except PlaywrightError as exc:
        logger.warning(f"Could not close the browser cleanly: {exc}")


async def search_by_term(browser_type: BrowserType, settings: Settings) -> List[str]:
    term = settings.search_term
    logger.info(f'🔍 Searching sketches matching the term: "{term}"')
    if len(term) < MIN_SEARCH_TERM_LENGTH:
        logger.warning(
            f"Search terms shorter than {MIN_SEARCH_TERM_LENGTH} characters usually return nothing"
        )

    try:
        browser = await browser_type.launch(headless=settings.headless)
    except PlaywrightError as exc:
        logger.error(f"😬 Could not launch the browser: {exc}")
        return []

    try:
        page = await browser.new_page()
        await page.goto(
            settings.search_url,
            wait_until="networkidle",
            timeout=settings.network_idle_timeout_ms,
        )
        await page.wait_for_timeout(settings.settle_delay_ms)
        await load_all_results(page, settings.load_more_delay_ms)
        hrefs = await page.eval_on_selector_all(SKETCH_LINK_SELECTOR, COLLECT_HREFS_JS)
        return extract_sketch_ids(hrefs)
    except PlaywrightError as exc:
        logger.error(f"😬 Error fetching sketch IDs by search: {exc}")
        return []
    finally:
        await _close_browser(browser)


async def list_user_sketches(api: OpenProcessingApi, user_id: str) -> List[str]:
    try:
        fullname = (await api.user(user_id)).fullname
    except FETCH_ERRORS as exc:
        logger.debug(f"Could not resolve user {user_id}: {exc}")
        fullname = None
    logger.info(f'🔍 Listing sketches for user "{fullname}" with ID: {user_id}')
    try:
        return await api.user_sketch_ids(user_id)
    except FETCH_ERRORS as exc:
        logger.error(f"😬 Error fetching sketches for user ID {user_id}: {exc}")
        return []


async def list_curation_sketches(api: OpenProcessingApi, curation_id: str) -> List[str]:
    try:
        title = (await api.curation(curation_id)).title
    except FETCH_ERRORS as exc:
        logger.debug(f"Could not resolve curation {curation_id}: {exc}")
        title = None
    logger.info(f'🔍 Listing sketches for curation "{title}" with ID: {curation_id}')
    try:
        return await api.curation_sketch_ids(curation_id)
    except FETCH_ERRORS as exc:
        logger.error(f"😬 Error fetching sketches for curation ID {curation_id}: {exc}")
        return []


async def collect_sketch_ids(
    settings: Settings,
    api: OpenProcessingApi,
    browser_type: BrowserType,
) -> List[str]:
    mode = settings.search_mode
    if mode == Mode.SEARCH_BY_TERM:
        return await search_by_term(browser_type, settings)
    if mode == Mode.SEARCH_BY_USER_ID:
        return await list_user_sketches(api, settings.user_id)
    if mode == Mode.SEARCH_BY_CURATION_ID:
        return await list_curation_sketches(api, settings.curation_id)
    if mode == Mode.SEARCH_BY_SKETCH_ID:
        logger.info(f"🔍 Fetching sketch with ID: {settings.sketch_id}")
        return [settings.sketch_id]
    logger.error(f"😬 Invalid mode specified: {mode}")
    return []
