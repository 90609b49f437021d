"""Shared Playwright helpers: resource blocking and selector fallback chains."""

from typing import Sequence

from playwright.async_api import ElementHandle, Page, Route

from src.schulmanager.logging import get_logger

log = get_logger(__name__)

# Stylesheets stay allowed: the Angular grid relies on them for layout and
# the lesson markers are identified by class.
BLOCKED_RESOURCE_TYPES: frozenset[str] = frozenset({"image", "font", "media"})


async def configure_page_for_scraping(
    page: Page, *, block_resources: bool = True, timeout_ms: int = 30000
) -> None:
    """Set up a Playwright page for scraping the portal.

    Args:
        page: Playwright Page instance.
        block_resources: Abort image, font and media requests.
        timeout_ms: Default timeout for actions and navigations.
    """

    async def _block_resources(route: Route) -> None:
        if route.request.resource_type in BLOCKED_RESOURCE_TYPES:
            await route.abort()
        else:
            await route.continue_()

    if block_resources:
        await page.route("**/*", _block_resources)
    page.set_default_timeout(timeout_ms)
    page.set_default_navigation_timeout(timeout_ms)


async def first_match(page: Page, selectors: Sequence[str]) -> ElementHandle | None:
    """Return the element for the first selector that matches, if any.

    Args:
        page: Page to search.
        selectors: Candidate CSS selectors, most specific first.
    """
    for selector in selectors:
        element = await page.query_selector(selector)
        if element is not None:
            log.debug("selector_matched", selector=selector)
            return element
    log.debug("selector_chain_exhausted", tried=list(selectors))
    return None
