"""Playwright session management for Schulmanager authentication.

SessionManager owns the one browser, context and page set used by the whole
process. Login is single-flight: concurrent callers share one in-progress
attempt. Pages are handed out through a small pool so that navigate+extract
sequences from concurrent requests queue instead of racing on one page.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, AsyncIterator, Awaitable, Callable

from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from playwright.async_api import async_playwright

from src.schulmanager import markers
from src.schulmanager.config import SchulmanagerConfig, get_config
from src.schulmanager.errors import AuthenticationError, NotAuthenticatedError
from src.schulmanager.logging import get_logger
from src.schulmanager.utils import configure_page_for_scraping, first_match

if TYPE_CHECKING:
    from playwright.async_api import Browser, BrowserContext, Page, Playwright

logger = get_logger(__name__)

BrowserLauncher = Callable[[], Awaitable["Browser"]]


class SessionManager:
    """Single shared browser session against the Schulmanager portal.

    Construct one per process (or per test) and pass it to whatever needs
    it. ``login`` never raises; fetches go through ``acquire_page``.
    """

    def __init__(
        self,
        config: SchulmanagerConfig | None = None,
        launcher: BrowserLauncher | None = None,
    ) -> None:
        """Initialize SessionManager.

        Args:
            config: Scraper configuration, defaults to the process config.
            launcher: Coroutine factory returning a Browser. Defaults to
                launching Chromium through Playwright.
        """
        self.config = config or get_config()
        self._launcher = launcher
        self._playwright: "Playwright | None" = None
        self._browser: "Browser | None" = None
        self._context: "BrowserContext | None" = None
        self._page: "Page | None" = None
        self._pool: "asyncio.Queue[Page] | None" = None
        self._logged_in = False
        self._login_task: "asyncio.Task[bool] | None" = None

    async def __aenter__(self) -> "SessionManager":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    def is_authenticated(self) -> bool:
        return self._logged_in

    async def login(self, username: str, password: str) -> bool:
        """Log into Schulmanager, sharing any attempt already in progress.

        Args:
            username: Schulmanager account e-mail.
            password: Schulmanager account password.

        Returns:
            True if the session is authenticated afterwards.
        """
        if self._logged_in:
            return True

        task = self._login_task
        if task is None or task.done():
            task = asyncio.ensure_future(self._perform_login(username, password))
            task.add_done_callback(self._clear_login_task)
            self._login_task = task
        else:
            logger.debug("login_joined_in_flight")

        # Shield so one cancelled caller does not abort the shared attempt
        try:
            return await asyncio.shield(task)
        except asyncio.CancelledError:
            if task.cancelled():
                # Attempt aborted by close()
                return False
            raise

    def _clear_login_task(self, task: "asyncio.Task[bool]") -> None:
        if self._login_task is task:
            self._login_task = None

    async def _ensure_page(self) -> "Page":
        """Launch the browser and open the primary page on first use."""
        if self._page is not None:
            return self._page

        if self._browser is None:
            if self._launcher is not None:
                self._browser = await self._launcher()
            else:
                self._playwright = await async_playwright().start()
                self._browser = await self._playwright.chromium.launch(
                    headless=self.config.headless,
                    args=self.config.browser_args,
                )
            logger.info("browser_launched", headless=self.config.headless)

        self._context = await self._browser.new_context(locale="de-DE")
        self._page = await self._new_page()
        return self._page

    async def _new_page(self) -> "Page":
        page = await self._context.new_page()
        await configure_page_for_scraping(
            page,
            block_resources=self.config.block_resources,
            timeout_ms=self.config.navigation_timeout_ms,
        )
        return page

    def check_page_authenticated(self, page: "Page") -> bool:
        """Whether the page URL is inside the authenticated area.

        The portal keeps the login host and switches to hash routing after
        login, so the URL is the only reliable signal.
        """
        return self.config.schulmanager_authenticated_url_pattern in page.url

    async def _perform_login(self, username: str, password: str) -> bool:
        if not username or not password:
            logger.warning("login_skipped", reason="missing_credentials")
            self._logged_in = False
            return False

        cfg = self.config
        logger.info("login_started", url=cfg.schulmanager_login_url)

        try:
            page = await self._ensure_page()
            await page.goto(
                cfg.schulmanager_login_url,
                wait_until="networkidle",
                timeout=cfg.navigation_timeout_ms,
            )
            await page.wait_for_timeout(cfg.login_settle_ms)

            email_input = await first_match(page, markers.EMAIL_SELECTORS)
            if email_input is None:
                raise AuthenticationError("Could not find email input field")
            await email_input.fill(username)

            password_input = await first_match(page, markers.PASSWORD_SELECTORS)
            if password_input is None:
                raise AuthenticationError("Could not find password input field")
            await password_input.fill(password)

            submit = await first_match(page, markers.SUBMIT_SELECTORS)
            if submit is None:
                raise AuthenticationError("Could not find submit button")

            try:
                async with page.expect_navigation(
                    wait_until="domcontentloaded",
                    timeout=cfg.navigation_timeout_ms,
                ):
                    await submit.click()
            except PlaywrightTimeoutError:
                # Hash routing may not count as navigation; verify by URL below
                logger.warning("login_navigation_timeout")

            await page.wait_for_timeout(cfg.post_login_settle_ms)

            self._logged_in = self.check_page_authenticated(page)
            if self._logged_in:
                await self._build_pool(page)
                logger.info("login_succeeded")
            else:
                logger.error(
                    "login_failed", reason="not_redirected", url=page.url
                )
            return self._logged_in

        except Exception as e:
            logger.error("login_failed", error=str(e), type=type(e).__name__)
            self._logged_in = False
            return False

    async def _build_pool(self, primary: "Page") -> None:
        if self._pool is not None:
            return
        pool: "asyncio.Queue[Page]" = asyncio.Queue()
        pool.put_nowait(primary)
        for _ in range(self.config.page_pool_size - 1):
            pool.put_nowait(await self._new_page())
        self._pool = pool
        logger.debug("page_pool_ready", size=pool.qsize())

    @asynccontextmanager
    async def acquire_page(self) -> AsyncIterator["Page"]:
        """Borrow an authenticated page for one navigate+extract sequence.

        Waits while every page is in use.

        Raises:
            NotAuthenticatedError: If no login has succeeded yet.
        """
        if not self._logged_in or self._pool is None:
            raise NotAuthenticatedError()
        pool = self._pool
        page = await pool.get()
        try:
            yield page
        finally:
            pool.put_nowait(page)

    async def close(self) -> None:
        """Close the browser and reset to unauthenticated. Safe to call twice."""
        task, self._login_task = self._login_task, None
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                logger.info("login_aborted", reason="session_closed")

        browser, playwright = self._browser, self._playwright
        self._browser = None
        self._playwright = None
        self._context = None
        self._page = None
        self._pool = None
        self._logged_in = False

        if browser is not None:
            await browser.close()
            logger.info("browser_closed")
        if playwright is not None:
            await playwright.stop()
