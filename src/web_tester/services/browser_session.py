"""Browser session manager owning one live page for the lifetime of a test run."""

import asyncio
import base64
import logging
import uuid
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, AsyncGenerator, Dict, List, Optional

from playwright.async_api import (
    async_playwright,
    Browser,
    ElementHandle,
    Page,
    Playwright,
    Error as PlaywrightError,
    TimeoutError as PlaywrightTimeoutError,
)

from ..core.config import settings
from ..core.errors import AnalysisUnavailable, BrowserNotInitialized, NavigationTimeout, SessionError
from ..core.models import PerformanceMetrics


logger = logging.getLogger(__name__)


CHROMIUM_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-accelerated-2d-canvas",
    "--disable-gpu",
]

# Candidate login controls, probed in order; first match wins per list
USERNAME_SELECTORS = [
    'input[name="username"]',
    'input[name="email"]',
    'input[type="email"]',
    'input[id*="username"]',
    'input[id*="email"]',
]

PASSWORD_SELECTORS = [
    'input[name="password"]',
    'input[type="password"]',
    'input[id*="password"]',
]

SUBMIT_SELECTORS = [
    'button[type="submit"]',
    'input[type="submit"]',
    'button:has-text("Login")',
    'button:has-text("Sign in")',
]

PERFORMANCE_TIMING_SCRIPT = """() => {
    const t = window.performance.timing;
    return {
        loadTime: t.loadEventEnd - t.navigationStart,
        domContentLoaded: t.domContentLoadedEventEnd - t.navigationStart
    };
}"""


@dataclass
class ConsoleCapture:
    """Console and page-error accumulator scoped to one session."""
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    page_errors: List[str] = field(default_factory=list)

    def on_console(self, message: Any):
        """Bucket a Playwright ConsoleMessage by severity."""
        message_type = message.type
        if message_type == "error":
            self.errors.append(message.text)
        elif message_type in ("warning", "warn"):
            self.warnings.append(message.text)

    def on_page_error(self, error: Any):
        """Record an uncaught exception thrown by page scripts."""
        text = getattr(error, "message", None) or str(error)
        logger.debug(f"Page error: {text}")
        self.page_errors.append(text)

    def to_dict(self) -> Dict[str, List[str]]:
        return {
            "errors": list(self.errors),
            "warnings": list(self.warnings),
            "pageErrors": list(self.page_errors),
        }


@dataclass(frozen=True)
class PageSnapshot:
    """Read-only copy of page state for collaborators that must not touch the live page."""
    url: str
    title: str
    html: str
    screenshot: Optional[bytes] = None
    taken_at: datetime = field(default_factory=datetime.now)


class BrowserSession:
    """Owns one headless Chromium page for a single run.

    The session is the only owner of the page. Steps take the page through
    ``exclusive()`` and read-only collaborators get a ``PageSnapshot`` instead
    of the live handle. Sessions are never pooled or shared between runs.
    """

    def __init__(
        self,
        headless: Optional[bool] = None,
        viewport_width: Optional[int] = None,
        viewport_height: Optional[int] = None,
        navigation_timeout_ms: Optional[int] = None,
        settle_delay_ms: Optional[int] = None,
        login_navigation_timeout_ms: Optional[int] = None,
    ):
        self.session_id = str(uuid.uuid4())
        self.headless = settings.HEADLESS if headless is None else headless
        self.viewport = {
            "width": viewport_width or settings.VIEWPORT_WIDTH,
            "height": viewport_height or settings.VIEWPORT_HEIGHT,
        }
        self.navigation_timeout_ms = navigation_timeout_ms or settings.NAVIGATION_TIMEOUT_MS
        self.settle_delay_ms = settings.SETTLE_DELAY_MS if settle_delay_ms is None else settle_delay_ms
        self.login_navigation_timeout_ms = login_navigation_timeout_ms or settings.LOGIN_NAVIGATION_TIMEOUT_MS

        self.console = ConsoleCapture()
        self.created_at = datetime.now()
        self.current_url: Optional[str] = None

        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._page: Optional[Page] = None
        self._closed = False
        self._lock = asyncio.Lock()

    async def __aenter__(self) -> 'BrowserSession':
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    @property
    def is_active(self) -> bool:
        return self._page is not None and not self._closed

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def page(self) -> Page:
        if self._page is None or self._closed:
            raise BrowserNotInitialized()
        return self._page

    async def initialize(self):
        """Launch the browser, open the page and wire the console listeners."""
        if self._closed:
            raise SessionError(f"Session {self.session_id} is already closed")
        if self._page is not None:
            logger.warning(f"Session {self.session_id} is already initialized")
            return

        logger.info("🌐 Launching browser...")
        try:
            self._playwright = await async_playwright().start()
            self._browser = await self._playwright.chromium.launch(
                headless=self.headless, args=CHROMIUM_ARGS
            )
            self._page = await self._browser.new_page(viewport=self.viewport)
        except PlaywrightError as e:
            logger.error(f"Failed to launch browser: {e}")
            await self._release()
            raise SessionError(f"Failed to launch browser: {e}") from e

        self._page.on("console", self.console.on_console)
        self._page.on("pageerror", self.console.on_page_error)

        logger.info(f"Browser session {self.session_id} ready ({self.viewport['width']}x{self.viewport['height']})")

    async def navigate_to_page(self, url: str):
        """Load ``url`` until DOM ready, then give client-side rendering a fixed settle delay.

        Raises:
            NavigationTimeout: If the DOM is not ready within the navigation bound
            SessionError: If navigation fails for any other reason
        """
        page = self.page
        logger.info(f"📍 Navigating to: {url}")
        try:
            await page.goto(url, wait_until="domcontentloaded", timeout=self.navigation_timeout_ms)
        except PlaywrightTimeoutError as e:
            raise NavigationTimeout(url, self.navigation_timeout_ms) from e
        except PlaywrightError as e:
            raise SessionError(f"Navigation to {url} failed: {e}") from e

        self.current_url = url
        await asyncio.sleep(self.settle_delay_ms / 1000)

    async def login(self, username: str, password: str) -> bool:
        """Fill and submit the first recognisable login form.

        Never raises for a missing or broken form; the run continues unauthenticated.

        Returns:
            True if credentials were submitted, False otherwise
        """
        page = self.page
        try:
            username_input = await self._first_match(USERNAME_SELECTORS)
            password_input = await self._first_match(PASSWORD_SELECTORS)

            if username_input is None or password_input is None:
                logger.warning("⚠️ Login form not found")
                return False

            await username_input.type(username)
            await password_input.type(password)

            submit_button = await self._first_match(SUBMIT_SELECTORS)
            if submit_button is None:
                logger.warning("⚠️ Login submit control not found")
                return False

            try:
                async with page.expect_navigation(timeout=self.login_navigation_timeout_ms):
                    await submit_button.click()
            except PlaywrightTimeoutError:
                logger.info("No navigation followed the login submit")

            self.current_url = page.url
            logger.info("✅ Login submitted")
            return True

        except Exception as e:
            logger.warning(f"❌ Login failed: {e}")
            return False

    async def _first_match(self, selectors: List[str]) -> Optional[ElementHandle]:
        for selector in selectors:
            try:
                handle = await self.page.query_selector(selector)
            except PlaywrightError as e:
                logger.debug(f"Selector {selector} could not be evaluated: {e}")
                continue
            if handle is not None:
                return handle
        return None

    @asynccontextmanager
    async def exclusive(self) -> AsyncGenerator[Page, None]:
        """Serialize access to the live page."""
        async with self._lock:
            yield self.page

    async def capture_screenshot(self) -> Optional[str]:
        """Best-effort viewport screenshot as a PNG data URL.

        Must not be called while the caller would need to re-acquire ``exclusive()``.
        """
        try:
            png = await self.page.screenshot(full_page=False)
        except Exception as e:
            logger.debug(f"Failed to capture screenshot: {e}")
            return None
        return "data:image/png;base64," + base64.b64encode(png).decode("ascii")

    async def snapshot(self, include_screenshot: bool = True) -> PageSnapshot:
        """Take a read-only copy of the current page state."""
        async with self.exclusive() as page:
            screenshot = None
            if include_screenshot:
                try:
                    screenshot = await page.screenshot(full_page=True)
                except PlaywrightError as e:
                    logger.debug(f"Snapshot screenshot unavailable: {e}")
            return PageSnapshot(
                url=page.url,
                title=await page.title(),
                html=await page.content(),
                screenshot=screenshot,
            )

    async def get_performance_metrics(self) -> PerformanceMetrics:
        """Navigation timing of the current page.

        Raises:
            AnalysisUnavailable: If the timings cannot be read
        """
        try:
            async with self.exclusive() as page:
                timing = await page.evaluate(PERFORMANCE_TIMING_SCRIPT)
        except (PlaywrightError, BrowserNotInitialized) as e:
            raise AnalysisUnavailable(f"Performance metrics unavailable: {e}") from e

        try:
            return PerformanceMetrics(
                load_time=int(timing["loadTime"]),
                dom_content_loaded=int(timing["domContentLoaded"]),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise AnalysisUnavailable(f"Unexpected performance timing payload: {timing!r}") from e

    def get_session_info(self) -> Dict[str, Any]:
        return {
            "session_id": self.session_id,
            "created_at": self.created_at.isoformat(),
            "current_url": self.current_url,
            "is_active": self.is_active,
            "console_errors": len(self.console.errors),
            "console_warnings": len(self.console.warnings),
            "page_errors": len(self.console.page_errors),
        }

    async def close(self):
        """Release the browser. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        await self._release()
        logger.info(f"🔒 Browser closed (session {self.session_id})")

    async def _release(self):
        if self._browser is not None:
            try:
                await self._browser.close()
            except Exception as e:
                logger.warning(f"Error closing browser for session {self.session_id}: {e}")
        if self._playwright is not None:
            try:
                await self._playwright.stop()
            except Exception as e:
                logger.warning(f"Error stopping Playwright for session {self.session_id}: {e}")
        self._page = None
        self._browser = None
        self._playwright = None
