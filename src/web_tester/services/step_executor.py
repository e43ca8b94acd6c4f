"""Dispatches one declarative test step against the browser session or the API validator."""

import asyncio
import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Optional

from playwright.async_api import Page, TimeoutError as PlaywrightTimeoutError

from ..core.config import settings
from ..core.errors import (
    ApiTestError,
    AssertionMismatch,
    ElementNotFound,
    InvalidTestCase,
    NavigationTimeout,
    SelectorTimeout,
)
from ..core.models import TestCase, TestResult, TestType
from .api_validator import ApiValidator
from .browser_session import BrowserSession


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StepOutcome:
    """A step's result plus the error that failed it, if any."""
    result: TestResult
    error: Optional[BaseException] = None

    @property
    def passed(self) -> bool:
        return self.result.passed


class StepExecutor:
    """Runs exactly one attempt of a test case. Retries belong to the healing coordinator."""

    def __init__(
        self,
        session: BrowserSession,
        api_validator: Optional[ApiValidator] = None,
        selector_timeout_ms: Optional[int] = None,
        navigation_timeout_ms: Optional[int] = None,
        default_wait_ms: Optional[int] = None,
        executor: Optional[ThreadPoolExecutor] = None,
    ):
        self.session = session
        self.api_validator = api_validator or ApiValidator()
        self.selector_timeout_ms = selector_timeout_ms or settings.SELECTOR_TIMEOUT_MS
        self.navigation_timeout_ms = navigation_timeout_ms or settings.STEP_NAVIGATION_TIMEOUT_MS
        self.default_wait_ms = settings.DEFAULT_WAIT_MS if default_wait_ms is None else default_wait_ms
        self.executor = executor or ThreadPoolExecutor(max_workers=1)

    async def execute(self, test_case: TestCase) -> StepOutcome:
        """Execute ``test_case`` once.

        Step and API problems become a failed result carried in the outcome;
        only session-level errors escape.
        """
        if test_case.type is TestType.API:
            return await self._execute_api(test_case)

        logger.info(f"🔄 Executing: {test_case.name} ({test_case.type.value})")
        start = time.monotonic()

        async with self.session.exclusive() as page:
            try:
                await self._run_ui_step(page, test_case)
            except Exception as e:
                duration = self._elapsed_ms(start)
                screenshot = await self.session.capture_screenshot()
                logger.warning(f"❌ {test_case.name} failed after {duration}ms: {e}")
                return StepOutcome(
                    result=TestResult.failed_result(test_case.name, duration, str(e), screenshot),
                    error=e,
                )

        duration = self._elapsed_ms(start)
        if test_case.type is TestType.WAIT:
            duration = max(duration, test_case.effective_timeout(self.default_wait_ms))

        logger.info(f"✅ {test_case.name} passed ({duration}ms)")
        return StepOutcome(result=TestResult.passed_result(test_case.name, duration))

    async def _run_ui_step(self, page: Page, test_case: TestCase):
        if test_case.type is TestType.CLICK:
            element = await self._wait_for(page, test_case)
            await element.click()

        elif test_case.type is TestType.INPUT:
            if test_case.value is None:
                raise InvalidTestCase(f'Test "{test_case.name}" requires a value for input action')
            element = await self._wait_for(page, test_case)
            await element.type(test_case.value)

        elif test_case.type is TestType.NAVIGATION:
            if not test_case.value:
                raise InvalidTestCase(f'Test "{test_case.name}" requires a URL value for navigation action')
            timeout_ms = test_case.effective_timeout(self.navigation_timeout_ms)
            try:
                await page.goto(test_case.value, wait_until="networkidle", timeout=timeout_ms)
            except PlaywrightTimeoutError as e:
                raise NavigationTimeout(test_case.value, timeout_ms) from e
            self.session.current_url = test_case.value

        elif test_case.type is TestType.ASSERTION:
            selector = self._require_selector(test_case)
            element = await page.query_selector(selector)
            if element is None:
                raise ElementNotFound(selector)
            if test_case.expected:
                actual = await element.text_content()
                if actual != test_case.expected:
                    raise AssertionMismatch(test_case.expected, actual)

        elif test_case.type is TestType.WAIT:
            await asyncio.sleep(test_case.effective_timeout(self.default_wait_ms) / 1000)

        else:
            raise InvalidTestCase(f"Unknown test type: {test_case.type}")

    async def _wait_for(self, page: Page, test_case: TestCase):
        selector = self._require_selector(test_case)
        timeout_ms = test_case.effective_timeout(self.selector_timeout_ms)
        try:
            element = await page.wait_for_selector(selector, state="attached", timeout=timeout_ms)
        except PlaywrightTimeoutError as e:
            raise SelectorTimeout(selector, timeout_ms) from e
        if element is None:
            raise ElementNotFound(selector)
        return element

    @staticmethod
    def _require_selector(test_case: TestCase) -> str:
        if not test_case.selector:
            raise InvalidTestCase(
                f'Test "{test_case.name}" requires a selector for {test_case.type.value} action'
            )
        return test_case.selector

    async def _execute_api(self, test_case: TestCase) -> StepOutcome:
        start = time.monotonic()
        loop = asyncio.get_event_loop()
        try:
            result = await loop.run_in_executor(self.executor, self.api_validator.execute, test_case)
        except Exception as e:
            logger.error(f"API test {test_case.name} crashed: {e}")
            return StepOutcome(
                result=TestResult.failed_result(test_case.name, self._elapsed_ms(start), f"API test failed: {e}"),
                error=e,
            )

        error = None if result.passed else ApiTestError(result.message)
        return StepOutcome(result=result, error=error)

    @staticmethod
    def _elapsed_ms(start: float) -> int:
        return int((time.monotonic() - start) * 1000)
