"""Default healer that repairs failed UI steps against the live page."""

import logging
import re
from datetime import datetime
from typing import Any, Dict, List, Optional

from playwright.async_api import Error as PlaywrightError

from ..core.config import settings
from ..core.models import Declined, Healed, HealingOutcome, TestCase, TestType
from .browser_session import BrowserSession


logger = logging.getLogger(__name__)

SELECTOR_HEALING = "selector-healing"
TIMING_HEALING = "timing-healing"
CONTENT_HEALING = "content-healing"
GENERIC_HEALING = "generic-healing"

DEFAULT_HEALING_TIMEOUT_MS = 5000

_ATTRIBUTE_PATTERN = re.compile(r"""\[([\w-]+)[*^$~|]?=["']([^"']+)["']\]""")
_ID_PATTERN = re.compile(r"#([\w-]+)")
_CLASS_PATTERN = re.compile(r"\.([\w-]+)")


def determine_strategy(error: BaseException) -> str:
    message = str(error).lower()
    if "element not found" in message or "no such element" in message:
        return SELECTOR_HEALING
    if "timeout" in message or "wait" in message:
        return TIMING_HEALING
    if "expected" in message or "assertion" in message:
        return CONTENT_HEALING
    return GENERIC_HEALING


def selector_confidence(selector: Optional[str]) -> float:
    """Score a selector's robustness on a 0-1 scale."""
    confidence = 50
    if selector:
        if "id" in selector:
            confidence += 20
        if "[data-" in selector:
            confidence += 15
        if "aria-" in selector:
            confidence += 10
        if ":nth-child" in selector:
            confidence -= 10
        if "." in selector:
            confidence -= 5
    return min(max(confidence, 0), 100) / 100


def _quote(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"')


def candidate_selectors(test_case: TestCase) -> List[str]:
    """Alternative selectors for the element the original selector was aiming at.

    Ordered from most to least robust; the original selector is never included.
    """
    selector = test_case.selector or ""
    tokens: List[str] = []
    tokens.extend(_ID_PATTERN.findall(selector))
    tokens.extend(value for _, value in _ATTRIBUTE_PATTERN.findall(selector))
    tokens.extend(_CLASS_PATTERN.findall(selector))

    candidates: List[str] = []
    for token in dict.fromkeys(tokens):
        quoted = _quote(token)
        candidates.extend([
            f'[id="{quoted}"]',
            f'[data-testid="{quoted}"]',
            f'[data-test="{quoted}"]',
            f'[aria-label="{quoted}"]',
            f'[name="{quoted}"]',
            f'[id*="{quoted}"]',
        ])

    text = test_case.expected or (test_case.value if test_case.type is TestType.CLICK else None)
    if text:
        candidates.append(f'text="{_quote(text)}"')

    return [candidate for candidate in dict.fromkeys(candidates) if candidate != selector]


class SelectorHealer:
    """Classifies a step failure and proposes one repaired test case.

    Proposals are verified against the page before being returned, so a
    ``Healed`` outcome always names a selector that currently resolves.
    """

    def __init__(
        self,
        session: BrowserSession,
        selector_timeout_ms: Optional[int] = None,
        navigation_timeout_ms: Optional[int] = None,
        default_wait_ms: Optional[int] = None,
    ):
        self.session = session
        # kind defaults mirror StepExecutor
        self.kind_timeouts = {
            TestType.CLICK: selector_timeout_ms or settings.SELECTOR_TIMEOUT_MS,
            TestType.INPUT: selector_timeout_ms or settings.SELECTOR_TIMEOUT_MS,
            TestType.NAVIGATION: navigation_timeout_ms or settings.STEP_NAVIGATION_TIMEOUT_MS,
            TestType.WAIT: settings.DEFAULT_WAIT_MS if default_wait_ms is None else default_wait_ms,
        }
        self.healing_history: List[Dict[str, Any]] = []

    async def heal(self, test_case: TestCase, error: BaseException) -> HealingOutcome:
        strategy = determine_strategy(error)
        logger.info(f"🔧 Attempting to heal test: {test_case.name} ({strategy})")

        if strategy == SELECTOR_HEALING:
            healed_test = await self._heal_selector(test_case)
        elif strategy == TIMING_HEALING:
            healed_test = self._extend_timeout(test_case, 2)
        elif strategy == CONTENT_HEALING:
            healed_test = await self._heal_content(test_case)
        else:
            healed_test = self._extend_timeout(test_case, 1.5)

        if healed_test is None or not await self._verify(healed_test):
            return Declined(strategy=strategy, explanation=f"Failed to heal test using {strategy}")

        self._record(test_case, healed_test, strategy)
        return Healed(
            test_case=healed_test,
            strategy=strategy,
            confidence=selector_confidence(healed_test.selector),
            explanation=f"Successfully healed test using {strategy}",
        )

    def get_healing_history(self) -> List[Dict[str, Any]]:
        return list(self.healing_history)

    async def _heal_selector(self, test_case: TestCase) -> Optional[TestCase]:
        if not test_case.selector:
            return None
        for candidate in candidate_selectors(test_case):
            if await self._selector_exists(candidate):
                logger.info(f"🔍 Found alternative selector for {test_case.selector}: {candidate}")
                return test_case.with_changes(selector=candidate)
        return None

    def _extend_timeout(self, test_case: TestCase, factor: float) -> TestCase:
        default_ms = self.kind_timeouts.get(test_case.type) or DEFAULT_HEALING_TIMEOUT_MS
        timeout = test_case.effective_timeout(default_ms) or DEFAULT_HEALING_TIMEOUT_MS
        return test_case.with_changes(timeout=int(timeout * factor))

    async def _heal_content(self, test_case: TestCase) -> Optional[TestCase]:
        if test_case.expected is None or not test_case.selector:
            return None
        async with self.session.exclusive() as page:
            try:
                element = await page.query_selector(test_case.selector)
                actual = await element.text_content() if element is not None else None
            except PlaywrightError as e:
                logger.debug(f"Could not read content of {test_case.selector}: {e}")
                return None
        if actual and actual != test_case.expected:
            return test_case.with_changes(expected=actual)
        return None

    async def _verify(self, test_case: TestCase) -> bool:
        if not test_case.selector:
            return True
        return await self._selector_exists(test_case.selector)

    async def _selector_exists(self, selector: str) -> bool:
        async with self.session.exclusive() as page:
            try:
                return await page.query_selector(selector) is not None
            except PlaywrightError:
                return False

    def _record(self, original: TestCase, healed: TestCase, strategy: str):
        self.healing_history.append({
            "test": original.name,
            "original_selector": original.selector,
            "healed_selector": healed.selector,
            "strategy": strategy,
            "timestamp": datetime.now().isoformat(),
        })
