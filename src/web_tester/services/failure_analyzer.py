"""Rule-based commentary on why a test failed and how to fix it."""

import logging
from typing import Dict, List

from ..core.models import FailureExplanation, TestCase, TestResult, TestType


logger = logging.getLogger(__name__)

MAX_REASON_LENGTH = 150


class FailureAnalyzer:
    """Explains failed results from their message, kind and API status.

    Explanations are decorations only; the analyzer never changes a result's status.
    """

    def explain(self, test_case: TestCase, result: TestResult) -> FailureExplanation:
        message = result.message or ""

        if "timeout" in message.lower():
            return FailureExplanation(
                reason="Element took too long to appear or respond",
                suggestion="Increase timeout value or check if element selector is correct",
                confidence="high",
            )

        if "not found" in message or "No node found" in message or "waiting for selector" in message:
            return FailureExplanation(
                reason="Element could not be found on the page",
                suggestion="Verify the selector is correct and element exists. "
                           "Check page URL and wait for dynamic content to load",
                confidence="high",
            )

        if "Navigation" in message or "net::" in message:
            return FailureExplanation(
                reason="Failed to navigate to the URL or load resources",
                suggestion="Check URL is accessible, network connection is stable, and page loads correctly",
                confidence="high",
            )

        status = self._api_status(result)
        if status is not None and status >= 500:
            return FailureExplanation(
                reason="Server returned an error response",
                suggestion="Check API server health and logs. Verify endpoint is working correctly",
                confidence="high",
            )
        if status is not None and status >= 400:
            return FailureExplanation(
                reason="Bad request or unauthorized access",
                suggestion="Verify request parameters, headers, authentication tokens, and permissions",
                confidence="high",
            )

        if test_case.type is TestType.CLICK and "click" in message:
            return FailureExplanation(
                reason="Unable to click the element",
                suggestion="Element might be hidden, covered by another element, or not clickable. "
                           "Check element state and visibility",
                confidence="medium",
            )

        if test_case.type is TestType.INPUT:
            return FailureExplanation(
                reason="Could not input value into the field",
                suggestion="Verify field is enabled, not readonly, and accepts the input type. "
                           "Check for JavaScript validation",
                confidence="medium",
            )

        if test_case.type is TestType.ASSERTION:
            return FailureExplanation(
                reason="Expected value did not match actual value",
                suggestion="Check if page content has changed. "
                           "Verify expected value is correct and element contains the right data",
                confidence="medium",
            )

        return FailureExplanation(
            reason=message[:MAX_REASON_LENGTH] or "Test execution failed",
            suggestion="Review test configuration, check browser console for errors, "
                       "and verify page state matches test expectations",
            confidence="low",
        )

    def explain_failures(self, test_cases: List[TestCase], results: List[TestResult]) -> Dict[str, FailureExplanation]:
        """Explanations for every failed result, keyed by test name."""
        cases_by_name = {test_case.name: test_case for test_case in test_cases}
        explanations = {}
        for result in results:
            if result.passed or result.name not in cases_by_name:
                continue
            explanations[result.name] = self.explain(cases_by_name[result.name], result)
        logger.info(f"🧠 Explained {len(explanations)} failed test(s)")
        return explanations

    @staticmethod
    def _api_status(result: TestResult):
        if result.api_response is None or result.api_response.response is None:
            return None
        return result.api_response.response.status
