"""Merges per-phase results into the run summary envelope."""

import logging
from dataclasses import replace
from typing import Dict, Iterator, List, Optional

from ..core.models import FailureExplanation, PerformanceMetrics, RunSummary, TestCase, TestResult


logger = logging.getLogger(__name__)


class ResultAggregator:
    """Restores input order across the UI and API phases and computes the counters."""

    def merge(self, test_cases: List[TestCase], ui_results: List[TestResult],
              api_results: List[TestResult]) -> List[TestResult]:
        """Interleave phase results back into ``test_cases`` order.

        Each phase's results must be in the order its test cases were executed.

        Raises:
            ValueError: If a phase produced too few, too many or misnamed results
        """
        ui_iter: Iterator[TestResult] = iter(ui_results)
        api_iter: Iterator[TestResult] = iter(api_results)
        merged: List[TestResult] = []

        for test_case in test_cases:
            result = next(ui_iter if test_case.is_ui else api_iter, None)
            if result is None:
                raise ValueError(f"No result produced for test case '{test_case.name}'")
            if result.name != test_case.name:
                raise ValueError(
                    f"Result '{result.name}' does not belong to test case '{test_case.name}'"
                )
            merged.append(result)

        if next(ui_iter, None) is not None or next(api_iter, None) is not None:
            raise ValueError("More results than test cases")
        return merged

    def aggregate(
        self,
        test_cases: List[TestCase],
        ui_results: List[TestResult],
        api_results: List[TestResult],
        test_source: Optional[str] = None,
        performance: Optional[PerformanceMetrics] = None,
        console: Optional[Dict[str, List[str]]] = None,
        run_id: Optional[str] = None,
    ) -> RunSummary:
        details = self.merge(test_cases, ui_results, api_results)
        tests_passed = sum(1 for result in details if result.passed)
        tests_failed = len(details) - tests_passed

        logger.info(f"📊 Results: {tests_passed} passed, {tests_failed} failed, {len(details)} total")
        return RunSummary(
            success=tests_failed == 0,
            tests_passed=tests_passed,
            tests_failed=tests_failed,
            total_tests=len(details),
            details=details,
            errors=[result.message or f"{result.name} failed" for result in details if not result.passed],
            test_source=test_source,
            performance=performance,
            console=console,
            run_id=run_id,
        )

    def decorate_failures(self, summary: RunSummary,
                          explanations: Dict[str, FailureExplanation]) -> RunSummary:
        """Attach explanations to copies of failed results; counters and statuses are untouched."""
        if not explanations:
            return summary
        details = [
            result.with_explanation(explanations[result.name])
            if not result.passed and result.name in explanations else result
            for result in summary.details
        ]
        return replace(summary, details=details)
