"""Unit tests for the result aggregator."""

import pytest

from src.web_tester.core.models import (
    ApiTestSpec,
    FailureExplanation,
    TestCase,
    TestResult,
    TestStatus,
    TestType,
)
from src.web_tester.services.result_aggregator import ResultAggregator


def api(name):
    return TestCase(name=name, type=TestType.API, api_test=ApiTestSpec(method="GET", url="/" + name))


def wait(name):
    return TestCase(name=name, type=TestType.WAIT)


class TestResultAggregator:
    """Test merging and counting."""

    def test_ui_then_api(self):
        test_cases = [wait("a"), wait("b"), api("c")]
        summary = ResultAggregator().aggregate(
            test_cases,
            [TestResult.passed_result("a", 1), TestResult.failed_result("b", 1, "boom")],
            [TestResult.passed_result("c", 1)],
        )

        assert [result.name for result in summary.details] == ["a", "b", "c"]
        assert summary.total_tests == 3
        assert summary.tests_passed == 2
        assert summary.tests_failed == 1
        assert summary.success is False
        assert summary.errors == ["boom"]

    def test_interleaved_input_order_is_restored(self):
        test_cases = [api("first"), wait("second"), api("third"), wait("fourth")]

        details = ResultAggregator().merge(
            test_cases,
            [TestResult.passed_result("second", 1), TestResult.passed_result("fourth", 1)],
            [TestResult.passed_result("first", 1), TestResult.passed_result("third", 1)],
        )

        assert [result.name for result in details] == ["first", "second", "third", "fourth"]

    def test_all_passed(self):
        summary = ResultAggregator().aggregate([wait("a")], [TestResult.passed_result("a", 1)], [])

        assert summary.success is True
        assert summary.errors == []

    def test_missing_result_raises(self):
        with pytest.raises(ValueError, match="No result produced"):
            ResultAggregator().merge([wait("a"), wait("b")], [TestResult.passed_result("a", 1)], [])

    def test_extra_result_raises(self):
        with pytest.raises(ValueError, match="More results"):
            ResultAggregator().merge(
                [wait("a")], [TestResult.passed_result("a", 1), TestResult.passed_result("b", 1)], []
            )

    def test_misnamed_result_raises(self):
        with pytest.raises(ValueError, match="does not belong"):
            ResultAggregator().merge([wait("a")], [TestResult.passed_result("z", 1)], [])

    def test_decorate_failures_never_changes_status(self):
        aggregator = ResultAggregator()
        summary = aggregator.aggregate(
            [wait("a"), wait("b")],
            [TestResult.passed_result("a", 1), TestResult.failed_result("b", 1, "boom")],
            [],
        )
        explanation = FailureExplanation(reason="r", suggestion="s", confidence="low")

        decorated = aggregator.decorate_failures(summary, {"a": explanation, "b": explanation})

        assert [result.status for result in decorated.details] == [TestStatus.PASSED, TestStatus.FAILED]
        assert decorated.details[0].ai_failure_explanation is None
        assert decorated.details[1].ai_failure_explanation == explanation
        assert decorated.tests_failed == 1
        assert summary.details[1].ai_failure_explanation is None
