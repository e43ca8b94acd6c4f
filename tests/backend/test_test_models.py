"""Unit tests for test case, result and run models."""

import pytest
from pydantic import ValidationError

from src.web_tester.core.errors import InvalidTestCaseError
from src.web_tester.core.models import (
    ApiResponseEcho,
    ApiRequestRecord,
    Declined,
    FailureExplanation,
    Healed,
    HealingOutcome,
    RunOptions,
    RunSummary,
    PerformanceMetrics,
    TestCase,
    TestResult,
    TestStatus,
    TestType,
    load_test_cases,
    validate_test_cases,
)


class TestTestCase:
    """Test TestCase parsing and serialization."""

    def test_from_dict_ui_step(self):
        """Test parsing a UI step from the wire format."""
        test_case = TestCase.from_dict({
            "name": "Click submit",
            "type": "click",
            "selector": "#submit",
            "timeout": 2000,
        })

        assert test_case.type is TestType.CLICK
        assert test_case.selector == "#submit"
        assert test_case.timeout == 2000
        assert test_case.is_ui is True

    def test_from_dict_api_step(self):
        """Test parsing an api step with camelCase keys."""
        test_case = TestCase.from_dict({
            "name": "List users",
            "type": "api",
            "apiTest": {
                "method": "get",
                "url": "/users",
                "expectedStatus": 200,
                "expectedResponse": {"fields": ["id", "email"]},
            },
        })

        assert test_case.is_ui is False
        assert test_case.api_test.method == "GET"
        assert test_case.api_test.expected_status == 200
        assert test_case.api_test.expected_response.fields == ["id", "email"]

    def test_to_dict_omits_unset_fields(self):
        """Test that serialization emits camelCase keys and skips None values."""
        test_case = TestCase.from_dict({
            "name": "Create user",
            "type": "api",
            "apiTest": {"method": "POST", "url": "/users", "body": {"a": 1}, "expectedStatus": 201},
        })

        payload = test_case.to_dict()

        assert payload == {
            "name": "Create user",
            "type": "api",
            "apiTest": {"method": "POST", "url": "/users", "body": {"a": 1}, "expectedStatus": 201},
        }

    def test_unknown_type_rejected(self):
        """Test that an unknown kind is rejected at parse time."""
        with pytest.raises(InvalidTestCaseError, match="Unknown test type 'hover'"):
            TestCase.from_dict({"name": "Hover", "type": "hover"})

    def test_non_numeric_timeout_rejected(self):
        with pytest.raises(InvalidTestCaseError):
            TestCase.from_dict({"name": "Wait", "type": "wait", "timeout": "soon"})

    def test_effective_timeout(self):
        """Test kind default vs explicit timeout."""
        assert TestCase(name="a", type=TestType.WAIT).effective_timeout(1000) == 1000
        assert TestCase(name="a", type=TestType.WAIT, timeout=250).effective_timeout(1000) == 250

    def test_with_changes_returns_copy(self):
        original = TestCase(name="a", type=TestType.CLICK, selector="#old")
        healed = original.with_changes(selector="#new")

        assert healed.selector == "#new"
        assert original.selector == "#old"


class TestLoadTestCases:
    """Test loading test cases from the supported JSON shapes."""

    def test_array_payload(self):
        test_cases = load_test_cases([{"name": "a", "type": "wait"}])
        assert [tc.name for tc in test_cases] == ["a"]

    def test_object_with_tests_payload(self):
        test_cases = load_test_cases({"tests": [{"name": "a", "type": "wait"}, {"name": "b", "type": "wait"}]})
        assert [tc.name for tc in test_cases] == ["a", "b"]

    def test_invalid_structure(self):
        with pytest.raises(InvalidTestCaseError, match="Invalid test structure"):
            load_test_cases({"cases": []})

    def test_collects_entry_errors(self):
        """Test that every bad entry is reported, not just the first."""
        with pytest.raises(InvalidTestCaseError) as exc_info:
            load_test_cases([{"name": "a", "type": "wait"}, {"name": "b", "type": "fly"}, "oops"])

        assert len(exc_info.value.details) == 2
        assert exc_info.value.details[0].startswith("Test 2:")
        assert exc_info.value.details[1].startswith("Test 3:")


class TestValidateTestCases:
    """Test authoring checks."""

    def test_no_tests(self):
        assert validate_test_cases([]) == ["No tests found"]

    def test_valid_list(self):
        test_cases = [
            TestCase(name="a", type=TestType.CLICK, selector="#a"),
            TestCase(name="b", type=TestType.INPUT, selector="#b", value="x"),
            TestCase(name="c", type=TestType.WAIT),
        ]
        assert validate_test_cases(test_cases) == []

    def test_reports_problems(self):
        test_cases = [
            TestCase(name="", type=TestType.WAIT),
            TestCase(name="click", type=TestType.CLICK),
            TestCase(name="type", type=TestType.INPUT, selector="#q"),
            TestCase(name="type", type=TestType.WAIT),
            TestCase(name="call", type=TestType.API),
        ]

        errors = validate_test_cases(test_cases)

        assert "Test 1 is missing a name" in errors
        assert 'Test "click" requires a selector for click action' in errors
        assert 'Test "type" requires a value for input action' in errors
        assert 'Test "type" is defined more than once' in errors
        assert 'Test "call" requires an apiTest definition' in errors


class TestTestResult:
    """Test TestResult serialization and decoration."""

    def test_to_dict_omits_unset_optionals(self):
        result = TestResult.passed_result("a", 12)

        assert result.to_dict() == {"name": "a", "status": "passed", "duration": 12}

    def test_failed_result_with_api_echo(self):
        result = TestResult(
            name="api",
            status=TestStatus.FAILED,
            duration=5,
            message="No response received: boom",
            api_response=ApiResponseEcho(request=ApiRequestRecord(method="GET", url="http://x/a")),
        )

        payload = result.to_dict()

        assert payload["status"] == "failed"
        assert payload["apiResponse"] == {"request": {"method": "GET", "url": "http://x/a", "headers": {}}}

    def test_decoration_keeps_status(self):
        """Test that attaching an explanation never changes status."""
        result = TestResult.failed_result("a", 1, "Element not found: #x")
        explanation = FailureExplanation(reason="r", suggestion="s", confidence="high")

        decorated = result.with_explanation(explanation)

        assert decorated.status is TestStatus.FAILED
        assert decorated.ai_failure_explanation == explanation
        assert result.ai_failure_explanation is None
        assert decorated.to_dict()["aiFailureExplanation"]["confidence"] == "high"


class TestHealingOutcome:
    """Test the two healing outcome variants."""

    def test_from_dict_healed(self):
        outcome = HealingOutcome.from_dict({
            "success": True,
            "healedTest": {"name": "Click submit", "type": "click", "selector": "#submit-v2"},
            "strategy": "selector-healing",
            "confidence": 0.8,
        })

        assert isinstance(outcome, Healed)
        assert outcome.success is True
        assert outcome.test_case.selector == "#submit-v2"
        assert outcome.confidence == 0.8

    def test_from_dict_declined(self):
        outcome = HealingOutcome.from_dict({"success": False, "strategy": "timing-healing"})

        assert isinstance(outcome, Declined)
        assert outcome.success is False

    def test_success_without_test_case_is_declined(self):
        assert isinstance(HealingOutcome.from_dict({"success": True}), Declined)

    def test_from_dict_missing_confidence(self):
        healed_test = TestCase(name="Click submit", type=TestType.CLICK, selector="#submit-v2")

        outcome = HealingOutcome.from_dict({"success": True, "healedTest": healed_test})

        assert outcome.test_case is healed_test
        assert outcome.confidence == 0.0
        assert outcome.strategy is None


class TestRunModels:
    """Test run options and summary envelope."""

    def test_run_options_rejects_unknown_keys(self):
        with pytest.raises(ValidationError):
            RunOptions(self_healing=True, ai_magic=True)

    def test_run_options_defaults(self):
        options = RunOptions()

        assert options.explain_failures is True
        assert options.api_headers == {}

    def test_summary_envelope(self):
        summary = RunSummary(
            success=False,
            tests_passed=1,
            tests_failed=1,
            total_tests=2,
            details=[TestResult.passed_result("a", 1), TestResult.failed_result("b", 2, "nope")],
            errors=["nope"],
            performance=PerformanceMetrics(load_time=120, dom_content_loaded=80),
        )

        payload = summary.to_dict()

        assert payload["success"] is False
        assert payload["testsPassed"] == 1
        assert payload["testsFailed"] == 1
        assert payload["totalTests"] == 2
        assert [d["name"] for d in payload["details"]] == ["a", "b"]
        assert payload["errors"] == ["nope"]
        assert payload["performance"] == {"loadTime": 120, "domContentLoaded": 80}
        assert "console" not in payload
