"""Core data models for the web test execution engine."""

from .test_models import (
    TestType,
    ApiExpectation,
    ApiTestSpec,
    TestCase,
    load_test_cases,
    validate_test_cases,
)
from .result_models import (
    TestStatus,
    HealingInfo,
    ApiRequestRecord,
    ApiResponseRecord,
    ApiValidations,
    ApiResponseEcho,
    FailureExplanation,
    TestResult,
)
from .healing_models import HealingOutcome, Healed, Declined, Healer
from .run_models import RunOptions, RunSummary, PerformanceMetrics, TestCaseGenerator

__all__ = [
    "TestType",
    "ApiExpectation",
    "ApiTestSpec",
    "TestCase",
    "load_test_cases",
    "validate_test_cases",
    "TestStatus",
    "HealingInfo",
    "ApiRequestRecord",
    "ApiResponseRecord",
    "ApiValidations",
    "ApiResponseEcho",
    "FailureExplanation",
    "TestResult",
    "HealingOutcome",
    "Healed",
    "Declined",
    "Healer",
    "RunOptions",
    "RunSummary",
    "PerformanceMetrics",
    "TestCaseGenerator",
]
