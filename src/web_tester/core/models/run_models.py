"""Data models describing a whole test run: options, summary and collaborators."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol

from pydantic import BaseModel, Field

from ..config import settings
from .result_models import TestResult
from .test_models import TestCase


class RunOptions(BaseModel):
    """Every flag a caller may set for one run, with its default.

    Unknown keys are rejected instead of being merged silently.
    """
    self_healing: bool = Field(default_factory=lambda: settings.SELF_HEALING_ENABLED,
                               description="Attempt one healed retry for failed UI steps")
    explain_failures: bool = Field(default=True, description="Attach rule-based failure explanations")
    collect_performance: bool = Field(default=True, description="Collect page load timings after the run")
    capture_console: bool = Field(default=True, description="Report console errors/warnings and page errors")
    api_base_url: Optional[str] = Field(default_factory=lambda: settings.API_BASE_URL,
                                        description="Base URL for relative API test URLs")
    api_headers: Dict[str, str] = Field(default_factory=dict, description="Headers sent with every API test")
    close_session_on_error: bool = Field(default_factory=lambda: settings.CLOSE_SESSION_ON_ERROR,
                                         description="Close the browser when the run aborts")

    class Config:
        extra = 'forbid'


@dataclass(frozen=True)
class PerformanceMetrics:
    load_time: int
    dom_content_loaded: int

    def to_dict(self) -> Dict[str, int]:
        return {"loadTime": self.load_time, "domContentLoaded": self.dom_content_loaded}


@dataclass(frozen=True)
class RunSummary:
    """Aggregate envelope returned for one run."""
    success: bool
    tests_passed: int
    tests_failed: int
    total_tests: int
    details: List[TestResult]
    errors: List[str]
    test_source: Optional[str] = None
    performance: Optional[PerformanceMetrics] = None
    console: Optional[Dict[str, List[str]]] = None
    run_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "success": self.success,
            "testsPassed": self.tests_passed,
            "testsFailed": self.tests_failed,
            "totalTests": self.total_tests,
            "details": [result.to_dict() for result in self.details],
            "errors": list(self.errors),
        }
        if self.run_id is not None:
            payload["runId"] = self.run_id
        if self.test_source is not None:
            payload["testSource"] = self.test_source
        if self.performance is not None:
            payload["performance"] = self.performance.to_dict()
        if self.console is not None:
            payload["console"] = {key: list(values) for key, values in self.console.items()}
        return payload


class TestCaseGenerator(Protocol):
    """Produces test cases by inspecting a live browser session."""
    __test__ = False

    async def generate(self, session: Any) -> List[TestCase]:
        ...
