"""Data models for test results and their decorations."""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Optional


class TestStatus(Enum):
    """Outcome of one executed test case."""
    __test__ = False

    PASSED = "passed"
    FAILED = "failed"


@dataclass(frozen=True)
class HealingInfo:
    """How a failed UI step was repaired before it passed."""
    strategy: Optional[str]
    confidence: Optional[float]
    explanation: Optional[str]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "strategy": self.strategy,
            "confidence": self.confidence,
            "explanation": self.explanation,
        }


@dataclass(frozen=True)
class ApiRequestRecord:
    """Echo of the request an api test actually sent."""
    method: str
    url: str
    headers: Dict[str, str] = field(default_factory=dict)
    body: Any = None

    def to_dict(self) -> Dict[str, Any]:
        payload = {"method": self.method, "url": self.url, "headers": dict(self.headers)}
        if self.body is not None:
            payload["body"] = self.body
        return payload


@dataclass(frozen=True)
class ApiResponseRecord:
    """Echo of the response an api test received."""
    status: int
    status_text: str
    headers: Dict[str, str]
    data: Any
    size: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status,
            "statusText": self.status_text,
            "headers": dict(self.headers),
            "data": self.data,
            "size": self.size,
        }


@dataclass(frozen=True)
class ApiValidations:
    """The validation matrix applied to one API response.

    A criterion the test case did not request is recorded as passed.
    """
    status_code: bool = True
    response_contains: bool = True
    required_fields: bool = True
    schema_match: bool = True

    @property
    def all_passed(self) -> bool:
        return self.status_code and self.response_contains and self.required_fields and self.schema_match

    def failed_checks(self) -> List[str]:
        failures = []
        if not self.status_code:
            failures.append("status code mismatch")
        if not self.response_contains:
            failures.append("expected content not found")
        if not self.required_fields:
            failures.append("missing required fields")
        if not self.schema_match:
            failures.append("schema validation failed")
        return failures

    def to_dict(self) -> Dict[str, bool]:
        return {
            "statusCode": self.status_code,
            "responseContains": self.response_contains,
            "requiredFields": self.required_fields,
            "schemaMatch": self.schema_match,
        }


@dataclass(frozen=True)
class ApiResponseEcho:
    request: ApiRequestRecord
    response: Optional[ApiResponseRecord] = None
    validations: Optional[ApiValidations] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"request": self.request.to_dict()}
        if self.response is not None:
            payload["response"] = self.response.to_dict()
        if self.validations is not None:
            payload["validations"] = self.validations.to_dict()
        return payload


@dataclass(frozen=True)
class FailureExplanation:
    """Human readable commentary on why a test failed."""
    reason: str
    suggestion: str
    confidence: str  # high | medium | low

    def to_dict(self) -> Dict[str, str]:
        return {"reason": self.reason, "suggestion": self.suggestion, "confidence": self.confidence}


@dataclass(frozen=True)
class TestResult:
    """The recorded outcome of executing one test case.

    Results are never mutated once produced; reporting layers call
    ``with_explanation`` which returns a decorated copy with the same status.
    """
    __test__ = False

    name: str
    status: TestStatus
    duration: int = 0  # wall-clock milliseconds
    message: Optional[str] = None
    screenshot: Optional[str] = None  # data:image/png;base64,...
    healed: Optional[bool] = None
    healing_info: Optional[HealingInfo] = None
    api_response: Optional[ApiResponseEcho] = None
    ai_failure_explanation: Optional[FailureExplanation] = None

    @property
    def passed(self) -> bool:
        return self.status is TestStatus.PASSED

    @classmethod
    def passed_result(cls, name: str, duration: int, message: Optional[str] = None) -> 'TestResult':
        return cls(name=name, status=TestStatus.PASSED, duration=duration, message=message)

    @classmethod
    def failed_result(cls, name: str, duration: int, message: str,
                      screenshot: Optional[str] = None) -> 'TestResult':
        return cls(name=name, status=TestStatus.FAILED, duration=duration,
                   message=message, screenshot=screenshot)

    def with_explanation(self, explanation: FailureExplanation) -> 'TestResult':
        return replace(self, ai_failure_explanation=explanation)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "name": self.name,
            "status": self.status.value,
            "duration": self.duration,
        }
        if self.message is not None:
            payload["message"] = self.message
        if self.screenshot is not None:
            payload["screenshot"] = self.screenshot
        if self.healed is not None:
            payload["healed"] = self.healed
        if self.healing_info is not None:
            payload["healingInfo"] = self.healing_info.to_dict()
        if self.api_response is not None:
            payload["apiResponse"] = self.api_response.to_dict()
        if self.ai_failure_explanation is not None:
            payload["aiFailureExplanation"] = self.ai_failure_explanation.to_dict()
        return payload
