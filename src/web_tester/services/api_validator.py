"""Executes api test cases over HTTP and validates the responses."""

import json
import logging
import time
from dataclasses import replace
from typing import Any, Dict, List, Optional

import requests

from ..core.config import settings
from ..core.errors import NetworkUnreachable, RequestConstructionFailure
from ..core.models import (
    ApiExpectation,
    ApiRequestRecord,
    ApiResponseEcho,
    ApiResponseRecord,
    ApiTestSpec,
    ApiValidations,
    TestCase,
    TestResult,
)


logger = logging.getLogger(__name__)

BODY_METHODS = ("POST", "PUT", "PATCH")

_MISSING = object()


def build_url(base_url: Optional[str], path: str) -> str:
    """Resolve ``path`` against ``base_url`` with exactly one separating slash.

    Absolute http(s) URLs are returned unchanged.
    """
    if path.startswith("http://") or path.startswith("https://"):
        return path
    if not base_url:
        return path
    return f"{base_url.rstrip('/')}/{path.lstrip('/')}"


def json_stringify(data: Any) -> str:
    """Compact JSON text of a decoded body, as a browser's JSON.stringify would produce."""
    return json.dumps(data, separators=(",", ":"), ensure_ascii=False, default=str)


def js_typeof(value: Any = _MISSING) -> str:
    """JavaScript ``typeof`` for a decoded JSON value."""
    if value is _MISSING:
        return "undefined"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    # null, arrays and objects
    return "object"


def _first_element(data: Any) -> Any:
    if isinstance(data, list):
        return data[0] if data else None
    return data


def _resolve(current: Any, segment: str) -> Any:
    if isinstance(current, dict):
        return current.get(segment, _MISSING)
    if isinstance(current, list) and segment.isdigit():
        index = int(segment)
        return current[index] if index < len(current) else _MISSING
    return _MISSING


def response_contains(data: Any, needles: List[str]) -> bool:
    text = json_stringify(data)
    return all(needle in text for needle in needles)


def has_required_fields(data: Any, fields: List[str]) -> bool:
    """Every dot-path in ``fields`` resolves on the body (first element for arrays)."""
    if not isinstance(data, (dict, list)):
        return False
    target = _first_element(data)

    for path in fields:
        current = target
        for segment in path.split("."):
            current = _resolve(current, segment)
            if current is _MISSING:
                return False
    return True


def _own_property(data: Any, key: str) -> Any:
    if isinstance(data, dict):
        return data.get(key, _MISSING)
    # arrays expose their indices and length
    if key == "length":
        return len(data)
    return _resolve(data, key)


def matches_schema(data: Any, schema: Dict[str, str]) -> bool:
    """Every schema key exists on the body itself and has the declared JavaScript type, unless ``any``.

    Array bodies are checked as arrays, not through their first element.
    """
    if not isinstance(data, (dict, list)):
        return False

    for key, expected_type in schema.items():
        value = _own_property(data, key)
        if value is _MISSING:
            return False
        if expected_type != "any" and js_typeof(value) != expected_type:
            return False
    return True


def validate_response(spec: ApiTestSpec, status: int, data: Any) -> ApiValidations:
    """Apply the validation matrix; criteria the test did not request pass."""
    expectation = spec.expected_response or ApiExpectation()
    return ApiValidations(
        status_code=spec.expected_status is None or status == spec.expected_status,
        response_contains=not expectation.contains or response_contains(data, expectation.contains),
        required_fields=not expectation.fields or has_required_fields(data, expectation.fields),
        schema_match=not expectation.schema or matches_schema(data, expectation.schema),
    )


class ApiValidator:
    """Runs api test cases with a ``requests.Session``.

    Blocking by design; async callers run ``execute`` in a worker thread.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        default_headers: Optional[Dict[str, str]] = None,
        http_session: Optional[requests.Session] = None,
        default_timeout_ms: Optional[int] = None,
    ):
        self.base_url = base_url if base_url is not None else settings.API_BASE_URL
        self.default_headers: Dict[str, str] = dict(default_headers or {})
        self.http_session = http_session or requests.Session()
        self.default_timeout_ms = default_timeout_ms or settings.API_TIMEOUT_MS

    def execute(self, test_case: TestCase) -> TestResult:
        """Send one request and validate the response. Never raises for request problems."""
        start = time.monotonic()
        spec = test_case.api_test
        if spec is None:
            return TestResult.failed_result(
                test_case.name, 0, "Request setup failed: apiTest definition is missing"
            )

        url = build_url(self.base_url, spec.url)
        headers = {**self.default_headers, **(spec.headers or {})}
        request_record = ApiRequestRecord(method=spec.method, url=url, headers=headers, body=spec.body)

        logger.info(f"🔄 Executing API test: {test_case.name} ({spec.method} {url})")

        try:
            prepared = self._prepare(spec, url, headers)
            response = self._send(prepared, test_case.effective_timeout(self.default_timeout_ms))
        except RequestConstructionFailure as e:
            logger.warning(f"API test {test_case.name}: request setup failed: {e}")
            return self._failed(test_case, start, f"Request setup failed: {e}", request_record)
        except NetworkUnreachable as e:
            logger.warning(f"API test {test_case.name}: no response: {e}")
            return self._failed(test_case, start, f"No response received: {e}", request_record)

        duration = self._elapsed_ms(start)
        data = self._decode_body(response)
        validations = validate_response(spec, response.status_code, data)
        status_text = response.reason or ""

        if 200 <= response.status_code < 300:
            message = (f"API test passed ({duration}ms)" if validations.all_passed
                       else "Validation failed: " + ", ".join(validations.failed_checks()))
        else:
            message = (f"API test passed with expected error status ({duration}ms)" if validations.all_passed
                       else f"API returned {response.status_code} {status_text}".rstrip())

        echo = ApiResponseEcho(
            request=request_record,
            response=ApiResponseRecord(
                status=response.status_code,
                status_text=status_text,
                headers=dict(response.headers),
                data=data,
                size=len(json_stringify(data)),
            ),
            validations=validations,
        )
        if validations.all_passed:
            result = TestResult.passed_result(test_case.name, duration, message)
        else:
            result = TestResult.failed_result(test_case.name, duration, message)

        logger.info(f"{'✅' if result.passed else '❌'} API test {test_case.name}: {message}")
        return replace(result, api_response=echo)

    def _prepare(self, spec: ApiTestSpec, url: str, headers: Dict[str, str]) -> requests.PreparedRequest:
        kwargs: Dict[str, Any] = {"method": spec.method, "url": url, "headers": headers}
        if spec.method in BODY_METHODS and spec.body is not None:
            if isinstance(spec.body, (str, bytes)):
                kwargs["data"] = spec.body
            else:
                kwargs["json"] = spec.body
        try:
            return requests.Request(**kwargs).prepare()
        except (requests.RequestException, ValueError, TypeError) as e:
            raise RequestConstructionFailure(str(e)) from e

    def _send(self, prepared: requests.PreparedRequest, timeout_ms: int) -> requests.Response:
        try:
            return self.http_session.send(prepared, timeout=timeout_ms / 1000)
        except (requests.exceptions.InvalidSchema, requests.exceptions.InvalidURL,
                requests.exceptions.MissingSchema) as e:
            raise RequestConstructionFailure(str(e)) from e
        except requests.RequestException as e:
            raise NetworkUnreachable(str(e)) from e

    @staticmethod
    def _decode_body(response: requests.Response) -> Any:
        if not response.content:
            return ""
        try:
            return response.json()
        except ValueError:
            return response.text

    def _failed(self, test_case: TestCase, start: float, message: str,
                request_record: ApiRequestRecord) -> TestResult:
        failed = TestResult.failed_result(test_case.name, self._elapsed_ms(start), message)
        return replace(failed, api_response=ApiResponseEcho(request=request_record))

    @staticmethod
    def _elapsed_ms(start: float) -> int:
        return int((time.monotonic() - start) * 1000)
