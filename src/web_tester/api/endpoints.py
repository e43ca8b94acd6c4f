import logging
import traceback
from datetime import datetime
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from src.web_tester.core.errors import InvalidTestCaseError, RunFailedError
from src.web_tester.core.models import RunOptions, load_test_cases, validate_test_cases
from src.web_tester.services.test_run_service import TestRunService

router = APIRouter()

_test_run_service: Optional[TestRunService] = None


class RunRequest(BaseModel):
    url: str
    username: Optional[str] = None
    password: Optional[str] = None
    tests: List[Dict[str, Any]] = []
    options: Optional[RunOptions] = None


def get_test_run_service() -> TestRunService:
    global _test_run_service
    if _test_run_service is None:
        _test_run_service = TestRunService()
    return _test_run_service


def _is_valid_url(url: str) -> bool:
    parsed = urlparse(url)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


@router.post('/api/tests/run')
async def run_tests(request: RunRequest, service: TestRunService = Depends(get_test_run_service)):
    """
    Run the supplied test cases against a fresh browser session.
    Returns the run summary envelope; individual test failures are not HTTP errors.
    """
    if not request.url or not _is_valid_url(request.url):
        raise HTTPException(status_code=400, detail={"error": "Invalid URL", "details": [request.url]})

    try:
        test_cases = load_test_cases(request.tests)
    except InvalidTestCaseError as e:
        raise HTTPException(status_code=400, detail={"error": str(e), "details": e.details})

    problems = validate_test_cases(test_cases)
    if problems:
        raise HTTPException(status_code=400, detail={"error": "Invalid test cases", "details": problems})

    logging.info(f"[RUN] {len(test_cases)} test(s) against {request.url}")

    try:
        summary = await service.run(
            request.url,
            test_cases,
            username=request.username,
            password=request.password,
            options=request.options,
        )
    except InvalidTestCaseError as e:
        raise HTTPException(status_code=400, detail={"error": str(e), "details": e.details})
    except RunFailedError as e:
        cause = e.cause or e
        logging.error(f"[RUN] Test execution failed: {cause}")
        return JSONResponse(status_code=500, content={
            "error": "Test execution failed",
            "message": str(cause),
            "name": type(cause).__name__,
            "stack": "".join(traceback.format_exception(type(cause), cause, cause.__traceback__)),
        })

    return summary.to_dict()


@router.get('/api/health')
async def health_check():
    return {
        "status": "healthy",
        "service": "web-testing-assistant",
        "timestamp": datetime.now().isoformat(),
    }
