"""Exception taxonomy for the web test execution engine.

Step-level and API-level errors are caught at the executor boundary and turned
into failed results. Session-level errors propagate to the run caller.
"""

from typing import Optional


class WebTesterError(Exception):
    """Base class for all engine errors."""
    pass


# --- Session level (propagate to the run caller) ---

class SessionError(WebTesterError):
    """The browser session could not be created or driven."""
    pass


class BrowserNotInitialized(SessionError):
    """A page operation was attempted before initialize() or after close()."""

    def __init__(self, message: str = "Browser not initialized"):
        super().__init__(message)


class NavigationTimeout(SessionError):
    """The page did not reach the requested load state in time."""

    def __init__(self, url: str, timeout_ms: int):
        self.url = url
        self.timeout_ms = timeout_ms
        super().__init__(f"Navigation to {url} timed out after {timeout_ms}ms")


class RunFailedError(WebTesterError):
    """A run aborted before producing results."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause


# --- Step level (converted into failed results) ---

class StepError(WebTesterError):
    """A single UI step failed its action or acceptance check."""
    pass


class SelectorTimeout(StepError):
    def __init__(self, selector: str, timeout_ms: int):
        self.selector = selector
        self.timeout_ms = timeout_ms
        super().__init__(f"Timeout after {timeout_ms}ms waiting for selector: {selector}")


class ElementNotFound(StepError):
    def __init__(self, selector: str):
        self.selector = selector
        super().__init__(f"Element not found: {selector}")


class AssertionMismatch(StepError):
    def __init__(self, expected: str, actual: Optional[str]):
        self.expected = expected
        self.actual = actual
        super().__init__(f'Expected "{expected}", but got "{actual}"')


class InvalidTestCase(StepError):
    """The test case is missing a field its kind requires."""
    pass


# --- API level (converted into failed results) ---

class ApiTestError(WebTesterError):
    pass


class NetworkUnreachable(ApiTestError):
    """The request was sent but no response was received."""
    pass


class RequestConstructionFailure(ApiTestError):
    """The request could not be built from the test case."""
    pass


# --- Healing ---

class HealingDeclined(WebTesterError):
    """The healing collaborator could not repair the test case."""
    pass


class HealingReattemptFailure(WebTesterError):
    """The healed test case was executed and failed again."""

    def __init__(self, error: BaseException):
        self.error = error
        super().__init__(f"Healing failed: {error}")


# --- Analysis ---

class AnalysisUnavailable(WebTesterError):
    """An optional analysis could not be produced for this run."""
    pass


# --- Parsing ---

class InvalidTestCaseError(ValueError):
    """Wire data could not be turned into test cases."""

    def __init__(self, message: str, details: Optional[list] = None):
        super().__init__(message)
        self.details = details or []
