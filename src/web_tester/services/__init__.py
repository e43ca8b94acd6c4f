"""
Services module for browser sessions, step execution, API validation and self-healing.
"""

from .browser_session import BrowserSession, ConsoleCapture, PageSnapshot
from .api_validator import ApiValidator, build_url
from .step_executor import StepExecutor, StepOutcome
from .healing_coordinator import SelfHealingCoordinator
from .selector_healer import SelectorHealer
from .result_aggregator import ResultAggregator
from .failure_analyzer import FailureAnalyzer
from .test_run_service import TestRunService

__all__ = [
    "BrowserSession",
    "ConsoleCapture",
    "PageSnapshot",
    "ApiValidator",
    "build_url",
    "StepExecutor",
    "StepOutcome",
    "SelfHealingCoordinator",
    "SelectorHealer",
    "ResultAggregator",
    "FailureAnalyzer",
    "TestRunService",
]
