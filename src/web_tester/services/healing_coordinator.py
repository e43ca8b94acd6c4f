"""Self-healing retry coordinator: one execution plus at most one healed re-attempt."""

import logging
from dataclasses import replace
from typing import List, Optional

from ..core.config import settings
from ..core.errors import HealingDeclined, HealingReattemptFailure, StepError
from ..core.models import Declined, Healer, HealingInfo, HealingOutcome, TestCase, TestResult
from .step_executor import StepExecutor, StepOutcome


logger = logging.getLogger(__name__)


class SelfHealingCoordinator:
    """Wraps the step executor with a bounded repair protocol for UI steps.

    A failed UI step is handed to the healer once. If the healer proposes a
    repaired test case it is executed exactly once more; there is no loop and
    no backoff. API steps and passing steps are returned untouched.
    """

    def __init__(self, executor: StepExecutor, healer: Optional[Healer] = None,
                 enabled: Optional[bool] = None):
        self.executor = executor
        self.healer = healer
        self.enabled = settings.SELF_HEALING_ENABLED if enabled is None else enabled

    async def run(self, test_case: TestCase) -> TestResult:
        outcome = await self.executor.execute(test_case)

        if outcome.passed or not test_case.is_ui or not self.enabled or self.healer is None:
            return outcome.result

        logger.info(f"🩹 Attempting to heal: {test_case.name}")
        healing = await self._request_healing(test_case, outcome)

        if not healing.success:
            logger.info(f"Healing declined for {test_case.name}: {healing.explanation or 'no explanation'}")
            return outcome.result

        retry = await self.executor.execute(healing.test_case)

        if retry.passed:
            logger.info(f"✅ {test_case.name} passed after healing ({healing.strategy})")
            return replace(
                retry.result,
                name=test_case.name,
                healed=True,
                healing_info=HealingInfo(
                    strategy=healing.strategy,
                    confidence=healing.confidence,
                    explanation=healing.explanation,
                ),
            )

        failure = HealingReattemptFailure(retry.error or StepError(retry.result.message or "unknown error"))
        logger.warning(f"❌ {test_case.name}: {failure}")
        return replace(retry.result, name=test_case.name, message=str(failure))

    async def run_all(self, test_cases: List[TestCase]) -> List[TestResult]:
        results = []
        for test_case in test_cases:
            results.append(await self.run(test_case))
        return results

    async def _request_healing(self, test_case: TestCase, outcome: StepOutcome) -> HealingOutcome:
        error = outcome.error or StepError(outcome.result.message or "unknown error")
        try:
            healing = await self.healer.heal(test_case, error)
            if isinstance(healing, dict):
                # external healers answer with the wire shape
                healing = HealingOutcome.from_dict(healing)
        except HealingDeclined as e:
            return Declined(explanation=str(e))
        except Exception as e:
            logger.warning(f"Healer raised while repairing {test_case.name}: {e}")
            return Declined(explanation=str(e))
        return healing
