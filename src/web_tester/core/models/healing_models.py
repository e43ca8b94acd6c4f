"""Data models for the self-healing collaborator contract."""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol, Union

from .test_models import TestCase


@dataclass(frozen=True)
class HealingOutcome:
    """Verdict returned by a healer for one failed UI test case."""
    strategy: Optional[str] = None
    explanation: Optional[str] = None

    @property
    def success(self) -> bool:
        return False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'HealingOutcome':
        """Build an outcome from the wire contract
        ``{success, healedTest?, strategy?, confidence?, explanation?}``."""
        healed_test = data.get("healedTest")
        if data.get("success") and healed_test:
            return Healed(
                test_case=healed_test if isinstance(healed_test, TestCase) else TestCase.from_dict(healed_test),
                confidence=float(data.get("confidence") or 0.0),
                strategy=data.get("strategy"),
                explanation=data.get("explanation"),
            )
        return Declined(strategy=data.get("strategy"), explanation=data.get("explanation"))


@dataclass(frozen=True)
class Healed(HealingOutcome):
    """The healer produced a repaired test case worth one more attempt."""
    test_case: Optional[TestCase] = None
    confidence: float = 0.0

    @property
    def success(self) -> bool:
        return self.test_case is not None


@dataclass(frozen=True)
class Declined(HealingOutcome):
    """The healer could not repair the test case."""
    pass


class Healer(Protocol):
    """Capability interface for anything that can attempt to repair a failed UI step."""

    async def heal(self, test_case: TestCase, error: BaseException) -> Union[HealingOutcome, Dict[str, Any]]:
        ...
