from __future__ import annotations

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Callable, Optional, Sequence

from ...dispatch.model import DutyInstance
from ..model import PayLineResult
from ..policy import OvertimePolicy

RateLookup = Callable[[str], Optional[Decimal]]


class PayLineCalculator(ABC):
    """Calculator interface (Strategy Pattern for pay line generation)."""

    @abstractmethod
    def generate(
        self,
        *,
        employee_id: str,
        duties: Sequence[DutyInstance],
        rate_for: RateLookup,
        policy: OvertimePolicy,
    ) -> PayLineResult:
        raise NotImplementedError

    @abstractmethod
    def is_billable(self, duty: DutyInstance, policy: OvertimePolicy) -> bool:
        raise NotImplementedError
