from __future__ import annotations

from datetime import date
from typing import Protocol, Sequence

from .model import DutyInstance


class DispatchDayView(Protocol):
    """Read-only view over the published duties of a dispatch day."""

    def has_published_schedule(self, *, tenant_id: str, work_date: date) -> bool:
        raise NotImplementedError

    def list_duty_instances(self, *, tenant_id: str, work_date: date) -> Sequence[DutyInstance]:
        """Duties of published rosters for the date, assigned or not."""

        raise NotImplementedError
