from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional


@dataclass(frozen=True)
class DutyInstance:
    """A scheduled unit of work from a published roster.

    ``start_time``/``end_time`` are decimal hours from midnight (6.5 == 06:30);
    values past 24 describe duties running past midnight.
    """

    duty_instance_id: str
    employee_id: Optional[str]
    vehicle_id: Optional[str]
    work_date: date
    duty_type: str
    start_time: Decimal
    end_time: Decimal
    pay_type_code: Optional[str] = None

    @property
    def duration(self) -> Decimal:
        return self.end_time - self.start_time
