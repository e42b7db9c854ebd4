from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional

from ..core.enums import IssueKind


@dataclass(frozen=True)
class PayLine:
    """One computed line: a duty (or the part of it inside one pay band)."""

    duty_instance_id: str
    pay_type_code: str
    hours: Decimal
    rate: Optional[Decimal]
    amount: Optional[Decimal]

    @property
    def line_key(self) -> tuple[str, str]:
        return (self.duty_instance_id, self.pay_type_code)


@dataclass(frozen=True)
class PayLineIssue:
    kind: IssueKind
    message: str
    duty_instance_id: Optional[str] = None
    pay_type_code: Optional[str] = None


@dataclass(frozen=True)
class PayLineResult:
    employee_id: str
    lines: list[PayLine] = field(default_factory=list)
    issues: list[PayLineIssue] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.issues

    @property
    def total_hours(self) -> Decimal:
        return sum((l.hours for l in self.lines), Decimal("0"))
