from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Mapping, Optional

from ..core.constants import (
    DEFAULT_NON_BILLABLE_DUTY_TYPES,
    DEFAULT_OVERTIME_HOURS,
    DEFAULT_STANDARD_HOURS,
    DOUBLE_TIME_PAY_CODE,
    OVERTIME_PAY_CODE,
    STANDARD_PAY_CODE,
    UNPAID_PAY_CODE,
)
from ..core.exceptions import ValidationError


@dataclass(frozen=True)
class OvertimePolicy:
    """Daily pay bands: standard, then overtime, then double time."""

    standard_hours: Decimal = DEFAULT_STANDARD_HOURS
    overtime_hours: Decimal = DEFAULT_OVERTIME_HOURS
    standard_code: str = STANDARD_PAY_CODE
    overtime_code: str = OVERTIME_PAY_CODE
    double_time_code: str = DOUBLE_TIME_PAY_CODE
    non_billable_duty_types: frozenset[str] = frozenset(DEFAULT_NON_BILLABLE_DUTY_TYPES)
    unpaid_pay_codes: frozenset[str] = frozenset({UNPAID_PAY_CODE})

    def __post_init__(self):
        if self.standard_hours < 0 or self.overtime_hours < 0:
            raise ValidationError("Overtime thresholds must not be negative")

    def bands(self) -> list[tuple[Decimal, Optional[Decimal], str]]:
        """(lower, upper, code) in cumulative daily hours; upper None is open-ended."""

        ot_end = self.standard_hours + self.overtime_hours
        return [
            (Decimal("0"), self.standard_hours, self.standard_code),
            (self.standard_hours, ot_end, self.overtime_code),
            (ot_end, None, self.double_time_code),
        ]

    def is_banded(self, pay_type_code: Optional[str]) -> bool:
        return not pay_type_code or pay_type_code.upper() == self.standard_code

    @classmethod
    def from_settings(cls, data: Optional[Mapping]) -> "OvertimePolicy":
        data = dict(data or {})
        kwargs: dict = {}
        for key in ("standard_hours", "overtime_hours"):
            if key in data:
                kwargs[key] = Decimal(str(data[key]))
        for key in ("standard_code", "overtime_code", "double_time_code"):
            if key in data:
                kwargs[key] = str(data[key]).upper()
        if "non_billable_duty_types" in data:
            kwargs["non_billable_duty_types"] = frozenset(str(v).lower() for v in data["non_billable_duty_types"])
        if "unpaid_pay_codes" in data:
            kwargs["unpaid_pay_codes"] = frozenset(str(v).upper() for v in data["unpaid_pay_codes"])
        return cls(**kwargs)


@dataclass(frozen=True)
class PolicyBook:
    """Global overtime policy with optional per-employee (contract) overrides."""

    default: OvertimePolicy = field(default_factory=OvertimePolicy)
    overrides: Mapping[str, OvertimePolicy] = field(default_factory=dict)

    def for_employee(self, employee_id: str) -> OvertimePolicy:
        return self.overrides.get(employee_id, self.default)

    @classmethod
    def from_settings(cls, default: Optional[Mapping], overrides: Optional[Mapping] = None) -> "PolicyBook":
        base = dict(default or {})
        return cls(
            default=OvertimePolicy.from_settings(base),
            overrides={
                str(emp): OvertimePolicy.from_settings({**base, **dict(cfg)})
                for emp, cfg in (overrides or {}).items()
            },
        )
