from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Sequence

from ...core.constants import CENT
from ...core.enums import IssueKind
from ...dispatch.model import DutyInstance
from ..model import PayLine, PayLineIssue, PayLineResult
from ..policy import OvertimePolicy
from .base import PayLineCalculator, RateLookup

logger = logging.getLogger(__name__)


def find_overlaps(duties: Sequence[DutyInstance]) -> list[tuple[DutyInstance, DutyInstance]]:
    """Pairs of duties whose [start, end) windows intersect."""

    ordered = sorted(duties, key=lambda d: (d.start_time, d.end_time))
    pairs: list[tuple[DutyInstance, DutyInstance]] = []
    for i, a in enumerate(ordered):
        for b in ordered[i + 1:]:
            if b.start_time >= a.end_time:
                break
            pairs.append((a, b))
    return pairs


def split_by_bands(start: Decimal, end: Decimal, policy: OvertimePolicy) -> list[tuple[str, Decimal]]:
    """Split the cumulative-hours window [start, end) over the policy's pay bands."""

    parts: list[tuple[str, Decimal]] = []
    for lower, upper, code in policy.bands():
        hi = end if upper is None else min(end, upper)
        lo = max(start, lower)
        if hi > lo:
            parts.append((code, hi - lo))
    return parts


class ThresholdPayCalculator(PayLineCalculator):
    """Daily threshold rule: standard hours, then overtime, then double time.

    Duties are walked in start order while cumulative billable hours are
    tracked; a duty that straddles a threshold is split at it. Duties with an
    explicit non-standard pay type keep that code as a single line but still
    count toward the cumulative total.
    """

    def is_billable(self, duty: DutyInstance, policy: OvertimePolicy) -> bool:
        if duty.duty_type.lower() in policy.non_billable_duty_types:
            return False
        if duty.pay_type_code and duty.pay_type_code.upper() in policy.unpaid_pay_codes:
            return False
        return duty.duration > 0

    def generate(
        self,
        *,
        employee_id: str,
        duties: Sequence[DutyInstance],
        rate_for: RateLookup,
        policy: OvertimePolicy,
    ) -> PayLineResult:
        timed = [d for d in duties if d.duration > 0]

        overlaps = find_overlaps(timed)
        if overlaps:
            issues = [
                PayLineIssue(
                    kind=IssueKind.OVERLAPPING_DUTIES,
                    message=(
                        f"Duty {a.duty_instance_id} ({a.start_time}-{a.end_time}) overlaps "
                        f"duty {b.duty_instance_id} ({b.start_time}-{b.end_time})"
                    ),
                    duty_instance_id=b.duty_instance_id,
                )
                for a, b in overlaps
            ]
            return PayLineResult(employee_id=employee_id, issues=issues)

        billable = sorted(
            (d for d in timed if self.is_billable(d, policy)),
            key=lambda d: (d.start_time, d.duty_instance_id),
        )

        lines: list[PayLine] = []
        issues: list[PayLineIssue] = []
        elapsed = Decimal("0")

        for duty in billable:
            start, end = elapsed, elapsed + duty.duration
            if policy.is_banded(duty.pay_type_code):
                parts = split_by_bands(start, end, policy)
            else:
                parts = [(duty.pay_type_code.upper(), duty.duration)]
            elapsed = end

            for code, hours in parts:
                rate = rate_for(code)
                if rate is None:
                    issues.append(
                        PayLineIssue(
                            kind=IssueKind.MISSING_RATE,
                            message=f"No hourly rate configured for pay type {code}",
                            duty_instance_id=duty.duty_instance_id,
                            pay_type_code=code,
                        )
                    )
                lines.append(
                    PayLine(
                        duty_instance_id=duty.duty_instance_id,
                        pay_type_code=code,
                        hours=hours,
                        rate=rate,
                        amount=self._amount(hours, rate),
                    )
                )

        if issues:
            logger.debug("Pay line issues for employee %s: %d", employee_id, len(issues))
        return PayLineResult(employee_id=employee_id, lines=lines, issues=issues)

    @staticmethod
    def _amount(hours: Decimal, rate: Optional[Decimal]) -> Optional[Decimal]:
        if rate is None:
            return None
        return (hours * rate).quantize(CENT, rounding=ROUND_HALF_UP)
