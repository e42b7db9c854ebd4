from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from ..core.enums import PayRecordStatus
from .model import PayRecord, PayRecordFilter
from .repository import PayRecordStore


@dataclass(frozen=True)
class PayTypeTotal:
    hours: Decimal = Decimal("0")
    amount: Decimal = Decimal("0")


@dataclass(frozen=True)
class PayRecordReport:
    records: list[PayRecord]
    total_hours: Decimal
    total_amount: Decimal
    by_pay_type: dict[str, PayTypeTotal] = field(default_factory=dict)


class PayRecordService:
    def __init__(self, records: PayRecordStore):
        self._records = records

    def list_for_date(self, *, tenant_id: str, work_date: date, include_voided: bool = False) -> PayRecordReport:
        """Pay records of a dispatch day with totals; voided rows never count toward totals."""

        flt = PayRecordFilter(tenant_id=tenant_id, work_date=work_date)
        rows = list(self._records.query(flt))
        if not include_voided:
            rows = [r for r in rows if not r.is_voided]

        total_hours = Decimal("0")
        total_amount = Decimal("0")
        by_type: dict[str, PayTypeTotal] = {}

        for r in rows:
            if r.status == PayRecordStatus.VOIDED:
                continue
            total_hours += r.hours
            total_amount += r.amount
            t = by_type.get(r.pay_type_code, PayTypeTotal())
            by_type[r.pay_type_code] = PayTypeTotal(hours=t.hours + r.hours, amount=t.amount + r.amount)

        rows.sort(key=lambda r: (r.employee_id, r.duty_instance_id or "", r.pay_type_code))
        return PayRecordReport(
            records=rows,
            total_hours=total_hours,
            total_amount=total_amount,
            by_pay_type=dict(sorted(by_type.items())),
        )
