from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, Sequence

from ..core.enums import PayRecordSource, PayRecordStatus


@dataclass(frozen=True)
class PayRecord:
    """Authoritative pay line for one employee, date and duty."""

    pay_record_id: str
    tenant_id: str
    employee_id: str
    work_date: date
    duty_instance_id: Optional[str]
    pay_type_code: str
    hours: Decimal
    rate: Decimal
    amount: Decimal
    status: PayRecordStatus
    source: PayRecordSource = PayRecordSource.ROSTER
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_voided(self) -> bool:
        return self.status == PayRecordStatus.VOIDED

    @property
    def line_key(self) -> tuple[str, str]:
        return (self.duty_instance_id or "", self.pay_type_code)

    def with_status(self, status: PayRecordStatus, *, at: datetime) -> "PayRecord":
        return replace(self, status=status, updated_at=at)


@dataclass(frozen=True)
class PayRecordFilter:
    """Filter for PayRecordStore queries; unset fields do not constrain."""

    tenant_id: str
    work_date: Optional[date] = None
    employee_id: Optional[str] = None
    pay_record_ids: Optional[Sequence[str]] = None
    statuses: Optional[Sequence[PayRecordStatus]] = None
    source: Optional[PayRecordSource] = None
    _id_set: Optional[frozenset] = field(default=None, init=False, repr=False, compare=False)
    _status_set: Optional[frozenset] = field(default=None, init=False, repr=False, compare=False)

    def __post_init__(self):
        if self.pay_record_ids is not None:
            object.__setattr__(self, "_id_set", frozenset(self.pay_record_ids))
        if self.statuses is not None:
            object.__setattr__(self, "_status_set", frozenset(self.statuses))

    @classmethod
    def active_roster(cls, *, tenant_id: str, work_date: date, employee_id: Optional[str] = None) -> "PayRecordFilter":
        """Non-voided, dispatch-generated records: the ones commit owns."""

        return cls(
            tenant_id=tenant_id,
            work_date=work_date,
            employee_id=employee_id,
            statuses=(PayRecordStatus.DRAFT, PayRecordStatus.COMMITTED, PayRecordStatus.ADJUSTED),
            source=PayRecordSource.ROSTER,
        )

    def matches(self, record: PayRecord) -> bool:
        if record.tenant_id != self.tenant_id:
            return False
        if self.work_date is not None and record.work_date != self.work_date:
            return False
        if self.employee_id is not None and record.employee_id != self.employee_id:
            return False
        if self.pay_record_ids is not None and record.pay_record_id not in self._id_set:
            return False
        if self.statuses is not None and record.status not in self._status_set:
            return False
        if self.source is not None and record.source != self.source:
            return False
        return True
