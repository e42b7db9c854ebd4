from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Callable, Optional, Sequence

from ..core.enums import PayRecordSource, PayRecordStatus
from ..pay_records.model import PayRecord
from ..payroll.model import PayLine
from .model import EmployeePlan


def _new_id() -> str:
    return str(uuid.uuid4())


def _same_figures(record: PayRecord, line: PayLine) -> bool:
    return record.hours == line.hours and record.rate == line.rate and record.amount == line.amount


def plan_employee(
    *,
    tenant_id: str,
    employee_id: str,
    work_date: date,
    existing: Sequence[PayRecord],
    lines: Sequence[PayLine],
    now: datetime,
    notes: Optional[str] = None,
    new_id: Callable[[], str] = _new_id,
) -> EmployeePlan:
    """Diff desired pay lines against non-voided roster records.

    Keyed by (duty_instance_id, pay_type_code). Adjusted records stay while
    their duty still exists; duplicates of one key beyond the first are voided.
    """

    plan = EmployeePlan(employee_id=employee_id)
    desired = {line.line_key: line for line in lines}

    current: dict[tuple[str, str], PayRecord] = {}
    for rec in sorted(existing, key=lambda r: (r.created_at or now, r.pay_record_id)):
        if rec.line_key in current:
            plan.to_void.append(rec)
            plan.voided += 1
        else:
            current[rec.line_key] = rec

    for key, rec in current.items():
        line = desired.get(key)
        if line is None:
            plan.to_void.append(rec)
            plan.voided += 1
        elif rec.status == PayRecordStatus.ADJUSTED:
            continue
        elif not _same_figures(rec, line):
            plan.to_void.append(rec)
            plan.to_insert.append(_record_from_line(tenant_id, employee_id, work_date, line, now, notes, new_id))
            plan.updated += 1
        elif rec.status == PayRecordStatus.DRAFT:
            plan.to_promote.append(rec.with_status(PayRecordStatus.COMMITTED, at=now))
            plan.updated += 1

    for key, line in desired.items():
        if key not in current:
            plan.to_insert.append(_record_from_line(tenant_id, employee_id, work_date, line, now, notes, new_id))
            plan.created += 1

    return plan


def _record_from_line(
    tenant_id: str,
    employee_id: str,
    work_date: date,
    line: PayLine,
    now: datetime,
    notes: Optional[str],
    new_id: Callable[[], str],
) -> PayRecord:
    return PayRecord(
        pay_record_id=new_id(),
        tenant_id=tenant_id,
        employee_id=employee_id,
        work_date=work_date,
        duty_instance_id=line.duty_instance_id,
        pay_type_code=line.pay_type_code,
        hours=line.hours,
        rate=line.rate,
        amount=line.amount,
        status=PayRecordStatus.COMMITTED,
        source=PayRecordSource.ROSTER,
        notes=notes,
        created_at=now,
        updated_at=now,
    )
