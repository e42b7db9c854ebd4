from __future__ import annotations

from datetime import datetime
from typing import Sequence

import mysql.connector

from ..core.enums import PayRecordSource, PayRecordStatus
from ..core.exceptions import ConcurrentModificationError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, in_clause, to_decimal
from .model import PayRecord, PayRecordFilter
from .repository import PayRecordStore, PayRecordWriter

_COLUMNS = """
    id, tenant_id, employee_id, work_date, source_duty_line_id, pay_type_code,
    hours, rate, total_amount, status, source_type, notes, created_at, updated_at
"""

_INSERT = """
    INSERT INTO employee_pay_records(
        id, tenant_id, employee_id, work_date, source_duty_line_id, pay_type_code,
        hours, rate, total_amount, status, source_type, is_manual, notes,
        created_at, updated_at
    )
    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
"""


def build_where(flt: PayRecordFilter) -> tuple[str, list[object]]:
    clauses = ["tenant_id=%s"]
    params: list[object] = [flt.tenant_id]

    if flt.work_date is not None:
        clauses.append("work_date=%s")
        params.append(flt.work_date)
    if flt.employee_id is not None:
        clauses.append("employee_id=%s")
        params.append(flt.employee_id)
    if flt.pay_record_ids is not None:
        if not flt.pay_record_ids:
            # Empty id list matches nothing.
            clauses.append("1=0")
        else:
            sql, values = in_clause("id", list(flt.pay_record_ids))
            clauses.append(sql)
            params.extend(values)
    if flt.statuses is not None:
        if not flt.statuses:
            clauses.append("1=0")
        else:
            sql, values = in_clause("status", [s.value for s in flt.statuses])
            clauses.append(sql)
            params.extend(values)
    if flt.source is not None:
        clauses.append("source_type=%s")
        params.append(flt.source.value)

    return " AND ".join(clauses), params


def _row_params(rec: PayRecord) -> tuple:
    return (
        rec.pay_record_id,
        rec.tenant_id,
        rec.employee_id,
        rec.work_date,
        rec.duty_instance_id,
        rec.pay_type_code,
        rec.hours,
        rec.rate,
        rec.amount,
        rec.status.value,
        rec.source.value,
        1 if rec.source == PayRecordSource.MANUAL else 0,
        rec.notes,
        rec.created_at,
        rec.updated_at,
    )


class MySQLPayRecordWriter(PayRecordWriter):
    """Writes through an already open cursor; the caller owns the transaction."""

    def __init__(self, cur):
        self._cur = cur

    def insert_many(self, records: Sequence[PayRecord]) -> int:
        if not records:
            return 0
        try:
            self._cur.executemany(_INSERT, [_row_params(rec) for rec in records])
        except mysql.connector.IntegrityError as e:
            # uq_pay_records_active_line: another writer already holds the line.
            raise ConcurrentModificationError(f"Pay line already committed by another request: {e.msg}") from e
        return len(records)

    def upsert_many(self, records: Sequence[PayRecord]) -> int:
        if not records:
            return 0
        self._cur.executemany(
            _INSERT
            + """
            ON DUPLICATE KEY UPDATE
                hours=VALUES(hours), rate=VALUES(rate), total_amount=VALUES(total_amount),
                status=VALUES(status), notes=VALUES(notes), updated_at=VALUES(updated_at)
            """,
            [_row_params(rec) for rec in records],
        )
        return len(records)

    def void_many(self, flt: PayRecordFilter, *, voided_at: datetime) -> int:
        where, params = build_where(flt)
        self._cur.execute(
            f"""
            UPDATE employee_pay_records
            SET status=%s, updated_at=%s
            WHERE {where} AND status<>%s
            """,
            (PayRecordStatus.VOIDED.value, voided_at, *params, PayRecordStatus.VOIDED.value),
        )
        return int(self._cur.rowcount)


class MySQLPayRecordRepository(PayRecordStore):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def query(self, flt: PayRecordFilter) -> Sequence[PayRecord]:
        where, params = build_where(flt)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM employee_pay_records
                WHERE {where}
                ORDER BY employee_id ASC, source_duty_line_id ASC, pay_type_code ASC, created_at ASC
                """,
                tuple(params),
            )
            return [
                PayRecord(
                    pay_record_id=str(r["id"]),
                    tenant_id=r["tenant_id"],
                    employee_id=str(r["employee_id"]),
                    work_date=r["work_date"],
                    duty_instance_id=r.get("source_duty_line_id"),
                    pay_type_code=r["pay_type_code"],
                    hours=to_decimal(r["hours"]),
                    rate=to_decimal(r["rate"]),
                    amount=to_decimal(r["total_amount"]),
                    status=PayRecordStatus(r["status"]),
                    source=PayRecordSource(r["source_type"]),
                    notes=r.get("notes"),
                    created_at=r.get("created_at"),
                    updated_at=r.get("updated_at"),
                )
                for r in fetchall(cur)
            ]
