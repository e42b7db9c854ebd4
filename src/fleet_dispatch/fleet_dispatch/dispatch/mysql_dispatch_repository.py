from __future__ import annotations

from datetime import date
from typing import Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, to_decimal
from .model import DutyInstance
from .repository import DispatchDayView


class MySQLDispatchDayView(DispatchDayView):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def has_published_schedule(self, *, tenant_id: str, work_date: date) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT 1 AS found
                FROM roster_entries re
                JOIN rosters r ON r.id = re.roster_id
                WHERE r.tenant_id=%s
                  AND r.status='published'
                  AND r.deleted_at IS NULL
                  AND re.deleted_at IS NULL
                  AND re.date=%s
                LIMIT 1
                """,
                (tenant_id, work_date),
            )
            return fetchone(cur) is not None

    def list_duty_instances(self, *, tenant_id: str, work_date: date) -> Sequence[DutyInstance]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT
                    rd.id AS duty_instance_id,
                    re.driver_id AS employee_id,
                    COALESCE(rd.vehicle_id, re.vehicle_id) AS vehicle_id,
                    re.date AS work_date,
                    dt.code AS duty_type,
                    rd.start_time,
                    rd.end_time,
                    pt.code AS pay_type_code
                FROM roster_duties rd
                JOIN roster_entries re ON re.id = rd.roster_entry_id
                JOIN rosters r ON r.id = re.roster_id
                JOIN duty_types dt ON dt.id = rd.duty_type_id
                LEFT JOIN pay_types pt ON pt.id = rd.pay_type_id
                WHERE r.tenant_id=%s
                  AND r.status='published'
                  AND r.deleted_at IS NULL
                  AND re.deleted_at IS NULL
                  AND re.date=%s
                ORDER BY re.driver_id, rd.start_time, rd.sequence
                """,
                (tenant_id, work_date),
            )
            rows = fetchall(cur)
            return [
                DutyInstance(
                    duty_instance_id=str(r["duty_instance_id"]),
                    employee_id=str(r["employee_id"]) if r.get("employee_id") else None,
                    vehicle_id=str(r["vehicle_id"]) if r.get("vehicle_id") else None,
                    work_date=r["work_date"],
                    duty_type=str(r["duty_type"]).lower(),
                    start_time=to_decimal(r["start_time"]),
                    end_time=to_decimal(r["end_time"]),
                    pay_type_code=r.get("pay_type_code"),
                )
                for r in rows
            ]
