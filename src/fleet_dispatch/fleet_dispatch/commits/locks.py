"""Downstream lock checks.

A pay record is "locked" once something outside dispatch depends on it, such
as an issued invoice or a finalized payroll run. Which source counts is a
deployment choice (``LOCK_SOURCE`` setting).
"""
from __future__ import annotations

from typing import Protocol, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, in_clause


class DownstreamLockChecker(Protocol):
    def locked_ids(self, *, tenant_id: str, pay_record_ids: Sequence[str]) -> set[str]:
        raise NotImplementedError

    def is_locked(self, *, tenant_id: str, pay_record_ids: Sequence[str]) -> bool:
        raise NotImplementedError


class NoDownstreamLocks(DownstreamLockChecker):
    """Used when no invoicing/payroll system is connected."""

    def locked_ids(self, *, tenant_id: str, pay_record_ids: Sequence[str]) -> set[str]:
        return set()

    def is_locked(self, *, tenant_id: str, pay_record_ids: Sequence[str]) -> bool:
        return False


class MySQLPayRecordLockChecker(DownstreamLockChecker):
    """Locks registered in ``pay_record_locks`` by invoicing or payroll runs."""

    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def locked_ids(self, *, tenant_id: str, pay_record_ids: Sequence[str]) -> set[str]:
        if not pay_record_ids:
            return set()
        ids_sql, ids = in_clause("pay_record_id", list(pay_record_ids))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT DISTINCT pay_record_id
                FROM pay_record_locks
                WHERE tenant_id=%s AND released_at IS NULL AND {ids_sql}
                """,
                (tenant_id, *ids),
            )
            return {str(r["pay_record_id"]) for r in fetchall(cur)}

    def is_locked(self, *, tenant_id: str, pay_record_ids: Sequence[str]) -> bool:
        return bool(self.locked_ids(tenant_id=tenant_id, pay_record_ids=pay_record_ids))


def build_lock_checker(source: str, conn_factory: DatabaseConnection) -> DownstreamLockChecker:
    source = (source or "none").strip().lower()
    if source == "none":
        return NoDownstreamLocks()
    if source == "pay_record_locks":
        return MySQLPayRecordLockChecker(conn_factory)
    raise ValueError(f"Unknown LOCK_SOURCE: {source!r}")
