from __future__ import annotations

import logging
from datetime import date
from typing import Mapping, Optional

import mysql.connector
from mysql.connector import errorcode

from ..common.datetime_utils import now_utc
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, in_clause
from ..pay_records.mysql_pay_record_repository import MySQLPayRecordWriter
from .revision_repository import CommitRevisionStore, GuardedWrite

logger = logging.getLogger(__name__)


class _RevisionMoved(Exception):
    pass


class MySQLCommitRevisionStore(CommitRevisionStore):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_revisions(self, *, tenant_id: str, work_date: date) -> dict[str, int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT scope_key, revision
                FROM commit_revisions
                WHERE tenant_id=%s AND work_date=%s
                """,
                (tenant_id, work_date),
            )
            return {str(r["scope_key"]): int(r["revision"]) for r in fetchall(cur)}

    def compare_and_swap(
        self,
        *,
        tenant_id: str,
        work_date: date,
        expected: Mapping[str, int],
        write: Optional[GuardedWrite] = None,
    ) -> bool:
        keys = sorted(expected)
        if not keys:
            return True
        keys_sql, key_params = in_clause("scope_key", keys)
        now = now_utc()
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                # Row locks in key order: a concurrent writer on any shared key
                # waits here until this transaction commits or rolls back.
                cur.executemany(
                    """
                    INSERT INTO commit_revisions(tenant_id, work_date, scope_key, revision, updated_at)
                    VALUES(%s,%s,%s,0,%s)
                    ON DUPLICATE KEY UPDATE revision=revision
                    """,
                    [(tenant_id, work_date, key, now) for key in keys],
                )
                cur.execute(
                    f"""
                    SELECT scope_key, revision
                    FROM commit_revisions
                    WHERE tenant_id=%s AND work_date=%s AND {keys_sql}
                    FOR UPDATE
                    """,
                    (tenant_id, work_date, *key_params),
                )
                current = {str(r["scope_key"]): int(r["revision"]) for r in fetchall(cur)}
                if any(current.get(key, 0) != int(expected[key]) for key in keys):
                    raise _RevisionMoved()

                if write is not None:
                    write(MySQLPayRecordWriter(cur))

                cur.execute(
                    f"""
                    UPDATE commit_revisions
                    SET revision=revision+1, updated_at=%s
                    WHERE tenant_id=%s AND work_date=%s AND {keys_sql}
                    """,
                    (now, tenant_id, work_date, *key_params),
                )
        except _RevisionMoved:
            return False
        except mysql.connector.Error as e:
            if e.errno != errorcode.ER_LOCK_DEADLOCK:
                raise
            logger.warning("Deadlock on commit revisions for %s; treating as lost race", work_date)
            return False
        return True
