from __future__ import annotations

import uuid
from typing import Optional

from ..common.datetime_utils import now_utc
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor
from .repository import AuditLogRepository


class MySQLAuditLogRepository(AuditLogRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def record(
        self,
        *,
        tenant_id: str,
        entity_type: str,
        entity_id: str,
        action: str,
        changed_by: str,
        notes: Optional[str] = None,
    ) -> str:
        entry_id = str(uuid.uuid4())
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO audit_log(id, tenant_id, entity_type, entity_id, action, changed_by, changed_at, notes)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (entry_id, tenant_id, entity_type, entity_id, action, changed_by, now_utc(), notes),
            )
        return entry_id
