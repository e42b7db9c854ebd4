from __future__ import annotations

from decimal import Decimal
from typing import Optional

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone, to_decimal
from .repository import PayTypeCatalog


class MySQLPayTypeCatalog(PayTypeCatalog):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def rate_for(self, *, tenant_id: str, pay_type_code: str) -> Optional[Decimal]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT hourly_rate
                FROM pay_types
                WHERE tenant_id=%s AND code=%s AND is_active=1 AND deleted_at IS NULL
                """,
                (tenant_id, pay_type_code.upper()),
            )
            r = fetchone(cur)
            if not r or r.get("hourly_rate") is None:
                return None
            return to_decimal(r["hourly_rate"])
