from __future__ import annotations

from typing import Optional, Protocol


class AuditLogRepository(Protocol):
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
        """Append one audit entry. Returns its id."""

        raise NotImplementedError
