from __future__ import annotations

from typing import Optional

from ..core.enums import CommitScope
from ..core.exceptions import ValidationError


def require_non_empty(value: Optional[str], field_name: str) -> str:
    if not value or not str(value).strip():
        raise ValidationError(f"{field_name} is required")
    return str(value).strip()


def parse_scope(value) -> CommitScope:
    if isinstance(value, CommitScope):
        return value
    try:
        return CommitScope(str(value or "").strip().lower())
    except ValueError:
        raise ValidationError(f"Invalid scope: {value!r} (expected 'all' or 'individual')") from None


def require_scope_target(scope: CommitScope, employee_id: Optional[str]) -> Optional[str]:
    """Individual scope needs an employee; all scope ignores one."""

    if scope == CommitScope.INDIVIDUAL:
        return require_non_empty(employee_id, "employee_id")
    return None
