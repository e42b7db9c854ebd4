from __future__ import annotations

from typing import Sequence


class DomainError(Exception):
    """Base exception for business rule violations."""

    code = "DomainError"


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    code = "ValidationError"


class GenerationError(ValidationError):
    """Pay lines could not be generated for a single-employee request."""

    code = "GenerationFailed"

    def __init__(self, message: str, *, employee_id: str, issues: Sequence = ()):
        super().__init__(message)
        self.employee_id = employee_id
        self.issues = list(issues)


class NotFoundError(DomainError):
    """Raised when the requested dispatch day has no published schedule."""

    code = "NotFound"


class ConflictError(DomainError):
    """Raised when the request is incompatible with the current commit state."""

    code = "Conflict"


class ConcurrentModificationError(ConflictError):
    """Another request changed the same commit scope first; re-read and retry."""

    code = "ConcurrentModification"


class LockedError(DomainError):
    """Uncommit blocked by a downstream financial lock (invoice, payroll run)."""

    code = "LockedRecordsExist"

    def __init__(self, message: str, *, pay_record_ids: Sequence[str] = ()):
        super().__init__(message)
        self.pay_record_ids = list(pay_record_ids)
