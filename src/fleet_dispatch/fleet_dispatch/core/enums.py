from __future__ import annotations

from enum import Enum


class CommitScope(str, Enum):
    """Breadth of a commit/uncommit request."""

    ALL = "all"
    INDIVIDUAL = "individual"


class PayRecordStatus(str, Enum):
    """Lifecycle state of a pay record. Voided rows are kept for audit."""

    DRAFT = "draft"
    COMMITTED = "committed"
    ADJUSTED = "adjusted"
    VOIDED = "voided"


class PayRecordSource(str, Enum):
    ROSTER = "roster"
    MANUAL = "manual"


class CommitState(str, Enum):
    """Derived commit status of a dispatch day."""

    OPEN = "open"
    PARTIALLY_COMMITTED = "partially_committed"
    COMMITTED = "committed"


class IssueKind(str, Enum):
    OVERLAPPING_DUTIES = "OverlappingDuties"
    MISSING_RATE = "MissingRate"
    LOCKED_RECORDS = "LockedRecordsExist"
