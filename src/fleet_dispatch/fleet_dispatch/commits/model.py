from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Mapping, Optional

from ..core.enums import CommitScope, CommitState
from ..pay_records.model import PayRecord
from ..payroll.model import PayLine, PayLineIssue


@dataclass(frozen=True)
class CommitObservation:
    """Revisions seen for a dispatch day before any read of its data."""

    tenant_id: str
    work_date: date
    revisions: Mapping[str, int]

    def revision_of(self, key: str) -> int:
        return int(self.revisions.get(key, 0))


@dataclass(frozen=True)
class DayCommitStatus:
    work_date: date
    state: CommitState
    committed_employee_ids: list[str] = field(default_factory=list)
    pending_employee_ids: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class EmployeeFailure:
    """One employee skipped during an all-scope commit (PartialFailure entry)."""

    employee_id: str
    issues: list[PayLineIssue]


@dataclass
class EmployeePlan:
    """Writes needed to bring one employee's records in line with the schedule."""

    employee_id: str
    to_insert: list[PayRecord] = field(default_factory=list)
    to_promote: list[PayRecord] = field(default_factory=list)
    to_void: list[PayRecord] = field(default_factory=list)
    created: int = 0
    updated: int = 0
    voided: int = 0

    @property
    def is_empty(self) -> bool:
        return not (self.to_insert or self.to_promote or self.to_void)


@dataclass(frozen=True)
class CommitSummary:
    tenant_id: str
    work_date: date
    scope: CommitScope
    employee_id: Optional[str]
    created: int
    updated: int
    voided: int
    failures: list[EmployeeFailure]
    status: DayCommitStatus


@dataclass(frozen=True)
class UncommitSummary:
    tenant_id: str
    work_date: date
    scope: CommitScope
    employee_id: Optional[str]
    voided: int
    status: DayCommitStatus


@dataclass(frozen=True)
class CommitPreview:
    tenant_id: str
    work_date: date
    scope: CommitScope
    employee_id: Optional[str]
    lines: dict[str, list[PayLine]]
    created: int
    updated: int
    voided: int
    failures: list[EmployeeFailure]
