from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Callable, Optional

from ..audit.repository import AuditLogRepository
from ..common.datetime_utils import now_utc
from ..common.validators import parse_scope, require_non_empty, require_scope_target
from ..core.constants import SYSTEM_ACTOR
from ..core.enums import CommitScope, IssueKind
from ..core.exceptions import ConflictError, GenerationError, LockedError, NotFoundError
from ..dispatch.model import DutyInstance
from ..dispatch.repository import DispatchDayView
from ..pay_records.model import PayRecord, PayRecordFilter
from ..pay_records.repository import PayRecordStore, PayRecordWriter
from ..pay_types.repository import PayTypeCatalog
from ..payroll.calculator.base import PayLineCalculator
from ..payroll.calculator.threshold_calculator import ThresholdPayCalculator
from ..payroll.model import PayLine, PayLineIssue
from ..payroll.policy import PolicyBook
from .locks import DownstreamLockChecker, NoDownstreamLocks
from .model import (
    CommitObservation,
    CommitPreview,
    CommitSummary,
    DayCommitStatus,
    EmployeeFailure,
    EmployeePlan,
    UncommitSummary,
)
from .reconciler import plan_employee
from .status_tracker import CommitStatusTracker

logger = logging.getLogger(__name__)


@dataclass
class _Prepared:
    observation: CommitObservation
    employee_ids: list[str] = field(default_factory=list)
    plans: dict[str, EmployeePlan] = field(default_factory=dict)
    lines: dict[str, list[PayLine]] = field(default_factory=dict)
    failures: list[EmployeeFailure] = field(default_factory=list)


class CommitEngine:
    """Freezes a dispatch day into pay records and reverses it.

    A commit observes the scope revisions, reads the published duties and the
    current records and computes per-employee plans. The writes then run inside
    the status tracker's claim on the scope, so they land together with the
    revision bump or not at all. Reconciliation is idempotent, so a retry after
    a failed write converges instead of duplicating.
    """

    def __init__(
        self,
        days: DispatchDayView,
        catalog: PayTypeCatalog,
        records: PayRecordStore,
        tracker: CommitStatusTracker,
        *,
        locks: Optional[DownstreamLockChecker] = None,
        audit: Optional[AuditLogRepository] = None,
        calculator: Optional[PayLineCalculator] = None,
        policies: Optional[PolicyBook] = None,
        clock: Callable[[], datetime] = now_utc,
    ):
        self._days = days
        self._catalog = catalog
        self._records = records
        self._tracker = tracker
        self._locks = locks or NoDownstreamLocks()
        self._audit = audit
        self._calculator = calculator or ThresholdPayCalculator()
        self._policies = policies or PolicyBook()
        self._clock = clock

    def commit_day(
        self,
        *,
        tenant_id: str,
        work_date: date,
        scope: CommitScope | str,
        employee_id: Optional[str] = None,
        notes: Optional[str] = None,
        committed_by: str = SYSTEM_ACTOR,
    ) -> CommitSummary:
        tenant_id = require_non_empty(tenant_id, "tenant_id")
        scope = parse_scope(scope)
        employee_id = require_scope_target(scope, employee_id)
        notes = notes.strip() if notes and notes.strip() else None
        now = self._clock()

        prepared = self._prepare(
            tenant_id=tenant_id,
            work_date=work_date,
            scope=scope,
            employee_id=employee_id,
            now=now,
            notes=notes,
            strict=scope == CommitScope.INDIVIDUAL,
        )
        plans = [p for p in prepared.plans.values() if not p.is_empty]
        include_day_scope = scope == CommitScope.ALL

        if plans:
            self._tracker.transition(
                prepared.observation,
                employee_ids=prepared.employee_ids,
                include_day_scope=include_day_scope,
                write=lambda writer: self._apply(writer, tenant_id, plans, now),
            )
            self._record_audit(
                tenant_id=tenant_id,
                work_date=work_date,
                scope=scope,
                employee_id=employee_id,
                action="commit",
                changed_by=committed_by,
                notes=notes or f"Committed {'all drivers' if scope == CommitScope.ALL else 'individual driver'} for {work_date.isoformat()}",
            )
        else:
            # Nothing to write, but the reads must still match the observed revisions.
            self._tracker.confirm(
                prepared.observation,
                employee_ids=prepared.employee_ids,
                include_day_scope=include_day_scope,
            )

        created = sum(p.created for p in plans)
        updated = sum(p.updated for p in plans)
        voided = sum(p.voided for p in plans)

        log_extra = {"tenant_id": tenant_id}
        if prepared.failures:
            logger.warning(
                "Commit %s (%s) skipped %d employee(s): %s",
                work_date,
                scope.value,
                len(prepared.failures),
                ", ".join(f.employee_id for f in prepared.failures),
                extra=log_extra,
            )
        logger.info(
            "Commit %s (%s%s): created=%d updated=%d voided=%d",
            work_date,
            scope.value,
            f":{employee_id}" if employee_id else "",
            created,
            updated,
            voided,
            extra=log_extra,
        )

        return CommitSummary(
            tenant_id=tenant_id,
            work_date=work_date,
            scope=scope,
            employee_id=employee_id,
            created=created,
            updated=updated,
            voided=voided,
            failures=prepared.failures,
            status=self.get_commit_status(tenant_id=tenant_id, work_date=work_date),
        )

    def preview_commit(
        self,
        *,
        tenant_id: str,
        work_date: date,
        scope: CommitScope | str,
        employee_id: Optional[str] = None,
    ) -> CommitPreview:
        """Dry run of commit_day: same plan, no writes, failures reported for every scope."""

        tenant_id = require_non_empty(tenant_id, "tenant_id")
        scope = parse_scope(scope)
        employee_id = require_scope_target(scope, employee_id)

        prepared = self._prepare(
            tenant_id=tenant_id,
            work_date=work_date,
            scope=scope,
            employee_id=employee_id,
            now=self._clock(),
            notes=None,
            strict=False,
        )
        plans = prepared.plans.values()
        return CommitPreview(
            tenant_id=tenant_id,
            work_date=work_date,
            scope=scope,
            employee_id=employee_id,
            lines=prepared.lines,
            created=sum(p.created for p in plans),
            updated=sum(p.updated for p in plans),
            voided=sum(p.voided for p in plans),
            failures=prepared.failures,
        )

    def uncommit_day(
        self,
        *,
        tenant_id: str,
        work_date: date,
        scope: CommitScope | str,
        employee_id: Optional[str] = None,
        notes: Optional[str] = None,
        committed_by: str = SYSTEM_ACTOR,
    ) -> UncommitSummary:
        tenant_id = require_non_empty(tenant_id, "tenant_id")
        scope = parse_scope(scope)
        employee_id = require_scope_target(scope, employee_id)
        now = self._clock()

        observation = self._tracker.observe(tenant_id=tenant_id, work_date=work_date)
        in_scope = list(
            self._records.query(
                PayRecordFilter.active_roster(tenant_id=tenant_id, work_date=work_date, employee_id=employee_id)
            )
        )
        if not in_scope:
            raise ConflictError(
                f"Nothing is committed for {work_date.isoformat()}"
                + (f" and employee {employee_id}" if employee_id else "")
            )

        ids = [r.pay_record_id for r in in_scope]
        if self._locks.is_locked(tenant_id=tenant_id, pay_record_ids=ids):
            logger.warning(
                "Uncommit %s (%s) rejected: downstream-locked records in scope",
                work_date,
                scope.value,
                extra={"tenant_id": tenant_id},
            )
            raise LockedError(
                "Pay records in this scope are locked by invoicing or a finalized payroll run",
                pay_record_ids=sorted(self._locks.locked_ids(tenant_id=tenant_id, pay_record_ids=ids)),
            )

        self._tracker.transition(
            observation,
            employee_ids={r.employee_id for r in in_scope},
            include_day_scope=scope == CommitScope.ALL,
            write=lambda writer: writer.void_many(
                PayRecordFilter(tenant_id=tenant_id, pay_record_ids=ids), voided_at=now
            ),
        )
        # The guarded write saw exactly these rows: any change since the read moves a revision.
        voided = len(ids)
        self._record_audit(
            tenant_id=tenant_id,
            work_date=work_date,
            scope=scope,
            employee_id=employee_id,
            action="uncommit",
            changed_by=committed_by,
            notes=notes or f"Uncommitted {work_date.isoformat()}",
        )
        logger.info("Uncommit %s (%s): voided=%d", work_date, scope.value, voided, extra={"tenant_id": tenant_id})

        return UncommitSummary(
            tenant_id=tenant_id,
            work_date=work_date,
            scope=scope,
            employee_id=employee_id,
            voided=voided,
            status=self.get_commit_status(tenant_id=tenant_id, work_date=work_date),
        )

    def get_commit_status(self, *, tenant_id: str, work_date: date) -> DayCommitStatus:
        expected: set[str] = set()
        if self._days.has_published_schedule(tenant_id=tenant_id, work_date=work_date):
            for duty in self._days.list_duty_instances(tenant_id=tenant_id, work_date=work_date):
                if duty.employee_id is None:
                    continue
                if self._calculator.is_billable(duty, self._policies.for_employee(duty.employee_id)):
                    expected.add(duty.employee_id)
        return self._tracker.derive(tenant_id=tenant_id, work_date=work_date, expected_employee_ids=expected)

    def _prepare(
        self,
        *,
        tenant_id: str,
        work_date: date,
        scope: CommitScope,
        employee_id: Optional[str],
        now: datetime,
        notes: Optional[str],
        strict: bool,
    ) -> _Prepared:
        # Observe before reading so any write after this point fails the CAS.
        observation = self._tracker.observe(tenant_id=tenant_id, work_date=work_date)
        if not self._days.has_published_schedule(tenant_id=tenant_id, work_date=work_date):
            raise NotFoundError(f"No published schedule for {work_date.isoformat()}")

        duties_by_emp: dict[str, list[DutyInstance]] = defaultdict(list)
        for duty in self._days.list_duty_instances(tenant_id=tenant_id, work_date=work_date):
            if duty.employee_id is not None:
                duties_by_emp[duty.employee_id].append(duty)

        existing_by_emp: dict[str, list[PayRecord]] = defaultdict(list)
        for rec in self._records.query(
            PayRecordFilter.active_roster(tenant_id=tenant_id, work_date=work_date, employee_id=employee_id)
        ):
            existing_by_emp[rec.employee_id].append(rec)

        if scope == CommitScope.INDIVIDUAL:
            employees = [employee_id]
        else:
            employees = sorted(set(duties_by_emp) | set(existing_by_emp))

        rate_for = self._rate_lookup(tenant_id)
        prepared = _Prepared(observation=observation, employee_ids=list(employees))

        for emp in employees:
            result = self._calculator.generate(
                employee_id=emp,
                duties=duties_by_emp.get(emp, []),
                rate_for=rate_for,
                policy=self._policies.for_employee(emp),
            )
            if not result.ok:
                if strict:
                    raise GenerationError(
                        f"Pay lines could not be generated for employee {emp}",
                        employee_id=emp,
                        issues=result.issues,
                    )
                prepared.failures.append(EmployeeFailure(employee_id=emp, issues=result.issues))
                continue

            plan = plan_employee(
                tenant_id=tenant_id,
                employee_id=emp,
                work_date=work_date,
                existing=existing_by_emp.get(emp, []),
                lines=result.lines,
                now=now,
                notes=notes,
            )

            locked = self._locks.locked_ids(
                tenant_id=tenant_id, pay_record_ids=[r.pay_record_id for r in plan.to_void]
            ) if plan.to_void else set()
            if locked:
                issue = PayLineIssue(
                    kind=IssueKind.LOCKED_RECORDS,
                    message=f"{len(locked)} committed record(s) would change but are downstream-locked",
                )
                if strict:
                    raise ConflictError(f"Employee {emp}: {issue.message}")
                prepared.failures.append(EmployeeFailure(employee_id=emp, issues=[issue]))
                continue

            prepared.plans[emp] = plan
            prepared.lines[emp] = result.lines

        return prepared

    def _rate_lookup(self, tenant_id: str) -> Callable[[str], Optional[Decimal]]:
        cache: dict[str, Optional[Decimal]] = {}

        def rate_for(code: str) -> Optional[Decimal]:
            if code not in cache:
                cache[code] = self._catalog.rate_for(tenant_id=tenant_id, pay_type_code=code)
            return cache[code]

        return rate_for

    @staticmethod
    def _apply(writer: PayRecordWriter, tenant_id: str, plans: list[EmployeePlan], now: datetime) -> None:
        # Void first so the active-key unique index never sees two live rows.
        void_ids = [r.pay_record_id for p in plans for r in p.to_void]
        if void_ids:
            writer.void_many(PayRecordFilter(tenant_id=tenant_id, pay_record_ids=void_ids), voided_at=now)
        promoted = [r for p in plans for r in p.to_promote]
        if promoted:
            writer.upsert_many(promoted)
        inserted = [r for p in plans for r in p.to_insert]
        if inserted:
            writer.insert_many(inserted)

    def _record_audit(
        self,
        *,
        tenant_id: str,
        work_date: date,
        scope: CommitScope,
        employee_id: Optional[str],
        action: str,
        changed_by: str,
        notes: Optional[str],
    ) -> None:
        if self._audit is None:
            return
        self._audit.record(
            tenant_id=tenant_id,
            entity_type="dispatch_commit",
            entity_id=f"{work_date.isoformat()}:{scope.value}:{employee_id or '*'}",
            action=action,
            changed_by=changed_by,
            notes=notes,
        )
