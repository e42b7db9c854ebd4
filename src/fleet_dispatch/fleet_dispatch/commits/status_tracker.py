from __future__ import annotations

import logging
from datetime import date
from typing import Iterable, Optional

from ..core.enums import CommitState
from ..core.exceptions import ConcurrentModificationError
from ..pay_records.model import PayRecordFilter
from ..pay_records.repository import PayRecordStore
from .model import CommitObservation, DayCommitStatus
from .revision_repository import DAY_SCOPE_KEY, CommitRevisionStore, GuardedWrite, scope_key

logger = logging.getLogger(__name__)


class CommitStatusTracker:
    """Derives commit status from pay records and guards status transitions.

    Status is never stored: it is recomputed from non-voided roster records on
    every read. Transitions are compare-and-swap operations over per-scope
    revisions, so two requests that observed the same state cannot both write.
    """

    def __init__(self, records: PayRecordStore, revisions: CommitRevisionStore):
        self._records = records
        self._revisions = revisions

    def observe(self, *, tenant_id: str, work_date: date) -> CommitObservation:
        revisions = self._revisions.get_revisions(tenant_id=tenant_id, work_date=work_date)
        return CommitObservation(tenant_id=tenant_id, work_date=work_date, revisions=dict(revisions))

    def transition(
        self,
        observation: CommitObservation,
        *,
        employee_ids: Iterable[str],
        include_day_scope: bool,
        write: Optional[GuardedWrite] = None,
    ) -> None:
        """Claim the scope and apply ``write`` atomically, or raise if it moved."""

        keys = self._scope_keys(employee_ids, include_day_scope)
        if not keys:
            return

        expected = {k: observation.revision_of(k) for k in keys}
        swapped = self._revisions.compare_and_swap(
            tenant_id=observation.tenant_id,
            work_date=observation.work_date,
            expected=expected,
            write=write,
        )
        if not swapped:
            self._lost(observation)

    def confirm(self, observation: CommitObservation, *, employee_ids: Iterable[str], include_day_scope: bool) -> None:
        """Check, without bumping, that no scope key moved since ``observation``.

        Guards the zero-write path: data read after the observation must not
        come from a concurrent writer's commit.
        """

        keys = self._scope_keys(employee_ids, include_day_scope)
        current = self._revisions.get_revisions(tenant_id=observation.tenant_id, work_date=observation.work_date)
        if any(int(current.get(k, 0)) != observation.revision_of(k) for k in keys):
            self._lost(observation)

    @staticmethod
    def _scope_keys(employee_ids: Iterable[str], include_day_scope: bool) -> set[str]:
        keys = {scope_key(e) for e in employee_ids}
        if include_day_scope:
            keys.add(DAY_SCOPE_KEY)
        return keys

    @staticmethod
    def _lost(observation: CommitObservation) -> None:
        logger.warning(
            "Commit scope changed concurrently for %s",
            observation.work_date,
            extra={"tenant_id": observation.tenant_id},
        )
        raise ConcurrentModificationError(
            f"Commit state for {observation.work_date.isoformat()} changed while processing; re-read status and retry"
        )

    def committed_employee_ids(self, *, tenant_id: str, work_date: date) -> set[str]:
        rows = self._records.query(PayRecordFilter.active_roster(tenant_id=tenant_id, work_date=work_date))
        return {r.employee_id for r in rows}

    def derive(self, *, tenant_id: str, work_date: date, expected_employee_ids: Iterable[str]) -> DayCommitStatus:
        committed = self.committed_employee_ids(tenant_id=tenant_id, work_date=work_date)
        expected = set(expected_employee_ids)
        pending = expected - committed

        if not committed:
            state = CommitState.OPEN
        elif pending:
            state = CommitState.PARTIALLY_COMMITTED
        else:
            state = CommitState.COMMITTED

        return DayCommitStatus(
            work_date=work_date,
            state=state,
            committed_employee_ids=sorted(committed),
            pending_employee_ids=sorted(pending),
        )
