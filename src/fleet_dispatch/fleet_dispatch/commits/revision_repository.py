from __future__ import annotations

from datetime import date
from typing import Callable, Mapping, Optional, Protocol

from ..pay_records.repository import PayRecordWriter

# Scope key of a whole dispatch day; employee scopes use the employee id.
DAY_SCOPE_KEY = ""

GuardedWrite = Callable[[PayRecordWriter], None]


def scope_key(employee_id: Optional[str]) -> str:
    return DAY_SCOPE_KEY if employee_id is None else str(employee_id)


class CommitRevisionStore(Protocol):
    """Optimistic-concurrency tokens per (tenant, date, scope key).

    Revisions carry no commit status; they only order writers.
    """

    def get_revisions(self, *, tenant_id: str, work_date: date) -> dict[str, int]:
        """All committed revisions for the date. Absent keys are revision 0."""

        raise NotImplementedError

    def compare_and_swap(
        self,
        *,
        tenant_id: str,
        work_date: date,
        expected: Mapping[str, int],
        write: Optional[GuardedWrite] = None,
    ) -> bool:
        """Bump every key in ``expected`` by one iff all still hold the expected value.

        ``write`` runs in the same transaction, after the keys are locked and
        checked and before they are bumped. Either the revisions advance and
        every write lands, or nothing changes. Returns False when a key moved;
        exceptions raised by ``write`` roll back and propagate.
        """

        raise NotImplementedError
