from __future__ import annotations

from datetime import datetime
from typing import Protocol, Sequence

from .model import PayRecord, PayRecordFilter


class PayRecordWriter(Protocol):
    """Pay record writes; commit writes run one of these inside the revision transaction."""

    def insert_many(self, records: Sequence[PayRecord]) -> int:
        """Insert new records.

        Raises ConcurrentModificationError when a live roster line with the
        same (employee, date, duty, pay type) already exists.
        """

        raise NotImplementedError

    def upsert_many(self, records: Sequence[PayRecord]) -> int:
        """Insert new records or overwrite existing ones by pay_record_id.

        Returns the number of records written.
        """

        raise NotImplementedError

    def void_many(self, flt: PayRecordFilter, *, voided_at: datetime) -> int:
        """Mark every non-voided record matching ``flt`` as voided.

        Rows are never deleted. Returns the number of records voided.
        """

        raise NotImplementedError


class PayRecordStore(Protocol):
    def query(self, flt: PayRecordFilter) -> Sequence[PayRecord]:
        raise NotImplementedError
