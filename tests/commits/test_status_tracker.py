from __future__ import annotations

from dataclasses import replace
from decimal import Decimal

import pytest

from src.fleet_dispatch.fleet_dispatch.commits.status_tracker import CommitStatusTracker
from src.fleet_dispatch.fleet_dispatch.core.enums import CommitState, PayRecordStatus
from src.fleet_dispatch.fleet_dispatch.core.exceptions import ConcurrentModificationError
from src.fleet_dispatch.fleet_dispatch.pay_records.model import PayRecord

from tests.fakes import NOW, TENANT, WORK_DATE, InMemoryPayRecordStore, InMemoryRevisionStore


def _record(rid, emp, status=PayRecordStatus.COMMITTED):
    return PayRecord(
        pay_record_id=rid,
        tenant_id=TENANT,
        employee_id=emp,
        work_date=WORK_DATE,
        duty_instance_id=f"d-{rid}",
        pay_type_code="STD",
        hours=Decimal("1"),
        rate=Decimal("30.00"),
        amount=Decimal("30.00"),
        status=status,
        created_at=NOW,
        updated_at=NOW,
    )


@pytest.fixture
def records():
    return InMemoryPayRecordStore()


@pytest.fixture
def tracker(records):
    return CommitStatusTracker(records, InMemoryRevisionStore(records))


def test_stale_observation_cannot_transition(tracker):
    first = tracker.observe(tenant_id=TENANT, work_date=WORK_DATE)
    second = tracker.observe(tenant_id=TENANT, work_date=WORK_DATE)

    tracker.transition(first, employee_ids=["A"], include_day_scope=False)

    with pytest.raises(ConcurrentModificationError):
        tracker.transition(second, employee_ids=["A"], include_day_scope=False)


def test_distinct_employees_do_not_conflict(tracker):
    first = tracker.observe(tenant_id=TENANT, work_date=WORK_DATE)
    second = tracker.observe(tenant_id=TENANT, work_date=WORK_DATE)

    tracker.transition(first, employee_ids=["A"], include_day_scope=False)
    tracker.transition(second, employee_ids=["B"], include_day_scope=False)


def test_day_scope_conflicts_with_individual_change(tracker):
    day = tracker.observe(tenant_id=TENANT, work_date=WORK_DATE)
    individual = tracker.observe(tenant_id=TENANT, work_date=WORK_DATE)

    tracker.transition(individual, employee_ids=["B"], include_day_scope=False)

    with pytest.raises(ConcurrentModificationError):
        tracker.transition(day, employee_ids=["A", "B"], include_day_scope=True)


def test_two_day_scope_transitions_conflict_even_on_disjoint_employees(tracker):
    first = tracker.observe(tenant_id=TENANT, work_date=WORK_DATE)
    second = tracker.observe(tenant_id=TENANT, work_date=WORK_DATE)

    tracker.transition(first, employee_ids=["A"], include_day_scope=True)

    with pytest.raises(ConcurrentModificationError):
        tracker.transition(second, employee_ids=["B"], include_day_scope=True)


def test_failed_transition_advances_nothing():
    revisions = InMemoryRevisionStore()
    tracker = CommitStatusTracker(InMemoryPayRecordStore(), revisions)
    stale = tracker.observe(tenant_id=TENANT, work_date=WORK_DATE)
    tracker.transition(tracker.observe(tenant_id=TENANT, work_date=WORK_DATE), employee_ids=["A"], include_day_scope=False)

    with pytest.raises(ConcurrentModificationError):
        tracker.transition(stale, employee_ids=["A", "B"], include_day_scope=True)

    assert revisions.get_revisions(tenant_id=TENANT, work_date=WORK_DATE) == {"A": 1}



def test_transition_applies_write_with_the_revision_bump(tracker, records):
    observed = tracker.observe(tenant_id=TENANT, work_date=WORK_DATE)

    tracker.transition(
        observed,
        employee_ids=["A"],
        include_day_scope=False,
        write=lambda writer: writer.insert_many([_record("1", "A")]),
    )

    assert [r.pay_record_id for r in records.active()] == ["1"]
    assert tracker.observe(tenant_id=TENANT, work_date=WORK_DATE).revisions == {"A": 1}


def test_stale_transition_does_not_run_write(tracker, records):
    stale = tracker.observe(tenant_id=TENANT, work_date=WORK_DATE)
    tracker.transition(tracker.observe(tenant_id=TENANT, work_date=WORK_DATE), employee_ids=["A"], include_day_scope=False)
    calls = []

    with pytest.raises(ConcurrentModificationError):
        tracker.transition(stale, employee_ids=["A"], include_day_scope=False, write=calls.append)

    assert calls == []
    assert records.all() == []


def test_failing_write_leaves_records_and_revisions_unchanged(tracker, records):
    observed = tracker.observe(tenant_id=TENANT, work_date=WORK_DATE)

    def write(writer):
        writer.insert_many([_record("1", "A")])
        raise RuntimeError("connection lost")

    with pytest.raises(RuntimeError):
        tracker.transition(observed, employee_ids=["A"], include_day_scope=True, write=write)

    assert records.all() == []
    assert tracker.observe(tenant_id=TENANT, work_date=WORK_DATE).revisions == {}


def test_inserting_a_second_live_line_is_rejected_and_rolled_back(tracker, records):
    tracker.transition(
        tracker.observe(tenant_id=TENANT, work_date=WORK_DATE),
        employee_ids=["A"],
        include_day_scope=False,
        write=lambda writer: writer.insert_many([_record("1", "A")]),
    )
    duplicate = replace(_record("2", "A"), duty_instance_id="d-1")

    with pytest.raises(ConcurrentModificationError):
        tracker.transition(
            tracker.observe(tenant_id=TENANT, work_date=WORK_DATE),
            employee_ids=["A"],
            include_day_scope=False,
            write=lambda writer: writer.insert_many([duplicate]),
        )

    assert [r.pay_record_id for r in records.active()] == ["1"]
    assert tracker.observe(tenant_id=TENANT, work_date=WORK_DATE).revisions == {"A": 1}


def test_confirm_passes_when_scope_is_unchanged(tracker):
    observed = tracker.observe(tenant_id=TENANT, work_date=WORK_DATE)
    tracker.transition(tracker.observe(tenant_id=TENANT, work_date=WORK_DATE), employee_ids=["B"], include_day_scope=False)

    tracker.confirm(observed, employee_ids=["A"], include_day_scope=False)

    assert tracker.observe(tenant_id=TENANT, work_date=WORK_DATE).revisions == {"B": 1}


def test_confirm_raises_when_an_in_scope_key_moved(tracker):
    observed = tracker.observe(tenant_id=TENANT, work_date=WORK_DATE)
    tracker.transition(tracker.observe(tenant_id=TENANT, work_date=WORK_DATE), employee_ids=["B"], include_day_scope=False)

    with pytest.raises(ConcurrentModificationError):
        tracker.confirm(observed, employee_ids=["A", "B"], include_day_scope=True)


def test_confirm_compares_day_key_for_whole_day_scope(tracker):
    observed = tracker.observe(tenant_id=TENANT, work_date=WORK_DATE)
    tracker.transition(tracker.observe(tenant_id=TENANT, work_date=WORK_DATE), employee_ids=[], include_day_scope=True)

    with pytest.raises(ConcurrentModificationError):
        tracker.confirm(observed, employee_ids=[], include_day_scope=True)


def test_derive_open_when_nothing_committed(tracker):
    status = tracker.derive(tenant_id=TENANT, work_date=WORK_DATE, expected_employee_ids={"A"})

    assert status.state == CommitState.OPEN
    assert status.pending_employee_ids == ["A"]


def test_derive_ignores_voided_records():
    store = InMemoryPayRecordStore([_record("1", "A"), _record("2", "B", PayRecordStatus.VOIDED)])
    tracker = CommitStatusTracker(store, InMemoryRevisionStore())

    status = tracker.derive(tenant_id=TENANT, work_date=WORK_DATE, expected_employee_ids={"A", "B"})

    assert status.state == CommitState.PARTIALLY_COMMITTED
    assert status.committed_employee_ids == ["A"]
    assert status.pending_employee_ids == ["B"]


def test_derive_committed_when_every_expected_employee_has_records():
    store = InMemoryPayRecordStore([_record("1", "A"), _record("2", "B", PayRecordStatus.ADJUSTED)])
    tracker = CommitStatusTracker(store, InMemoryRevisionStore())

    status = tracker.derive(tenant_id=TENANT, work_date=WORK_DATE, expected_employee_ids={"A", "B"})

    assert status.state == CommitState.COMMITTED
    assert status.pending_employee_ids == []
