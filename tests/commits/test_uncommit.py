from __future__ import annotations

import pytest

from src.fleet_dispatch.fleet_dispatch.core.enums import CommitState, PayRecordStatus
from src.fleet_dispatch.fleet_dispatch.core.exceptions import ConflictError, LockedError, ValidationError

from tests.fakes import TENANT, WORK_DATE, Harness, duty


def _committed_harness(**kwargs):
    h = Harness([duty("a1", "A", 6, 15), duty("b1", "B", 7, 11)], **kwargs)
    h.commit()
    return h


def test_uncommit_all_voids_every_roster_record_and_reopens_day():
    h = _committed_harness()

    summary = h.uncommit(notes="Wrong roster published")

    assert summary.voided == 3
    assert h.records.active() == []
    assert summary.status.state == CommitState.OPEN
    assert summary.status.committed_employee_ids == []
    assert h.audit.entries[-1]["action"] == "uncommit"
    assert h.audit.entries[-1]["notes"] == "Wrong roster published"


def test_uncommit_individual_leaves_other_employees_committed():
    h = _committed_harness()

    summary = h.uncommit(scope="individual", employee_id="A")

    assert summary.voided == 2
    assert h.active_for("A") == []
    assert len(h.active_for("B")) == 1
    assert summary.status.state == CommitState.PARTIALLY_COMMITTED
    assert summary.status.pending_employee_ids == ["A"]


def test_uncommit_then_commit_restores_committed_state():
    h = _committed_harness()
    h.uncommit()

    summary = h.commit()

    assert summary.created == 3
    assert summary.status.state == CommitState.COMMITTED


def test_locked_record_blocks_whole_uncommit():
    h = _committed_harness()
    locked_id = h.active_for("B")[0].pay_record_id
    h.locks.locked = {locked_id}
    before = {r.pay_record_id: r.status for r in h.records.all()}
    writes = h.records.write_calls

    with pytest.raises(LockedError) as exc:
        h.uncommit()

    assert exc.value.code == "LockedRecordsExist"
    assert exc.value.pay_record_ids == [locked_id]
    assert {r.pay_record_id: r.status for r in h.records.all()} == before
    assert h.records.write_calls == writes
    assert h.revisions.get_revisions(tenant_id=TENANT, work_date=WORK_DATE) == {"": 1, "A": 1, "B": 1}


def test_lock_on_another_employee_does_not_block_individual_uncommit():
    h = _committed_harness()
    h.locks.locked = {h.active_for("B")[0].pay_record_id}

    summary = h.uncommit(scope="individual", employee_id="A")

    assert summary.voided == 2


def test_uncommit_with_nothing_committed_conflicts():
    h = Harness([duty("a1", "A", 6, 15)])

    with pytest.raises(ConflictError):
        h.uncommit()


def test_uncommit_individual_requires_employee_id():
    h = _committed_harness()

    with pytest.raises(ValidationError):
        h.uncommit(scope="individual", employee_id="  ")


def test_uncommit_keeps_voided_history():
    h = _committed_harness()
    h.uncommit()

    assert len(h.records.all()) == 3
    assert {r.status for r in h.records.all()} == {PayRecordStatus.VOIDED}
