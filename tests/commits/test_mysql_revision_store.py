from __future__ import annotations

from decimal import Decimal

import mysql.connector
import pytest
from mysql.connector import errorcode

from src.fleet_dispatch.fleet_dispatch.commits.mysql_revision_repository import MySQLCommitRevisionStore
from src.fleet_dispatch.fleet_dispatch.core.enums import PayRecordStatus
from src.fleet_dispatch.fleet_dispatch.core.exceptions import ConcurrentModificationError
from src.fleet_dispatch.fleet_dispatch.pay_records.model import PayRecord

from tests.fakes import NOW, TENANT, WORK_DATE


class _Cursor:
    def __init__(self, db):
        self._db = db
        self.rowcount = 0

    def execute(self, sql, params=()):
        sql = " ".join(sql.split())
        if "FOR UPDATE" in sql and self._db.lock_error is not None:
            raise self._db.lock_error
        self._db.statements.append(sql)

    def executemany(self, sql, rows):
        sql = " ".join(sql.split())
        if sql.startswith("INSERT INTO employee_pay_records") and self._db.insert_error is not None:
            raise self._db.insert_error
        self._db.statements.append(sql)

    def fetchall(self):
        return list(self._db.revisions)

    def close(self):
        pass


class _Connection:
    def __init__(self, db):
        self._db = db

    def cursor(self, dictionary=True):
        return _Cursor(self._db)

    def commit(self):
        self._db.outcomes.append("commit")

    def rollback(self):
        self._db.outcomes.append("rollback")

    def close(self):
        pass


class FakeDatabase:
    def __init__(self, revisions=()):
        self.revisions = [{"scope_key": k, "revision": v} for k, v in revisions]
        self.statements = []
        self.outcomes = []
        self.insert_error = None
        self.lock_error = None

    def connect(self):
        return _Connection(self)

    def steps(self):
        labels = []
        for sql in self.statements:
            if sql.startswith("INSERT INTO commit_revisions"):
                labels.append("claim")
            elif "FOR UPDATE" in sql:
                labels.append("lock")
            elif sql.startswith("INSERT INTO employee_pay_records"):
                labels.append("insert")
            elif sql.startswith("UPDATE commit_revisions"):
                labels.append("bump")
        return labels


def _record():
    return PayRecord(
        pay_record_id="r1",
        tenant_id=TENANT,
        employee_id="A",
        work_date=WORK_DATE,
        duty_instance_id="a1",
        pay_type_code="STD",
        hours=Decimal("7.6"),
        rate=Decimal("30.00"),
        amount=Decimal("228.00"),
        status=PayRecordStatus.COMMITTED,
        created_at=NOW,
        updated_at=NOW,
    )


def _swap(db, expected, write=None):
    store = MySQLCommitRevisionStore(db)
    return store.compare_and_swap(tenant_id=TENANT, work_date=WORK_DATE, expected=expected, write=write)


def test_writes_happen_between_lock_and_bump_in_one_transaction():
    db = FakeDatabase([("", 1), ("A", 1)])

    swapped = _swap(db, {"": 1, "A": 1}, write=lambda writer: writer.insert_many([_record()]))

    assert swapped is True
    assert db.steps() == ["claim", "lock", "insert", "bump"]
    assert "INSERT INTO employee_pay_records" in db.statements[2]
    assert "ON DUPLICATE KEY" not in db.statements[2]
    assert db.outcomes == ["commit"]


def test_moved_revision_skips_write_and_rolls_back():
    db = FakeDatabase([("", 1), ("A", 2)])
    calls = []

    swapped = _swap(db, {"": 1, "A": 1}, write=calls.append)

    assert swapped is False
    assert calls == []
    assert db.steps() == ["claim", "lock"]
    assert db.outcomes == ["rollback"]


def test_live_line_collision_rolls_back_the_claim():
    db = FakeDatabase([("A", 0)])
    db.insert_error = mysql.connector.IntegrityError(msg="Duplicate entry for key 'uq_pay_records_active_line'", errno=1062)

    with pytest.raises(ConcurrentModificationError):
        _swap(db, {"A": 0}, write=lambda writer: writer.insert_many([_record()]))

    assert "bump" not in db.steps()
    assert db.outcomes == ["rollback"]


def test_deadlock_counts_as_lost_race():
    db = FakeDatabase()
    db.lock_error = mysql.connector.Error(msg="Deadlock found", errno=errorcode.ER_LOCK_DEADLOCK)

    assert _swap(db, {"": 0}) is False
    assert db.outcomes == ["rollback"]


def test_other_database_errors_propagate():
    db = FakeDatabase()
    db.lock_error = mysql.connector.Error(msg="Lock wait timeout", errno=errorcode.ER_LOCK_WAIT_TIMEOUT)

    with pytest.raises(mysql.connector.Error):
        _swap(db, {"": 0})
    assert db.outcomes == ["rollback"]
