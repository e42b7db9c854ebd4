from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional

from .audit.mysql_audit_repository import MySQLAuditLogRepository
from .audit.repository import AuditLogRepository
from .commits.locks import DownstreamLockChecker, build_lock_checker
from .commits.mysql_revision_repository import MySQLCommitRevisionStore
from .commits.revision_repository import CommitRevisionStore
from .commits.service import CommitEngine
from .commits.status_tracker import CommitStatusTracker
from .database.connection import DBConfig, DatabaseConnection
from .dispatch.mysql_dispatch_repository import MySQLDispatchDayView
from .dispatch.repository import DispatchDayView
from .pay_records.mysql_pay_record_repository import MySQLPayRecordRepository
from .pay_records.repository import PayRecordStore
from .pay_records.service import PayRecordService
from .pay_types.mysql_pay_type_repository import MySQLPayTypeCatalog
from .pay_types.repository import PayTypeCatalog
from .payroll.policy import PolicyBook


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]

    dispatch_view: DispatchDayView
    pay_type_catalog: PayTypeCatalog
    pay_records_repo: PayRecordStore
    revisions_repo: CommitRevisionStore
    lock_checker: DownstreamLockChecker
    audit_repo: AuditLogRepository

    status_tracker: CommitStatusTracker
    commit_engine: CommitEngine
    pay_record_service: PayRecordService


def assemble(
    *,
    conn: Optional[DatabaseConnection],
    dispatch_view: DispatchDayView,
    pay_type_catalog: PayTypeCatalog,
    pay_records_repo: PayRecordStore,
    revisions_repo: CommitRevisionStore,
    lock_checker: DownstreamLockChecker,
    audit_repo: AuditLogRepository,
    policies: Optional[PolicyBook] = None,
) -> Container:
    """Wire services over the given repositories (MySQL or in-memory)."""

    status_tracker = CommitStatusTracker(pay_records_repo, revisions_repo)
    commit_engine = CommitEngine(
        dispatch_view,
        pay_type_catalog,
        pay_records_repo,
        status_tracker,
        locks=lock_checker,
        audit=audit_repo,
        policies=policies,
    )
    return Container(
        conn=conn,
        dispatch_view=dispatch_view,
        pay_type_catalog=pay_type_catalog,
        pay_records_repo=pay_records_repo,
        revisions_repo=revisions_repo,
        lock_checker=lock_checker,
        audit_repo=audit_repo,
        status_tracker=status_tracker,
        commit_engine=commit_engine,
        pay_record_service=PayRecordService(pay_records_repo),
    )


def build_container(
    *,
    db_config: dict,
    overtime_policy: Optional[Mapping] = None,
    overtime_overrides: Optional[Mapping] = None,
    lock_source: str = "none",
) -> Container:
    config = DBConfig(
        host=str(db_config["host"]),
        port=int(db_config.get("port", 3306)),
        user=str(db_config["user"]),
        password=str(db_config["password"]),
        database=str(db_config["database"]),
        pool_size=int(db_config.get("pool_size", 5)),
    )
    conn = DatabaseConnection.get_instance(config)

    return assemble(
        conn=conn,
        dispatch_view=MySQLDispatchDayView(conn),
        pay_type_catalog=MySQLPayTypeCatalog(conn),
        pay_records_repo=MySQLPayRecordRepository(conn),
        revisions_repo=MySQLCommitRevisionStore(conn),
        lock_checker=build_lock_checker(lock_source, conn),
        audit_repo=MySQLAuditLogRepository(conn),
        policies=PolicyBook.from_settings(overtime_policy, overtime_overrides),
    )
