"""Example: drive the commit engine directly (no Flask).

Controllers are a thin layer; commit rules live in the service layer.
"""

import importlib
import sys
from datetime import date

from config import get_settings_module

from src.fleet_dispatch.fleet_dispatch.container import build_container


def main():
    settings = importlib.import_module(get_settings_module())
    container = build_container(
        db_config=settings.DB_CONFIG,
        overtime_policy=settings.OVERTIME_POLICY,
        overtime_overrides=settings.EMPLOYEE_OVERTIME_OVERRIDES,
        lock_source=settings.LOCK_SOURCE,
    )
    work_date = date.fromisoformat(sys.argv[1]) if len(sys.argv) > 1 else date.today()

    preview = container.commit_engine.preview_commit(
        tenant_id=settings.DEFAULT_TENANT_ID, work_date=work_date, scope="all"
    )
    print(f"would create={preview.created} update={preview.updated} void={preview.voided}")
    for failure in preview.failures:
        print(f"  {failure.employee_id}: {[i.message for i in failure.issues]}")

    status = container.commit_engine.get_commit_status(tenant_id=settings.DEFAULT_TENANT_ID, work_date=work_date)
    print(f"status={status.state.value} committed={status.committed_employee_ids}")


if __name__ == "__main__":
    main()
