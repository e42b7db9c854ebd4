"""Settings shared by every environment module."""

import json
import os


def _env_bool(name: str, default: str = "0") -> bool:
    return bool(int(os.getenv(name, default)))


def _env_list(name: str, default: str) -> list[str]:
    return [v.strip() for v in os.getenv(name, default).split(",") if v.strip()]


def db_config(*, default_password: str = "") -> dict:
    return {
        "host": os.getenv("DB_HOST", "localhost"),
        "port": int(os.getenv("DB_PORT", "3306")),
        "user": os.getenv("DB_USER", "root"),
        "password": os.getenv("DB_PASSWORD", default_password),
        "database": os.getenv("DB_NAME", "fleet_dispatch"),
        "pool_size": int(os.getenv("DB_POOL_SIZE", "5")),
    }


DEFAULT_TENANT_ID = os.getenv("DEFAULT_TENANT_ID", "default")

# Daily pay bands. Global by default; per-employee (contract) overrides are
# merged on top of these values.
OVERTIME_POLICY = {
    "standard_hours": os.getenv("STANDARD_HOURS", "7.6"),
    "overtime_hours": os.getenv("OVERTIME_HOURS", "2"),
    "standard_code": os.getenv("STANDARD_PAY_CODE", "STD"),
    "overtime_code": os.getenv("OVERTIME_PAY_CODE", "OT"),
    "double_time_code": os.getenv("DOUBLE_TIME_PAY_CODE", "DT"),
    "non_billable_duty_types": _env_list("NON_BILLABLE_DUTY_TYPES", "break,unpaid_break,waiting,unpaid_waiting"),
    "unpaid_pay_codes": _env_list("UNPAID_PAY_CODES", "UNP"),
}

# JSON object: {"<employee_id>": {"standard_hours": "8", ...}}
EMPLOYEE_OVERTIME_OVERRIDES = json.loads(os.getenv("EMPLOYEE_OVERTIME_OVERRIDES", "{}") or "{}")

# "none" or "pay_record_locks"
LOCK_SOURCE = os.getenv("LOCK_SOURCE", "none")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_JSON = _env_bool("LOG_JSON")
