"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from decimal import Decimal

DEFAULT_TENANT_ID = "default"
SYSTEM_ACTOR = "system"

DEFAULT_STANDARD_HOURS = Decimal("7.6")
DEFAULT_OVERTIME_HOURS = Decimal("2")

STANDARD_PAY_CODE = "STD"
OVERTIME_PAY_CODE = "OT"
DOUBLE_TIME_PAY_CODE = "DT"
UNPAID_PAY_CODE = "UNP"

DEFAULT_NON_BILLABLE_DUTY_TYPES = ("break", "unpaid_break", "waiting", "unpaid_waiting")

CENT = Decimal("0.01")
