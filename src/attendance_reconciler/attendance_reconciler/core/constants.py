"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from decimal import Decimal

DEFAULT_LOCAL_TIMEZONE = "Asia/Karachi"
DEFAULT_RECONCILE_WORKERS = 4
DEFAULT_BACKLOG_BATCH_SIZE = 100
DEFAULT_EMPLOYEE_LOOKUP_RETRY_HOURS = 48
DEFAULT_BACKLOG_RETRY_MINUTES = 30
DEFAULT_OVERNIGHT_CHECKOUT_HOURS = 4

HOURS_QUANT = Decimal("0.01")
ZERO_HOURS = Decimal("0.00")

# Vendor punch-state codes (BioTime style).
VENDOR_PUNCH_IN_CODES = frozenset({"0", "in", "check_in", "checkin"})
VENDOR_PUNCH_OUT_CODES = frozenset({"1", "out", "check_out", "checkout"})
VENDOR_OVERTIME_CODES = frozenset({"4", "5", "overtime"})

# Terminals registered before explicit classification used alias sniffing.
LEGACY_ACCESS_CONTROL_ALIAS_MARKER = "lock"

MITIGATION_ROLES = frozenset({"admin", "reviewer"})
