"""
Business Rules and Constants for the Rent Invoice Scheduler

This module contains the billing cycle definitions, spreadsheet column names
and the small normalisation helpers that turn raw worksheet cells into the
values the scheduler works with.
"""

import logging
from typing import Any, Dict, Optional

from errors import ConfigurationError

logger = logging.getLogger(__name__)

# ============================================================================
# BILLING CYCLE DEFINITIONS
# ============================================================================

FOUR_WEEK = "4-week"
MONTHLY = "monthly"
PASS_THROUGH = "pass-through"

BILLING_CYCLES = (FOUR_WEEK, MONTHLY, PASS_THROUGH)

# Spellings seen in the Contracts sheet, keyed by their lowercase form
BILLING_CYCLE_ALIASES = {
    "4-week": FOUR_WEEK,
    "4 week": FOUR_WEEK,
    "four-week": FOUR_WEEK,
    "four_week": FOUR_WEEK,
    "monthly": MONTHLY,
    "pass-through": PASS_THROUGH,
    "pass_through": PASS_THROUGH,
    "passthrough": PASS_THROUGH,
}

FOUR_WEEK_CYCLE_DAYS = 28

# Days before the due date at which a tenant counts as "due soon"
DEFAULT_NOTIFY_DAYS = 3

# ============================================================================
# CONTRACTS SHEET LAYOUT
# ============================================================================

COL_PROPERTY_ID = "Property_ID"
COL_TENANT_NAME = "Tenant_Name"
COL_CONTACT_EMAIL = "Contact_Email"
COL_BILLING_CYCLE = "Billing_Cycle"
COL_ACTIVE = "Active"
COL_CONTRACT_START = "Contract_Start"
COL_CONTRACT_END = "Contract_End"
COL_NOTIFY_DAYS = "Notify_Days"

REQUIRED_COLUMNS = [
    COL_PROPERTY_ID,
    COL_TENANT_NAME,
    COL_CONTACT_EMAIL,
    COL_BILLING_CYCLE,
    COL_ACTIVE,
]

# Excel booleans arrive as True, or as text when the column is formatted as text
TRUTHY_VALUES = ("TRUE", "true", "True")

# ============================================================================
# SKIP REASONS
# ============================================================================

SKIP_REASONS = {
    "inactive": "inactive",
    "no_email": "no email",
    "pass_through": "pass-through billing",
    "contract_expired": "contract expired",
    "unsupported_cycle": "unsupported billing cycle",
    "no_due_date": "could not calculate due date",
    "past_contract_end": "next due date past contract end",
}

# ============================================================================
# UTILITY FUNCTIONS
# ============================================================================


def normalize_billing_cycle(value: Any) -> str:
    """
    Map a Billing_Cycle cell onto one of the known cycle names.

    Args:
        value: Raw cell value

    Returns:
        str: FOUR_WEEK, MONTHLY or PASS_THROUGH, otherwise the stripped raw text

    Example:
        normalize_billing_cycle(" Four_Week ") -> "4-week"
    """
    if value is None:
        return ""
    text = str(value).strip()
    return BILLING_CYCLE_ALIASES.get(text.lower(), text)


def is_known_cycle(cycle: str) -> bool:
    return cycle in BILLING_CYCLES


def parse_active(value: Any) -> bool:
    """True only for a real boolean True or one of TRUTHY_VALUES."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip() in TRUTHY_VALUES
    return False


def parse_notify_days(value: Any) -> int:
    """
    Read the Notify_Days cell.

    Empty cells and a numeric 0 both fall back to DEFAULT_NOTIFY_DAYS because
    the workbook API returns an empty cell as 0 or "". Text "0" is kept.

    Returns:
        int: Notification window in days
    """
    if value is None or value == "" or value == 0 or isinstance(value, bool):
        return DEFAULT_NOTIFY_DAYS
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        logger.warning(f"Unreadable Notify_Days value {value!r}, using {DEFAULT_NOTIFY_DAYS}")
        return DEFAULT_NOTIFY_DAYS


def parse_email(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def build_column_map(header_row: list) -> Dict[str, int]:
    """
    Map each header name in the first worksheet row to its column index.

    Raises:
        ConfigurationError: If any of REQUIRED_COLUMNS is missing
    """
    columns = {}
    for index, name in enumerate(header_row):
        if name is None:
            continue
        key = str(name).strip()
        if key and key not in columns:
            columns[key] = index

    missing = [name for name in REQUIRED_COLUMNS if name not in columns]
    if missing:
        raise ConfigurationError(f"Missing column: {', '.join(missing)}")
    return columns


def describe_skip(reason: str) -> str:
    return SKIP_REASONS.get(reason, reason)
