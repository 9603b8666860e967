"""
Contract records read from the Contracts sheet, and the per-run verdicts
the due checker produces for them.
"""

from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, List, Optional

from billing_rules import (
    COL_ACTIVE,
    COL_BILLING_CYCLE,
    COL_CONTACT_EMAIL,
    COL_CONTRACT_END,
    COL_CONTRACT_START,
    COL_NOTIFY_DAYS,
    COL_PROPERTY_ID,
    COL_TENANT_NAME,
    DEFAULT_NOTIFY_DAYS,
    build_column_map,
    normalize_billing_cycle,
    parse_active,
    parse_email,
    parse_notify_days,
)
from date_utils import serial_to_date

STATUS_DUE_SOON = "due_soon"
STATUS_UPCOMING = "upcoming"
STATUS_SKIPPED = "skipped"


def _cell(row: List[Any], columns: Dict[str, int], name: str) -> Any:
    """Value of a named column, or None when the column or cell is absent."""
    index = columns.get(name)
    if index is None or index >= len(row):
        return None
    return row[index]


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


@dataclass(frozen=True)
class ContractRecord:
    """One tenant row from the Contracts sheet, normalised."""

    property_id: str
    tenant_name: str
    contact_email: Optional[str]
    billing_cycle: str
    active: bool
    contract_start: Optional[date] = None
    contract_end: Optional[date] = None
    notify_days: int = DEFAULT_NOTIFY_DAYS

    @classmethod
    def from_row(cls, row: List[Any], columns: Dict[str, int]) -> "ContractRecord":
        """
        Build a record from one worksheet row.

        Args:
            row (list): Cell values in sheet order
            columns (dict): Header name -> column index, from build_column_map

        Returns:
            ContractRecord: Normalised record
        """
        return cls(
            property_id=_text(_cell(row, columns, COL_PROPERTY_ID)),
            tenant_name=_text(_cell(row, columns, COL_TENANT_NAME)),
            contact_email=parse_email(_cell(row, columns, COL_CONTACT_EMAIL)),
            billing_cycle=normalize_billing_cycle(_cell(row, columns, COL_BILLING_CYCLE)),
            active=parse_active(_cell(row, columns, COL_ACTIVE)),
            contract_start=serial_to_date(_cell(row, columns, COL_CONTRACT_START)),
            contract_end=serial_to_date(_cell(row, columns, COL_CONTRACT_END)),
            notify_days=parse_notify_days(_cell(row, columns, COL_NOTIFY_DAYS)),
        )


def records_from_rows(rows: List[List[Any]]) -> List[ContractRecord]:
    """
    Turn a used-range value grid (header row first) into contract records.

    Raises:
        ConfigurationError: If the header lacks a required column
    """
    if not rows:
        return []
    columns = build_column_map(rows[0])
    return [ContractRecord.from_row(row, columns) for row in rows[1:]]


@dataclass(frozen=True)
class DueAssessment:
    """The due checker's verdict for one contract on one day."""

    property_id: str
    tenant_name: str
    status: str
    contact_email: Optional[str] = None
    next_due_date: Optional[date] = None
    days_away: Optional[int] = None
    skip_reason: Optional[str] = None

    @property
    def is_due_soon(self) -> bool:
        return self.status == STATUS_DUE_SOON

    @property
    def is_skipped(self) -> bool:
        return self.status == STATUS_SKIPPED

    def to_dict(self) -> Dict[str, Any]:
        return {
            'property_id': self.property_id,
            'tenant_name': self.tenant_name,
            'contact_email': self.contact_email,
            'next_due_date': self.next_due_date.isoformat() if self.next_due_date else None,
            'days_away': self.days_away,
            'status': self.status,
            'skip_reason': self.skip_reason,
        }
