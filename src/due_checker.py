"""
Rent Due Checker
================

Works out each tenant's next rent due date and decides whether an invoice
job is needed today.

Flow for a daily run:
- Read the Contracts sheet from the workbook
- Classify every contract as due soon, upcoming or skipped
- If anything is due soon, create ONE job for the whole batch. The job
  re-derives the due-soon tenants itself, so the payload is a fixed task
  description rather than a tenant list.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, List, Optional

from billing_rules import (
    FOUR_WEEK,
    FOUR_WEEK_CYCLE_DAYS,
    MONTHLY,
    PASS_THROUGH,
    describe_skip,
    is_known_cycle,
)
from config import contracts_sheet_name
from contracts import (
    STATUS_DUE_SOON,
    STATUS_SKIPPED,
    STATUS_UPCOMING,
    ContractRecord,
    DueAssessment,
    records_from_rows,
)
from date_utils import days_between, first_of_next_month, next_cycle_date
from job_trigger import JobHandle

logger = logging.getLogger(__name__)

INVOICE_JOB_DESCRIPTION = (
    "Read the file at operating_system/SEND_INVOICES.md and complete the tasks described there."
)


def resolve_next_due(record: ContractRecord, today: date) -> Optional[date]:
    """
    Calculate the next rent due date for a contract.

    Args:
        record (ContractRecord): Contract to resolve
        today (date): Evaluation day

    Returns:
        date: Next due date, or None if it cannot be worked out
    """
    if record.billing_cycle == FOUR_WEEK:
        if record.contract_start is None:
            return None
        return next_cycle_date(record.contract_start, today, FOUR_WEEK_CYCLE_DAYS)

    if record.billing_cycle == MONTHLY:
        # Running on the 1st means this month is already billed
        this_month = today.replace(day=1)
        if this_month > today:
            return this_month
        return first_of_next_month(today)

    return None


def _skipped(record: ContractRecord, reason: str, detail: Optional[str] = None) -> DueAssessment:
    logger.info(f"  {record.tenant_name}: {detail or describe_skip(reason)}, skipping")
    return DueAssessment(
        property_id=record.property_id,
        tenant_name=record.tenant_name,
        contact_email=record.contact_email,
        status=STATUS_SKIPPED,
        skip_reason=reason,
    )


def assess_contract(record: ContractRecord, today: date) -> DueAssessment:
    """Run the eligibility checks for one contract and classify it."""
    if not record.active:
        return _skipped(record, "inactive")

    if not record.contact_email:
        return _skipped(record, "no_email")

    if record.billing_cycle == PASS_THROUGH:
        return _skipped(record, "pass_through")

    if record.contract_end is not None and record.contract_end < today:
        return _skipped(record, "contract_expired")

    if not is_known_cycle(record.billing_cycle):
        return _skipped(record, "unsupported_cycle",
                        f"unsupported billing cycle \"{record.billing_cycle}\"")

    next_due = resolve_next_due(record, today)
    if next_due is None:
        return _skipped(record, "no_due_date")

    if record.contract_end is not None and next_due > record.contract_end:
        return _skipped(record, "past_contract_end")

    days_away = days_between(next_due, today)
    due_str = next_due.isoformat()

    if 0 <= days_away <= record.notify_days:
        logger.info(f"  {record.tenant_name}: due {due_str} ({days_away} days away) - INVOICE NEEDED")
        status = STATUS_DUE_SOON
    else:
        logger.info(f"  {record.tenant_name}: next due {due_str} ({days_away} days away)")
        status = STATUS_UPCOMING

    return DueAssessment(
        property_id=record.property_id,
        tenant_name=record.tenant_name,
        contact_email=record.contact_email,
        next_due_date=next_due,
        days_away=days_away,
        status=status,
    )


def classify_contracts(records: Iterable[ContractRecord], today: date) -> List[DueAssessment]:
    """
    Classify every contract for the given day.

    Args:
        records: Contracts in sheet order
        today (date): Evaluation day

    Returns:
        list: One DueAssessment per record, in input order
    """
    return [assess_contract(record, today) for record in records]


def needs_invoice_job(assessments: Iterable[DueAssessment]) -> bool:
    return any(assessment.is_due_soon for assessment in assessments)


@dataclass
class InvoiceCheckResult:
    """Outcome of one daily invoice check."""

    today: date
    assessments: List[DueAssessment] = field(default_factory=list)
    job: Optional[JobHandle] = None

    @property
    def due_soon(self) -> List[DueAssessment]:
        return [a for a in self.assessments if a.is_due_soon]

    @property
    def job_needed(self) -> bool:
        return needs_invoice_job(self.assessments)


def run_invoice_check(workbook, job_trigger=None, today: Optional[date] = None,
                      sheet_name: Optional[str] = None, dry_run: bool = False) -> InvoiceCheckResult:
    """
    Daily entry point: read contracts, classify them, create a job if needed.

    Args:
        workbook: Object with ``read_sheet(name)`` returning the used-range grid
        job_trigger: Object with ``create_job(description)``; required unless dry_run
        today (date, optional): Evaluation day, defaults to the system date
        sheet_name (str, optional): Contracts worksheet name
        dry_run (bool): Classify only, never create a job

    Returns:
        InvoiceCheckResult: Assessments plus the created job handle, if any

    Raises:
        ConfigurationError: If the sheet lacks a required column
    """
    today = today or date.today()
    sheet_name = sheet_name or contracts_sheet_name()

    logger.info(f"{today.isoformat()} - reading {sheet_name} from Excel")
    rows = workbook.read_sheet(sheet_name)

    if not rows or len(rows) < 2:
        logger.info(f"No data in {sheet_name} sheet. Done.")
        return InvoiceCheckResult(today=today)

    records = records_from_rows(rows)
    logger.info(f"Found {len(records)} tenant(s) in Excel")

    result = InvoiceCheckResult(today=today, assessments=classify_contracts(records, today))

    if not result.job_needed:
        logger.info("No invoices due soon. Done.")
        return result

    if dry_run:
        logger.info(f"{len(result.due_soon)} tenant(s) due soon - dry run, no job created")
        return result

    if job_trigger is None:
        raise ValueError("job_trigger is required unless dry_run is set")

    logger.info(f"{len(result.due_soon)} tenant(s) due soon - creating agent job")
    result.job = job_trigger.create_job(INVOICE_JOB_DESCRIPTION)
    logger.info(f"Job created: {result.job.job_id} (branch: {result.job.branch})")
    return result


def upcoming_schedule(record: ContractRecord, today: date, count: int = 3) -> List[date]:
    """
    The next ``count`` due dates for a contract, capped at its end date.

    Used by the dashboard to show what is coming after the next invoice.
    """
    dates = []
    cursor = today
    while len(dates) < count:
        next_due = resolve_next_due(record, cursor)
        if next_due is None:
            break
        if record.contract_end is not None and next_due > record.contract_end:
            break
        dates.append(next_due)
        cursor = next_due
    return dates
