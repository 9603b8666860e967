"""
Main entry point for the Rent Invoice Scheduler
===============================================

Daily cron jobs, workbook utilities and the Streamlit dashboard launcher:

    rent-scheduler check-invoices
    rent-scheduler check-token
    rent-scheduler read Contracts 1 5
    rent-scheduler dashboard
"""

import json
import logging
import os
import subprocess
import sys
from datetime import date
from typing import Optional

import typer

from due_checker import run_invoice_check
from errors import RentSchedulerError
from graph_client import GraphWorkbookClient
from job_trigger import GitHubJobTrigger
from token_guard import STATUS_INVALID_INPUT, run_token_check

app = typer.Typer(help="Recurring rent invoice scheduler.", no_args_is_help=True)


@app.callback()
def configure(verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging.")):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="[%(name)s] %(message)s",
    )


def _fail(error: Exception) -> typer.Exit:
    typer.echo(f"❌ Error: {error}", err=True)
    return typer.Exit(code=1)


def _parse_day(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise typer.BadParameter(f"Expected YYYY-MM-DD, got {value!r}")


@app.command("check-invoices")
def check_invoices(
    today: Optional[str] = typer.Option(None, help="Evaluate as of this date (YYYY-MM-DD)."),
    sheet: Optional[str] = typer.Option(None, help="Contracts worksheet name."),
    dry_run: bool = typer.Option(False, "--dry-run", help="Classify only; never create a job."),
):
    """Check which tenants are due soon and create one invoice job if any are."""
    day = _parse_day(today)
    try:
        workbook = GraphWorkbookClient()
        job_trigger = None if dry_run else GitHubJobTrigger()
        result = run_invoice_check(workbook, job_trigger, today=day, sheet_name=sheet, dry_run=dry_run)
    except RentSchedulerError as e:
        raise _fail(e)

    due = len(result.due_soon)
    if result.job is not None:
        typer.echo(f"✅ {due} tenant(s) due soon - job {result.job.job_id} created")
    elif due:
        typer.echo(f"📋 {due} tenant(s) due soon (dry run, no job created)")
    else:
        typer.echo("✅ No invoices due soon")


@app.command("check-token")
def check_token():
    """Warn over Telegram when the Azure refresh token is near expiry."""
    try:
        result = run_token_check()
    except RentSchedulerError as e:
        raise _fail(e)

    if result.status == STATUS_INVALID_INPUT:
        typer.echo(f"⚠️ AZURE_TOKEN_DATE is not a valid date: {result.raw_value}", err=True)
    elif result.needs_warning:
        typer.echo(result.message)
    elif result.days_until_expiry is not None:
        typer.echo(f"✅ Token valid for ~{result.days_until_expiry} more days")
    else:
        typer.echo("AZURE_TOKEN_DATE not set, skipping expiry check.")


@app.command("sheets")
def list_sheets():
    """List the worksheets in the workbook."""
    try:
        names = GraphWorkbookClient().list_sheets()
    except RentSchedulerError as e:
        raise _fail(e)

    typer.echo("Worksheets:")
    for name in names:
        typer.echo(f"  - {name}")


@app.command("read")
def read_sheet(
    sheet_name: str = typer.Argument(..., help="Worksheet name."),
    start_row: Optional[int] = typer.Argument(None, help="First row (1 = header)."),
    end_row: Optional[int] = typer.Argument(None, help="Last row, inclusive."),
):
    """Print a worksheet's used range as JSON."""
    try:
        rows = GraphWorkbookClient().read_sheet(sheet_name, start_row, end_row)
    except RentSchedulerError as e:
        raise _fail(e)

    typer.echo(json.dumps(rows, indent=2, default=str))


@app.command("append")
def append_row(
    sheet_name: str = typer.Argument(..., help="Worksheet name."),
    row_json: str = typer.Argument(..., help='Row as a JSON array, e.g. \'["P1", "Jane"]\'.'),
):
    """Append one row below the worksheet's used range."""
    try:
        values = json.loads(row_json)
    except json.JSONDecodeError as e:
        raise typer.BadParameter(f"Invalid JSON for row data: {e}")
    if not isinstance(values, list):
        raise typer.BadParameter("Row data must be a JSON array")
    if not values:
        raise typer.BadParameter("Row data must contain at least one value")

    try:
        row_number = GraphWorkbookClient().append_row(sheet_name, values)
    except RentSchedulerError as e:
        raise _fail(e)

    typer.echo(f"Row appended to {sheet_name} at row {row_number}")


@app.command("dashboard")
def dashboard(port: int = typer.Option(8501, help="Port for the Streamlit server.")):
    """Run the Streamlit dashboard."""
    typer.echo("🚀 Starting Rent Scheduler dashboard...")
    typer.echo(f"📝 This will open in your web browser at http://localhost:{port}")
    typer.echo("⏹️  Press Ctrl+C to stop the application\n")

    current_dir = os.path.dirname(os.path.abspath(__file__))
    app_path = os.path.join(current_dir, "streamlit_app.py")

    try:
        subprocess.run([
            sys.executable, "-m", "streamlit", "run", app_path,
            "--server.port", str(port),
            "--server.address", "localhost"
        ], check=False)
    except KeyboardInterrupt:
        typer.echo("\n👋 Application stopped by user")


if __name__ == "__main__":
    app()
