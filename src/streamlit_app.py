"""
Rent Scheduler - Streamlit Dashboard
====================================

Operator view of the daily checks: which tenants are due soon, why others
were skipped, and how long the Azure refresh token has left. The invoice job
can also be created from here.
"""

from datetime import date

import streamlit as st

from config import contracts_sheet_name, get_setting
from contracts import STATUS_DUE_SOON, STATUS_SKIPPED, STATUS_UPCOMING, records_from_rows
from due_checker import INVOICE_JOB_DESCRIPTION, classify_contracts, needs_invoice_job, upcoming_schedule
from errors import RentSchedulerError
from graph_client import GraphWorkbookClient
from job_trigger import GitHubJobTrigger
from token_guard import STATUS_EXPIRED, STATUS_INVALID_INPUT, STATUS_NOT_CONFIGURED, check_token_expiry


# Authentication function
def check_password():
    if "password_authenticated" not in st.session_state:
        st.session_state.password_authenticated = False

    expected = get_setting('APP_PASSWORD')
    if not expected:
        try:
            expected = st.secrets["APP_PASSWORD"]
        except (KeyError, FileNotFoundError):
            expected = None
    if not expected:
        return True

    if not st.session_state.password_authenticated:
        st.title("🔒 Rent Scheduler")
        password = st.text_input("Password", type="password")

        if st.button("Login"):
            if password == expected:
                st.session_state.password_authenticated = True
                st.success("✅ Login successful!")
                st.rerun()
            else:
                st.error("❌ Incorrect password")

        st.stop()

    return True


st.set_page_config(
    page_title="Rent Scheduler",
    page_icon="🏠",
    layout="wide",
    initial_sidebar_state="collapsed"
)

if 'workbook' not in st.session_state:
    st.session_state.workbook = None
if 'records' not in st.session_state:
    st.session_state.records = None
if 'last_job' not in st.session_state:
    st.session_state.last_job = None


def get_workbook():
    """Create the Graph client once per session."""
    if st.session_state.workbook is None:
        try:
            st.session_state.workbook = GraphWorkbookClient()
        except RentSchedulerError as e:
            st.error(f"Failed to initialize workbook client: {str(e)}")
            return None
    return st.session_state.workbook


def load_contracts():
    workbook = get_workbook()
    if workbook is None:
        return
    try:
        with st.spinner("Reading Contracts sheet..."):
            rows = workbook.read_sheet(contracts_sheet_name())
            st.session_state.records = records_from_rows(rows)
    except RentSchedulerError as e:
        st.error(f"Could not read contracts: {str(e)}")


def display_token_status():
    result = check_token_expiry(get_setting('AZURE_TOKEN_DATE'))

    if result.status == STATUS_NOT_CONFIGURED:
        st.info("AZURE_TOKEN_DATE not set - token expiry is not tracked.")
    elif result.status == STATUS_INVALID_INPUT:
        st.error(f"AZURE_TOKEN_DATE is not a valid date: {result.raw_value}")
    elif result.status == STATUS_EXPIRED:
        st.error(result.message)
    elif result.needs_warning:
        st.warning(result.message)
    else:
        st.success(f"✅ Refresh token valid for ~{result.days_until_expiry} more days "
                   f"(issued {result.issued_on.isoformat()})")


def create_invoice_job():
    try:
        with st.spinner("Creating invoice job..."):
            st.session_state.last_job = GitHubJobTrigger().create_job(INVOICE_JOB_DESCRIPTION)
        st.success(f"✅ Job created: {st.session_state.last_job.job_id}")
    except RentSchedulerError as e:
        st.error(f"Failed to create job: {str(e)}")


def main():
    check_password()

    col1, col2 = st.columns([3, 1])
    with col1:
        st.title("🏠 Rent Invoice Scheduler")
    with col2:
        today = st.date_input("Evaluate as of", value=date.today())

    st.subheader("🔑 Refresh Token")
    display_token_status()

    st.subheader("📋 Contracts")
    if st.button("🔄 Load Contracts", type="primary") or st.session_state.records is None:
        load_contracts()

    records = st.session_state.records
    if not records:
        st.info("No contracts loaded.")
        return

    assessments = classify_contracts(records, today)
    counts = {status: sum(1 for a in assessments if a.status == status)
              for status in (STATUS_DUE_SOON, STATUS_UPCOMING, STATUS_SKIPPED)}

    col1, col2, col3 = st.columns(3)
    col1.metric("Due soon", counts[STATUS_DUE_SOON])
    col2.metric("Upcoming", counts[STATUS_UPCOMING])
    col3.metric("Skipped", counts[STATUS_SKIPPED])

    table = []
    for record, assessment in zip(records, assessments):
        row = assessment.to_dict()
        row['billing_cycle'] = record.billing_cycle
        row['notify_days'] = record.notify_days
        row['following_dates'] = ", ".join(d.isoformat() for d in upcoming_schedule(record, today)[1:])
        table.append(row)
    st.dataframe(table, use_container_width=True)

    if needs_invoice_job(assessments):
        if st.button(f"📨 Create invoice job ({counts[STATUS_DUE_SOON]} due soon)", type="primary"):
            create_invoice_job()
    else:
        st.caption("No invoices due soon - no job needed.")


if __name__ == "__main__":
    main()
