"""
Tests for Contracts sheet normalisation: cell parsing, the header column map
and ContractRecord construction.
"""
from datetime import date

import pytest

from billing_rules import (
    DEFAULT_NOTIFY_DAYS,
    FOUR_WEEK,
    MONTHLY,
    PASS_THROUGH,
    build_column_map,
    is_known_cycle,
    normalize_billing_cycle,
    parse_active,
    parse_email,
    parse_notify_days,
)
from contracts import ContractRecord, records_from_rows
from errors import ConfigurationError

HEADER = [
    "Property_ID", "Tenant_Name", "Contact_Email", "Billing_Cycle", "Active",
    "Contract_Start", "Contract_End", "Notify_Days",
]


class TestNormalizeBillingCycle:

    @pytest.mark.parametrize("raw, expected", [
        ("4-week", FOUR_WEEK),
        (" Four_Week ", FOUR_WEEK),
        ("4 week", FOUR_WEEK),
        ("Monthly", MONTHLY),
        ("pass-through", PASS_THROUGH),
        ("pass_through", PASS_THROUGH),
    ])
    def test_known_spellings(self, raw, expected):
        assert normalize_billing_cycle(raw) == expected

    def test_unknown_kept_as_text(self):
        assert normalize_billing_cycle(" quarterly ") == "quarterly"

    def test_none_is_empty(self):
        assert normalize_billing_cycle(None) == ""

    def test_known_cycles(self):
        assert all(is_known_cycle(c) for c in (FOUR_WEEK, MONTHLY, PASS_THROUGH))
        assert not is_known_cycle("quarterly")


class TestParseActive:

    @pytest.mark.parametrize("value", [True, "TRUE", "true", " True "])
    def test_truthy(self, value):
        assert parse_active(value) is True

    @pytest.mark.parametrize("value", [False, "FALSE", "yes", "1", 1, None, ""])
    def test_everything_else_is_false(self, value):
        assert parse_active(value) is False


class TestParseNotifyDays:

    @pytest.mark.parametrize("value", [None, "", 0, 0.0, False])
    def test_unset_or_numeric_zero_uses_default(self, value):
        assert parse_notify_days(value) == DEFAULT_NOTIFY_DAYS

    def test_text_zero_is_kept(self):
        assert parse_notify_days("0") == 0

    @pytest.mark.parametrize("value, expected", [(5, 5), ("7", 7), (2.0, 2), (" 10 ", 10)])
    def test_explicit_values(self, value, expected):
        assert parse_notify_days(value) == expected

    @pytest.mark.parametrize("value", ["soon", "inf", "1e999", float("inf")])
    def test_unreadable_uses_default(self, value):
        assert parse_notify_days(value) == DEFAULT_NOTIFY_DAYS


class TestParseEmail:

    def test_blank_is_none(self):
        assert parse_email("   ") is None
        assert parse_email(None) is None

    def test_strips(self):
        assert parse_email(" a@b.com ") == "a@b.com"


class TestBuildColumnMap:

    def test_maps_names_to_indexes(self):
        columns = build_column_map(HEADER)
        assert columns["Property_ID"] == 0
        assert columns["Notify_Days"] == 7

    def test_optional_columns_may_be_missing(self):
        columns = build_column_map(HEADER[:5])
        assert "Contract_Start" not in columns

    def test_missing_required_column(self):
        header = [name for name in HEADER if name != "Contact_Email"]
        with pytest.raises(ConfigurationError, match="Contact_Email"):
            build_column_map(header)


class TestContractRecordFromRow:

    def test_full_row(self):
        columns = build_column_map(HEADER)
        row = ["P-01", "Jane Tenant", "jane@example.com", "4-week", "TRUE", 46082, "2026-12-31", 5]

        record = ContractRecord.from_row(row, columns)

        assert record == ContractRecord(
            property_id="P-01",
            tenant_name="Jane Tenant",
            contact_email="jane@example.com",
            billing_cycle=FOUR_WEEK,
            active=True,
            contract_start=date(2026, 3, 1),
            contract_end=date(2026, 12, 31),
            notify_days=5,
        )

    def test_short_row_leaves_optional_fields_empty(self):
        columns = build_column_map(HEADER)
        record = ContractRecord.from_row(["P-02", "Bob", "", "monthly", True], columns)

        assert record.contact_email is None
        assert record.contract_start is None
        assert record.contract_end is None
        assert record.notify_days == DEFAULT_NOTIFY_DAYS

    def test_records_from_rows_skips_header(self):
        rows = [HEADER, ["P-01", "Jane", "j@x.com", "monthly", True, "", "", ""]]
        records = records_from_rows(rows)
        assert [r.property_id for r in records] == ["P-01"]

    def test_records_from_empty_grid(self):
        assert records_from_rows([]) == []
