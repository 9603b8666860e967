"""
Tests for the Microsoft Graph workbook client. HTTP calls go through a
mocked requests session.
"""
import os
from unittest.mock import MagicMock, patch

import pytest

from errors import ConfigurationError, GraphAPIError
from graph_client import GraphWorkbookClient, column_letter, encode_drive_path


def fake_response(status_code=200, payload=None, text=""):
    response = MagicMock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 300
    response.json.return_value = payload
    response.content = b"" if payload is None else b"{}"
    response.text = text
    return response


def make_client(session=None):
    session = session or MagicMock()
    session.post.return_value = fake_response(payload={"access_token": "token-123"})
    client = GraphWorkbookClient(
        client_id="client", tenant_id="tenant", refresh_token="refresh",
        file_path="/TJM/Real Estate/TJM_RENT_v2.xlsx", session=session,
    )
    return client, session


class TestConfiguration:

    def test_missing_credentials(self):
        with patch.dict(os.environ, {}, clear=True):
            with pytest.raises(ConfigurationError, match="AZURE_REFRESH_TOKEN"):
                GraphWorkbookClient()

    def test_reads_environment(self):
        env = {
            "AZURE_CLIENT_ID": "c", "AZURE_TENANT_ID": "t", "AZURE_REFRESH_TOKEN": "r",
            "ONEDRIVE_FILE_PATH": "/Rent/Book.xlsx",
        }
        with patch.dict(os.environ, env, clear=True):
            client = GraphWorkbookClient(session=MagicMock())

        assert client.workbook_url == "https://graph.microsoft.com/v1.0/me/drive/root:/Rent/Book.xlsx:/workbook"

    def test_default_file_path(self):
        env = {"AZURE_CLIENT_ID": "c", "AZURE_TENANT_ID": "t", "AZURE_REFRESH_TOKEN": "r"}
        with patch.dict(os.environ, env, clear=True):
            client = GraphWorkbookClient(session=MagicMock())

        assert client.workbook_url.endswith("/root:/TJM/Real%20Estate/TJM_RENT_v2.xlsx:/workbook")


class TestAuthentication:

    def test_refresh_grant(self):
        client, session = make_client()

        assert client.authenticate() == "token-123"

        url = session.post.call_args.args[0]
        data = session.post.call_args.kwargs["data"]
        assert url == "https://login.microsoftonline.com/tenant/oauth2/v2.0/token"
        assert data["grant_type"] == "refresh_token"
        assert data["refresh_token"] == "refresh"
        assert "offline_access" in data["scope"]

    def test_token_failure(self):
        client, session = make_client()
        session.post.return_value = fake_response(400, text="invalid_grant")

        with pytest.raises(GraphAPIError) as exc_info:
            client.authenticate()

        assert exc_info.value.status_code == 400
        assert "invalid_grant" in str(exc_info.value)

    def test_token_reused_across_requests(self):
        client, session = make_client()
        session.request.return_value = fake_response(payload={"value": []})

        client.list_sheets()
        client.list_sheets()

        assert session.post.call_count == 1
        headers = session.request.call_args.kwargs["headers"]
        assert headers["Authorization"] == "Bearer token-123"


class TestWorksheets:

    def test_list_sheets(self):
        client, session = make_client()
        session.request.return_value = fake_response(payload={"value": [{"name": "Contracts"}, {"name": "Payments"}]})

        assert client.list_sheets() == ["Contracts", "Payments"]

    def test_read_sheet(self):
        client, session = make_client()
        values = [["Property_ID", "Tenant_Name"], ["P-01", "Jane"], ["P-02", "Bob"]]
        session.request.return_value = fake_response(payload={"values": values})

        assert client.read_sheet("Contracts") == values

        method, url = session.request.call_args.args
        assert method == "GET"
        assert url.endswith(":/workbook/worksheets('Contracts')/usedRange")

    def test_read_sheet_row_window(self):
        client, session = make_client()
        values = [["h"], ["r2"], ["r3"], ["r4"]]
        session.request.return_value = fake_response(payload={"values": values})

        assert client.read_sheet("Contracts", 2, 3) == [["r2"], ["r3"]]

    def test_sheet_name_is_encoded(self):
        client, session = make_client()
        session.request.return_value = fake_response(payload={"values": []})

        client.read_sheet("Rent Log")

        assert "worksheets('Rent%20Log')" in session.request.call_args.args[1]

    def test_apostrophe_in_sheet_name_is_doubled(self):
        client, session = make_client()
        session.request.return_value = fake_response(payload={"values": []})

        client.read_sheet("Tom's")

        assert "worksheets('Tom%27%27s')" in session.request.call_args.args[1]

    def test_append_row_writes_below_used_range(self):
        client, session = make_client()
        session.request.side_effect = [
            fake_response(payload={"values": [["a"], ["b"], ["c"], ["d"]]}),
            fake_response(payload={}),
        ]

        assert client.append_row("Payments", ["P-01", "2026-04-01", 950]) == 5

        method, url = session.request.call_args.args
        assert method == "PATCH"
        assert url.endswith("/range(address='A5:C5')")
        assert session.request.call_args.kwargs["json"] == {"values": [["P-01", "2026-04-01", 950]]}

    def test_append_rejects_empty_row(self):
        client, _ = make_client()
        with pytest.raises(ValueError):
            client.append_row("Payments", [])

    def test_clear_range_no_content(self):
        client, session = make_client()
        session.request.return_value = fake_response(204)

        assert client.clear_range("Contracts", "A2:H50") is None

        method, url = session.request.call_args.args
        assert method == "POST"
        assert url.endswith("/range(address='A2:H50')/clear")

    def test_add_sheet(self):
        client, session = make_client()
        session.request.return_value = fake_response(payload={"name": "Archive"})

        assert client.add_sheet("Archive") == {"name": "Archive"}
        assert session.request.call_args.kwargs["json"] == {"name": "Archive"}

    def test_api_error(self):
        client, session = make_client()
        session.request.return_value = fake_response(404, text="ItemNotFound")

        with pytest.raises(GraphAPIError, match="404"):
            client.read_sheet("Missing")


class TestHelpers:

    @pytest.mark.parametrize("index, letters", [(1, "A"), (26, "Z"), (27, "AA"), (28, "AB"), (702, "ZZ"), (703, "AAA")])
    def test_column_letter(self, index, letters):
        assert column_letter(index) == letters

    def test_column_letter_rejects_zero(self):
        with pytest.raises(ValueError):
            column_letter(0)

    def test_encode_drive_path_keeps_slashes(self):
        assert encode_drive_path("/TJM/Real Estate/Rent #2.xlsx") == "/TJM/Real%20Estate/Rent%20%232.xlsx"
