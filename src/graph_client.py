"""
Microsoft Graph Workbook Client
===============================

Reads and writes worksheets of the rent workbook stored on OneDrive.

Authentication uses a delegated refresh token (obtained once through the
device-code sign-in) exchanged for a short-lived access token on first use.
"""

import logging
import os
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import requests

from config import DEFAULT_ONEDRIVE_FILE_PATH
from errors import ConfigurationError, GraphAPIError

logger = logging.getLogger(__name__)

GRAPH_BASE = "https://graph.microsoft.com/v1.0"
TOKEN_URL_TEMPLATE = "https://login.microsoftonline.com/{tenant_id}/oauth2/v2.0/token"
GRAPH_SCOPES = "Files.ReadWrite User.Read Mail.Send offline_access"
REQUEST_TIMEOUT = 30


def column_letter(index: int) -> str:
    """
    Spreadsheet column name for a 1-based column index.

    Examples:
        column_letter(1) -> "A"
        column_letter(28) -> "AB"
    """
    if index < 1:
        raise ValueError(f"Column index must be 1 or more, got {index}")
    letters = ""
    while index:
        index, remainder = divmod(index - 1, 26)
        letters = chr(65 + remainder) + letters
    return letters


def encode_drive_path(file_path: str) -> str:
    """Percent-encode each path segment but keep the slashes."""
    return "/".join(quote(segment, safe="") for segment in file_path.split("/"))


class GraphWorkbookClient:
    """Worksheet access for one Excel workbook on OneDrive."""

    def __init__(self, client_id: str = None, tenant_id: str = None,
                 refresh_token: str = None, file_path: str = None,
                 session: Optional[requests.Session] = None):
        """
        Initialize the workbook client.

        Args:
            client_id (str, optional): Azure AD app client ID (AZURE_CLIENT_ID)
            tenant_id (str, optional): Azure AD tenant ID (AZURE_TENANT_ID)
            refresh_token (str, optional): Delegated refresh token (AZURE_REFRESH_TOKEN)
            file_path (str, optional): Workbook path on OneDrive (ONEDRIVE_FILE_PATH)
            session (requests.Session, optional): HTTP session to reuse
        """
        self.client_id = client_id or os.getenv('AZURE_CLIENT_ID')
        self.tenant_id = tenant_id or os.getenv('AZURE_TENANT_ID')
        self.refresh_token = refresh_token or os.getenv('AZURE_REFRESH_TOKEN')
        self.file_path = file_path or os.getenv('ONEDRIVE_FILE_PATH') or DEFAULT_ONEDRIVE_FILE_PATH

        if not all([self.client_id, self.tenant_id, self.refresh_token]):
            raise ConfigurationError(
                "Missing Azure credentials. Need AZURE_CLIENT_ID, AZURE_TENANT_ID, AZURE_REFRESH_TOKEN"
            )

        self.session = session or requests.Session()
        self.access_token = None

    @property
    def workbook_url(self) -> str:
        return f"{GRAPH_BASE}/me/drive/root:{encode_drive_path(self.file_path)}:/workbook"

    def authenticate(self) -> str:
        """
        Exchange the refresh token for an access token.

        Returns:
            str: Access token, also cached on the client

        Raises:
            GraphAPIError: If the token endpoint rejects the request
        """
        logger.debug("Requesting Graph access token")
        response = self.session.post(
            TOKEN_URL_TEMPLATE.format(tenant_id=self.tenant_id),
            data={
                'client_id': self.client_id,
                'grant_type': 'refresh_token',
                'refresh_token': self.refresh_token,
                'scope': GRAPH_SCOPES,
            },
            headers={'Content-Type': 'application/x-www-form-urlencoded'},
            timeout=REQUEST_TIMEOUT,
        )

        if not response.ok:
            raise GraphAPIError(
                f"Token request failed ({response.status_code}): {response.text}",
                status_code=response.status_code,
                response_text=response.text,
            )

        self.access_token = response.json()['access_token']
        return self.access_token

    def _headers(self) -> Dict[str, str]:
        if not self.access_token:
            self.authenticate()
        return {
            'Authorization': f'Bearer {self.access_token}',
            'Content-Type': 'application/json',
            'Accept': 'application/json',
        }

    def request(self, method: str, path: str, payload: Any = None) -> Optional[Dict[str, Any]]:
        """
        Call a workbook endpoint.

        Args:
            method (str): HTTP method
            path (str): Path relative to the workbook URL, or an absolute URL
            payload: JSON body, if any

        Returns:
            dict: Decoded JSON, or None for 204 responses
        """
        url = path if path.startswith('http') else f"{self.workbook_url}{path}"
        response = self.session.request(
            method, url, headers=self._headers(), json=payload, timeout=REQUEST_TIMEOUT
        )

        if not response.ok:
            raise GraphAPIError(
                f"Graph API error ({response.status_code}): {response.text}",
                status_code=response.status_code,
                response_text=response.text,
            )

        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    @staticmethod
    def _sheet_path(sheet_name: str) -> str:
        # OData string literals escape an apostrophe by doubling it
        literal = sheet_name.replace("'", "''")
        return f"/worksheets('{quote(literal, safe='')}')"

    def list_sheets(self) -> List[str]:
        data = self.request('GET', '/worksheets')
        return [sheet['name'] for sheet in data.get('value', [])]

    def read_sheet(self, sheet_name: str, start_row: int = None, end_row: int = None) -> List[List[Any]]:
        """
        Read the used range of a worksheet.

        Args:
            sheet_name (str): Worksheet name
            start_row (int, optional): First row to return, 1-based (row 1 is the header)
            end_row (int, optional): Last row to return, inclusive

        Returns:
            list: Rows of cell values; empty when the sheet has no data
        """
        data = self.request('GET', f"{self._sheet_path(sheet_name)}/usedRange")
        rows = (data or {}).get('values') or []

        if start_row is not None:
            start = max(0, start_row - 1)
            end = end_row if end_row is not None else len(rows)
            rows = rows[start:end]

        return rows

    def write_range(self, sheet_name: str, address: str, rows: List[List[Any]]) -> None:
        self.request(
            'PATCH',
            f"{self._sheet_path(sheet_name)}/range(address='{address}')",
            payload={'values': rows},
        )

    def append_row(self, sheet_name: str, values: List[Any]) -> int:
        """
        Write a row directly below the sheet's used range.

        Returns:
            int: 1-based row number that was written
        """
        if not isinstance(values, list) or not values:
            raise ValueError("Row data must be a non-empty list")

        used = self.read_sheet(sheet_name)
        next_row = len(used) + 1
        address = f"A{next_row}:{column_letter(len(values))}{next_row}"

        self.write_range(sheet_name, address, [values])
        logger.info(f"Row appended to {sheet_name} at row {next_row}")
        return next_row

    def clear_range(self, sheet_name: str, address: str) -> None:
        self.request(
            'POST',
            f"{self._sheet_path(sheet_name)}/range(address='{address}')/clear",
            payload={'applyTo': 'Contents'},
        )

    def add_sheet(self, sheet_name: str) -> Dict[str, Any]:
        return self.request('POST', '/worksheets/add', payload={'name': sheet_name})
