"""
Exceptions raised by the rent invoice scheduler.

Per-contract skips are not errors; these are reserved for problems that
should stop a run and surface to the operator.
"""

from typing import Optional


class RentSchedulerError(Exception):
    """Base class for scheduler errors."""


class ConfigurationError(RentSchedulerError, ValueError):
    """Missing environment settings or required spreadsheet columns."""


class RemoteServiceError(RentSchedulerError):
    """A remote API answered with a non-success status."""

    def __init__(self, message: str, status_code: Optional[int] = None, response_text: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.response_text = response_text


class GraphAPIError(RemoteServiceError):
    """Microsoft Graph token or workbook request failed."""


class NotificationError(RemoteServiceError):
    """Telegram message could not be delivered."""


class JobTriggerError(RemoteServiceError):
    """The downstream invoice job could not be created."""
