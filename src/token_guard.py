"""
Refresh Token Expiry Guard
==========================

The Azure refresh token behind the workbook and mail access lives for 90
days. Its issue date is kept in AZURE_TOKEN_DATE (YYYY-MM-DD); this module
works out how long it has left and warns over Telegram in the last two weeks.

A missing AZURE_TOKEN_DATE is treated as "not tracked" and never raises an
alarm. A malformed one is logged as an error but does not stop anything
else from running.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Optional, Union

from config import get_setting
from notifier import TelegramNotifier

logger = logging.getLogger(__name__)

TOKEN_MAX_LIFETIME_DAYS = 90
TOKEN_WARN_THRESHOLD_DAYS = 14

RENEWAL_INSTRUCTIONS = (
    "Run the Graph device-code sign-in and update `AZURE_REFRESH_TOKEN` and `AZURE_TOKEN_DATE`"
)

STATUS_NOT_CONFIGURED = "not_configured"
STATUS_INVALID_INPUT = "invalid_input"
STATUS_OK = "ok"
STATUS_EXPIRING = "expiring"
STATUS_EXPIRED = "expired"


@dataclass(frozen=True)
class TokenExpiryResult:
    status: str
    issued_on: Optional[date] = None
    days_since_issue: Optional[int] = None
    days_until_expiry: Optional[int] = None
    needs_warning: bool = False
    message: Optional[str] = None
    raw_value: Optional[str] = None


def parse_token_date(value: Union[str, date, datetime]) -> date:
    """
    Parse the stored token issue date.

    Raises:
        ValueError: If the text is not an ISO date or date-time
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    text = str(value).strip()
    try:
        return date.fromisoformat(text)
    except ValueError:
        return datetime.fromisoformat(text.replace('Z', '+00:00')).date()


def _elapsed_days(issued_on: date, now: Union[date, datetime]) -> int:
    """Whole days since issue, truncated toward zero."""
    if isinstance(now, datetime):
        issued_at = datetime.combine(issued_on, time(), tzinfo=now.tzinfo)
        return int((now - issued_at).total_seconds() / 86400)
    return (now - issued_on).days


def check_token_expiry(issued_on, now: Union[date, datetime] = None,
                       max_lifetime_days: int = TOKEN_MAX_LIFETIME_DAYS,
                       warn_threshold_days: int = TOKEN_WARN_THRESHOLD_DAYS) -> TokenExpiryResult:
    """
    Work out how long the refresh token has left.

    Args:
        issued_on: Issue date as ISO text or a date; None/empty when not tracked
        now (datetime, optional): Current time, defaults to datetime.now()
        max_lifetime_days (int): Token lifetime
        warn_threshold_days (int): Warn once this many days or fewer remain

    Returns:
        TokenExpiryResult: Remaining validity and the warning text, if any
    """
    if issued_on is None or (isinstance(issued_on, str) and not issued_on.strip()):
        logger.info("AZURE_TOKEN_DATE not set, skipping expiry check.")
        return TokenExpiryResult(status=STATUS_NOT_CONFIGURED)

    try:
        issued = parse_token_date(issued_on)
    except ValueError:
        logger.error(f"Invalid AZURE_TOKEN_DATE: {issued_on}")
        return TokenExpiryResult(status=STATUS_INVALID_INPUT, raw_value=str(issued_on))

    now = now or datetime.now()
    days_since = _elapsed_days(issued, now)
    days_left = max_lifetime_days - days_since
    created = issued.isoformat()

    logger.info(f"Token created: {created} ({days_since} days ago, ~{days_left} days until expiry)")

    if days_left > warn_threshold_days:
        logger.info("Token is not near expiry. No action needed.")
        return TokenExpiryResult(
            status=STATUS_OK,
            issued_on=issued,
            days_since_issue=days_since,
            days_until_expiry=days_left,
        )

    if days_left <= 0:
        status = STATUS_EXPIRED
        message = (
            f"⚠️ Azure refresh token has EXPIRED (created {created}, {days_since} days ago). "
            f"{RENEWAL_INSTRUCTIONS} to renew immediately."
        )
    else:
        status = STATUS_EXPIRING
        message = (
            f"⚠️ Azure refresh token expires in ~{days_left} days (created {created}). "
            f"{RENEWAL_INSTRUCTIONS} to renew before it expires."
        )

    return TokenExpiryResult(
        status=status,
        issued_on=issued,
        days_since_issue=days_since,
        days_until_expiry=days_left,
        needs_warning=True,
        message=message,
    )


def run_token_check(notifier: Optional[TelegramNotifier] = None, issued_on=None,
                    now: Union[date, datetime] = None) -> TokenExpiryResult:
    """
    Daily entry point: check AZURE_TOKEN_DATE and send a warning if needed.

    Raises:
        NotificationError: If Telegram rejects the warning
    """
    if issued_on is None:
        issued_on = get_setting('AZURE_TOKEN_DATE')

    result = check_token_expiry(issued_on, now=now)
    if not result.needs_warning:
        return result

    notifier = notifier or TelegramNotifier.from_env()
    if notifier is None:
        logger.error("Cannot send warning: TELEGRAM_BOT_TOKEN or TELEGRAM_CHAT_ID not set.")
        logger.error(f"WARNING: Azure refresh token expires in ~{result.days_until_expiry} days!")
        return result

    notifier.send_message(result.message)
    logger.info("Expiry warning sent via Telegram.")
    return result
