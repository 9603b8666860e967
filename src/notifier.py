"""
Telegram notifications for the operator.
"""

import logging
import os

import requests

from errors import ConfigurationError, NotificationError

logger = logging.getLogger(__name__)

TELEGRAM_API_BASE = "https://api.telegram.org"


class TelegramNotifier:
    """Sends plain Markdown messages to a single Telegram chat."""

    def __init__(self, bot_token: str = None, chat_id: str = None, session: requests.Session = None):
        self.bot_token = bot_token or os.getenv('TELEGRAM_BOT_TOKEN')
        self.chat_id = chat_id or os.getenv('TELEGRAM_CHAT_ID')

        if not all([self.bot_token, self.chat_id]):
            raise ConfigurationError("Missing TELEGRAM_BOT_TOKEN or TELEGRAM_CHAT_ID")

        self.session = session or requests.Session()

    @classmethod
    def from_env(cls):
        """Build a notifier from the environment, or None if it isn't configured."""
        try:
            return cls()
        except ConfigurationError:
            return None

    def send_message(self, text: str) -> None:
        """
        Post a message to the configured chat.

        Raises:
            NotificationError: If Telegram does not accept the message
        """
        response = self.session.post(
            f"{TELEGRAM_API_BASE}/bot{self.bot_token}/sendMessage",
            json={
                'chat_id': self.chat_id,
                'text': text,
                'parse_mode': 'Markdown',
            },
            timeout=30,
        )

        if not response.ok:
            raise NotificationError(
                f"Telegram send failed ({response.status_code}): {response.text}",
                status_code=response.status_code,
                response_text=response.text,
            )

        logger.info("Message sent via Telegram.")
