"""
Discord webhook notifier.
"""

import time
from typing import Any

import requests

from .base import Notifier, NotificationResult

# Discord rejects message content longer than this
MAX_CONTENT_LENGTH = 2000


class DiscordNotifier(Notifier):
    """Sends notifications via Discord webhook."""

    def __init__(self, webhook_url: str, timeout: float = 10):
        """
        Initialize Discord notifier.

        Args:
            webhook_url: Discord webhook URL
            timeout: HTTP timeout in seconds
        """
        self.webhook_url = webhook_url
        self.timeout = timeout

    def send(self, message: str) -> NotificationResult:
        """Send message to Discord."""
        if not self.webhook_url:
            return NotificationResult(
                success=False,
                channel="discord",
                error="Discord webhook URL not configured",
            )

        try:
            payload = self._create_payload(message)
            response = self._send_webhook(payload)

            if response.ok:
                return NotificationResult(success=True, channel="discord")
            else:
                return NotificationResult(
                    success=False,
                    channel="discord",
                    error=f"HTTP {response.status_code}: {response.text}",
                )

        except requests.exceptions.ConnectionError as e:
            return NotificationResult(
                success=False,
                channel="discord",
                error=f"Connection error: {str(e)}",
            )
        except Exception as e:
            return NotificationResult(
                success=False,
                channel="discord",
                error=str(e),
            )

    def _send_webhook(self, payload: dict[str, Any]) -> requests.Response:
        """Send webhook with rate limit handling."""
        response = requests.post(
            self.webhook_url,
            json=payload,
            timeout=self.timeout,
        )

        # Handle rate limiting
        if response.status_code == 429:
            retry_after = response.headers.get("Retry-After", "1")
            time.sleep(float(retry_after))
            response = requests.post(
                self.webhook_url,
                json=payload,
                timeout=self.timeout,
            )

        return response

    def _create_payload(self, message: str) -> dict[str, Any]:
        """Create Discord webhook payload."""
        if len(message) > MAX_CONTENT_LENGTH:
            message = message[: MAX_CONTENT_LENGTH - 3] + "..."
        return {"content": message}
