"""
Slack bot notifier.
"""

import logging
import os
import time
from typing import Any

import requests

from .base import Notifier, NotificationResult

logger = logging.getLogger(__name__)

SLACK_POST_MESSAGE_URL = "https://slack.com/api/chat.postMessage"


class SlackNotifier(Notifier):
    """Posts messages to a Slack channel with a bot token."""

    def __init__(
        self,
        channel: str = "#webserver-alerts",
        token_env: str = "SLACK_OAUTH_TOKEN",
        timeout: float = 10,
    ):
        """
        Initialize Slack notifier.

        Args:
            channel: Channel name or id to post into
            token_env: Environment variable holding the bot OAuth token,
                read on every send
            timeout: HTTP timeout in seconds
        """
        self.channel = channel
        self.token_env = token_env
        self.timeout = timeout

    def send(self, message: str) -> NotificationResult:
        """Send message to Slack."""
        token = os.environ.get(self.token_env)
        if not token:
            return NotificationResult(
                success=False,
                channel="slack",
                error=f"{self.token_env} environment variable not set",
            )

        try:
            response = self._post_message(token, message)

            if not response.ok:
                return NotificationResult(
                    success=False,
                    channel="slack",
                    error=f"HTTP {response.status_code}: {response.text}",
                )

            # Slack answers 200 with ok=false for API-level failures
            body = response.json()
            if not body.get("ok", False):
                return NotificationResult(
                    success=False,
                    channel="slack",
                    error=f"Slack API error: {body.get('error', 'unknown')}",
                )

            return NotificationResult(success=True, channel="slack")

        except requests.exceptions.ConnectionError as e:
            return NotificationResult(
                success=False,
                channel="slack",
                error=f"Connection error: {str(e)}",
            )
        except Exception as e:
            return NotificationResult(
                success=False,
                channel="slack",
                error=str(e),
            )

    def _post_message(self, token: str, message: str) -> requests.Response:
        """Call chat.postMessage with rate limit handling."""
        payload: dict[str, Any] = {"channel": self.channel, "text": message}
        headers = {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json; charset=utf-8",
        }

        response = requests.post(
            SLACK_POST_MESSAGE_URL,
            json=payload,
            headers=headers,
            timeout=self.timeout,
        )

        # Handle rate limiting
        if response.status_code == 429:
            retry_after = response.headers.get("Retry-After", "1")
            logger.warning(f"Slack rate limited, retrying after {retry_after}s")
            time.sleep(float(retry_after))
            response = requests.post(
                SLACK_POST_MESSAGE_URL,
                json=payload,
                headers=headers,
                timeout=self.timeout,
            )

        return response
