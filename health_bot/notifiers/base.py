"""
Base notifier classes.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Any

logger = logging.getLogger(__name__)


@dataclass
class NotificationResult:
    """Result of a notification attempt."""

    success: bool
    channel: str
    error: Optional[str] = None


class Notifier(ABC):
    """Abstract base class for notifiers."""

    @abstractmethod
    def send(self, message: str) -> NotificationResult:
        """
        Send a single text message.

        Implementations report failures in the result and never raise.

        Args:
            message: Text to deliver

        Returns:
            NotificationResult indicating success or failure
        """
        pass


class DryRunNotifier(Notifier):
    """Logs messages instead of delivering them."""

    def send(self, message: str) -> NotificationResult:
        logger.info(f"[dry-run] would send:\n{message}")
        return NotificationResult(success=True, channel="dry-run")


class NotifierFactory:
    """Factory for creating notifier instances."""

    @staticmethod
    def create(config: dict[str, Any]) -> Notifier:
        """
        Create a notifier from configuration.

        Args:
            config: Notifier configuration dict

        Returns:
            Appropriate Notifier instance

        Raises:
            ValueError: If notifier type is unknown
        """
        notifier_type = config.get("type")

        if notifier_type == "slack":
            from .slack import SlackNotifier

            return SlackNotifier(
                channel=config.get("channel", "#webserver-alerts"),
                token_env=config.get("token_env", "SLACK_OAUTH_TOKEN"),
                timeout=config.get("timeout", 10),
            )

        elif notifier_type == "discord":
            from .discord import DiscordNotifier

            return DiscordNotifier(
                webhook_url=config.get("webhook_url", ""),
                timeout=config.get("timeout", 10),
            )

        elif notifier_type == "dry-run":
            return DryRunNotifier()

        else:
            raise ValueError(f"Unknown notifier type: {notifier_type}")
