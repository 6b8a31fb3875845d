"""
Configuration loading and validation.
"""

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml


class ConfigValidationError(Exception):
    """Raised when configuration is invalid."""

    pass


@dataclass(frozen=True)
class EndpointDescriptor:
    """A GraphQL endpoint to health-check."""

    name: str
    url: str
    chain_id: int
    auth_key: Optional[str] = None  # name of env var holding a bearer token


@dataclass
class LedgerConfig:
    """Alert ledger configuration."""

    path: str = "alerted_bids.txt"


@dataclass
class ScheduleConfig:
    """Schedule configuration."""

    timezone: str = "America/New_York"


@dataclass
class SlackNotificationConfig:
    """Slack notification settings."""

    channel: str = "#webserver-alerts"
    token_env: str = "SLACK_OAUTH_TOKEN"


@dataclass
class DiscordNotificationConfig:
    """Discord notification settings."""

    webhook_url: str = ""


@dataclass
class NotificationsConfig:
    """Notifications configuration."""

    provider: str = "slack"
    slack: SlackNotificationConfig = field(default_factory=SlackNotificationConfig)
    discord: DiscordNotificationConfig = field(
        default_factory=DiscordNotificationConfig
    )


@dataclass
class AdvancedConfig:
    """Advanced configuration."""

    log_level: str = "INFO"
    request_timeout_seconds: int = 30


@dataclass
class AppConfig:
    """Main application configuration."""

    ledger: LedgerConfig = field(default_factory=LedgerConfig)
    schedule: ScheduleConfig = field(default_factory=ScheduleConfig)
    notifications: NotificationsConfig = field(default_factory=NotificationsConfig)
    advanced: AdvancedConfig = field(default_factory=AdvancedConfig)


def _substitute_env_vars(value: Any) -> Any:
    """Substitute environment variables in string values."""
    if isinstance(value, str):
        # Match ${VAR_NAME} pattern
        pattern = r"\$\{([^}]+)\}"
        matches = re.findall(pattern, value)
        for var_name in matches:
            env_value = os.environ.get(var_name, "")
            value = value.replace(f"${{{var_name}}}", env_value)
        return value
    elif isinstance(value, dict):
        return {k: _substitute_env_vars(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [_substitute_env_vars(item) for item in value]
    return value


def _read_yaml(config_path: str) -> dict[str, Any]:
    """Read a YAML file and substitute environment variables."""
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(path, encoding="utf-8") as f:
        raw_config = yaml.safe_load(f) or {}

    if not isinstance(raw_config, dict):
        raise ConfigValidationError("Configuration root must be a mapping")

    return _substitute_env_vars(raw_config)


def _validate_timezone(timezone: str) -> None:
    """Validate timezone string."""
    if not timezone:
        raise ConfigValidationError("Timezone cannot be empty")
    try:
        ZoneInfo(timezone)
    except (ZoneInfoNotFoundError, ValueError):
        raise ConfigValidationError(f"Unknown timezone: {timezone}")


def _validate_config(config_dict: dict[str, Any]) -> None:
    """Validate configuration values."""
    ledger = config_dict.get("ledger") or {}
    ledger_path = ledger.get("path", LedgerConfig.path)
    if not ledger_path:
        raise ConfigValidationError("Ledger path cannot be empty")

    parent = Path(ledger_path).parent
    if parent.exists() and not os.access(parent, os.W_OK):
        raise ConfigValidationError(f"Ledger path not writable: {parent}")

    schedule = config_dict.get("schedule") or {}
    _validate_timezone(schedule.get("timezone", ScheduleConfig.timezone))

    notifications = config_dict.get("notifications") or {}
    provider = notifications.get("provider", NotificationsConfig.provider)
    if provider not in ("slack", "discord"):
        raise ConfigValidationError(f"Unknown notification provider: {provider}")


def _parse_endpoint(position: int, entry: Any) -> EndpointDescriptor:
    """Build an EndpointDescriptor from one raw config entry."""
    if not isinstance(entry, dict):
        raise ConfigValidationError(f"Endpoint #{position} must be a mapping")

    name = entry.get("name")
    url = entry.get("url")
    chain_id = entry.get("chain_id")
    auth_key = entry.get("auth_key")

    if not isinstance(name, str) or not name:
        raise ConfigValidationError(f"Endpoint #{position} is missing a name")
    if not isinstance(url, str) or not url:
        raise ConfigValidationError(f"Endpoint '{name}' is missing a url")
    if isinstance(chain_id, bool) or not isinstance(chain_id, int):
        raise ConfigValidationError(
            f"Endpoint '{name}' chain_id must be an integer, got {chain_id!r}"
        )
    if auth_key is not None and not isinstance(auth_key, str):
        raise ConfigValidationError(f"Endpoint '{name}' auth_key must be a string")

    return EndpointDescriptor(
        name=name,
        url=url,
        chain_id=chain_id,
        auth_key=auth_key or None,
    )


def load_endpoints(config_path: str) -> list[EndpointDescriptor]:
    """
    Load the ordered endpoint list.

    Called on every tick so edits to the file take effect without a restart.

    Args:
        config_path: Path to configuration file

    Returns:
        Endpoint descriptors in file order (possibly empty)

    Raises:
        ConfigValidationError: If the endpoints section is missing or malformed
        FileNotFoundError: If config file doesn't exist
    """
    config_dict = _read_yaml(config_path)

    if "endpoints" not in config_dict:
        raise ConfigValidationError("Configuration has no 'endpoints' section")

    entries = config_dict["endpoints"] or []
    if not isinstance(entries, list):
        raise ConfigValidationError("'endpoints' must be a list")

    return [_parse_endpoint(i, entry) for i, entry in enumerate(entries)]


def load_config(config_path: str) -> AppConfig:
    """
    Load configuration from YAML file.

    Args:
        config_path: Path to configuration file

    Returns:
        AppConfig instance

    Raises:
        ConfigValidationError: If configuration is invalid
        FileNotFoundError: If config file doesn't exist
    """
    config_dict = _read_yaml(config_path)

    # Validate
    _validate_config(config_dict)

    # Build config objects
    ledger = LedgerConfig(**(config_dict.get("ledger") or {}))
    schedule = ScheduleConfig(**(config_dict.get("schedule") or {}))

    # Notifications
    notif_dict = config_dict.get("notifications") or {}
    notifications = NotificationsConfig(
        provider=notif_dict.get("provider", "slack"),
        slack=SlackNotificationConfig(**(notif_dict.get("slack") or {})),
        discord=DiscordNotificationConfig(**(notif_dict.get("discord") or {})),
    )

    # Advanced
    advanced = AdvancedConfig(**(config_dict.get("advanced") or {}))

    return AppConfig(
        ledger=ledger,
        schedule=schedule,
        notifications=notifications,
        advanced=advanced,
    )
