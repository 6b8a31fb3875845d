"""
Main application entry point.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional

from dotenv import load_dotenv

load_dotenv()

import yaml

from health_bot.config import (
    AppConfig,
    ConfigValidationError,
    EndpointDescriptor,
    load_config,
    load_endpoints,
)
from health_bot.rotation import EndpointRotator
from health_bot.data.fetcher import GraphQLFetcher, QueryStatus
from health_bot.alerts.formatter import (
    OverdueRecord,
    format_bid_alert,
    format_endpoint_failure,
    local_timestamp,
)
from health_bot.alerts.ledger import AlertLedger, make_alert_key
from health_bot.notifiers.base import DryRunNotifier, Notifier, NotifierFactory
from health_bot.scheduler import Scheduler

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class CycleReport:
    """What one tick did."""

    endpoint: Optional[EndpointDescriptor] = None
    status: Optional[QueryStatus] = None
    alerts_sent: int = 0
    skipped: int = 0
    delivery_failures: int = 0


def build_notifier(config: AppConfig, dry_run: bool = False) -> Notifier:
    """Create the notifier selected in configuration."""
    if dry_run:
        return DryRunNotifier()

    notifications = config.notifications
    timeout = config.advanced.request_timeout_seconds
    if notifications.provider == "discord":
        return NotifierFactory.create({
            "type": "discord",
            "webhook_url": notifications.discord.webhook_url,
            "timeout": timeout,
        })
    return NotifierFactory.create({
        "type": "slack",
        "channel": notifications.slack.channel,
        "token_env": notifications.slack.token_env,
        "timeout": timeout,
    })


class HealthCheckCycle:
    """Runs one health-check tick against the next endpoint in rotation."""

    def __init__(
        self,
        config_path: str,
        notifier: Notifier,
        ledger: AlertLedger,
        rotator: Optional[EndpointRotator] = None,
        fetcher: Optional[GraphQLFetcher] = None,
        timezone_name: str = "America/New_York",
        clock: Callable[[], datetime] = _utc_now,
        dry_run: bool = False,
    ):
        """
        Initialize the cycle.

        Args:
            config_path: Config file the endpoint list is re-read from each tick
            notifier: Where alerts and warnings are sent
            ledger: Record of bids already alerted
            rotator: Shared endpoint rotation state
            fetcher: GraphQL client
            timezone_name: Zone used for message timestamps
            clock: Returns the current aware datetime
            dry_run: Log alerts without recording them in the ledger
        """
        self.config_path = config_path
        self.notifier = notifier
        self.ledger = ledger
        self.rotator = rotator or EndpointRotator()
        self.fetcher = fetcher or GraphQLFetcher()
        self.timezone_name = timezone_name
        self.clock = clock
        self.dry_run = dry_run

    @classmethod
    def from_config(
        cls, config_path: str, config: AppConfig, dry_run: bool = False
    ) -> "HealthCheckCycle":
        """Wire a cycle from loaded application configuration."""
        return cls(
            config_path=config_path,
            notifier=build_notifier(config, dry_run=dry_run),
            ledger=AlertLedger(config.ledger.path),
            fetcher=GraphQLFetcher(timeout=config.advanced.request_timeout_seconds),
            timezone_name=config.schedule.timezone,
            dry_run=dry_run,
        )

    def run(self) -> CycleReport:
        """Run one tick. Only one tick may be in flight at a time."""
        with self.rotator.lock:
            return self._run_tick()

    def _run_tick(self) -> CycleReport:
        report = CycleReport()

        try:
            endpoints = load_endpoints(self.config_path)
        except (ConfigValidationError, OSError, UnicodeDecodeError, yaml.YAMLError) as e:
            logger.error(f"Skipping tick, failed to load endpoints: {e}")
            return report

        endpoint = self.rotator.select(endpoints)
        if endpoint is None:
            logger.warning("No endpoints configured, nothing to check")
            return report

        report.endpoint = endpoint
        logger.info(
            f"Querying endpoint {self.rotator.cursor.index}: "
            f"{endpoint.name} {endpoint.url}"
        )

        try:
            self._check_endpoint(endpoint, report)
        except Exception as e:
            logger.error(f"Error checking {endpoint.name}: {e}")
        finally:
            # Advance even on failure so a broken endpoint cannot starve the rest
            self.rotator.step(len(endpoints))

        return report

    def _check_endpoint(self, endpoint: EndpointDescriptor, report: CycleReport) -> None:
        """Query one endpoint and act on the result."""
        now_ts = int(self.clock().timestamp())
        result = self.fetcher.fetch_overdue_bids(endpoint, now_ts)
        report.status = result.status

        if result.status == QueryStatus.TRANSPORT_ERROR:
            logger.error(f"✗ Failed to query endpoint {endpoint.url}: {result.detail}")
        elif result.status == QueryStatus.APPLICATION_ERROR:
            logger.error(f"✗ GraphQL query returned errors for endpoint: {endpoint.url}")
            logger.error(f"Response: {result.detail}")

        if result.failed:
            timestamp = local_timestamp(self.clock(), self.timezone_name)
            message = format_endpoint_failure(endpoint, timestamp, result.detail)
            if not self._notify(message):
                report.delivery_failures += 1
            return

        logger.info(f"✓ Successfully queried endpoint: {endpoint.url}")
        self._handle_bids(endpoint, result.bids, report)

    def _handle_bids(
        self, endpoint: EndpointDescriptor, bids: list, report: CycleReport
    ) -> None:
        """Alert on every bid not already in the ledger, in query order."""
        if not bids:
            logger.info("No overdue bids found.")
            return

        logger.info(f"Found {len(bids)} overdue bid(s), checking for new alerts...")
        timestamp = local_timestamp(self.clock(), self.timezone_name)
        alerted = self.ledger.load()

        for bid in bids:
            record = OverdueRecord.from_bid(bid, endpoint.chain_id)
            key = make_alert_key(record.chain_id, record.bid_id)

            if key in alerted:
                logger.info(
                    f"Bid {record.bid_id} on chain {record.chain_id} "
                    f"already alerted, skipping."
                )
                report.skipped += 1
                continue

            delivered = self._notify(format_bid_alert(record, timestamp))
            if delivered:
                report.alerts_sent += 1
            else:
                report.delivery_failures += 1

            # Recorded after the send attempt, delivered or not
            if not self.dry_run:
                self.ledger.append(key)
            alerted.add(key)

    def _notify(self, message: str) -> bool:
        """Send a message; failures are logged, never retried."""
        result = self.notifier.send(message)
        if result.success:
            logger.info(f"Alert sent via {result.channel}")
        else:
            logger.error(f"Failed to send alert via {result.channel}: {result.error}")
        return result.success


def main():
    """CLI entry point."""
    import argparse

    parser = argparse.ArgumentParser(description="GraphQL endpoint health bot")
    parser.add_argument(
        "--config", default="config.yaml", help="Path to config file"
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug mode")
    parser.add_argument(
        "--dry-run", action="store_true", help="Run without sending notifications"
    )
    parser.add_argument(
        "--once", action="store_true", help="Run a single check and exit"
    )

    args = parser.parse_args()

    # Setup logging
    log_level = logging.DEBUG if args.debug else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    # Load config
    config = load_config(args.config)
    if not args.debug:
        logging.getLogger().setLevel(config.advanced.log_level.upper())

    cycle = HealthCheckCycle.from_config(args.config, config, dry_run=args.dry_run)

    if args.dry_run:
        logger.info("Dry run mode - no notifications will be sent")

    if args.once:
        cycle.run()
        return

    logger.info("Starting periodic health checks ...")
    scheduler = Scheduler(cycle.run)
    try:
        scheduler.start()
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
        scheduler.stop()


if __name__ == "__main__":
    main()
