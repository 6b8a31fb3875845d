"""
CLI commands for the health bot.
"""

import argparse
import logging
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

from health_bot.config import EndpointDescriptor, load_config, load_endpoints
from health_bot.alerts.ledger import AlertLedger, make_alert_key
from health_bot.main import CycleReport, HealthCheckCycle
from health_bot.rotation import EndpointRotator, RotationCursor


def list_endpoints(config_path: str) -> list[EndpointDescriptor]:
    """List configured endpoints in rotation order."""
    return load_endpoints(config_path)


def list_alerted(ledger_path: str) -> list[str]:
    """List ledger keys, sorted."""
    return sorted(AlertLedger(ledger_path).load())


def is_alerted(ledger_path: str, chain_id: int, bid_id: str) -> bool:
    """Check whether a bid has already been alerted."""
    return AlertLedger(ledger_path).contains(make_alert_key(chain_id, bid_id))


def run_check(
    config_path: str,
    index: Optional[int] = None,
    dry_run: bool = False,
) -> CycleReport:
    """Run a single health check, optionally starting at a given endpoint."""
    config = load_config(config_path)
    cycle = HealthCheckCycle.from_config(config_path, config, dry_run=dry_run)
    if index is not None:
        cycle.rotator = EndpointRotator(RotationCursor(index=index))
    return cycle.run()


def main():
    """CLI entry point."""
    parser = argparse.ArgumentParser(description="Health bot CLI")
    parser.add_argument("--config", default="config.yaml", help="Path to config file")

    subparsers = parser.add_subparsers(dest="command", help="Command")

    # Endpoint commands
    endpoints_parser = subparsers.add_parser("endpoints", help="Endpoint inspection")
    endpoints_subparsers = endpoints_parser.add_subparsers(dest="action")
    endpoints_subparsers.add_parser("list", help="List endpoints")

    # Ledger commands
    ledger_parser = subparsers.add_parser("ledger", help="Alert ledger inspection")
    ledger_subparsers = ledger_parser.add_subparsers(dest="action")
    ledger_subparsers.add_parser("list", help="List alerted bids")

    check_ledger_parser = ledger_subparsers.add_parser(
        "check", help="Check whether a bid was alerted"
    )
    check_ledger_parser.add_argument("--chain", type=int, required=True, help="Chain ID")
    check_ledger_parser.add_argument("--bid", required=True, help="Bid ID")

    # One-off check
    check_parser = subparsers.add_parser("check", help="Run one health check now")
    check_parser.add_argument("--index", type=int, help="Endpoint index to query")
    check_parser.add_argument(
        "--dry-run", action="store_true", help="Log alerts instead of sending"
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    # Handle commands
    if args.command == "endpoints":
        if args.action == "list":
            for i, endpoint in enumerate(list_endpoints(args.config)):
                auth = f", auth: {endpoint.auth_key}" if endpoint.auth_key else ""
                print(f"{i}: {endpoint.name} (chain {endpoint.chain_id}) {endpoint.url}{auth}")

    elif args.command == "ledger":
        ledger_path = load_config(args.config).ledger.path
        if args.action == "list":
            keys = list_alerted(ledger_path)
            for key in keys:
                print(key)
            print(f"{len(keys)} alerted bid(s)")
        elif args.action == "check":
            if is_alerted(ledger_path, args.chain, args.bid):
                print(f"Bid {args.bid} on chain {args.chain} was already alerted")
            else:
                print(f"Bid {args.bid} on chain {args.chain} has not been alerted")

    elif args.command == "check":
        report = run_check(args.config, index=args.index, dry_run=args.dry_run)
        if report.endpoint is None:
            print("No endpoint checked")
        else:
            status = report.status.value if report.status else "error"
            print(
                f"{report.endpoint.name}: {status}, "
                f"{report.alerts_sent} alert(s) sent, {report.skipped} skipped"
            )

    else:
        parser.print_help()


if __name__ == "__main__":
    main()
