"""
Alert message formatting.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any
from zoneinfo import ZoneInfo

from health_bot.config import EndpointDescriptor

UNKNOWN = "unknown"


def _text(value: Any) -> str:
    """Coerce a JSON scalar to text, or the unknown sentinel."""
    if isinstance(value, str):
        return value
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return UNKNOWN


def _decimals(value: Any) -> int:
    """Parse token decimals from an int or numeric string, defaulting to 0."""
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value if value >= 0 else 0
    if isinstance(value, str):
        try:
            parsed = int(value.strip())
        except ValueError:
            return 0
        return parsed if parsed >= 0 else 0
    return 0


@dataclass(frozen=True)
class OverdueRecord:
    """An overdue bid with every field filled in."""

    bid_id: str
    chain_id: int
    borrower_address: str
    principal_raw: str
    lending_token_symbol: str
    lending_token_decimals: int
    next_due_date: str
    status: str

    @classmethod
    def from_bid(cls, bid: Any, chain_id: int) -> "OverdueRecord":
        """
        Decode a raw bid object, substituting defaults for anything missing.

        Args:
            bid: One element of ``data.bids`` (any JSON value)
            chain_id: Chain id of the endpoint the bid came from

        Returns:
            OverdueRecord
        """
        if not isinstance(bid, dict):
            bid = {}
        token = bid.get("lendingToken")
        if not isinstance(token, dict):
            token = {}

        principal = bid.get("principal")
        return cls(
            bid_id=_text(bid.get("bidId")),
            chain_id=chain_id,
            borrower_address=_text(bid.get("borrowerAddress")),
            principal_raw=_text(principal) if principal is not None else "0",
            lending_token_symbol=_text(token.get("symbol")),
            lending_token_decimals=_decimals(token.get("decimals")),
            next_due_date=_text(bid.get("nextDueDate")),
            status=_text(bid.get("status")),
        )

    @property
    def principal_amount(self) -> str:
        """Principal scaled by token decimals, to two places."""
        try:
            raw = Decimal(self.principal_raw)
            if not raw.is_finite():
                raw = Decimal(0)
            amount = raw / (Decimal(10) ** self.lending_token_decimals)
        except ArithmeticError:
            amount = Decimal(0)
        return f"{amount:.2f}"


def local_timestamp(now: datetime, timezone: str = "America/New_York") -> str:
    """Render an aware datetime in the given zone, e.g. '2024-01-01 12:00:00 EST'."""
    return now.astimezone(ZoneInfo(timezone)).strftime("%Y-%m-%d %H:%M:%S %Z")


def format_bid_alert(record: OverdueRecord, timestamp: str) -> str:
    """Format the overdue loan alert for one bid."""
    return (
        "🚨 Overdue Loan Alert!\n"
        f"Timestamp: {timestamp}\n"
        f"Chain ID: {record.chain_id}\n"
        f"Bid ID: {record.bid_id}\n"
        f"Borrower: {record.borrower_address}\n"
        f"Principal Token: {record.lending_token_symbol}\n"
        f"Principal Amount: {record.principal_amount}\n"
        f"Next Due Date: {record.next_due_date}\n"
        f"Status: {record.status}"
    )


def format_endpoint_failure(
    endpoint: EndpointDescriptor, timestamp: str, detail: str
) -> str:
    """Format the warning sent when an endpoint query fails."""
    return (
        "⚠️ GraphQL Endpoint Failed!\n"
        f"Timestamp: {timestamp}\n"
        f"Endpoint: {endpoint.name} {endpoint.url}\n"
        f"Error: {detail}"
    )
