"""
Durable record of bids that have already been alerted.
"""

import logging
from pathlib import Path

logger = logging.getLogger(__name__)


def make_alert_key(chain_id: int, bid_id: str) -> str:
    """Dedup identity of a bid: '<chainId>:<bidId>'."""
    return f"{chain_id}:{bid_id}"


class AlertLedger:
    """Append-only file of alert keys, one per line.

    The file is opened and closed for every operation. Only one process
    is expected to append to it.
    """

    def __init__(self, path: str):
        """
        Initialize ledger.

        Args:
            path: Path to the ledger file; created on first append
        """
        self.path = Path(path)

    def load(self) -> set[str]:
        """Read every recorded key. A missing file is an empty ledger."""
        if not self.path.exists():
            return set()

        keys = set()
        with open(self.path, "rb") as f:
            for line_number, raw in enumerate(f, start=1):
                try:
                    key = raw.decode("utf-8").strip()
                except UnicodeDecodeError:
                    logger.warning(f"Skipping undecodable line {line_number} in {self.path}")
                    continue
                if key:
                    keys.add(key)
        return keys

    def append(self, key: str) -> None:
        """Record one key without touching existing entries."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "a", encoding="utf-8") as f:
            f.write(f"{key}\n")
        logger.debug(f"Recorded {key} in {self.path}")

    def contains(self, key: str) -> bool:
        """Check whether a key has been recorded."""
        return key in self.load()
