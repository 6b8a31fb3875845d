"""
Pytest configuration and shared fixtures.
"""

import json

import pytest
from unittest.mock import Mock
from pathlib import Path

from health_bot.notifiers.base import Notifier, NotificationResult


@pytest.fixture
def sample_bid():
    """Sample overdue bid as returned by the subgraph."""
    return {
        "id": "0x1-12345",
        "bidId": "12345",
        "borrowerAddress": "0xabc123def456",
        "principal": "1000000",
        "lendingToken": {
            "id": "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48",
            "symbol": "USDC",
            "decimals": 6,
        },
        "nextDueDate": "1704067200",
        "status": "Accepted",
    }


@pytest.fixture
def bids_response():
    """Build a mocked successful GraphQL HTTP response."""

    def _build(bids):
        response = Mock()
        response.ok = True
        response.status_code = 200
        response.text = json.dumps({"data": {"bids": bids}})
        return response

    return _build


@pytest.fixture
def mock_notifier():
    """Notifier double that always succeeds."""
    notifier = Mock(spec=Notifier)
    notifier.send.return_value = NotificationResult(success=True, channel="slack")
    return notifier


@pytest.fixture
def config_file(tmp_path: Path):
    """Two-endpoint config file with the ledger inside tmp_path."""
    ledger_path = tmp_path / "alerted_bids.txt"
    config_content = f"""
endpoints:
  - name: mainnet
    url: https://mainnet.example.com/graphql
    chain_id: 1
  - name: polygon
    url: https://polygon.example.com/graphql
    chain_id: 137
    auth_key: POLYGON_GRAPH_TOKEN

ledger:
  path: "{ledger_path}"

schedule:
  timezone: "America/New_York"

notifications:
  provider: slack
  slack:
    channel: "#webserver-alerts"
"""
    path = tmp_path / "config.yaml"
    path.write_text(config_content)
    return path
