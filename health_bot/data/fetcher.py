"""
GraphQL fetcher for overdue bids.
"""

import json
import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

import requests

from health_bot.config import EndpointDescriptor

logger = logging.getLogger(__name__)

# Bids due within this many seconds before now count as overdue
LOOKBACK_SECONDS = 86400
MAX_BIDS = 5
ACCEPTED_STATUS = "Accepted"


class QueryStatus(Enum):
    """Classification of one endpoint query."""

    TRANSPORT_ERROR = "transport_error"
    APPLICATION_ERROR = "application_error"
    SUCCESS = "success"


@dataclass
class QueryResult:
    """Outcome of querying one endpoint."""

    status: QueryStatus
    bids: list[Any] = field(default_factory=list)
    detail: str = ""

    @property
    def failed(self) -> bool:
        """Whether the endpoint should be reported as failing."""
        return self.status != QueryStatus.SUCCESS


def build_overdue_bids_query(now_ts: int) -> str:
    """
    Build the GraphQL query for recently overdue accepted bids.

    Args:
        now_ts: Current time as integer epoch seconds

    Returns:
        GraphQL query string
    """
    window_start = now_ts - LOOKBACK_SECONDS
    return f"""
{{
  bids(
    where: {{
      nextDueDate_lt: "{now_ts}",
      nextDueDate_gt: "{window_start}",
      status: "{ACCEPTED_STATUS}"
    }}
    first: {MAX_BIDS}
  ) {{
    id
    bidId
    nextDueDate
    borrowerAddress
    status
    principal
    lendingToken {{
      id
      symbol
      decimals
    }}
  }}
}}
"""


def classify_response(body: str) -> QueryResult:
    """
    Classify a raw GraphQL response body.

    Any top-level ``errors`` field, even null or empty, is an application
    error. Anything else is a success; a body that is not a JSON object,
    or has no ``data.bids`` list, yields zero bids.

    Args:
        body: Raw response text

    Returns:
        QueryResult with status and extracted bids
    """
    try:
        payload = json.loads(body)
    except ValueError:
        logger.warning(f"Response is not valid JSON, treating as no bids: {body[:200]}")
        return QueryResult(status=QueryStatus.SUCCESS)

    if not isinstance(payload, dict):
        return QueryResult(status=QueryStatus.SUCCESS)

    if "errors" in payload:
        return QueryResult(status=QueryStatus.APPLICATION_ERROR, detail=body)

    data = payload.get("data")
    bids = data.get("bids") if isinstance(data, dict) else None
    if not isinstance(bids, list):
        bids = []

    return QueryResult(status=QueryStatus.SUCCESS, bids=bids)


class GraphQLFetcher:
    """Posts the overdue-bids query to an endpoint."""

    def __init__(self, timeout: float = 30):
        self.timeout = timeout

    def fetch_overdue_bids(
        self, endpoint: EndpointDescriptor, now_ts: int
    ) -> QueryResult:
        """
        Query an endpoint for overdue bids.

        Network failures never raise; they come back as TRANSPORT_ERROR.

        Args:
            endpoint: Endpoint to query
            now_ts: Current time as integer epoch seconds

        Returns:
            Classified QueryResult
        """
        query = build_overdue_bids_query(now_ts)
        logger.debug(f"Query body for {endpoint.name}: {query}")

        try:
            body = self._post(endpoint.url, query, self._resolve_token(endpoint))
        except requests.RequestException as e:
            return QueryResult(status=QueryStatus.TRANSPORT_ERROR, detail=str(e))

        return classify_response(body)

    def _resolve_token(self, endpoint: EndpointDescriptor) -> Optional[str]:
        """Read the endpoint's bearer token from the environment."""
        if not endpoint.auth_key:
            return None

        token = os.environ.get(endpoint.auth_key)
        if not token:
            logger.warning(
                f"auth_key '{endpoint.auth_key}' specified for {endpoint.name} "
                f"but environment variable is not set; sending unauthenticated"
            )
            return None

        logger.debug(f"Using authentication for {endpoint.name} with key: {endpoint.auth_key}")
        return token

    def _post(self, url: str, query: str, token: Optional[str]) -> str:
        """POST the query and return the raw response text."""
        headers = {"Content-Type": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"

        response = requests.post(
            url,
            json={"query": query},
            headers=headers,
            timeout=self.timeout,
        )
        if not response.ok:
            logger.warning(f"{url} answered HTTP {response.status_code}")
        return response.text
