"""
Round-robin endpoint rotation.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Optional

from health_bot.config import EndpointDescriptor

logger = logging.getLogger(__name__)


@dataclass
class RotationCursor:
    """Index of the endpoint to query on the next tick."""

    index: int = 0


class EndpointRotator:
    """Selects one endpoint per tick and advances through the list."""

    def __init__(self, cursor: Optional[RotationCursor] = None):
        self.cursor = cursor or RotationCursor()
        # Held for the whole tick; only one cycle may read-then-advance.
        self.lock = threading.Lock()

    @staticmethod
    def current(
        cursor: RotationCursor, endpoints: list[EndpointDescriptor]
    ) -> Optional[EndpointDescriptor]:
        """Return the endpoint at the cursor, or None if there is none."""
        if not endpoints or not 0 <= cursor.index < len(endpoints):
            return None
        return endpoints[cursor.index]

    @staticmethod
    def advance(cursor: RotationCursor, endpoint_count: int) -> RotationCursor:
        """Return the cursor for the next tick, wrapping to 0."""
        next_index = cursor.index + 1
        if next_index >= endpoint_count:
            next_index = 0
        return RotationCursor(index=next_index)

    def select(
        self, endpoints: list[EndpointDescriptor]
    ) -> Optional[EndpointDescriptor]:
        """
        Pick the endpoint for this tick.

        Resets the cursor to 0 if the endpoint list shrank below it.

        Args:
            endpoints: Endpoint list loaded for this tick

        Returns:
            The endpoint to query, or None when no endpoints are configured
        """
        if endpoints and self.cursor.index >= len(endpoints):
            logger.info(
                f"Endpoint list shrank to {len(endpoints)}, "
                f"resetting cursor from {self.cursor.index} to 0"
            )
            self.cursor = RotationCursor(index=0)
        return self.current(self.cursor, endpoints)

    def step(self, endpoint_count: int) -> None:
        """Advance the shared cursor by one position."""
        self.cursor = self.advance(self.cursor, endpoint_count)
