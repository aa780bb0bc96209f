"""
In-memory booking sink.

In production, this would forward completed bookings to the studio's
scheduling backend or CRM. The engine only needs an object with
``emit(event)``; this ledger keeps events in memory and logs them.
"""

import logging
from typing import Optional, Protocol

from call_agent.schemas.booking_schema import BookingEvent

logger = logging.getLogger(__name__)


class BookingSink(Protocol):
    def emit(self, event: BookingEvent) -> None: ...


class BookingLedger:
    """Collects booking events, ignoring a repeated booking_id."""

    def __init__(self) -> None:
        self._bookings: dict[str, BookingEvent] = {}

    def emit(self, event: BookingEvent) -> None:
        if event.booking_id in self._bookings:
            logger.warning("Duplicate booking event ignored: %s", event.booking_id)
            return
        self._bookings[event.booking_id] = event
        logger.info(
            "Booking created: %s for %s (%s) on %s",
            event.booking_id,
            event.customer_name,
            event.service_id,
            event.slots.get("preferred_date", ""),
        )

    def get(self, booking_id: str) -> Optional[BookingEvent]:
        """Retrieve a booking by id."""
        return self._bookings.get(booking_id)

    def all(self) -> list[BookingEvent]:
        return list(self._bookings.values())

    def __len__(self) -> int:
        return len(self._bookings)

    def reset(self) -> None:
        """Clear all bookings. Used by test fixtures for isolation."""
        self._bookings.clear()
