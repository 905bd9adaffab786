"""
In-memory booking store with a conflict-checked create.

Stands in for the persistence layer's transactional write: the conflict
check and the insert happen under one lock, so of two callers racing for
the same slot only the first succeeds.
"""

import asyncio
import logging
import uuid
from dataclasses import replace
from typing import Dict, Iterable, List, Optional

from pendulum import DateTime

from ..domain.conflicts import find_conflicts
from ..domain.exceptions import SlotNoLongerAvailableError
from ..domain.models import BookingStatus, CommittedBooking, TimeRange, as_utc

logger = logging.getLogger(__name__)


class InMemoryBookingStore:
    """Keeps committed bookings per coach in process memory."""

    def __init__(self, bookings: Optional[Dict[str, Iterable[CommittedBooking]]] = None):
        self._bookings: Dict[str, List[CommittedBooking]] = {
            coach_id: list(items) for coach_id, items in (bookings or {}).items()
        }
        self._lock = asyncio.Lock()

    def all_bookings(self, coach_id: str) -> List[CommittedBooking]:
        """Return a copy of every booking stored for a coach."""
        return list(self._bookings.get(coach_id, []))

    async def get_committed_bookings(
        self,
        coach_id: str,
        start: DateTime,
        end: DateTime,
    ) -> List[CommittedBooking]:
        """Return the coach's bookings overlapping [start, end)."""
        window_start, window_end = as_utc(start), as_utc(end)

        return [
            booking
            for booking in self._bookings.get(coach_id, [])
            if as_utc(booking.scheduled_start) < window_end
            and as_utc(booking.scheduled_end) > window_start
        ]

    async def create_booking(
        self,
        coach_id: str,
        interval: TimeRange,
        buffer_minutes: int,
        *,
        replaces: Optional[str] = None,
    ) -> CommittedBooking:
        """
        Insert a booking, or move ``replaces`` to the new interval.

        Raises:
            SlotNoLongerAvailableError: If the live booking set conflicts
            KeyError: If ``replaces`` names an unknown booking
        """
        async with self._lock:
            live = self._bookings.setdefault(coach_id, [])

            conflicts = find_conflicts(
                interval,
                buffer_minutes,
                live,
                exclude_booking_id=replaces,
            )
            if conflicts:
                logger.info(
                    "Slot %s for coach %s collides with %d booking(s)",
                    interval,
                    coach_id,
                    len(conflicts),
                )
                raise SlotNoLongerAvailableError("Time slot is not available")

            if replaces is not None:
                return self._move(live, replaces, interval, buffer_minutes)

            booking = CommittedBooking(
                scheduled_start=interval.start,
                scheduled_end=interval.end,
                status=BookingStatus.REQUESTED,
                buffer_minutes=buffer_minutes,
                booking_id=uuid.uuid4().hex,
            )
            live.append(booking)
            return booking

    @staticmethod
    def _move(
        live: List[CommittedBooking],
        booking_id: str,
        interval: TimeRange,
        buffer_minutes: int,
    ) -> CommittedBooking:
        for index, existing in enumerate(live):
            if existing.booking_id == booking_id:
                moved = replace(
                    existing,
                    scheduled_start=interval.start,
                    scheduled_end=interval.end,
                    buffer_minutes=buffer_minutes,
                )
                live[index] = moved
                return moved
        raise KeyError(f"Unknown booking: {booking_id}")
