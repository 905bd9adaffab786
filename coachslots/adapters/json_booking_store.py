"""
Read-only booking snapshot loaded from a JSON export.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List

import pendulum
from pendulum import DateTime

from ..domain.models import BookingStatus, CommittedBooking, as_utc

logger = logging.getLogger(__name__)


class JsonBookingStore:
    """
    Booking source backed by a JSON file.

    Expected format is a list of records using the document-store field
    names::

        [
            {
                "id": "b1",
                "coachId": "coach-1",
                "scheduledStart": "2024-11-26T10:00:00Z",
                "scheduledEnd": "2024-11-26T10:30:00Z",
                "status": "confirmed",
                "bufferMinutes": 15
            }
        ]
    """

    def __init__(self, data_file: Path):
        """
        Initialize the store.

        Args:
            data_file: Path to the JSON export

        Raises:
            FileNotFoundError: If the file doesn't exist
            ValueError: If the file is not a JSON list
        """
        self.data_file = data_file
        self.records = self._load_records()

    def _load_records(self) -> List[Dict[str, Any]]:
        if not self.data_file.exists():
            raise FileNotFoundError(f"Booking file not found: {self.data_file}")

        try:
            with open(self.data_file, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as exc:
            raise ValueError(f"Invalid JSON in {self.data_file}: {exc}") from exc

        if not isinstance(data, list):
            raise ValueError("Booking file must contain a list of bookings.")

        return data

    def bookings_for(self, coach_id: str) -> List[CommittedBooking]:
        """Parse all bookings of a coach, skipping records that cannot be read."""
        bookings: List[CommittedBooking] = []

        for record in self.records:
            if coach_id and record.get("coachId", coach_id) != coach_id:
                continue

            try:
                bookings.append(self._parse_record(record))
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning("Skipping unreadable booking record %s: %s", record.get("id"), exc)

        return bookings

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
            for booking in self.bookings_for(coach_id)
            if as_utc(booking.scheduled_start) < window_end
            and as_utc(booking.scheduled_end) > window_start
        ]

    @staticmethod
    def _parse_record(record: Dict[str, Any]) -> CommittedBooking:
        start = pendulum.parse(record["scheduledStart"], tz="UTC")
        end = pendulum.parse(record["scheduledEnd"], tz="UTC")
        if not isinstance(start, DateTime) or not isinstance(end, DateTime):
            raise ValueError("scheduledStart/scheduledEnd must be date-times")

        status = record.get("status", BookingStatus.REQUESTED.value)

        return CommittedBooking(
            scheduled_start=start,
            scheduled_end=end,
            status=BookingStatus.parse(status) or status,
            buffer_minutes=int(record.get("bufferMinutes") or 0),
            booking_id=record.get("id"),
        )
