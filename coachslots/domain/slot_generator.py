"""
Core business logic for generating bookable slot start times.

Pure domain logic: no API calls, no database, no clock reads. Callers pass
everything in, including "now" when past slots must be hidden.
"""

import logging
from datetime import date, datetime
from typing import Iterable, List, Optional

from pendulum import DateTime

from .availability import window_bounds
from .conflicts import blocking_intervals, normalize_buffer, overlaps
from .models import AvailabilityWindow, CandidateSlot, CommittedBooking, TimeRange, WallClock, as_utc
from .timezones import (
    MINUTES_PER_DAY,
    day_bounds,
    format_minutes,
    get_timezone,
    iso_date,
    localize,
    to_utc,
)

logger = logging.getLogger(__name__)

# Product decision: slots start on :00/:30 regardless of session length.
SLOT_GRANULARITY_MINUTES = 30


class SlotGenerator:
    """
    Generates conflict-free slot start times inside an availability window.

    Algorithm:
    1. Convert the window to minutes since midnight (closed/malformed -> no slots)
    2. Step candidate starts on the granularity grid up to ``end - session``
    3. Build each candidate's UTC interval in the coach timezone, skipping
       wall times that do not exist that day and sessions that would run
       past the window's real closing instant
    4. Drop candidates colliding with a requested/confirmed booking once
       both buffers are applied
    5. Emit the survivors in ascending order as "HH:mm"
    """

    def __init__(self, granularity_minutes: int = SLOT_GRANULARITY_MINUTES):
        if granularity_minutes <= 0:
            raise ValueError(f"granularity_minutes must be positive, got {granularity_minutes}")
        self.granularity_minutes = granularity_minutes

    def generate(
        self,
        day: date | str,
        window: AvailabilityWindow,
        committed_bookings: Iterable[CommittedBooking],
        session_minutes: int,
        buffer_minutes: int = 0,
        *,
        timezone: str,
        not_before: Optional[datetime] = None,
        exclude_booking_id: Optional[str] = None,
    ) -> List[str]:
        """
        Return ordered "HH:mm" start times (coach-local) that can be booked.

        Args:
            day: Calendar date in the coach's calendar
            window: Effective window from the availability resolver
            committed_bookings: Snapshot of the coach's bookings (may be a superset)
            session_minutes: Length of the session being booked
            buffer_minutes: Gap the new session requires on both sides
            timezone: Coach IANA timezone
            not_before: Hide slots starting before this instant
            exclude_booking_id: Booking being rescheduled, ignored for conflicts

        Returns:
            List of "HH:mm" strings; empty when nothing fits
        """
        return [
            slot.start_time
            for slot in self.generate_candidates(
                day,
                window,
                committed_bookings,
                session_minutes,
                buffer_minutes,
                timezone=timezone,
                not_before=not_before,
                exclude_booking_id=exclude_booking_id,
            )
        ]

    def generate_candidates(
        self,
        day: date | str,
        window: AvailabilityWindow,
        committed_bookings: Iterable[CommittedBooking],
        session_minutes: int,
        buffer_minutes: int = 0,
        *,
        timezone: str,
        not_before: Optional[datetime] = None,
        exclude_booking_id: Optional[str] = None,
    ) -> List[CandidateSlot]:
        """Same as ``generate`` but returns CandidateSlot objects."""
        # Unknown zones must fail even on closed days.
        get_timezone(timezone)

        bounds = window_bounds(window)
        if bounds is None:
            return []

        if session_minutes <= 0:
            logger.warning("Non-positive session length %s; no slots generated", session_minutes)
            return []

        window_start, window_end = bounds
        last_start = window_end - session_minutes
        if last_start < window_start:
            return []

        buffer = normalize_buffer(buffer_minutes)
        date_key = iso_date(day)
        blocking = self._blocking_for_day(
            date_key, timezone, committed_bookings, buffer, exclude_booking_id
        )
        cutoff = as_utc(not_before) if not_before is not None else None
        closes_at = self._window_close(date_key, window_end, timezone)

        slots: List[CandidateSlot] = []

        for start in range(self._align(window_start), last_start + 1, self.granularity_minutes):
            start_time = format_minutes(start)
            candidate = self._candidate_interval(date_key, start, session_minutes, timezone)

            # Wall times skipped by a DST jump would alias an earlier slot
            if localize(candidate.start, timezone) != WallClock(date=date_key, time=start_time):
                continue

            if candidate.end > closes_at:
                continue

            if cutoff is not None and candidate.start < cutoff:
                continue

            if any(
                overlaps(candidate, buffer, booked, booked_buffer)
                for booked, booked_buffer in blocking
            ):
                continue

            end_local = localize(candidate.end, timezone)
            end_time = end_local.time if end_local.date == date_key else format_minutes(MINUTES_PER_DAY)
            slots.append(CandidateSlot(date=date_key, start_time=start_time, end_time=end_time))

        logger.debug("Generated %d slot(s) for %s", len(slots), date_key)
        return slots

    def _align(self, minutes: int) -> int:
        """Round up to the next granularity boundary."""
        step = self.granularity_minutes
        return -(-minutes // step) * step

    @staticmethod
    def _window_close(date_key: str, window_end: int, timezone: str) -> DateTime:
        """UTC instant at which the window closes on ``date_key``."""
        if window_end >= MINUTES_PER_DAY:
            return day_bounds(date_key, timezone)[1]
        return to_utc(date_key, format_minutes(window_end), timezone)

    @staticmethod
    def _candidate_interval(
        date_key: str,
        start_minutes: int,
        session_minutes: int,
        timezone: str,
    ) -> TimeRange:
        start: DateTime = to_utc(date_key, format_minutes(start_minutes), timezone)
        return TimeRange(start=start, end=start.add(minutes=session_minutes))

    @staticmethod
    def _blocking_for_day(
        date_key: str,
        timezone: str,
        bookings: Iterable[CommittedBooking],
        buffer: int,
        exclude_booking_id: Optional[str],
    ) -> List[tuple[TimeRange, int]]:
        """
        Keep only the blocking bookings that can reach the queried day.

        Candidates never leave the queried day, so the result is unchanged.
        """
        day_start, day_end = day_bounds(date_key, timezone)
        whole_day = TimeRange(start=day_start, end=day_end)

        return [
            (booked, booked_buffer)
            for _, booked, booked_buffer in blocking_intervals(
                bookings, exclude_booking_id=exclude_booking_id
            )
            if overlaps(whole_day, buffer, booked, booked_buffer)
        ]


def generate(
    day: date | str,
    window: AvailabilityWindow,
    committed_bookings: Iterable[CommittedBooking],
    session_minutes: int,
    buffer_minutes: int = 0,
    *,
    timezone: str,
    granularity_minutes: int = SLOT_GRANULARITY_MINUTES,
    not_before: Optional[datetime] = None,
    exclude_booking_id: Optional[str] = None,
) -> List[str]:
    """Module-level shortcut for ``SlotGenerator(granularity_minutes).generate(...)``."""
    return SlotGenerator(granularity_minutes=granularity_minutes).generate(
        day,
        window,
        committed_bookings,
        session_minutes,
        buffer_minutes,
        timezone=timezone,
        not_before=not_before,
        exclude_booking_id=exclude_booking_id,
    )
