"""
Collision rule between a candidate slot and committed bookings.

Both intervals are widened by their own buffer on both sides before the
standard half-open overlap test. A buffer on either party is enough to
force a gap between two bookings.
"""

import logging
from datetime import datetime
from typing import Iterable, List, Optional, Tuple

from .models import BookingStatus, CommittedBooking, SlotDecision, TimeRange, as_utc

logger = logging.getLogger(__name__)

CONFLICT_RELEVANT_STATUSES = frozenset({BookingStatus.REQUESTED, BookingStatus.CONFIRMED})


def normalize_buffer(minutes: Optional[int]) -> int:
    """Missing buffers count as zero; negative buffers are clamped to zero."""
    if minutes is None:
        return 0
    if minutes < 0:
        logger.warning("Negative buffer of %s minutes clamped to 0", minutes)
        return 0
    return int(minutes)


def is_conflict_relevant(status: BookingStatus | str) -> bool:
    """Only requested and confirmed bookings still occupy time."""
    parsed = BookingStatus.parse(status)
    if parsed is None:
        logger.warning("Unknown booking status %r; treating booking as blocking", status)
        return True
    return parsed in CONFLICT_RELEVANT_STATUSES


def overlaps(
    candidate: TimeRange,
    candidate_buffer: int,
    committed: TimeRange,
    committed_buffer: int,
) -> bool:
    """
    Check whether a candidate and a committed booking collide.

    Status agnostic: callers filter out bookings that no longer occupy time.
    """
    return candidate.widen(normalize_buffer(candidate_buffer)).overlaps(
        committed.widen(normalize_buffer(committed_buffer))
    )


def blocking_intervals(
    bookings: Iterable[CommittedBooking],
    *,
    exclude_booking_id: Optional[str] = None,
) -> List[Tuple[CommittedBooking, TimeRange, int]]:
    """
    Reduce a booking snapshot to the entries that block new slots.

    Returns (booking, UTC interval, buffer) triples. Bookings whose end is
    not after their start are logged and skipped.
    """
    blocking: List[Tuple[CommittedBooking, TimeRange, int]] = []

    for booking in bookings:
        if exclude_booking_id is not None and booking.booking_id == exclude_booking_id:
            continue
        if not is_conflict_relevant(booking.status):
            continue
        try:
            interval = booking.interval()
        except ValueError as exc:
            logger.warning("Skipping malformed booking %s: %s", booking.booking_id, exc)
            continue
        blocking.append((booking, interval, normalize_buffer(booking.buffer_minutes)))

    return blocking


def find_conflicts(
    interval: TimeRange,
    buffer_minutes: int,
    bookings: Iterable[CommittedBooking],
    *,
    exclude_booking_id: Optional[str] = None,
) -> List[CommittedBooking]:
    """Return every blocking booking that collides with ``interval``."""
    return [
        booking
        for booking, booked, booked_buffer in blocking_intervals(
            bookings, exclude_booking_id=exclude_booking_id
        )
        if overlaps(interval, buffer_minutes, booked, booked_buffer)
    ]


def validate_booking_slot(
    interval: TimeRange,
    bookings: Iterable[CommittedBooking],
    buffer_minutes: int = 0,
    *,
    now: datetime,
    exclude_booking_id: Optional[str] = None,
) -> SlotDecision:
    """
    Validate a concrete slot right before it is committed.

    Args:
        interval: UTC start/end of the slot
        bookings: Live committed bookings of the coach
        buffer_minutes: Buffer required by the new booking
        now: Current instant, supplied by the caller
        exclude_booking_id: Booking being rescheduled, if any

    Returns:
        SlotDecision with a user-facing reason when invalid
    """
    if interval.start < as_utc(now):
        return SlotDecision(valid=False, reason="Cannot book in the past")

    if find_conflicts(interval, buffer_minutes, bookings, exclude_booking_id=exclude_booking_id):
        return SlotDecision(valid=False, reason="Time slot is not available")

    return SlotDecision(valid=True)
