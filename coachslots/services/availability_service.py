"""
Application services for listing, booking and rescheduling coach slots.

The service coordinates fetching a booking snapshot via a store adapter and
delegates the actual availability calculation to the domain layer. The
same entry points serve the new-booking, reschedule and coach-dashboard
call sites.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import List, Optional, Protocol, Sequence

from pendulum import DateTime

from ..domain.availability import resolve
from ..domain.conflicts import validate_booking_slot
from ..domain.exceptions import OfferingNotFoundError, SlotNoLongerAvailableError
from ..domain.localizer import booking_interval, localize_weekly_rules, to_viewer_timezone
from ..domain.models import (
    CoachSchedule,
    CommittedBooking,
    Offering,
    TimeRange,
    WallClock,
    WeeklyAvailabilityRule,
)
from ..domain.slot_generator import SlotGenerator
from ..domain.timezones import day_bounds, get_timezone, iso_date, localize

logger = logging.getLogger(__name__)


class BookingSnapshotProtocol(Protocol):
    """Read side of the persistence layer needed by the service."""

    async def get_committed_bookings(
        self,
        coach_id: str,
        start: DateTime,
        end: DateTime,
    ) -> List[CommittedBooking]:
        """Return the coach's bookings overlapping [start, end)."""


class BookingWriterProtocol(Protocol):
    """Write side: a conditional create that re-checks conflicts atomically."""

    async def create_booking(
        self,
        coach_id: str,
        interval: TimeRange,
        buffer_minutes: int,
        *,
        replaces: Optional[str] = None,
    ) -> CommittedBooking:
        """Persist the booking or raise SlotNoLongerAvailableError."""


@dataclass(frozen=True)
class LocalizedSlot:
    """A slot as the coach defines it and as the viewer sees it."""
    coach_time: str
    viewer: WallClock


@dataclass(frozen=True)
class BookingRequest:
    """Validated UTC interval ready to be handed to the persistence layer."""
    coach_id: str
    interval: TimeRange
    buffer_minutes: int
    replaces: Optional[str] = None

    @property
    def scheduled_start(self) -> DateTime:
        return self.interval.start

    @property
    def scheduled_end(self) -> DateTime:
        return self.interval.end


def select_offering(
    offerings: Sequence[Offering],
    offering_id: Optional[str] = None,
    fallback: Optional[Offering] = None,
) -> Optional[Offering]:
    """
    Pick the duration/buffer pair for a query.

    An explicit ``offering_id`` must name an active offering. Without one
    the fallback (e.g. the booking's own session) is used, then the first
    active offering. Returns None when nothing is offered.

    Raises:
        OfferingNotFoundError: If ``offering_id`` is unknown or inactive
    """
    if offering_id is not None:
        for offering in offerings:
            if offering.offering_id == offering_id and offering.is_active:
                return offering
        raise OfferingNotFoundError(f"No active offering with id '{offering_id}'")

    if fallback is not None:
        return fallback

    for offering in offerings:
        if offering.is_active:
            return offering
    return None


class AvailabilityService:
    """
    Orchestrates booking-snapshot retrieval and slot calculation.

    Dependency inversion toward a protocol makes it easy to plug in a real
    document-store adapter or the in-memory store in tests.
    """

    def __init__(
        self,
        booking_store: BookingSnapshotProtocol,
        slot_generator: Optional[SlotGenerator] = None,
    ) -> None:
        self._booking_store = booking_store
        self._slot_generator = slot_generator or SlotGenerator()

    async def available_slots(
        self,
        *,
        schedule: CoachSchedule,
        day: date | str,
        offering: Optional[Offering],
        viewer_timezone: str,
        now: Optional[datetime] = None,
        exclude_booking_id: Optional[str] = None,
    ) -> List[LocalizedSlot]:
        """
        Fetch a fresh snapshot and list the slots for ``day`` in the viewer's zone.

        ``day`` is the coach's calendar date.
        """
        get_timezone(viewer_timezone)

        if offering is None or not offering.is_active:
            return []

        bookings = await self.fetch_bookings(schedule=schedule, day=day)

        slots = self.calculate_slots(
            schedule=schedule,
            day=day,
            bookings=bookings,
            session_minutes=offering.duration_minutes,
            buffer_minutes=offering.buffer_minutes,
            now=now,
            exclude_booking_id=exclude_booking_id,
        )

        return [
            LocalizedSlot(
                coach_time=slot,
                viewer=to_viewer_timezone(day, slot, schedule.timezone, viewer_timezone),
            )
            for slot in slots
        ]

    async def fetch_bookings(
        self,
        *,
        schedule: CoachSchedule,
        day: date | str,
    ) -> List[CommittedBooking]:
        """Fetch bookings around ``day``, padded by a day on each side for buffers."""
        day_start, day_end = day_bounds(day, schedule.timezone)

        bookings = await self._booking_store.get_committed_bookings(
            schedule.coach_id,
            day_start.subtract(days=1),
            day_end.add(days=1),
        )
        return list(bookings)

    def calculate_slots(
        self,
        *,
        schedule: CoachSchedule,
        day: date | str,
        bookings: Sequence[CommittedBooking],
        session_minutes: int,
        buffer_minutes: int,
        now: Optional[datetime] = None,
        exclude_booking_id: Optional[str] = None,
    ) -> List[str]:
        """Resolve the window for ``day`` and generate coach-local slots."""
        window = resolve(day, schedule.weekly_rules, schedule.overrides)

        return self._slot_generator.generate(
            day,
            window,
            bookings,
            session_minutes,
            buffer_minutes,
            timezone=schedule.timezone,
            not_before=now,
            exclude_booking_id=exclude_booking_id,
        )

    def preview_week(
        self,
        *,
        schedule: CoachSchedule,
        viewer_timezone: str,
        reference_date: date | str,
    ) -> List[WeeklyAvailabilityRule]:
        """Weekly rules as seen from ``viewer_timezone`` in the week of ``reference_date``."""
        return localize_weekly_rules(
            schedule.weekly_rules,
            schedule.timezone,
            viewer_timezone,
            reference_date,
        )

    async def prepare_booking(
        self,
        *,
        schedule: CoachSchedule,
        viewer_date: date | str,
        viewer_slot: str,
        viewer_timezone: str,
        offering: Offering,
        now: datetime,
        replaces: Optional[str] = None,
    ) -> BookingRequest:
        """
        Turn a viewer's selection into a UTC interval after re-validating it.

        The selection is checked against a freshly fetched snapshot. This
        only narrows the race window; the write itself must still be a
        conditional create.

        Raises:
            OfferingNotFoundError: If the offering is no longer active
            SlotNoLongerAvailableError: If the slot is not bookable any more
        """
        if not offering.is_active:
            raise OfferingNotFoundError(f"Offering '{offering.offering_id}' is not active")

        interval = booking_interval(
            viewer_date, viewer_slot, viewer_timezone, offering.duration_minutes
        )
        coach_local = localize(interval.start, schedule.timezone)

        bookings = await self.fetch_bookings(schedule=schedule, day=coach_local.date)

        offered = self.calculate_slots(
            schedule=schedule,
            day=coach_local.date,
            bookings=bookings,
            session_minutes=offering.duration_minutes,
            buffer_minutes=offering.buffer_minutes,
            now=now,
            exclude_booking_id=replaces,
        )

        if coach_local.time not in offered:
            decision = validate_booking_slot(
                interval,
                bookings,
                offering.buffer_minutes,
                now=now,
                exclude_booking_id=replaces,
            )
            reason = decision.reason or "Time slot is not offered"
            logger.info(
                "Rejected selection %s %s (%s) for coach %s: %s",
                iso_date(viewer_date),
                viewer_slot,
                viewer_timezone,
                schedule.coach_id,
                reason,
            )
            raise SlotNoLongerAvailableError(reason)

        return BookingRequest(
            coach_id=schedule.coach_id,
            interval=interval,
            buffer_minutes=offering.buffer_minutes,
            replaces=replaces,
        )

    @staticmethod
    async def commit(
        writer: BookingWriterProtocol,
        request: BookingRequest,
    ) -> CommittedBooking:
        """Hand a prepared request to the persistence layer's conditional create."""
        return await writer.create_booking(
            request.coach_id,
            request.interval,
            request.buffer_minutes,
            replaces=request.replaces,
        )
