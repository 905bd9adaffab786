"""
Domain models for availability rules, bookings and slots.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, Sequence

import pendulum
from pendulum import DateTime


def as_utc(value: datetime) -> DateTime:
    """Convert an aware datetime to a UTC pendulum DateTime (naive values are read as UTC)."""
    return pendulum.instance(value).in_timezone("UTC")


@dataclass(frozen=True)
class TimeRange:
    """
    Represents an immutable time range with start and end datetime.

    Invariant: start must be before end.
    """
    start: DateTime
    end: DateTime

    def __post_init__(self):
        if self.start >= self.end:
            raise ValueError(f"Start time {self.start} must be before end time {self.end}")

    def duration_minutes(self) -> int:
        """Return the duration in minutes."""
        return int((self.end - self.start).total_seconds() / 60)

    def overlaps(self, other: "TimeRange") -> bool:
        """Check if this range overlaps with another."""
        return self.start < other.end and self.end > other.start

    def widen(self, minutes: int) -> "TimeRange":
        """Return a copy extended by ``minutes`` on both sides."""
        if minutes <= 0:
            return self
        return TimeRange(
            start=self.start.subtract(minutes=minutes),
            end=self.end.add(minutes=minutes),
        )

    def __str__(self) -> str:
        return f"{self.start.format('DD.MM.YYYY HH:mm')} - {self.end.format('HH:mm')}"


class BookingStatus(str, Enum):
    """Booking lifecycle states owned by the persistence layer."""
    REQUESTED = "requested"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @classmethod
    def parse(cls, value: "BookingStatus | str") -> Optional["BookingStatus"]:
        """Return the matching status, or None for unknown values."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return None


@dataclass(frozen=True)
class WeeklyAvailabilityRule:
    """
    Recurring availability for one day of the week.

    ``day_of_week`` counts from Sunday=0 to Saturday=6. Times are "HH:mm"
    wall-clock strings in the coach's own timezone.
    """
    day_of_week: int
    start_time: str
    end_time: str
    is_available: bool = True


@dataclass(frozen=True)
class AvailabilityOverride:
    """Date-specific availability that fully replaces the weekly rule."""
    date: str  # YYYY-MM-DD, coach calendar
    is_available: bool
    start_time: Optional[str] = None
    end_time: Optional[str] = None


@dataclass(frozen=True)
class AvailabilityWindow:
    """Effective open/close window for one date, coach-local."""
    is_available: bool
    start_time: Optional[str] = None
    end_time: Optional[str] = None

    @classmethod
    def closed(cls) -> "AvailabilityWindow":
        return cls(is_available=False)


@dataclass(frozen=True)
class CommittedBooking:
    """
    An existing reservation consulted for conflicts.

    Instants should be timezone-aware; naive values are interpreted as UTC.
    """
    scheduled_start: datetime
    scheduled_end: datetime
    status: BookingStatus | str = BookingStatus.CONFIRMED
    buffer_minutes: int = 0
    booking_id: Optional[str] = None

    def interval(self) -> TimeRange:
        """Return the booking as a UTC TimeRange."""
        return TimeRange(
            start=as_utc(self.scheduled_start),
            end=as_utc(self.scheduled_end),
        )


@dataclass(frozen=True)
class CandidateSlot:
    """A bookable slot computed for one query; never persisted."""
    date: str
    start_time: str
    end_time: str


@dataclass(frozen=True)
class Offering:
    """Session length and buffer pair offered by a coach."""
    offering_id: str
    duration_minutes: int
    buffer_minutes: int = 0
    is_active: bool = True
    name: str = ""


@dataclass(frozen=True)
class CoachSchedule:
    """Schedule data sourced from a coach profile record."""
    timezone: str
    weekly_rules: Sequence[WeeklyAvailabilityRule] = field(default_factory=tuple)
    overrides: Sequence[AvailabilityOverride] = field(default_factory=tuple)
    coach_id: str = ""


@dataclass(frozen=True)
class WallClock:
    """A calendar date and "HH:mm" time in some timezone."""
    date: str
    time: str

    def __str__(self) -> str:
        return f"{self.date} {self.time}"


@dataclass(frozen=True)
class SlotDecision:
    """Result of validating a concrete slot before it is committed."""
    valid: bool
    reason: Optional[str] = None
