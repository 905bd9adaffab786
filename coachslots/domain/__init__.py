"""
Domain layer - Pure availability and slot logic without external dependencies.
"""

from .availability import index_weekly_rules, resolve
from .conflicts import find_conflicts, overlaps, validate_booking_slot
from .exceptions import (
    InvalidTimezoneError,
    OfferingNotFoundError,
    SlotEngineError,
    SlotNoLongerAvailableError,
)
from .localizer import booking_interval, from_viewer_selection, localize_slots, to_viewer_timezone
from .models import (
    AvailabilityOverride,
    AvailabilityWindow,
    BookingStatus,
    CandidateSlot,
    CoachSchedule,
    CommittedBooking,
    Offering,
    SlotDecision,
    TimeRange,
    WallClock,
    WeeklyAvailabilityRule,
)
from .slot_generator import SLOT_GRANULARITY_MINUTES, SlotGenerator, generate
from .timezones import localize, to_utc

__all__ = [
    "AvailabilityOverride",
    "AvailabilityWindow",
    "BookingStatus",
    "CandidateSlot",
    "CoachSchedule",
    "CommittedBooking",
    "InvalidTimezoneError",
    "Offering",
    "OfferingNotFoundError",
    "SLOT_GRANULARITY_MINUTES",
    "SlotDecision",
    "SlotEngineError",
    "SlotGenerator",
    "SlotNoLongerAvailableError",
    "TimeRange",
    "WallClock",
    "WeeklyAvailabilityRule",
    "booking_interval",
    "find_conflicts",
    "from_viewer_selection",
    "generate",
    "index_weekly_rules",
    "localize",
    "localize_slots",
    "overlaps",
    "resolve",
    "to_utc",
    "to_viewer_timezone",
    "validate_booking_slot",
]
