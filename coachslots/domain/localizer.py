"""
Present coach-local slots in a viewer's timezone and map a viewer's
selection back to UTC.
"""

from datetime import date, datetime, timedelta
from typing import List, Sequence

from pendulum import DateTime

from .models import TimeRange, WallClock, WeeklyAvailabilityRule, as_utc
from .timezones import day_of_week, get_timezone, localize, parse_date, parse_wall_clock, to_utc


def to_viewer_timezone(
    day: date | str,
    slot: str,
    coach_timezone: str,
    viewer_timezone: str,
) -> WallClock:
    """
    Convert a coach-local slot to the viewer's wall clock.

    The returned date may differ from ``day`` when the slot crosses
    midnight for the viewer.
    """
    get_timezone(viewer_timezone)
    return localize(to_utc(day, slot, coach_timezone), viewer_timezone)


def localize_slots(
    day: date | str,
    slots: Sequence[str],
    coach_timezone: str,
    viewer_timezone: str,
) -> List[WallClock]:
    """Convert a list of coach-local slots, preserving order."""
    return [to_viewer_timezone(day, slot, coach_timezone, viewer_timezone) for slot in slots]


def from_viewer_selection(
    day: date | str,
    slot: str,
    viewer_timezone: str,
) -> DateTime:
    """
    Map a slot chosen on the viewer's calendar back to a UTC instant.

    ``day`` is the viewer-local date the slot was displayed on.
    """
    return to_utc(day, slot, viewer_timezone)


def booking_interval(
    day: date | str,
    slot: str,
    viewer_timezone: str,
    session_minutes: int,
) -> TimeRange:
    """Return the (scheduled_start, scheduled_end) UTC pair for a viewer selection."""
    start = from_viewer_selection(day, slot, viewer_timezone)
    return TimeRange(start=start, end=start.add(minutes=session_minutes))


def localize_weekly_rules(
    rules: Sequence[WeeklyAvailabilityRule],
    coach_timezone: str,
    viewer_timezone: str,
    reference_date: date | str,
) -> List[WeeklyAvailabilityRule]:
    """
    Render weekly rules in the viewer's timezone for a dashboard preview.

    Each rule is evaluated on its concrete date in the week (Sunday first)
    containing ``reference_date``, so the offsets used are the ones in
    force that week. ``day_of_week`` follows the viewer-local start.
    Unavailable rules are returned unchanged.
    """
    get_timezone(coach_timezone)
    get_timezone(viewer_timezone)

    reference = parse_date(reference_date)
    week_start = reference - timedelta(days=day_of_week(reference))

    localized: List[WeeklyAvailabilityRule] = []

    for rule in rules:
        start_minutes = parse_wall_clock(rule.start_time)
        end_minutes = parse_wall_clock(rule.end_time)
        if (
            not rule.is_available
            or start_minutes is None
            or end_minutes is None
            or end_minutes <= start_minutes
        ):
            localized.append(rule)
            continue

        rule_day = week_start + timedelta(days=rule.day_of_week % 7)
        start_utc = to_utc(rule_day, rule.start_time, coach_timezone)
        end_utc = start_utc.add(minutes=end_minutes - start_minutes)

        start_local = localize(start_utc, viewer_timezone)
        end_local = localize(end_utc, viewer_timezone)

        localized.append(
            WeeklyAvailabilityRule(
                day_of_week=day_of_week(start_local.date),
                start_time=start_local.time,
                end_time=end_local.time,
                is_available=True,
            )
        )

    return localized


def format_booking_time(
    instant: datetime,
    viewer_timezone: str,
    fmt: str = "ddd, DD.MM.YYYY HH:mm",
) -> str:
    """Format a stored UTC instant for display in the viewer's timezone."""
    tz = get_timezone(viewer_timezone)
    return as_utc(instant).in_timezone(tz).format(fmt)
