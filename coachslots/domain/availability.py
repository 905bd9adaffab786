"""
Resolve the effective availability window for a calendar date.

Date-specific overrides take precedence over the weekly rule in full:
the override's window replaces the weekly one, it is never intersected
or merged. Missing or malformed schedule data resolves to "closed".
"""

import logging
from datetime import date
from typing import Dict, Optional, Sequence

from .models import AvailabilityOverride, AvailabilityWindow, WeeklyAvailabilityRule
from .timezones import day_of_week, iso_date, parse_wall_clock

logger = logging.getLogger(__name__)


def index_weekly_rules(
    rules: Sequence[WeeklyAvailabilityRule],
) -> Dict[int, WeeklyAvailabilityRule]:
    """
    Normalize weekly rules to one rule per day of week.

    The first rule for a day wins; later duplicates are ignored.
    """
    indexed: Dict[int, WeeklyAvailabilityRule] = {}
    for rule in rules:
        if rule.day_of_week in indexed:
            logger.debug("Ignoring duplicate weekly rule for day %s", rule.day_of_week)
            continue
        indexed[rule.day_of_week] = rule
    return indexed


def find_override(
    day: date | str,
    overrides: Sequence[AvailabilityOverride],
) -> Optional[AvailabilityOverride]:
    """Return the first override whose date matches ``day`` exactly."""
    key = iso_date(day)
    for override in overrides:
        if override.date == key:
            return override
    return None


def resolve(
    day: date | str,
    weekly_rules: Sequence[WeeklyAvailabilityRule],
    overrides: Sequence[AvailabilityOverride],
) -> AvailabilityWindow:
    """
    Decide whether the coach is available on ``day`` and, if so, when.

    Args:
        day: Calendar date in the coach's own calendar
        weekly_rules: Recurring rules (Sunday=0), first match per day wins
        overrides: Date-specific overrides, first match per date wins

    Returns:
        AvailabilityWindow; closed when nothing makes the day available
    """
    override = find_override(day, overrides)
    if override is not None:
        if not override.is_available:
            return AvailabilityWindow.closed()
        return _checked_window(
            override.start_time,
            override.end_time,
            source=f"override {override.date}",
        )

    rule = index_weekly_rules(weekly_rules).get(day_of_week(day))
    if rule is None or not rule.is_available:
        return AvailabilityWindow.closed()

    return _checked_window(
        rule.start_time,
        rule.end_time,
        source=f"weekly rule for day {rule.day_of_week}",
    )


def window_bounds(window: AvailabilityWindow) -> Optional[tuple[int, int]]:
    """
    Return (start, end) in minutes since midnight, or None when the
    window is closed or malformed.
    """
    if not window.is_available:
        return None
    start = parse_wall_clock(window.start_time)
    end = parse_wall_clock(window.end_time)
    if start is None or end is None or end <= start:
        return None
    return start, end


def _checked_window(
    start_time: Optional[str],
    end_time: Optional[str],
    source: str,
) -> AvailabilityWindow:
    window = AvailabilityWindow(is_available=True, start_time=start_time, end_time=end_time)
    if window_bounds(window) is None:
        logger.warning(
            "Invalid availability window %r-%r in %s; treating day as unavailable",
            start_time,
            end_time,
            source,
        )
        return AvailabilityWindow.closed()
    return window
