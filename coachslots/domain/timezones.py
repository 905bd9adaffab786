"""
Timezone conversion between wall-clock times and UTC instants.

Every conversion resolves the UTC offset for the concrete date involved,
so DST transitions are honoured. Zones are never cached per identifier
with a fixed offset.
"""

import re
from datetime import date, datetime, timedelta
from typing import Optional

import pendulum
from pendulum import DateTime

from .exceptions import InvalidTimezoneError
from .models import WallClock, as_utc

MINUTES_PER_DAY = 24 * 60

_WALL_CLOCK_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})$")


def get_timezone(name: str):
    """
    Resolve an IANA timezone identifier.

    Raises:
        InvalidTimezoneError: If the identifier is empty or unknown
    """
    if not isinstance(name, str) or not name.strip():
        raise InvalidTimezoneError(name)
    try:
        return pendulum.timezone(name.strip())
    except (ValueError, KeyError, OSError) as exc:
        raise InvalidTimezoneError(name) from exc


def parse_wall_clock(value: object) -> Optional[int]:
    """
    Convert "HH:mm" to minutes since midnight.

    "24:00" is accepted as the end of the day. Returns None for anything
    that is not a valid wall-clock string.
    """
    if not isinstance(value, str):
        return None
    match = _WALL_CLOCK_PATTERN.match(value.strip())
    if not match:
        return None
    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours == 24 and minutes == 0:
        return MINUTES_PER_DAY
    if hours > 23 or minutes > 59:
        return None
    return hours * 60 + minutes


def format_minutes(minutes: int) -> str:
    """Format minutes since midnight as zero-padded "HH:mm"."""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def parse_date(value: date | str) -> date:
    """Accept a date (or datetime) or a "YYYY-MM-DD" string and return a date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return pendulum.from_format(str(value).strip(), "YYYY-MM-DD").date()


def iso_date(value: date | str) -> str:
    """Return the "YYYY-MM-DD" form of a calendar date."""
    return parse_date(value).isoformat()


def day_of_week(value: date | str) -> int:
    """Day of week with Sunday=0 ... Saturday=6."""
    return parse_date(value).isoweekday() % 7


def localize(instant: datetime, timezone: str) -> WallClock:
    """Render an instant as calendar date and "HH:mm" in ``timezone``."""
    tz = get_timezone(timezone)
    local = as_utc(instant).in_timezone(tz)
    return WallClock(date=local.format("YYYY-MM-DD"), time=local.format("HH:mm"))


def to_utc(day: date | str, wall_clock: str, timezone: str) -> DateTime:
    """
    Interpret ``wall_clock`` on ``day`` in ``timezone`` and return the UTC instant.

    Times that are ambiguous (DST fall-back) or nonexistent (DST
    spring-forward) are read with both candidate offsets and the earlier
    UTC instant wins.

    Raises:
        InvalidTimezoneError: If the timezone is unknown
        ValueError: If the wall-clock string is malformed
    """
    tz = get_timezone(timezone)
    minutes = parse_wall_clock(wall_clock)
    if minutes is None or minutes >= MINUTES_PER_DAY:
        raise ValueError(f"Invalid wall-clock time: {wall_clock!r}")

    calendar_day = parse_date(day)
    naive = datetime(calendar_day.year, calendar_day.month, calendar_day.day) + timedelta(
        minutes=minutes
    )

    candidates = [
        naive - naive.replace(tzinfo=tz, fold=fold).utcoffset()
        for fold in (0, 1)
    ]
    return pendulum.instance(min(candidates), tz="UTC")


def day_bounds(day: date | str, timezone: str) -> tuple[DateTime, DateTime]:
    """Return the UTC instants at which ``day`` starts and ends in ``timezone``."""
    tz = get_timezone(timezone)
    calendar_day = parse_date(day)
    start = pendulum.datetime(calendar_day.year, calendar_day.month, calendar_day.day, tz=tz)
    return start.in_timezone("UTC"), start.add(days=1).in_timezone("UTC")
