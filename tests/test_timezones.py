"""
Tests for timezone conversion helpers.
"""

from datetime import date

import pendulum
import pytest

from coachslots.domain.exceptions import InvalidTimezoneError
from coachslots.domain.models import WallClock
from coachslots.domain.timezones import (
    day_bounds,
    day_of_week,
    format_minutes,
    get_timezone,
    localize,
    parse_date,
    parse_wall_clock,
    to_utc,
)


class TestWallClockParsing:
    """Tests for HH:mm parsing and formatting."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("00:00", 0),
            ("09:00", 540),
            ("9:05", 545),
            ("23:59", 1439),
            ("24:00", 1440),
            (" 12:30 ", 750),
        ],
    )
    def test_valid_values(self, value, expected):
        assert parse_wall_clock(value) == expected

    @pytest.mark.parametrize("value", ["24:30", "12:60", "25:00", "9am", "", "12", None, 540])
    def test_invalid_values(self, value):
        assert parse_wall_clock(value) is None

    def test_format_minutes_zero_pads(self):
        assert format_minutes(0) == "00:00"
        assert format_minutes(545) == "09:05"
        assert format_minutes(1440) == "24:00"


class TestDates:
    """Tests for calendar date helpers."""

    def test_parse_date_accepts_strings_and_dates(self):
        assert parse_date("2024-11-26") == date(2024, 11, 26)
        assert parse_date(date(2024, 11, 26)) == date(2024, 11, 26)
        assert parse_date(pendulum.datetime(2024, 11, 26, 23, 0)) == date(2024, 11, 26)

    def test_day_of_week_starts_on_sunday(self):
        assert day_of_week("2024-11-24") == 0  # Sunday
        assert day_of_week("2024-11-25") == 1  # Monday
        assert day_of_week("2024-11-30") == 6  # Saturday

    def test_day_bounds_across_fall_back(self):
        """The DST fall-back day in Berlin lasts 25 hours."""
        start, end = day_bounds("2024-10-27", "Europe/Berlin")

        assert start == pendulum.datetime(2024, 10, 26, 22, 0, tz="UTC")
        assert end == pendulum.datetime(2024, 10, 27, 23, 0, tz="UTC")


class TestGetTimezone:
    """Tests for timezone resolution."""

    def test_known_timezone(self):
        assert get_timezone("America/New_York") is not None

    @pytest.mark.parametrize("name", ["Mars/Olympus_Mons", "", "   ", None])
    def test_unknown_timezone_fails_loudly(self, name):
        with pytest.raises(InvalidTimezoneError):
            get_timezone(name)

    def test_invalid_timezone_is_a_value_error(self):
        with pytest.raises(ValueError):
            get_timezone("Not/AZone")


class TestToUtc:
    """Tests for wall-clock to UTC conversion."""

    def test_winter_offset(self):
        assert to_utc("2024-11-26", "09:00", "Europe/Berlin") == pendulum.datetime(
            2024, 11, 26, 8, 0, tz="UTC"
        )

    def test_summer_offset(self):
        """Offsets are resolved per date, not per zone."""
        assert to_utc("2024-07-01", "09:00", "Europe/Berlin") == pendulum.datetime(
            2024, 7, 1, 7, 0, tz="UTC"
        )

    def test_ambiguous_time_picks_earlier_instant(self):
        """02:30 happens twice on the fall-back day; the first occurrence wins."""
        result = to_utc("2024-10-27", "02:30", "Europe/Berlin")

        assert result == pendulum.datetime(2024, 10, 27, 0, 30, tz="UTC")

    def test_nonexistent_time_picks_earlier_instant(self):
        """02:30 does not exist on the spring-forward day."""
        result = to_utc("2024-03-31", "02:30", "Europe/Berlin")

        assert result == pendulum.datetime(2024, 3, 31, 0, 30, tz="UTC")

    def test_result_is_utc(self):
        result = to_utc(date(2024, 11, 26), "09:00", "Asia/Tokyo")

        assert result.timezone_name == "UTC"
        assert result == pendulum.datetime(2024, 11, 26, 0, 0, tz="UTC")

    def test_result_is_exact_pendulum_instant(self):
        result = to_utc("2024-11-26", "09:45", "America/St_Johns")

        assert isinstance(result, pendulum.DateTime)
        assert result == pendulum.datetime(2024, 11, 26, 13, 15, tz="UTC")
        assert (result.second, result.microsecond) == (0, 0)

    @pytest.mark.parametrize("wall_clock", ["25:00", "9am", "24:00", ""])
    def test_malformed_wall_clock_raises(self, wall_clock):
        with pytest.raises(ValueError):
            to_utc("2024-11-26", wall_clock, "Europe/Berlin")

    def test_unknown_timezone_raises(self):
        with pytest.raises(InvalidTimezoneError):
            to_utc("2024-11-26", "09:00", "Europe/Atlantis")


class TestLocalize:
    """Tests for UTC to wall-clock conversion."""

    def test_localize_returns_date_and_time(self):
        instant = pendulum.datetime(2024, 7, 1, 7, 0, tz="UTC")

        assert localize(instant, "Europe/Berlin") == WallClock(date="2024-07-01", time="09:00")

    def test_localize_can_change_date(self):
        instant = pendulum.datetime(2024, 11, 26, 23, 30, tz="UTC")

        assert localize(instant, "Asia/Tokyo") == WallClock(date="2024-11-27", time="08:30")

    @pytest.mark.parametrize(
        "day,wall_clock,tz",
        [
            ("2024-11-26", "09:00", "Europe/Berlin"),
            ("2024-07-15", "23:30", "America/New_York"),
            ("2024-01-02", "00:00", "Asia/Kolkata"),
            ("2024-06-30", "13:45", "Australia/Adelaide"),
        ],
    )
    def test_round_trip_identity(self, day, wall_clock, tz):
        """to_utc then localize in the same zone gives back the wall clock."""
        assert localize(to_utc(day, wall_clock, tz), tz) == WallClock(date=day, time=wall_clock)

    def test_unknown_timezone_raises(self):
        with pytest.raises(InvalidTimezoneError):
            localize(pendulum.now("UTC"), "Nowhere/Special")
