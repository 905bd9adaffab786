"""
Tests for the availability resolver.
"""

from datetime import date

import pendulum

from coachslots.domain.availability import find_override, index_weekly_rules, resolve, window_bounds
from coachslots.domain.models import AvailabilityOverride, AvailabilityWindow, WeeklyAvailabilityRule

MONDAY = "2024-11-25"
TUESDAY = "2024-11-26"
SUNDAY = "2024-11-24"

WEEKDAYS_9_TO_17 = [
    WeeklyAvailabilityRule(day_of_week=day, start_time="09:00", end_time="17:00")
    for day in range(1, 6)
]


class TestResolveWeeklyRules:
    """Resolution from the weekly schedule alone."""

    def test_available_weekday(self):
        window = resolve(MONDAY, WEEKDAYS_9_TO_17, [])

        assert window == AvailabilityWindow(is_available=True, start_time="09:00", end_time="17:00")

    def test_day_without_rule_is_closed(self):
        assert resolve(SUNDAY, WEEKDAYS_9_TO_17, []) == AvailabilityWindow.closed()

    def test_disabled_rule_is_closed(self):
        rules = [WeeklyAvailabilityRule(day_of_week=2, start_time="09:00", end_time="12:00", is_available=False)]

        assert not resolve(TUESDAY, rules, []).is_available

    def test_no_rules_at_all(self):
        assert not resolve(TUESDAY, [], []).is_available

    def test_accepts_date_objects(self):
        assert resolve(date(2024, 11, 25), WEEKDAYS_9_TO_17, []).is_available
        assert resolve(pendulum.date(2024, 11, 24), WEEKDAYS_9_TO_17, []) == AvailabilityWindow.closed()

    def test_first_duplicate_rule_wins(self):
        rules = [
            WeeklyAvailabilityRule(day_of_week=2, start_time="09:00", end_time="12:00"),
            WeeklyAvailabilityRule(day_of_week=2, start_time="14:00", end_time="18:00"),
        ]

        window = resolve(TUESDAY, rules, [])

        assert (window.start_time, window.end_time) == ("09:00", "12:00")

    def test_first_duplicate_wins_even_when_disabled(self):
        rules = [
            WeeklyAvailabilityRule(day_of_week=2, start_time="09:00", end_time="12:00", is_available=False),
            WeeklyAvailabilityRule(day_of_week=2, start_time="14:00", end_time="18:00"),
        ]

        assert not resolve(TUESDAY, rules, []).is_available

    def test_malformed_rule_window_is_closed(self, caplog):
        rules = [WeeklyAvailabilityRule(day_of_week=2, start_time="12:00", end_time="09:00")]

        assert not resolve(TUESDAY, rules, []).is_available
        assert "Invalid availability window" in caplog.text

    def test_non_numeric_rule_times_are_closed(self):
        rules = [WeeklyAvailabilityRule(day_of_week=2, start_time="nine", end_time="17:00")]

        assert not resolve(TUESDAY, rules, []).is_available


class TestResolveOverrides:
    """Override precedence over weekly rules."""

    def test_override_closes_available_day(self):
        overrides = [AvailabilityOverride(date=MONDAY, is_available=False)]

        assert not resolve(MONDAY, WEEKDAYS_9_TO_17, overrides).is_available

    def test_override_opens_closed_day(self):
        overrides = [AvailabilityOverride(date=SUNDAY, is_available=True, start_time="10:00", end_time="13:00")]

        window = resolve(SUNDAY, WEEKDAYS_9_TO_17, overrides)

        assert window == AvailabilityWindow(is_available=True, start_time="10:00", end_time="13:00")

    def test_override_replaces_window_without_merging(self):
        overrides = [AvailabilityOverride(date=MONDAY, is_available=True, start_time="15:00", end_time="20:00")]

        window = resolve(MONDAY, WEEKDAYS_9_TO_17, overrides)

        assert (window.start_time, window.end_time) == ("15:00", "20:00")

    def test_override_for_other_date_is_ignored(self):
        overrides = [AvailabilityOverride(date="2024-12-02", is_available=False)]

        assert resolve(MONDAY, WEEKDAYS_9_TO_17, overrides).is_available

    def test_available_override_without_times_is_closed(self, caplog):
        """The weekly window is never borrowed to fill a partial override."""
        overrides = [AvailabilityOverride(date=MONDAY, is_available=True)]

        assert not resolve(MONDAY, WEEKDAYS_9_TO_17, overrides).is_available
        assert "override 2024-11-25" in caplog.text

    def test_first_duplicate_override_wins(self):
        overrides = [
            AvailabilityOverride(date=MONDAY, is_available=False),
            AvailabilityOverride(date=MONDAY, is_available=True, start_time="09:00", end_time="10:00"),
        ]

        assert not resolve(MONDAY, WEEKDAYS_9_TO_17, overrides).is_available

    def test_find_override_uses_exact_calendar_date(self):
        overrides = [AvailabilityOverride(date=MONDAY, is_available=False)]

        assert find_override(date(2024, 11, 25), overrides) is overrides[0]
        assert find_override(TUESDAY, overrides) is None


class TestHelpers:
    """Tests for rule indexing and window bounds."""

    def test_index_weekly_rules(self):
        indexed = index_weekly_rules(WEEKDAYS_9_TO_17)

        assert sorted(indexed) == [1, 2, 3, 4, 5]

    def test_index_does_not_mutate_input(self):
        rules = list(WEEKDAYS_9_TO_17)
        index_weekly_rules(rules)

        assert rules == WEEKDAYS_9_TO_17

    def test_window_bounds(self):
        assert window_bounds(AvailabilityWindow(True, "09:00", "17:00")) == (540, 1020)
        assert window_bounds(AvailabilityWindow(True, "20:00", "24:00")) == (1200, 1440)
        assert window_bounds(AvailabilityWindow(True, "10:00", "10:00")) is None
        assert window_bounds(AvailabilityWindow.closed()) is None
