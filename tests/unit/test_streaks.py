"""Unit tests for streak aggregation."""

from datetime import date, datetime, timezone

import pytest

from proficiency.modules.streaks.aggregator import (
    activity_from_mapping,
    build_activity_window,
    calculate_daily_streaks,
    calculate_weekly_streaks,
    compute_streak_stats,
    local_today,
    window_bounds,
)
from proficiency.modules.streaks.interface import ActivityDay
from proficiency.shared.exceptions import InvalidTimezoneError, InvalidWindowError

# 2024-03-11 is a Monday
MON = date(2024, 3, 11)
TUE = date(2024, 3, 12)
WED = date(2024, 3, 13)
THU = date(2024, 3, 14)


class TestDailyStreaks:
    """Tests for daily current/best streaks."""

    def test_gap_breaks_current_streak(self):
        days = activity_from_mapping({MON: 1, TUE: 1, WED: 0, THU: 1})
        assert calculate_daily_streaks(days, THU) == (1, 2)

    def test_grace_period_counts_through_yesterday(self):
        days = activity_from_mapping({TUE: 2, WED: 1})
        assert calculate_daily_streaks(days, THU) == (2, 2)

    def test_two_idle_days_end_the_streak(self):
        days = activity_from_mapping({MON: 1, TUE: 1})
        assert calculate_daily_streaks(days, THU) == (0, 2)

    def test_empty_activity(self):
        assert calculate_daily_streaks([], THU) == (0, 0)

    def test_future_dates_ignored(self):
        days = activity_from_mapping({THU: 1, date(2024, 3, 15): 1, date(2024, 3, 16): 1})
        assert calculate_daily_streaks(days, THU) == (1, 1)

    def test_duplicate_dates_are_summed(self):
        days = [ActivityDay(WED, 1), ActivityDay(WED, 0), ActivityDay(THU, 1)]
        assert calculate_daily_streaks(days, THU) == (2, 2)

    def test_best_is_never_below_current(self):
        days = activity_from_mapping({date(2024, 3, d): 1 for d in range(1, 15)})
        current, best = calculate_daily_streaks(days, THU)
        assert current == 14
        assert best >= current


class TestWeeklyStreaks:
    """Tests for weekly current/best streaks."""

    def test_gap_week_breaks_continuity(self):
        # Active weeks of Feb 19 and Feb 26, idle week of Mar 4, active this week
        days = activity_from_mapping({
            date(2024, 2, 20): 1,
            date(2024, 2, 27): 3,
            TUE: 1,
        })
        assert calculate_weekly_streaks(days, THU) == (1, 2)

    def test_no_grace_for_current_week(self):
        days = activity_from_mapping({date(2024, 3, 5): 1, date(2024, 2, 27): 1})
        assert calculate_weekly_streaks(days, THU) == (0, 2)

    def test_weeks_start_on_monday(self):
        # Sunday Mar 10 and Monday Mar 11 fall in different weeks
        days = activity_from_mapping({date(2024, 3, 10): 1, MON: 1})
        assert calculate_weekly_streaks(days, THU) == (2, 2)

    def test_activity_before_window_not_counted(self):
        days = activity_from_mapping({date(2023, 1, 2): 5, MON: 1})
        assert calculate_weekly_streaks(days, THU, window_weeks=2) == (1, 1)


class TestActivityWindow:
    """Tests for the dense activity window."""

    def test_window_bounds(self):
        start, end = window_bounds(THU, 12)
        assert start == date(2023, 12, 25)
        assert start.weekday() == 0
        assert end == date(2024, 3, 17)

    def test_window_rejects_zero_weeks(self):
        with pytest.raises(InvalidWindowError):
            window_bounds(THU, 0)

    def test_dense_window_fills_zeros(self):
        window = build_activity_window(activity_from_mapping({TUE: 2}), THU, window_weeks=1)
        assert [d.date for d in window] == [date(2024, 3, 11 + i) for i in range(7)]
        assert [d.count for d in window] == [0, 2, 0, 0, 0, 0, 0]

    def test_window_length(self):
        assert len(build_activity_window([], THU, window_weeks=12)) == 84


class TestStreakStats:
    """Tests for combined stats and timezone handling."""

    def test_compute_streak_stats(self):
        days = activity_from_mapping({MON: 1, TUE: 1, THU: 1, date(2024, 3, 6): 1})
        stats = compute_streak_stats(days, THU)
        assert stats.current_streak_days == 1
        assert stats.best_streak_days == 2
        assert stats.current_streak_weeks == 2
        assert stats.best_streak_weeks == 2

    def test_local_today_uses_timezone(self):
        now = datetime(2024, 3, 14, 23, 30, tzinfo=timezone.utc)
        assert local_today(now, "UTC") == THU
        assert local_today(now, "Asia/Tokyo") == date(2024, 3, 15)
        assert local_today(now, "America/Los_Angeles") == THU

    def test_local_today_rejects_unknown_zone(self):
        with pytest.raises(InvalidTimezoneError):
            local_today(datetime(2024, 3, 14, tzinfo=timezone.utc), "Mars/Olympus")
