"""Streak aggregation.

Pure functions over a ``{date, count}`` series and the learner's local
"today". Nothing here touches storage, so results are reproducible from
the activity history alone.
"""

from datetime import date, datetime, timedelta
from typing import Iterable, Mapping

from proficiency.modules.streaks.interface import ActivityDay, StreakStats
from proficiency.shared.constants import DEFAULT_PROGRESS_WINDOW_WEEKS
from proficiency.shared.datetime_utils import local_date, monday_of
from proficiency.shared.exceptions import InvalidWindowError

ONE_DAY = timedelta(days=1)
ONE_WEEK = timedelta(weeks=1)


def local_today(now: datetime, tz_name: str) -> date:
    """Today's date for a learner in ``tz_name``."""
    return local_date(now, tz_name)


def window_bounds(today: date, window_weeks: int = DEFAULT_PROGRESS_WINDOW_WEEKS) -> tuple[date, date]:
    """Monday ``window_weeks - 1`` weeks back through this week's Sunday."""
    if window_weeks < 1:
        raise InvalidWindowError(window_weeks)
    current_monday = monday_of(today)
    start = current_monday - ONE_WEEK * (window_weeks - 1)
    end = current_monday + timedelta(days=6)
    return start, end


def _counts_by_date(days: Iterable[ActivityDay]) -> dict[date, int]:
    counts: dict[date, int] = {}
    for day in days:
        counts[day.date] = counts.get(day.date, 0) + day.count
    return counts


def build_activity_window(
    activity: Iterable[ActivityDay],
    today: date,
    window_weeks: int = DEFAULT_PROGRESS_WINDOW_WEEKS,
) -> list[ActivityDay]:
    """Dense day-by-day series for the window; absent dates get count 0."""
    start, end = window_bounds(today, window_weeks)
    counts = _counts_by_date(activity)
    dense = []
    current = start
    while current <= end:
        dense.append(ActivityDay(date=current, count=counts.get(current, 0)))
        current += ONE_DAY
    return dense


def _run_back_from(active: set[date], anchor: date, step: timedelta) -> int:
    run = 0
    current = anchor
    while current in active:
        run += 1
        current -= step
    return run


def _longest_run(active: set[date], step: timedelta) -> int:
    best = 0
    for start in active:
        if start - step in active:
            continue
        length = 0
        current = start
        while current in active:
            length += 1
            current += step
        best = max(best, length)
    return best


def calculate_daily_streaks(days: Iterable[ActivityDay], today: date) -> tuple[int, int]:
    """Current and best daily streaks.

    The current streak counts back from today, or from yesterday when
    today has no activity yet. The best streak is the longest run of
    active calendar days and is never below the current streak.
    """
    active = {d for d, count in _counts_by_date(days).items() if count > 0 and d <= today}

    if today in active:
        current = _run_back_from(active, today, ONE_DAY)
    elif today - ONE_DAY in active:
        current = _run_back_from(active, today - ONE_DAY, ONE_DAY)
    else:
        current = 0

    best = max(_longest_run(active, ONE_DAY), current)
    return current, best


def calculate_weekly_streaks(
    days: Iterable[ActivityDay],
    today: date,
    window_weeks: int = DEFAULT_PROGRESS_WINDOW_WEEKS,
) -> tuple[int, int]:
    """Current and best weekly streaks over Monday-start weeks.

    A week is active when its summed count is positive. There is no grace
    period: an inactive current week means a current streak of 0.
    """
    start, _ = window_bounds(today, window_weeks)
    current_monday = monday_of(today)

    week_totals: dict[date, int] = {}
    for d, count in _counts_by_date(days).items():
        if start <= d <= today:
            week = monday_of(d)
            week_totals[week] = week_totals.get(week, 0) + count
    active = {week for week, total in week_totals.items() if total > 0}

    current = _run_back_from(active, current_monday, ONE_WEEK)
    best = max(_longest_run(active, ONE_WEEK), current)
    return current, best


def compute_streak_stats(
    days: Iterable[ActivityDay],
    today: date,
    window_weeks: int = DEFAULT_PROGRESS_WINDOW_WEEKS,
) -> StreakStats:
    """Daily and weekly streaks for the same series."""
    days = list(days)
    current_days, best_days = calculate_daily_streaks(days, today)
    current_weeks, best_weeks = calculate_weekly_streaks(days, today, window_weeks)
    return StreakStats(
        current_streak_days=current_days,
        best_streak_days=best_days,
        current_streak_weeks=current_weeks,
        best_streak_weeks=best_weeks,
    )


def activity_from_mapping(counts: Mapping[date, int]) -> list[ActivityDay]:
    """Build a sorted series from a ``{date: count}`` mapping."""
    return [ActivityDay(date=d, count=c) for d, c in sorted(counts.items())]
