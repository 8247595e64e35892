"""Streaks Module - Practice activity log and streak statistics.

Usage:
    from proficiency.modules.streaks import compute_streak_stats, build_activity_window

    window = build_activity_window(days, today)
    stats = compute_streak_stats(window, today)
"""

from proficiency.modules.streaks.aggregator import (
    activity_from_mapping,
    build_activity_window,
    calculate_daily_streaks,
    calculate_weekly_streaks,
    compute_streak_stats,
    local_today,
    window_bounds,
)
from proficiency.modules.streaks.interface import ActivityDay, IActivityLog, StreakStats
from proficiency.modules.streaks.service import ActivityLog
from proficiency.modules.streaks.service import get_activity_log as get_inmemory_activity_log
from proficiency.modules.streaks.db_service import DatabaseActivityLog, get_db_activity_log
from proficiency.modules.streaks.models import ActivityDayModel

__all__ = [
    # Interface types
    "ActivityDay",
    "IActivityLog",
    "StreakStats",
    # Aggregation
    "activity_from_mapping",
    "build_activity_window",
    "calculate_daily_streaks",
    "calculate_weekly_streaks",
    "compute_streak_stats",
    "local_today",
    "window_bounds",
    # Implementations
    "ActivityLog",
    "DatabaseActivityLog",
    # Models
    "ActivityDayModel",
    # Factory functions
    "get_inmemory_activity_log",
    "get_db_activity_log",
]
