"""Streaks Module - Practice activity log and streak statistics."""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Protocol
from uuid import UUID


@dataclass(frozen=True)
class ActivityDay:
    """Sessions on one calendar date in the learner's timezone."""

    date: date
    count: int

    def to_dict(self) -> dict:
        return {"date": self.date.isoformat(), "count": self.count}


@dataclass(frozen=True)
class StreakStats:
    """Current and best streaks at day and week granularity."""

    current_streak_days: int
    best_streak_days: int
    current_streak_weeks: int
    best_streak_weeks: int


class IActivityLog(Protocol):
    """Interface for the sparse per-day activity log."""

    async def record_activity(
        self,
        user_id: UUID,
        activity_date: date,
        occurred_at: datetime,
    ) -> ActivityDay:
        """Increment the session count for a local calendar date.

        Concurrent increments for the same date are all counted.

        Args:
            user_id: Learner
            activity_date: Date in the learner's timezone
            occurred_at: UTC instant of the session, kept as last_active_at

        Returns:
            The day with its updated count
        """
        ...

    async def get_activity(self, user_id: UUID, start: date, end: date) -> list[ActivityDay]:
        """Days with activity between ``start`` and ``end`` inclusive, oldest first."""
        ...

    async def total_sessions(self, user_id: UUID) -> int:
        """All-time session count for a learner."""
        ...
