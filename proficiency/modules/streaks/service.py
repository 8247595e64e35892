"""Activity Log - In-memory implementation."""

from datetime import date, datetime
from uuid import UUID

from proficiency.modules.streaks.interface import ActivityDay, IActivityLog


class ActivityLog(IActivityLog):
    """In-memory activity log keyed on (user, local date)."""

    def __init__(self) -> None:
        self._days: dict[tuple[UUID, date], int] = {}

    async def record_activity(
        self,
        user_id: UUID,
        activity_date: date,
        occurred_at: datetime,
    ) -> ActivityDay:
        key = (user_id, activity_date)
        self._days[key] = self._days.get(key, 0) + 1
        return ActivityDay(date=activity_date, count=self._days[key])

    async def get_activity(self, user_id: UUID, start: date, end: date) -> list[ActivityDay]:
        return [
            ActivityDay(date=day, count=count)
            for (owner, day), count in sorted(self._days.items(), key=lambda kv: kv[0][1])
            if owner == user_id and start <= day <= end
        ]

    async def total_sessions(self, user_id: UUID) -> int:
        return sum(count for (owner, _), count in self._days.items() if owner == user_id)


# Factory function
_activity_log: ActivityLog | None = None


def get_activity_log() -> ActivityLog:
    """Get in-memory activity log singleton."""
    global _activity_log
    if _activity_log is None:
        _activity_log = ActivityLog()
    return _activity_log
