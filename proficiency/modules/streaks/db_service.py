"""Activity Log - Database-backed implementation."""

from datetime import date, datetime
import logging
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from proficiency.modules.streaks.interface import ActivityDay, IActivityLog
from proficiency.modules.streaks.models import ActivityDayModel
from proficiency.modules.streaks.repository import ActivityDayRepository
from proficiency.shared.database import get_db_session
from proficiency.shared.exceptions import InconsistentStateError

logger = logging.getLogger(__name__)


class DatabaseActivityLog(IActivityLog):
    """Database-backed activity log.

    Increments are single ``count = count + 1`` statements; the first
    session of a day inserts the row and falls back to the increment if a
    concurrent writer inserted it first.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession] | None = None) -> None:
        self._session_factory = session_factory

    async def record_activity(
        self,
        user_id: UUID,
        activity_date: date,
        occurred_at: datetime,
    ) -> ActivityDay:
        async with get_db_session(self._session_factory) as db:
            repo = ActivityDayRepository(db)
            if await repo.increment(user_id, activity_date, occurred_at) == 0:
                try:
                    await repo.create(
                        ActivityDayModel(
                            user_id=user_id,
                            activity_date=activity_date,
                            session_count=1,
                            last_active_at=occurred_at,
                        )
                    )
                except IntegrityError:
                    # Another session created the day first
                    await db.rollback()
                    if await repo.increment(user_id, activity_date, occurred_at) == 0:
                        raise InconsistentStateError(
                            "ActivityDay", f"row for {activity_date} vanished during upsert"
                        )

            row = await repo.get_day(user_id, activity_date)
            logger.debug(
                f"Recorded activity for user {user_id} on {activity_date}",
                extra={"user_id": str(user_id)},
            )
            return row.to_domain()

    async def get_activity(self, user_id: UUID, start: date, end: date) -> list[ActivityDay]:
        async with get_db_session(self._session_factory) as db:
            rows = await ActivityDayRepository(db).get_range(user_id, start, end)
            return [row.to_domain() for row in rows]

    async def total_sessions(self, user_id: UUID) -> int:
        async with get_db_session(self._session_factory) as db:
            return await ActivityDayRepository(db).get_total(user_id)


# Factory function
_db_activity_log: DatabaseActivityLog | None = None


def get_db_activity_log() -> DatabaseActivityLog:
    """Get database activity log singleton."""
    global _db_activity_log
    if _db_activity_log is None:
        _db_activity_log = DatabaseActivityLog()
    return _db_activity_log
