"""Streaks repository for data access operations."""

from datetime import date, datetime
from typing import Sequence
from uuid import UUID

from sqlalchemy import and_, func, select, update

from proficiency.modules.streaks.models import ActivityDayModel
from proficiency.shared.repository import BaseRepository


class ActivityDayRepository(BaseRepository[ActivityDayModel]):
    """Repository for ActivityDay entities."""

    @property
    def _model_class(self) -> type[ActivityDayModel]:
        return ActivityDayModel

    async def increment(self, user_id: UUID, activity_date: date, occurred_at: datetime) -> int:
        """Atomically add one session to an existing day.

        Returns:
            Number of rows updated (0 when the day has no row yet)
        """
        result = await self._session.execute(
            update(ActivityDayModel)
            .where(
                and_(
                    ActivityDayModel.user_id == user_id,
                    ActivityDayModel.activity_date == activity_date,
                )
            )
            .values(
                session_count=ActivityDayModel.session_count + 1,
                last_active_at=occurred_at,
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    async def get_day(self, user_id: UUID, activity_date: date) -> ActivityDayModel | None:
        result = await self._session.execute(
            select(ActivityDayModel).where(
                and_(
                    ActivityDayModel.user_id == user_id,
                    ActivityDayModel.activity_date == activity_date,
                )
            )
        )
        return result.scalar_one_or_none()

    async def get_range(
        self,
        user_id: UUID,
        start: date,
        end: date,
    ) -> Sequence[ActivityDayModel]:
        """Get active days between two dates inclusive, oldest first.

        Args:
            user_id: User UUID
            start: First date
            end: Last date

        Returns:
            Sequence of day rows
        """
        result = await self._session.execute(
            select(ActivityDayModel)
            .where(
                and_(
                    ActivityDayModel.user_id == user_id,
                    ActivityDayModel.activity_date >= start,
                    ActivityDayModel.activity_date <= end,
                )
            )
            .order_by(ActivityDayModel.activity_date)
        )
        return result.scalars().all()

    async def get_total(self, user_id: UUID) -> int:
        """Sum of session counts across all days."""
        result = await self._session.execute(
            select(func.coalesce(func.sum(ActivityDayModel.session_count), 0)).where(
                ActivityDayModel.user_id == user_id
            )
        )
        return int(result.scalar_one())
