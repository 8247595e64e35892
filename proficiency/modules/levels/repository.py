"""Levels repository for data access operations."""

from typing import Sequence
from uuid import UUID

from sqlalchemy import and_, select, update

from proficiency.modules.levels.interface import UserSkillLevel
from proficiency.modules.levels.models import UserSkillLevelModel
from proficiency.shared.datetime_utils import utc_now
from proficiency.shared.repository import BaseRepository


class UserSkillLevelRepository(BaseRepository[UserSkillLevelModel]):
    """Repository for UserSkillLevel entities."""

    @property
    def _model_class(self) -> type[UserSkillLevelModel]:
        return UserSkillLevelModel

    async def get_for_slot(
        self,
        user_id: UUID,
        skill_area: str,
        question_type: str,
    ) -> UserSkillLevelModel | None:
        """Get the level row for one (skill area, question type) pair.

        Args:
            user_id: User UUID
            skill_area: Skill area value
            question_type: Question type value

        Returns:
            Level row or None
        """
        result = await self._session.execute(
            select(UserSkillLevelModel).where(
                and_(
                    UserSkillLevelModel.user_id == user_id,
                    UserSkillLevelModel.skill_area == skill_area,
                    UserSkillLevelModel.question_type == question_type,
                )
            )
        )
        return result.scalar_one_or_none()

    async def get_user_levels(self, user_id: UUID) -> Sequence[UserSkillLevelModel]:
        """Get all level rows for a user, ordered by skill area and question type."""
        result = await self._session.execute(
            select(UserSkillLevelModel)
            .where(UserSkillLevelModel.user_id == user_id)
            .order_by(UserSkillLevelModel.skill_area, UserSkillLevelModel.question_type)
        )
        return result.scalars().all()

    async def update_if_version(self, level: UserSkillLevel, expected_version: int) -> int:
        """Conditionally write a level.

        The row is only touched if its version still matches, and the
        version is bumped in the same statement.

        Returns:
            Number of rows updated (0 or 1)
        """
        result = await self._session.execute(
            update(UserSkillLevelModel)
            .where(
                and_(
                    UserSkillLevelModel.id == level.id,
                    UserSkillLevelModel.version == expected_version,
                )
            )
            .values(
                numeric_level=level.numeric_level,
                cefr_level=level.cefr_level.value,
                attempts_at_level=level.attempts_at_level,
                correct_streak=level.correct_streak,
                version=expected_version + 1,
                updated_at=utc_now(),
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount
