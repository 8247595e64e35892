"""Level Store - Database-backed implementation."""

import logging
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from proficiency.modules.levels.adjuster import clamp_level, numeric_to_cefr, restore_invariants
from proficiency.modules.levels.interface import ILevelStore, UserSkillLevel
from proficiency.modules.levels.models import UserSkillLevelModel
from proficiency.modules.levels.repository import UserSkillLevelRepository
from proficiency.shared.config import get_settings
from proficiency.shared.database import get_db_session
from proficiency.shared.exceptions import ConcurrentUpdateError, SkillLevelNotFoundError

logger = logging.getLogger(__name__)


class DatabaseLevelStore(ILevelStore):
    """Database-backed level store.

    Lazy creation relies on the unique (user, skill area, question type)
    constraint; writes are conditional on the row version.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession] | None = None,
        default_numeric_level: float | None = None,
    ) -> None:
        self._session_factory = session_factory
        if default_numeric_level is None:
            default_numeric_level = get_settings().default_numeric_level
        self._default_numeric_level = clamp_level(default_numeric_level)

    async def get(
        self,
        user_id: UUID,
        skill_area: str,
        question_type: str,
    ) -> UserSkillLevel | None:
        async with get_db_session(self._session_factory) as db:
            row = await UserSkillLevelRepository(db).get_for_slot(user_id, skill_area, question_type)
            if row is None:
                return None
            return restore_invariants(row.to_domain())

    async def get_or_create(
        self,
        user_id: UUID,
        skill_area: str,
        question_type: str,
    ) -> UserSkillLevel:
        async with get_db_session(self._session_factory) as db:
            repo = UserSkillLevelRepository(db)
            row = await repo.get_for_slot(user_id, skill_area, question_type)
            if row is not None:
                return restore_invariants(row.to_domain())

            try:
                row = await repo.create(
                    UserSkillLevelModel(
                        user_id=user_id,
                        skill_area=skill_area,
                        question_type=question_type,
                        numeric_level=self._default_numeric_level,
                        cefr_level=numeric_to_cefr(self._default_numeric_level).value,
                        attempts_at_level=0,
                        correct_streak=0,
                        version=1,
                    )
                )
                logger.info(
                    f"Created level for user {user_id}: {skill_area}/{question_type}",
                    extra={"user_id": str(user_id)},
                )
            except IntegrityError:
                # Lost the creation race; the other writer's row is authoritative
                await db.rollback()
                row = await repo.get_for_slot(user_id, skill_area, question_type)
                if row is None:
                    raise SkillLevelNotFoundError(user_id, skill_area, question_type)

            return restore_invariants(row.to_domain())

    async def save(self, level: UserSkillLevel, expected_version: int) -> UserSkillLevel:
        async with get_db_session(self._session_factory) as db:
            repo = UserSkillLevelRepository(db)
            updated = await repo.update_if_version(level, expected_version)
            if updated == 0:
                if await repo.get_by_id(level.id) is None:
                    raise SkillLevelNotFoundError(level.user_id, level.skill_area, level.question_type)
                raise ConcurrentUpdateError("UserSkillLevel", level.id, expected_version)

            row = await repo.get_by_id(level.id)
            return row.to_domain()

    async def list_for_user(self, user_id: UUID) -> list[UserSkillLevel]:
        async with get_db_session(self._session_factory) as db:
            rows = await UserSkillLevelRepository(db).get_user_levels(user_id)
            return [restore_invariants(row.to_domain()) for row in rows]


# Factory function
_db_level_store: DatabaseLevelStore | None = None


def get_db_level_store() -> DatabaseLevelStore:
    """Get database level store singleton."""
    global _db_level_store
    if _db_level_store is None:
        _db_level_store = DatabaseLevelStore()
    return _db_level_store
