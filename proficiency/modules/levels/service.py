"""Level Store - In-memory implementation.

Suitable for tests and single-process development. Rows are keyed on
(user_id, skill_area, question_type) and carry a version for conditional
writes, mirroring the database store.
"""

import logging
from uuid import UUID

from proficiency.modules.levels.adjuster import clamp_level, numeric_to_cefr, restore_invariants
from proficiency.modules.levels.interface import ILevelStore, UserSkillLevel
from proficiency.shared.config import get_settings
from proficiency.shared.datetime_utils import utc_now
from proficiency.shared.exceptions import ConcurrentUpdateError, SkillLevelNotFoundError

logger = logging.getLogger(__name__)

LevelKey = tuple[UUID, str, str]


class LevelStore(ILevelStore):
    """In-memory level store."""

    def __init__(self, default_numeric_level: float | None = None) -> None:
        if default_numeric_level is None:
            default_numeric_level = get_settings().default_numeric_level
        self._default_numeric_level = clamp_level(default_numeric_level)
        self._levels: dict[LevelKey, UserSkillLevel] = {}

    async def get(
        self,
        user_id: UUID,
        skill_area: str,
        question_type: str,
    ) -> UserSkillLevel | None:
        stored = self._levels.get((user_id, skill_area, question_type))
        if stored is None:
            return None
        return restore_invariants(stored.copy())

    async def get_or_create(
        self,
        user_id: UUID,
        skill_area: str,
        question_type: str,
    ) -> UserSkillLevel:
        key = (user_id, skill_area, question_type)
        if key not in self._levels:
            self._levels[key] = UserSkillLevel(
                user_id=user_id,
                skill_area=skill_area,
                question_type=question_type,
                numeric_level=self._default_numeric_level,
                cefr_level=numeric_to_cefr(self._default_numeric_level),
            )
            logger.info(
                f"Created level for user {user_id}: {skill_area}/{question_type}",
                extra={"user_id": str(user_id)},
            )
        return restore_invariants(self._levels[key].copy())

    async def save(self, level: UserSkillLevel, expected_version: int) -> UserSkillLevel:
        key = (level.user_id, level.skill_area, level.question_type)
        current = self._levels.get(key)
        if current is None:
            raise SkillLevelNotFoundError(level.user_id, level.skill_area, level.question_type)
        if current.version != expected_version:
            raise ConcurrentUpdateError("UserSkillLevel", current.id, expected_version)

        stored = level.copy(
            id=current.id,
            created_at=current.created_at,
            version=expected_version + 1,
            updated_at=utc_now(),
        )
        self._levels[key] = stored
        return stored.copy()

    async def list_for_user(self, user_id: UUID) -> list[UserSkillLevel]:
        levels = [
            restore_invariants(level.copy())
            for (owner, _, _), level in self._levels.items()
            if owner == user_id
        ]
        return sorted(levels, key=lambda lvl: (lvl.skill_area, lvl.question_type))


# Factory function
_level_store: LevelStore | None = None


def get_level_store() -> LevelStore:
    """Get in-memory level store singleton."""
    global _level_store
    if _level_store is None:
        _level_store = LevelStore()
    return _level_store
