"""Levels Module - Per-skill proficiency tracking."""

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Protocol
from uuid import UUID, uuid4

from proficiency.shared.datetime_utils import utc_now
from proficiency.shared.models import CEFRLevel


@dataclass
class UserSkillLevel:
    """A learner's proficiency for one (skill area, question type) pair."""

    user_id: UUID
    skill_area: str
    question_type: str
    numeric_level: float
    cefr_level: CEFRLevel
    attempts_at_level: int = 0
    correct_streak: int = 0
    version: int = 1  # Bumped by every write; optimistic concurrency token
    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    def copy(self, **changes) -> "UserSkillLevel":
        return replace(self, **changes)

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses."""
        return {
            "id": str(self.id),
            "user_id": str(self.user_id),
            "skill_area": self.skill_area,
            "question_type": self.question_type,
            "numeric_level": self.numeric_level,
            "cefr_level": self.cefr_level.value,
            "attempts_at_level": self.attempts_at_level,
            "correct_streak": self.correct_streak,
            "updated_at": self.updated_at.isoformat(),
        }


@dataclass(frozen=True)
class LevelAdjustmentResult:
    """Outcome of applying one graded attempt to a level."""

    numeric_level: float
    cefr_level: CEFRLevel
    delta: float
    attempts_at_level: int
    correct_streak: int
    band_changed: bool


@dataclass(frozen=True)
class SkillOverview:
    """Aggregate level for one skill area across its question types."""

    skill_area: str
    cefr_level: CEFRLevel
    numeric_level: float
    display: str
    levels: list[UserSkillLevel]


class ILevelStore(Protocol):
    """Interface for level persistence.

    Implementations own the (user, skill area, question type) rows and
    provide lazy creation plus a conditional write keyed on ``version``.
    """

    async def get(
        self,
        user_id: UUID,
        skill_area: str,
        question_type: str,
    ) -> UserSkillLevel | None:
        """Get a level if one exists.

        Stored levels outside [1.0, 6.0] are clamped on read.
        """
        ...

    async def get_or_create(
        self,
        user_id: UUID,
        skill_area: str,
        question_type: str,
    ) -> UserSkillLevel:
        """Get a level, creating it at the default level on first access.

        Two concurrent first accesses resolve to the same row.
        """
        ...

    async def save(self, level: UserSkillLevel, expected_version: int) -> UserSkillLevel:
        """Persist a level if the stored version still equals ``expected_version``.

        Args:
            level: New state to store; ``version`` is set by the store
            expected_version: Version observed when the state was read

        Returns:
            The stored level with its new version

        Raises:
            ConcurrentUpdateError: If another writer got there first
            SkillLevelNotFoundError: If the row does not exist
        """
        ...

    async def list_for_user(self, user_id: UUID) -> list[UserSkillLevel]:
        """All levels for a user, ordered by skill area then question type."""
        ...
