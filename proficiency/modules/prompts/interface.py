"""Prompts Module - Practice item pool and level-aware selection."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Protocol, Union
from uuid import UUID, uuid4

from proficiency.modules.levels.interface import UserSkillLevel
from proficiency.shared.datetime_utils import is_expired, utc_now
from proficiency.shared.exceptions import NoItemAvailableError
from proficiency.shared.models import CEFRLevel, FallbackReason, SelectionSource


@dataclass
class PracticeItem:
    """A practice prompt.

    Items with no ``cefr_level`` belong to the static bank and can be
    served at any level.
    """

    skill_area: str
    question_type: str
    content: dict[str, Any]
    cefr_level: CEFRLevel | None = None
    times_used: int = 0
    quality_score: float | None = None  # 0-100, refined from graded attempts
    expires_at: datetime | None = None
    is_active: bool = True
    metadata: dict[str, Any] = field(default_factory=dict)
    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=utc_now)

    @property
    def is_static(self) -> bool:
        return self.cefr_level is None

    def is_servable(self, now: datetime | None = None) -> bool:
        """Active and not past its expiry."""
        return self.is_active and not is_expired(self.expires_at, now)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for API responses."""
        return {
            "id": str(self.id),
            "skill_area": self.skill_area,
            "question_type": self.question_type,
            "cefr_level": self.cefr_level.value if self.cefr_level else None,
            "content": self.content,
            "times_used": self.times_used,
            "quality_score": self.quality_score,
            "expires_at": self.expires_at.isoformat() if self.expires_at else None,
            "metadata": self.metadata,
        }


@dataclass
class ItemUsage:
    """One serve of an item to a user; ``score`` is filled in after grading."""

    user_id: UUID
    item_id: UUID
    score: float | None = None
    used_at: datetime = field(default_factory=utc_now)
    id: UUID = field(default_factory=uuid4)


@dataclass(frozen=True)
class InventoryCount:
    """Active items for one (skill area, question type, band) bucket."""

    skill_area: str
    question_type: str
    cefr_level: str  # band label, or "static"
    count: int


@dataclass(frozen=True)
class Selected:
    """An item was chosen for the learner."""

    item: PracticeItem
    source: SelectionSource
    user_level: UserSkillLevel
    fallback_reason: FallbackReason | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": "selected",
            "item": self.item.to_dict(),
            "source": self.source.value,
            "user_level": self.user_level.to_dict(),
            "fallback_reason": self.fallback_reason.value if self.fallback_reason else None,
        }


@dataclass(frozen=True)
class Exhausted:
    """No item is available at any tier."""

    user_level: UserSkillLevel
    skill_area: str
    question_type: str
    reason: str = "no_items"

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": "exhausted",
            "reason": self.reason,
            "skill_area": self.skill_area,
            "question_type": self.question_type,
            "user_level": self.user_level.to_dict(),
        }


SelectionResult = Union[Selected, Exhausted]


def unwrap_selection(result: SelectionResult) -> Selected:
    """Return the selection or raise ``NoItemAvailableError`` on exhaustion."""
    if isinstance(result, Exhausted):
        raise NoItemAvailableError(
            result.skill_area,
            result.question_type,
            result.user_level.cefr_level.value,
        )
    return result


class IItemPool(Protocol):
    """Interface for the practice item pool and its usage log."""

    async def add_item(self, item: PracticeItem) -> PracticeItem:
        """Add an item to the pool."""
        ...

    async def get_item(self, item_id: UUID) -> PracticeItem:
        """Get an item.

        Raises:
            PracticeItemNotFoundError: If the item does not exist
        """
        ...

    async def deactivate_item(self, item_id: UUID) -> PracticeItem:
        """Retire an item so it is never selected again."""
        ...

    async def find_unused(
        self,
        user_id: UUID,
        skill_area: str,
        question_type: str,
        cefr_levels: list[CEFRLevel],
        now: datetime,
        limit: int,
    ) -> list[PracticeItem]:
        """Servable leveled items at any of ``cefr_levels`` the user has never been served.

        Returns at most ``limit`` items, best candidates first.
        """
        ...

    async def find_static(
        self,
        skill_area: str,
        question_type: str,
        now: datetime,
    ) -> list[PracticeItem]:
        """All servable static-bank items for a question type."""
        ...

    async def find_any_leveled(
        self,
        skill_area: str,
        question_type: str,
        now: datetime,
    ) -> list[PracticeItem]:
        """All servable leveled items for a question type at any band, served or not."""
        ...

    async def recent_item_ids(self, user_id: UUID, since: datetime, limit: int) -> list[UUID]:
        """Items served to the user at or after ``since``, newest first, at most ``limit``."""
        ...

    async def last_served(self, user_id: UUID, item_ids: list[UUID]) -> dict[UUID, datetime]:
        """Most recent serve time per item for a user. Unserved items are absent."""
        ...

    async def mark_served(self, user_id: UUID, item_id: UUID, served_at: datetime) -> PracticeItem:
        """Append a usage row and increment ``times_used``.

        Returns:
            The item with its updated counter
        """
        ...

    async def record_score(
        self,
        user_id: UUID,
        item_id: UUID,
        score: float,
        scored_at: datetime,
    ) -> ItemUsage:
        """Attach a score to the user's latest unscored serve of the item.

        Appends a scored usage row if there is no pending serve.
        """
        ...

    async def set_quality_score(self, item_id: UUID, quality_score: float) -> PracticeItem:
        """Store a refined quality score."""
        ...

    async def recent_scores(
        self,
        user_id: UUID,
        skill_area: str,
        question_type: str,
        limit: int,
    ) -> list[float]:
        """The user's most recent scores for a question type, oldest first."""
        ...

    async def get_inventory(self) -> list[InventoryCount]:
        """Active item counts grouped by skill area, question type and band."""
        ...
