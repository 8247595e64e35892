"""Item Pool - In-memory implementation."""

from collections import Counter
from dataclasses import replace
from datetime import datetime
import logging
from uuid import UUID

from proficiency.modules.prompts.interface import IItemPool, InventoryCount, ItemUsage, PracticeItem
from proficiency.modules.prompts.selector import rank_candidates
from proficiency.shared.datetime_utils import ensure_utc
from proficiency.shared.exceptions import PracticeItemNotFoundError
from proficiency.shared.models import CEFRLevel

logger = logging.getLogger(__name__)


class ItemPool(IItemPool):
    """In-memory item pool with an append-only usage log."""

    def __init__(self) -> None:
        self._items: dict[UUID, PracticeItem] = {}
        self._usages: list[ItemUsage] = []

    async def add_item(self, item: PracticeItem) -> PracticeItem:
        self._items[item.id] = replace(item)
        logger.info(f"Added practice item {item.id} ({item.skill_area}/{item.question_type})")
        return replace(item)

    async def get_item(self, item_id: UUID) -> PracticeItem:
        item = self._items.get(item_id)
        if item is None:
            raise PracticeItemNotFoundError(item_id)
        return replace(item)

    async def deactivate_item(self, item_id: UUID) -> PracticeItem:
        item = self._items.get(item_id)
        if item is None:
            raise PracticeItemNotFoundError(item_id)
        item.is_active = False
        logger.info(f"Deactivated practice item {item_id}")
        return replace(item)

    async def find_unused(
        self,
        user_id: UUID,
        skill_area: str,
        question_type: str,
        cefr_levels: list[CEFRLevel],
        now: datetime,
        limit: int,
    ) -> list[PracticeItem]:
        seen = {usage.item_id for usage in self._usages if usage.user_id == user_id}
        candidates = [
            item for item in self._items.values()
            if item.skill_area == skill_area
            and item.question_type == question_type
            and item.cefr_level in cefr_levels
            and item.id not in seen
            and item.is_servable(now)
        ]
        return [replace(item) for item in rank_candidates(candidates)[:limit]]

    async def find_static(
        self,
        skill_area: str,
        question_type: str,
        now: datetime,
    ) -> list[PracticeItem]:
        return [
            replace(item) for item in self._items.values()
            if item.is_static
            and item.skill_area == skill_area
            and item.question_type == question_type
            and item.is_servable(now)
        ]

    async def find_any_leveled(
        self,
        skill_area: str,
        question_type: str,
        now: datetime,
    ) -> list[PracticeItem]:
        return [
            replace(item) for item in self._items.values()
            if not item.is_static
            and item.skill_area == skill_area
            and item.question_type == question_type
            and item.is_servable(now)
        ]

    async def recent_item_ids(self, user_id: UUID, since: datetime, limit: int) -> list[UUID]:
        since = ensure_utc(since)
        recent = sorted(
            (u for u in self._usages if u.user_id == user_id and ensure_utc(u.used_at) >= since),
            key=lambda u: u.used_at,
            reverse=True,
        )
        return [usage.item_id for usage in recent[:limit]]

    async def last_served(self, user_id: UUID, item_ids: list[UUID]) -> dict[UUID, datetime]:
        wanted = set(item_ids)
        latest: dict[UUID, datetime] = {}
        for usage in self._usages:
            if usage.user_id != user_id or usage.item_id not in wanted:
                continue
            if usage.item_id not in latest or usage.used_at > latest[usage.item_id]:
                latest[usage.item_id] = usage.used_at
        return latest

    async def mark_served(self, user_id: UUID, item_id: UUID, served_at: datetime) -> PracticeItem:
        item = self._items.get(item_id)
        if item is None:
            raise PracticeItemNotFoundError(item_id)
        self._usages.append(ItemUsage(user_id=user_id, item_id=item_id, used_at=served_at))
        item.times_used += 1
        return replace(item)

    async def record_score(
        self,
        user_id: UUID,
        item_id: UUID,
        score: float,
        scored_at: datetime,
    ) -> ItemUsage:
        if item_id not in self._items:
            raise PracticeItemNotFoundError(item_id)

        pending = [
            u for u in self._usages
            if u.user_id == user_id and u.item_id == item_id and u.score is None
        ]
        if pending:
            usage = max(pending, key=lambda u: u.used_at)
            usage.score = score
            return replace(usage)

        usage = ItemUsage(user_id=user_id, item_id=item_id, score=score, used_at=scored_at)
        self._usages.append(usage)
        return replace(usage)

    async def set_quality_score(self, item_id: UUID, quality_score: float) -> PracticeItem:
        item = self._items.get(item_id)
        if item is None:
            raise PracticeItemNotFoundError(item_id)
        item.quality_score = quality_score
        return replace(item)

    async def recent_scores(
        self,
        user_id: UUID,
        skill_area: str,
        question_type: str,
        limit: int,
    ) -> list[float]:
        scored = [
            u for u in self._usages
            if u.user_id == user_id
            and u.score is not None
            and self._items[u.item_id].skill_area == skill_area
            and self._items[u.item_id].question_type == question_type
        ]
        scored.sort(key=lambda u: u.used_at)
        return [u.score for u in scored[-limit:]] if limit > 0 else []

    async def get_inventory(self) -> list[InventoryCount]:
        counts = Counter(
            (item.skill_area, item.question_type, item.cefr_level.value if item.cefr_level else "static")
            for item in self._items.values()
            if item.is_active
        )
        return [
            InventoryCount(skill_area=area, question_type=qt, cefr_level=band, count=count)
            for (area, qt, band), count in sorted(counts.items())
        ]


# Factory function
_item_pool: ItemPool | None = None


def get_item_pool() -> ItemPool:
    """Get in-memory item pool singleton."""
    global _item_pool
    if _item_pool is None:
        _item_pool = ItemPool()
    return _item_pool
