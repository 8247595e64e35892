"""Item Pool - Database-backed implementation."""

from datetime import datetime
import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from proficiency.modules.prompts.interface import IItemPool, InventoryCount, ItemUsage, PracticeItem
from proficiency.modules.prompts.models import ItemUsageModel, PracticeItemModel
from proficiency.modules.prompts.repository import ItemUsageRepository, PracticeItemRepository
from proficiency.modules.prompts.selector import rank_candidates
from proficiency.shared.database import get_db_session
from proficiency.shared.exceptions import PracticeItemNotFoundError
from proficiency.shared.models import CEFRLevel

logger = logging.getLogger(__name__)


class DatabaseItemPool(IItemPool):
    """Database-backed item pool.

    Usage rows are append-only; ``times_used`` is bumped with a single
    atomic UPDATE so concurrent serves never lose a count.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession] | None = None) -> None:
        self._session_factory = session_factory

    async def _require(self, repo: PracticeItemRepository, item_id: UUID) -> PracticeItemModel:
        row = await repo.get_by_id(item_id)
        if row is None:
            raise PracticeItemNotFoundError(item_id)
        return row

    async def add_item(self, item: PracticeItem) -> PracticeItem:
        async with get_db_session(self._session_factory) as db:
            row = await PracticeItemRepository(db).create(PracticeItemModel.from_domain(item))
            logger.info(f"Added practice item {row.id} ({row.skill_area}/{row.question_type})")
            return row.to_domain()

    async def get_item(self, item_id: UUID) -> PracticeItem:
        async with get_db_session(self._session_factory) as db:
            row = await self._require(PracticeItemRepository(db), item_id)
            return row.to_domain()

    async def deactivate_item(self, item_id: UUID) -> PracticeItem:
        async with get_db_session(self._session_factory) as db:
            repo = PracticeItemRepository(db)
            row = await self._require(repo, item_id)
            row.is_active = False
            await db.flush()
            logger.info(f"Deactivated practice item {item_id}")
            return row.to_domain()

    async def find_unused(
        self,
        user_id: UUID,
        skill_area: str,
        question_type: str,
        cefr_levels: list[CEFRLevel],
        now: datetime,
        limit: int,
    ) -> list[PracticeItem]:
        async with get_db_session(self._session_factory) as db:
            rows = await PracticeItemRepository(db).get_unused_leveled(
                user_id,
                skill_area,
                question_type,
                [band.value for band in cefr_levels],
                now,
                limit,
            )
            return rank_candidates(row.to_domain() for row in rows)

    async def find_static(
        self,
        skill_area: str,
        question_type: str,
        now: datetime,
    ) -> list[PracticeItem]:
        async with get_db_session(self._session_factory) as db:
            rows = await PracticeItemRepository(db).get_static(skill_area, question_type, now)
            return [row.to_domain() for row in rows]

    async def find_any_leveled(
        self,
        skill_area: str,
        question_type: str,
        now: datetime,
    ) -> list[PracticeItem]:
        async with get_db_session(self._session_factory) as db:
            rows = await PracticeItemRepository(db).get_servable_leveled(skill_area, question_type, now)
            return [row.to_domain() for row in rows]

    async def recent_item_ids(self, user_id: UUID, since: datetime, limit: int) -> list[UUID]:
        async with get_db_session(self._session_factory) as db:
            return await ItemUsageRepository(db).get_recent_item_ids(user_id, since, limit)

    async def last_served(self, user_id: UUID, item_ids: list[UUID]) -> dict[UUID, datetime]:
        async with get_db_session(self._session_factory) as db:
            return await ItemUsageRepository(db).get_last_served(user_id, item_ids)

    async def mark_served(self, user_id: UUID, item_id: UUID, served_at: datetime) -> PracticeItem:
        async with get_db_session(self._session_factory) as db:
            items = PracticeItemRepository(db)
            if await items.increment_times_used(item_id) == 0:
                raise PracticeItemNotFoundError(item_id)
            await ItemUsageRepository(db).create(
                ItemUsageModel(user_id=user_id, item_id=item_id, used_at=served_at)
            )
            row = await self._require(items, item_id)
            return row.to_domain()

    async def record_score(
        self,
        user_id: UUID,
        item_id: UUID,
        score: float,
        scored_at: datetime,
    ) -> ItemUsage:
        async with get_db_session(self._session_factory) as db:
            await self._require(PracticeItemRepository(db), item_id)
            usages = ItemUsageRepository(db)

            pending = await usages.get_pending(user_id, item_id)
            if pending is not None:
                pending.score = score
                await db.flush()
                return pending.to_domain()

            row = await usages.create(
                ItemUsageModel(user_id=user_id, item_id=item_id, score=score, used_at=scored_at)
            )
            return row.to_domain()

    async def set_quality_score(self, item_id: UUID, quality_score: float) -> PracticeItem:
        async with get_db_session(self._session_factory) as db:
            row = await self._require(PracticeItemRepository(db), item_id)
            row.quality_score = quality_score
            await db.flush()
            return row.to_domain()

    async def recent_scores(
        self,
        user_id: UUID,
        skill_area: str,
        question_type: str,
        limit: int,
    ) -> list[float]:
        if limit <= 0:
            return []
        async with get_db_session(self._session_factory) as db:
            return await ItemUsageRepository(db).get_recent_scores(
                user_id, skill_area, question_type, limit
            )

    async def get_inventory(self) -> list[InventoryCount]:
        async with get_db_session(self._session_factory) as db:
            rows = await PracticeItemRepository(db).get_inventory()
            counts = [
                InventoryCount(
                    skill_area=area,
                    question_type=qt,
                    cefr_level=band or "static",
                    count=count,
                )
                for area, qt, band, count in rows
            ]
            return sorted(counts, key=lambda c: (c.skill_area, c.question_type, c.cefr_level))


# Factory function
_db_item_pool: DatabaseItemPool | None = None


def get_db_item_pool() -> DatabaseItemPool:
    """Get database item pool singleton."""
    global _db_item_pool
    if _db_item_pool is None:
        _db_item_pool = DatabaseItemPool()
    return _db_item_pool
