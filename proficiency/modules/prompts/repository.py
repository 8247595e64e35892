"""Prompts repository for data access operations.

This module implements the repository pattern for practice items and their
usage log, separating query construction from selection logic.
"""

from datetime import datetime
from typing import Sequence
from uuid import UUID

from sqlalchemy import and_, desc, func, or_, select, update

from proficiency.modules.prompts.models import ItemUsageModel, PracticeItemModel
from proficiency.shared.repository import BaseRepository


def _servable(now: datetime):
    return and_(
        PracticeItemModel.is_active.is_(True),
        or_(PracticeItemModel.expires_at.is_(None), PracticeItemModel.expires_at > now),
    )


class PracticeItemRepository(BaseRepository[PracticeItemModel]):
    """Repository for PracticeItem entities."""

    @property
    def _model_class(self) -> type[PracticeItemModel]:
        return PracticeItemModel

    async def get_unused_leveled(
        self,
        user_id: UUID,
        skill_area: str,
        question_type: str,
        cefr_levels: list[str],
        now: datetime,
        limit: int,
    ) -> Sequence[PracticeItemModel]:
        """Get servable leveled items the user has never been served.

        Ordered like ``rank_candidates`` so the limit keeps the best candidates.
        """
        served = select(ItemUsageModel.item_id).where(ItemUsageModel.user_id == user_id)
        result = await self._session.execute(
            select(PracticeItemModel)
            .where(
                and_(
                    PracticeItemModel.skill_area == skill_area,
                    PracticeItemModel.question_type == question_type,
                    PracticeItemModel.cefr_level.in_(cefr_levels),
                    PracticeItemModel.id.not_in(served),
                    _servable(now),
                )
            )
            .order_by(
                PracticeItemModel.times_used,
                PracticeItemModel.quality_score.is_(None),
                desc(PracticeItemModel.quality_score),
                PracticeItemModel.cefr_level,
                PracticeItemModel.created_at,
                PracticeItemModel.id,
            )
            .limit(limit)
        )
        return result.scalars().all()

    async def get_static(
        self,
        skill_area: str,
        question_type: str,
        now: datetime,
    ) -> Sequence[PracticeItemModel]:
        """Get all servable static-bank items for a question type."""
        result = await self._session.execute(
            select(PracticeItemModel).where(
                and_(
                    PracticeItemModel.skill_area == skill_area,
                    PracticeItemModel.question_type == question_type,
                    PracticeItemModel.cefr_level.is_(None),
                    _servable(now),
                )
            )
        )
        return result.scalars().all()

    async def get_servable_leveled(
        self,
        skill_area: str,
        question_type: str,
        now: datetime,
    ) -> Sequence[PracticeItemModel]:
        """Get every servable leveled item for a question type, used or not."""
        result = await self._session.execute(
            select(PracticeItemModel).where(
                and_(
                    PracticeItemModel.skill_area == skill_area,
                    PracticeItemModel.question_type == question_type,
                    PracticeItemModel.cefr_level.is_not(None),
                    _servable(now),
                )
            )
        )
        return result.scalars().all()

    async def increment_times_used(self, item_id: UUID) -> int:
        """Atomically bump the usage counter. Returns rows updated."""
        result = await self._session.execute(
            update(PracticeItemModel)
            .where(PracticeItemModel.id == item_id)
            .values(times_used=PracticeItemModel.times_used + 1)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    async def get_inventory(self) -> Sequence[tuple[str, str, str | None, int]]:
        """Count active items per (skill area, question type, band)."""
        result = await self._session.execute(
            select(
                PracticeItemModel.skill_area,
                PracticeItemModel.question_type,
                PracticeItemModel.cefr_level,
                func.count(PracticeItemModel.id),
            )
            .where(PracticeItemModel.is_active.is_(True))
            .group_by(
                PracticeItemModel.skill_area,
                PracticeItemModel.question_type,
                PracticeItemModel.cefr_level,
            )
        )
        return [tuple(row) for row in result.all()]


class ItemUsageRepository(BaseRepository[ItemUsageModel]):
    """Repository for ItemUsage entities."""

    @property
    def _model_class(self) -> type[ItemUsageModel]:
        return ItemUsageModel

    async def get_recent_item_ids(self, user_id: UUID, since: datetime, limit: int) -> list[UUID]:
        """Items served to a user since a cutoff, newest first."""
        result = await self._session.execute(
            select(ItemUsageModel.item_id)
            .where(and_(ItemUsageModel.user_id == user_id, ItemUsageModel.used_at >= since))
            .order_by(desc(ItemUsageModel.used_at))
            .limit(limit)
        )
        return list(result.scalars().all())

    async def get_last_served(self, user_id: UUID, item_ids: list[UUID]) -> dict[UUID, datetime]:
        """Latest serve time per item for a user."""
        if not item_ids:
            return {}
        result = await self._session.execute(
            select(ItemUsageModel.item_id, func.max(ItemUsageModel.used_at))
            .where(and_(ItemUsageModel.user_id == user_id, ItemUsageModel.item_id.in_(item_ids)))
            .group_by(ItemUsageModel.item_id)
        )
        return {item_id: used_at for item_id, used_at in result.all()}

    async def get_pending(self, user_id: UUID, item_id: UUID) -> ItemUsageModel | None:
        """Latest unscored serve of an item to a user."""
        result = await self._session.execute(
            select(ItemUsageModel)
            .where(
                and_(
                    ItemUsageModel.user_id == user_id,
                    ItemUsageModel.item_id == item_id,
                    ItemUsageModel.score.is_(None),
                )
            )
            .order_by(desc(ItemUsageModel.used_at))
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def get_recent_scores(
        self,
        user_id: UUID,
        skill_area: str,
        question_type: str,
        limit: int,
    ) -> list[float]:
        """Most recent scores for a question type, oldest first."""
        result = await self._session.execute(
            select(ItemUsageModel.score)
            .join(PracticeItemModel, PracticeItemModel.id == ItemUsageModel.item_id)
            .where(
                and_(
                    ItemUsageModel.user_id == user_id,
                    ItemUsageModel.score.is_not(None),
                    PracticeItemModel.skill_area == skill_area,
                    PracticeItemModel.question_type == question_type,
                )
            )
            .order_by(desc(ItemUsageModel.used_at))
            .limit(limit)
        )
        return [float(score) for score in reversed(result.scalars().all())]
