"""Prompt selection.

Chooses the next practice item for a learner by walking a fallback ladder:

1. Unused items at the learner's exact CEFR band.
2. Unused items at the adjacent bands.
3. The static, level-agnostic bank, avoiding recently attempted items
   and allowing repeats when every static item is recent.
4. Any servable item for the question type at any band, repeats included,
   the one seen longest ago first.
5. ``Exhausted`` only when the question type has no servable item at all.

Every serve is recorded in the usage log so the unused tiers skip it later.
"""

from datetime import datetime, timedelta
import logging
from typing import Iterable
from uuid import UUID

from proficiency.modules.levels.adjuster import get_adjacent_levels
from proficiency.modules.levels.interface import ILevelStore, UserSkillLevel
from proficiency.modules.prompts.interface import (
    Exhausted,
    IItemPool,
    ItemUsage,
    PracticeItem,
    Selected,
    SelectionResult,
)
from proficiency.shared.config import Settings, get_settings
from proficiency.shared.constants import MAX_SCORE, MIN_SCORE
from proficiency.shared.datetime_utils import ensure_utc, utc_now
from proficiency.shared.feature_flags import is_quality_tracking_enabled
from proficiency.shared.models import FallbackReason, SelectionSource

logger = logging.getLogger(__name__)


def _ranking_key(item: PracticeItem) -> tuple:
    band_rank = item.cefr_level.rank if item.cefr_level else -1
    return (
        item.times_used,
        item.quality_score is None,
        -(item.quality_score or 0.0),
        band_rank,
        ensure_utc(item.created_at),
        str(item.id),
    )


def rank_candidates(items: Iterable[PracticeItem]) -> list[PracticeItem]:
    """Order candidates best first.

    Least used first, then highest quality (unscored last), then lower
    band, then oldest, then id so the order is total.
    """
    return sorted(items, key=_ranking_key)


def refine_quality(current: float | None, score: float, smoothing: float) -> float:
    """Exponential moving average of item scores, bounded to [0, 100].

    The first score seeds the average; each later score moves it a
    ``smoothing`` fraction of the way toward the new score.
    """
    if current is None:
        refined = score
    else:
        refined = current + smoothing * (score - current)
    return round(max(MIN_SCORE, min(MAX_SCORE, refined)), 2)


class PromptSelector:
    """Level-aware practice item selection over an item pool."""

    def __init__(
        self,
        level_store: ILevelStore,
        item_pool: IItemPool,
        settings: Settings | None = None,
    ) -> None:
        self._levels = level_store
        self._pool = item_pool
        self._settings = settings or get_settings()

    async def select_prompt_for_user(
        self,
        user_id: UUID,
        skill_area: str,
        question_type: str,
        now: datetime | None = None,
    ) -> SelectionResult:
        """Select the next item for a learner and record the serve.

        Args:
            user_id: Learner
            skill_area: Skill area value
            question_type: Question type within the skill area
            now: Reference time for expiry and recency (defaults to utc_now())

        Returns:
            ``Selected`` with the item and its provenance, or ``Exhausted``
        """
        now = ensure_utc(now) if now else utc_now()
        level = await self._levels.get_or_create(user_id, skill_area, question_type)
        limit = self._settings.candidate_fetch_limit

        exact = await self._pool.find_unused(
            user_id, skill_area, question_type, [level.cefr_level], now, limit
        )
        if exact:
            return await self._serve(
                user_id, rank_candidates(exact)[0], level, SelectionSource.GENERATED, None, now
            )

        adjacent_bands = get_adjacent_levels(level.cefr_level)
        adjacent = await self._pool.find_unused(
            user_id, skill_area, question_type, adjacent_bands, now, limit
        )
        if adjacent:
            return await self._serve(
                user_id,
                rank_candidates(adjacent)[0],
                level,
                SelectionSource.GENERATED,
                FallbackReason.ADJACENT_LEVEL,
                now,
            )

        static_item = await self._pick_static(user_id, skill_area, question_type, now)
        if static_item is not None:
            return await self._serve(
                user_id,
                static_item,
                level,
                SelectionSource.FALLBACK,
                FallbackReason.POOL_EXHAUSTED,
                now,
            )

        repeat = await self._pick_any_leveled(user_id, skill_area, question_type, now)
        if repeat is not None:
            return await self._serve(
                user_id,
                repeat,
                level,
                SelectionSource.FALLBACK,
                FallbackReason.POOL_EXHAUSTED,
                now,
            )

        logger.warning(
            f"No practice item available for {skill_area}/{question_type} at {level.cefr_level.value}",
            extra={"user_id": str(user_id)},
        )
        return Exhausted(user_level=level, skill_area=skill_area, question_type=question_type)

    async def _pick_static(
        self,
        user_id: UUID,
        skill_area: str,
        question_type: str,
        now: datetime,
    ) -> PracticeItem | None:
        static_items = await self._pool.find_static(skill_area, question_type, now)
        if not static_items:
            return None

        since = now - timedelta(days=self._settings.static_recent_window_days)
        recent = set(
            await self._pool.recent_item_ids(
                user_id, since, self._settings.static_recent_window_attempts
            )
        )
        fresh = [item for item in static_items if item.id not in recent]
        if fresh:
            return rank_candidates(fresh)[0]

        # Every static item is recent: repeat the one seen longest ago
        return await self._least_recently_seen(user_id, static_items)

    async def _pick_any_leveled(
        self,
        user_id: UUID,
        skill_area: str,
        question_type: str,
        now: datetime,
    ) -> PracticeItem | None:
        items = await self._pool.find_any_leveled(skill_area, question_type, now)
        if not items:
            return None
        return await self._least_recently_seen(user_id, items)

    async def _least_recently_seen(
        self,
        user_id: UUID,
        items: list[PracticeItem],
    ) -> PracticeItem:
        """Never-seen items first, then the one served longest ago; ties by rank."""
        last_seen = await self._pool.last_served(user_id, [item.id for item in items])
        oldest_first = sorted(
            rank_candidates(items),
            key=lambda item: (
                item.id in last_seen,
                ensure_utc(last_seen[item.id]) if item.id in last_seen else None,
            ),
        )
        return oldest_first[0]

    async def _serve(
        self,
        user_id: UUID,
        item: PracticeItem,
        level: UserSkillLevel,
        source: SelectionSource,
        reason: FallbackReason | None,
        now: datetime,
    ) -> Selected:
        served = await self._pool.mark_served(user_id, item.id, now)
        logger.info(
            f"Selected item {item.id} for user {user_id} "
            f"(source={source.value}, reason={reason.value if reason else None})",
            extra={"user_id": str(user_id), "item_id": str(item.id)},
        )
        return Selected(item=served, source=source, user_level=level, fallback_reason=reason)

    async def record_item_score(
        self,
        user_id: UUID,
        item_id: UUID,
        score: float,
        now: datetime | None = None,
    ) -> ItemUsage:
        """Attach a graded score to the user's serve and refine the item's quality."""
        now = ensure_utc(now) if now else utc_now()
        usage = await self._pool.record_score(user_id, item_id, score, now)

        if is_quality_tracking_enabled():
            item = await self._pool.get_item(item_id)
            quality = refine_quality(
                item.quality_score, score, self._settings.quality_score_smoothing
            )
            await self._pool.set_quality_score(item_id, quality)
            logger.debug(f"Item {item_id} quality {item.quality_score} -> {quality}")

        return usage
