"""Progression Service - Orchestrates level updates, prompt selection and progress.

This service provides:
- Level updates after each graded attempt, with optional item scoring
- Next-prompt selection for a learner
- Progress summaries (activity window and streaks) in the learner's timezone
- Level overviews and advisory level-up / level-down signals
"""

from datetime import datetime
import logging
from uuid import UUID

from proficiency.modules.levels.adjuster import (
    calculate_overall_skill_level,
    format_level,
    next_level_state,
    should_level_down,
    should_level_up,
)
from proficiency.modules.levels.interface import ILevelStore, SkillOverview, UserSkillLevel
from proficiency.modules.progression.interface import LevelSignals, ProgressSummary
from proficiency.modules.prompts.interface import IItemPool, InventoryCount, PracticeItem, SelectionResult
from proficiency.modules.prompts.selector import PromptSelector
from proficiency.modules.streaks.aggregator import (
    build_activity_window,
    compute_streak_stats,
    local_today,
    window_bounds,
)
from proficiency.modules.streaks.interface import ActivityDay, IActivityLog
from proficiency.shared.config import Settings, get_settings
from proficiency.shared.constants import MAX_PROGRESS_WINDOW_WEEKS, SIGNAL_WINDOW
from proficiency.shared.datetime_utils import ensure_utc, get_zone, local_date, utc_now
from proficiency.shared.dto import Score, SkillSlot
from proficiency.shared.exceptions import InvalidWindowError
from proficiency.shared.models import SkillArea

logger = logging.getLogger(__name__)


class ProgressionService:
    """Entry point for the surrounding application.

    ``user_id`` is passed explicitly to every operation; the service holds
    no per-user state of its own.
    """

    def __init__(
        self,
        level_store: ILevelStore,
        item_pool: IItemPool,
        activity_log: IActivityLog,
        settings: Settings | None = None,
    ) -> None:
        self._levels = level_store
        self._pool = item_pool
        self._activity = activity_log
        self._settings = settings or get_settings()
        self._selector = PromptSelector(level_store, item_pool, self._settings)

    # ===================
    # Levels
    # ===================

    async def update_user_level(
        self,
        user_id: UUID,
        skill_area: str,
        question_type: str,
        score: float,
        item_id: UUID | None = None,
    ) -> UserSkillLevel:
        """Apply one graded attempt to the learner's level.

        Validation happens before anything is written. The write is
        conditional on the version that was read; losing a race raises
        ``ConcurrentUpdateError`` and the caller decides whether to retry.

        Args:
            user_id: Learner
            skill_area: Skill area value
            question_type: Question type within the skill area
            score: Overall score in [0, 100]
            item_id: Item the attempt was made on, if any

        Returns:
            The stored level after the attempt
        """
        slot = SkillSlot.of(skill_area, question_type)
        graded = Score.from_number(score)
        if item_id is not None:
            await self._pool.get_item(item_id)

        level = await self._levels.get_or_create(user_id, slot.skill_area, slot.question_type)
        result = next_level_state(level, graded.rounded)
        saved = await self._levels.save(
            level.copy(
                numeric_level=result.numeric_level,
                cefr_level=result.cefr_level,
                attempts_at_level=result.attempts_at_level,
                correct_streak=result.correct_streak,
            ),
            expected_version=level.version,
        )

        logger.info(
            f"Level updated for user {user_id} {slot.skill_area}/{slot.question_type}: "
            f"{level.numeric_level} -> {saved.numeric_level} ({saved.cefr_level.value}), "
            f"score={graded.rounded}, delta={result.delta}",
            extra={"user_id": str(user_id), "band_changed": result.band_changed},
        )

        if item_id is not None:
            await self._selector.record_item_score(user_id, item_id, graded.rounded)

        return saved

    async def get_user_level(
        self,
        user_id: UUID,
        skill_area: str,
        question_type: str,
    ) -> UserSkillLevel:
        """Get a level, creating it at the default on first access."""
        slot = SkillSlot.of(skill_area, question_type)
        return await self._levels.get_or_create(user_id, slot.skill_area, slot.question_type)

    async def get_all_user_levels(self, user_id: UUID) -> dict[str, list[UserSkillLevel]]:
        """Existing levels grouped by skill area."""
        grouped: dict[str, list[UserSkillLevel]] = {area.value: [] for area in SkillArea}
        for level in await self._levels.list_for_user(user_id):
            grouped.setdefault(level.skill_area, []).append(level)
        return grouped

    async def get_skill_overview(self, user_id: UUID) -> list[SkillOverview]:
        """Per-skill-area aggregate level, defaulting areas with no attempts."""
        grouped = await self.get_all_user_levels(user_id)
        overview = []
        for area in SkillArea:
            levels = grouped.get(area.value, [])
            cefr, numeric = calculate_overall_skill_level([lvl.numeric_level for lvl in levels])
            overview.append(
                SkillOverview(
                    skill_area=area.value,
                    cefr_level=cefr,
                    numeric_level=numeric,
                    display=format_level(cefr, numeric),
                    levels=levels,
                )
            )
        return overview

    async def get_level_signals(
        self,
        user_id: UUID,
        skill_area: str,
        question_type: str,
    ) -> LevelSignals:
        """Advisory level-up / level-down signals from recent scores."""
        level = await self.get_user_level(user_id, skill_area, question_type)
        recent = await self._pool.recent_scores(
            user_id, level.skill_area, level.question_type, SIGNAL_WINDOW
        )
        return LevelSignals(
            level=level,
            recent_scores=recent,
            should_level_up=should_level_up(level.cefr_level, level.correct_streak, recent),
            should_level_down=should_level_down(level.cefr_level, recent),
            display=format_level(level.cefr_level, level.numeric_level),
        )

    # ===================
    # Prompts
    # ===================

    async def select_prompt_for_user(
        self,
        user_id: UUID,
        skill_area: str,
        question_type: str,
        now: datetime | None = None,
    ) -> SelectionResult:
        """Pick the next practice item. See ``PromptSelector``."""
        slot = SkillSlot.of(skill_area, question_type)
        return await self._selector.select_prompt_for_user(
            user_id, slot.skill_area, slot.question_type, now=now
        )

    async def add_item(self, item: PracticeItem) -> PracticeItem:
        """Add a practice item after validating its skill area and question type."""
        SkillSlot.of(item.skill_area, item.question_type)
        return await self._pool.add_item(item)

    async def deactivate_item(self, item_id: UUID) -> PracticeItem:
        return await self._pool.deactivate_item(item_id)

    async def get_prompt_inventory(self) -> list[InventoryCount]:
        return await self._pool.get_inventory()

    # ===================
    # Progress
    # ===================

    def _resolve_timezone(self, timezone: str | None) -> str:
        tz_name = timezone or self._settings.default_timezone
        get_zone(tz_name)
        return tz_name

    async def record_activity(
        self,
        user_id: UUID,
        occurred_at: datetime | None = None,
        timezone: str | None = None,
    ) -> ActivityDay:
        """Count a practice session on the learner's local calendar date."""
        tz_name = self._resolve_timezone(timezone)
        occurred_at = ensure_utc(occurred_at) if occurred_at else utc_now()
        activity_date = local_date(occurred_at, tz_name)
        return await self._activity.record_activity(user_id, activity_date, occurred_at)

    async def get_progress_summary(
        self,
        user_id: UUID,
        window_weeks: int | None = None,
        timezone: str | None = None,
        now: datetime | None = None,
    ) -> ProgressSummary:
        """Activity window and streaks for the dashboard.

        Args:
            user_id: Learner
            window_weeks: Weeks of history (defaults to the configured window)
            timezone: IANA timezone for "today" (defaults to the configured zone)
            now: Reference instant (defaults to utc_now())

        Returns:
            ProgressSummary with a dense day series and streak statistics
        """
        if window_weeks is None:
            window_weeks = self._settings.progress_window_weeks
        if not 1 <= window_weeks <= MAX_PROGRESS_WINDOW_WEEKS:
            raise InvalidWindowError(window_weeks)
        tz_name = self._resolve_timezone(timezone)

        today = local_today(now or utc_now(), tz_name)
        start, end = window_bounds(today, window_weeks)
        activity = await self._activity.get_activity(user_id, start, end)
        days = build_activity_window(activity, today, window_weeks)
        stats = compute_streak_stats(days, today, window_weeks)
        total = await self._activity.total_sessions(user_id)

        return ProgressSummary(
            days=days,
            current_streak_days=stats.current_streak_days,
            best_streak_days=stats.best_streak_days,
            current_streak_weeks=stats.current_streak_weeks,
            best_streak_weeks=stats.best_streak_weeks,
            total_attempts=total,
            timezone=tz_name,
            window_weeks=window_weeks,
        )
