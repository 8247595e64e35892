"""Unit tests for level-aware prompt selection."""

from datetime import datetime, timedelta, timezone
from uuid import UUID

import pytest

from proficiency.modules.levels.service import LevelStore
from proficiency.modules.prompts.interface import Exhausted, Selected, unwrap_selection
from proficiency.modules.prompts.selector import PromptSelector, rank_candidates, refine_quality
from proficiency.modules.prompts.service import ItemPool
from proficiency.shared.exceptions import NoItemAvailableError
from proficiency.shared.feature_flags import FeatureFlags, get_feature_flags
from proficiency.shared.models import CEFRLevel, FallbackReason, SelectionSource

AREA = "reading"
QTYPE = "read_and_select"
T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
def selector(level_store, item_pool, settings):
    return PromptSelector(level_store, item_pool, settings)


async def select(selector, user_id, now):
    return await selector.select_prompt_for_user(user_id, AREA, QTYPE, now=now)


class TestRanking:
    """Tests for candidate ordering."""

    def test_least_used_first(self, make_item):
        busy = make_item(times_used=4, quality_score=99)
        fresh = make_item(times_used=0, quality_score=10)
        assert rank_candidates([busy, fresh])[0] is fresh

    def test_higher_quality_breaks_ties(self, make_item):
        low = make_item(quality_score=40, created_at=T0)
        high = make_item(quality_score=90, created_at=T0 + timedelta(days=1))
        unscored = make_item(created_at=T0 - timedelta(days=1))
        assert rank_candidates([low, unscored, high]) == [high, low, unscored]

    def test_order_is_total(self, make_item):
        items = [make_item(created_at=T0) for _ in range(5)]
        assert rank_candidates(items) == rank_candidates(list(reversed(items)))


class TestRefineQuality:
    """Tests for the item quality moving average."""

    def test_first_score_seeds(self):
        assert refine_quality(None, 80, 0.2) == 80

    def test_moves_toward_new_score(self):
        assert refine_quality(80, 60, 0.2) == 76.0
        assert refine_quality(80, 100, 0.2) == 84.0

    def test_bounded(self):
        assert 0 <= refine_quality(0.5, 0, 1.0) <= 100
        assert refine_quality(99.9, 100, 0.5) <= 100


class TestSelectionLadder:
    """Tests for the exact -> adjacent -> static -> any band -> exhausted ladder."""

    async def test_exact_band(self, selector, item_pool, make_item, sample_user_id):
        item = await item_pool.add_item(make_item(CEFRLevel.A2))
        await item_pool.add_item(make_item(CEFRLevel.B1))

        result = await select(selector, sample_user_id, T0)

        assert isinstance(result, Selected)
        assert result.item.id == item.id
        assert result.source == SelectionSource.GENERATED
        assert result.fallback_reason is None
        assert result.user_level.cefr_level == CEFRLevel.A2
        assert result.item.times_used == 1

    async def test_adjacent_band(self, selector, item_pool, make_item, sample_user_id):
        item = await item_pool.add_item(make_item(CEFRLevel.B1))

        result = await select(selector, sample_user_id, T0)

        assert result.item.id == item.id
        assert result.source == SelectionSource.GENERATED
        assert result.fallback_reason == FallbackReason.ADJACENT_LEVEL

    async def test_distant_band_falls_back_to_static(
        self, selector, item_pool, make_item, sample_user_id
    ):
        await item_pool.add_item(make_item(CEFRLevel.C2))
        static = await item_pool.add_item(make_item(None))

        result = await select(selector, sample_user_id, T0)

        assert result.item.id == static.id
        assert result.source == SelectionSource.FALLBACK
        assert result.fallback_reason == FallbackReason.POOL_EXHAUSTED

    async def test_other_slots_ignored(self, selector, item_pool, make_item, sample_user_id):
        await item_pool.add_item(make_item(CEFRLevel.A2, question_type="fill_in_the_blanks"))
        await item_pool.add_item(make_item(CEFRLevel.A2, skill_area="speaking", question_type="read_then_speak"))

        result = await select(selector, sample_user_id, T0)

        assert isinstance(result, Exhausted)

    async def test_empty_catalog_is_exhausted(self, selector, sample_user_id):
        result = await select(selector, sample_user_id, T0)

        assert isinstance(result, Exhausted)
        assert result.skill_area == AREA
        assert result.question_type == QTYPE
        with pytest.raises(NoItemAvailableError):
            unwrap_selection(result)

    async def test_expired_and_inactive_items_skipped(
        self, selector, item_pool, make_item, sample_user_id
    ):
        await item_pool.add_item(make_item(CEFRLevel.A2, expires_at=T0 - timedelta(hours=1)))
        retired = await item_pool.add_item(make_item(CEFRLevel.A2))
        await item_pool.deactivate_item(retired.id)
        live = await item_pool.add_item(make_item(CEFRLevel.A2, expires_at=T0 + timedelta(days=1)))

        result = await select(selector, sample_user_id, T0)

        assert result.item.id == live.id


class TestExclusion:
    """Tests for never repeating leveled items."""

    async def test_used_items_never_returned_while_unused_exist(
        self, selector, item_pool, make_item, sample_user_id
    ):
        exact = [await item_pool.add_item(make_item(CEFRLevel.A2)) for _ in range(3)]
        adjacent = [await item_pool.add_item(make_item(CEFRLevel.B1)) for _ in range(2)]

        served = []
        for step in range(5):
            result = await select(selector, sample_user_id, T0 + timedelta(minutes=step))
            served.append(result.item.id)

        assert len(set(served)) == 5
        assert set(served[:3]) == {item.id for item in exact}
        assert set(served[3:]) == {item.id for item in adjacent}

    async def test_usage_is_per_user(
        self, selector, item_pool, make_item, sample_user_id, other_user_id
    ):
        item = await item_pool.add_item(make_item(CEFRLevel.A2))

        first = await select(selector, sample_user_id, T0)
        second = await select(selector, other_user_id, T0)

        assert first.item.id == item.id
        assert second.item.id == item.id

    async def test_used_up_leveled_pool_repeats_without_static(
        self, selector, item_pool, make_item, sample_user_id
    ):
        item = await item_pool.add_item(make_item(CEFRLevel.A2))
        await select(selector, sample_user_id, T0)

        result = await select(selector, sample_user_id, T0 + timedelta(minutes=1))

        assert isinstance(result, Selected)
        assert result.item.id == item.id
        assert result.item.times_used == 2
        assert result.source == SelectionSource.FALLBACK
        assert result.fallback_reason == FallbackReason.POOL_EXHAUSTED


class TestAnyBandFallback:
    """Tests for the last tier before exhaustion."""

    async def test_distant_band_served_without_static(
        self, selector, item_pool, make_item, sample_user_id
    ):
        distant = await item_pool.add_item(make_item(CEFRLevel.C2))

        result = await select(selector, sample_user_id, T0)

        assert isinstance(result, Selected)
        assert result.item.id == distant.id
        assert result.source == SelectionSource.FALLBACK
        assert result.fallback_reason == FallbackReason.POOL_EXHAUSTED
        assert result.user_level.cefr_level == CEFRLevel.A2

    async def test_unseen_distant_item_before_repeat(
        self, selector, item_pool, make_item, sample_user_id
    ):
        await item_pool.add_item(make_item(CEFRLevel.A2))
        distant = await item_pool.add_item(make_item(CEFRLevel.C1))
        await select(selector, sample_user_id, T0)

        result = await select(selector, sample_user_id, T0 + timedelta(minutes=1))

        assert result.item.id == distant.id

    async def test_repeats_least_recently_seen(
        self, selector, item_pool, make_item, sample_user_id
    ):
        first = await item_pool.add_item(make_item(CEFRLevel.A2))
        second = await item_pool.add_item(make_item(CEFRLevel.B1))

        picks = []
        for step in range(4):
            result = await select(selector, sample_user_id, T0 + timedelta(minutes=step))
            picks.append(result.item.id)

        assert picks == [first.id, second.id, first.id, second.id]

    async def test_expired_items_never_repeated(
        self, selector, item_pool, make_item, sample_user_id
    ):
        await item_pool.add_item(make_item(CEFRLevel.A2, expires_at=T0 + timedelta(minutes=30)))
        await select(selector, sample_user_id, T0)

        result = await select(selector, sample_user_id, T0 + timedelta(hours=1))

        assert isinstance(result, Exhausted)


class TestStaticFallback:
    """Tests for static bank recency and repeats."""

    async def test_static_bank_repeats_least_recently_seen(
        self, selector, item_pool, make_item, sample_user_id
    ):
        first = await item_pool.add_item(make_item(None, created_at=T0))
        second = await item_pool.add_item(make_item(None, created_at=T0 + timedelta(seconds=1)))

        a = await select(selector, sample_user_id, T0)
        b = await select(selector, sample_user_id, T0 + timedelta(hours=1))
        c = await select(selector, sample_user_id, T0 + timedelta(hours=2))

        assert [a.item.id, b.item.id] == [first.id, second.id]
        assert isinstance(c, Selected)
        assert c.item.id == first.id
        assert c.fallback_reason == FallbackReason.POOL_EXHAUSTED

    async def test_static_items_outside_recent_window_are_fresh(
        self, selector, item_pool, make_item, sample_user_id
    ):
        first = await item_pool.add_item(make_item(None, created_at=T0))
        second = await item_pool.add_item(make_item(None, created_at=T0 + timedelta(seconds=1)))

        await select(selector, sample_user_id, T0)
        await select(selector, sample_user_id, T0 + timedelta(days=8))
        # `first` was seen 8 days ago, outside the 7 day window; `second` is recent
        result = await select(selector, sample_user_id, T0 + timedelta(days=8, hours=1))

        assert result.item.id == first.id
        assert second.id != result.item.id

    async def test_selection_is_deterministic(self, make_item, settings, sample_user_id):
        ids = [UUID(int=n) for n in (7, 3, 5, 1)]

        async def run() -> list[UUID]:
            pool = ItemPool()
            for item_id in ids:
                await pool.add_item(make_item(None, id=item_id, created_at=T0))
            selector = PromptSelector(LevelStore(settings.default_numeric_level), pool, settings)
            picks = []
            for step in range(6):
                result = await select(selector, sample_user_id, T0 + timedelta(hours=step))
                picks.append(result.item.id)
            return picks

        first = await run()
        assert first == await run()
        # Equal usage, quality and age fall through to id order
        assert first[:4] == sorted(ids, key=str)


class TestRecordItemScore:
    """Tests for scoring served items."""

    async def test_fills_pending_usage_and_refines_quality(
        self, selector, item_pool, make_item, sample_user_id
    ):
        item = await item_pool.add_item(make_item(CEFRLevel.A2))
        await select(selector, sample_user_id, T0)

        usage = await selector.record_item_score(sample_user_id, item.id, 80, now=T0)
        await selector.record_item_score(sample_user_id, item.id, 60, now=T0)

        assert usage.score == 80
        assert usage.used_at == T0
        assert (await item_pool.get_item(item.id)).quality_score == 76.0
        assert await item_pool.recent_scores(sample_user_id, AREA, QTYPE, 5) == [80, 60]

    async def test_quality_tracking_can_be_disabled(
        self, selector, item_pool, make_item, sample_user_id
    ):
        get_feature_flags().disable(FeatureFlags.ENABLE_QUALITY_TRACKING)
        item = await item_pool.add_item(make_item(CEFRLevel.A2))

        await selector.record_item_score(sample_user_id, item.id, 90, now=T0)

        assert (await item_pool.get_item(item.id)).quality_score is None
