"""Unit tests for the progression service."""

from datetime import date, datetime, timedelta, timezone
from uuid import uuid4

import pytest

from proficiency.modules.prompts.interface import Exhausted, Selected
from proficiency.shared.exceptions import (
    ConcurrentUpdateError,
    InvalidQuestionTypeError,
    InvalidScoreError,
    InvalidSkillAreaError,
    InvalidTimezoneError,
    InvalidWindowError,
    PracticeItemNotFoundError,
)
from proficiency.shared.models import CEFRLevel

AREA = "reading"
QTYPE = "read_and_select"


class TestUpdateUserLevel:
    """Tests for applying graded attempts."""

    async def test_first_attempt_creates_default_level(self, progression_service, sample_user_id):
        level = await progression_service.update_user_level(sample_user_id, AREA, QTYPE, 90)

        assert level.numeric_level == 2.15
        assert level.cefr_level == CEFRLevel.A2
        assert level.attempts_at_level == 1
        assert level.correct_streak == 1
        assert level.version == 2

    async def test_sequence_moves_band(self, progression_service, sample_user_id):
        for _ in range(4):
            level = await progression_service.update_user_level(sample_user_id, AREA, QTYPE, 95)

        assert level.numeric_level == 2.6
        assert level.cefr_level == CEFRLevel.B1
        assert level.attempts_at_level == 1
        assert level.correct_streak == 4

    @pytest.mark.parametrize(
        "score, expected",
        [(84.6, 2.15), (84.5, 2.15), (84.4, 2.05), (69.5, 2.05), (54.5, 2.0), (39.4, 1.85)],
    )
    async def test_score_rounded_half_up_before_banding(
        self, progression_service, sample_user_id, score, expected
    ):
        level = await progression_service.update_user_level(sample_user_id, AREA, QTYPE, score)
        assert level.numeric_level == expected

    @pytest.mark.parametrize("score", [-1, 100.5, float("nan"), "80", True])
    async def test_invalid_score_rejected_before_mutation(
        self, progression_service, level_store, sample_user_id, score
    ):
        with pytest.raises(InvalidScoreError):
            await progression_service.update_user_level(sample_user_id, AREA, QTYPE, score)

        assert await level_store.list_for_user(sample_user_id) == []

    async def test_unknown_skill_area(self, progression_service, sample_user_id):
        with pytest.raises(InvalidSkillAreaError):
            await progression_service.update_user_level(sample_user_id, "cooking", QTYPE, 80)

    async def test_question_type_must_match_area(self, progression_service, sample_user_id):
        with pytest.raises(InvalidQuestionTypeError):
            await progression_service.update_user_level(sample_user_id, "speaking", QTYPE, 80)

    async def test_unknown_item_rejected_before_mutation(
        self, progression_service, level_store, sample_user_id
    ):
        with pytest.raises(PracticeItemNotFoundError):
            await progression_service.update_user_level(
                sample_user_id, AREA, QTYPE, 80, item_id=uuid4()
            )

        assert await level_store.list_for_user(sample_user_id) == []

    async def test_item_score_recorded(self, progression_service, item_pool, make_item, sample_user_id):
        item = await progression_service.add_item(make_item(CEFRLevel.A2))
        await progression_service.select_prompt_for_user(sample_user_id, AREA, QTYPE)

        await progression_service.update_user_level(sample_user_id, AREA, QTYPE, 72.5, item_id=item.id)

        # Scores are stored as whole points
        assert await item_pool.recent_scores(sample_user_id, AREA, QTYPE, 5) == [73]
        assert (await item_pool.get_item(item.id)).quality_score == 73

    async def test_stale_write_raises_concurrent_update(self, level_store, sample_user_id):
        level = await level_store.get_or_create(sample_user_id, AREA, QTYPE)
        await level_store.save(level.copy(numeric_level=2.05), expected_version=level.version)

        with pytest.raises(ConcurrentUpdateError):
            await level_store.save(level.copy(numeric_level=1.95), expected_version=level.version)

        stored = await level_store.get(sample_user_id, AREA, QTYPE)
        assert stored.numeric_level == 2.05


class TestLevelQueries:
    """Tests for level reads, overview and signals."""

    async def test_get_user_level_creates_default(self, progression_service, sample_user_id):
        level = await progression_service.get_user_level(sample_user_id, "speaking", "read_then_speak")

        assert level.numeric_level == 2.0
        assert level.cefr_level == CEFRLevel.A2

    async def test_all_levels_grouped_by_area(self, progression_service, sample_user_id):
        await progression_service.update_user_level(sample_user_id, AREA, QTYPE, 90)
        await progression_service.update_user_level(sample_user_id, "writing", "writing_sample", 30)

        grouped = await progression_service.get_all_user_levels(sample_user_id)

        assert set(grouped) == {"speaking", "writing", "listening", "reading"}
        assert [lvl.question_type for lvl in grouped["reading"]] == [QTYPE]
        assert grouped["writing"][0].numeric_level == 1.85
        assert grouped["speaking"] == []

    async def test_skill_overview_defaults_empty_areas(self, progression_service, sample_user_id):
        await progression_service.update_user_level(sample_user_id, AREA, QTYPE, 90)

        overview = {entry.skill_area: entry for entry in await progression_service.get_skill_overview(sample_user_id)}

        assert overview["reading"].numeric_level == 2.15
        assert overview["listening"].cefr_level == CEFRLevel.A2
        assert overview["listening"].numeric_level == 2.0
        assert overview["listening"].display == "A2 (0%)"

    async def test_level_signals_after_strong_run(self, progression_service, make_item, sample_user_id):
        for band in (CEFRLevel.A2, CEFRLevel.B1):
            for _ in range(4):
                await progression_service.add_item(make_item(band))

        for _ in range(5):
            result = await progression_service.select_prompt_for_user(sample_user_id, AREA, QTYPE)
            assert isinstance(result, Selected)
            await progression_service.update_user_level(
                sample_user_id, AREA, QTYPE, 92, item_id=result.item.id
            )

        signals = await progression_service.get_level_signals(sample_user_id, AREA, QTYPE)

        assert signals.recent_scores == [92] * 5
        assert signals.should_level_up is True
        assert signals.should_level_down is False
        assert signals.level.correct_streak == 5


class TestPrompts:
    """Tests for prompt operations exposed by the service."""

    async def test_add_item_validates_slot(self, progression_service, make_item):
        with pytest.raises(InvalidQuestionTypeError):
            await progression_service.add_item(make_item(question_type="writing_sample"))

    async def test_select_validates_slot(self, progression_service, sample_user_id):
        with pytest.raises(InvalidSkillAreaError):
            await progression_service.select_prompt_for_user(sample_user_id, "math", QTYPE)

    async def test_select_on_empty_catalog(self, progression_service, sample_user_id):
        result = await progression_service.select_prompt_for_user(sample_user_id, AREA, QTYPE)
        assert isinstance(result, Exhausted)

    async def test_inventory(self, progression_service, make_item):
        await progression_service.add_item(make_item(CEFRLevel.A2))
        await progression_service.add_item(make_item(CEFRLevel.A2))
        await progression_service.add_item(make_item(None))
        retired = await progression_service.add_item(make_item(CEFRLevel.B1))
        await progression_service.deactivate_item(retired.id)

        inventory = await progression_service.get_prompt_inventory()

        assert [(c.cefr_level, c.count) for c in inventory] == [("A2", 2), ("static", 1)]


class TestProgressSummary:
    """Tests for activity recording and the progress summary."""

    async def test_summary_streaks_and_totals(self, progression_service, sample_user_id, fixed_now):
        # fixed_now is Thursday 2024-03-14; Mon, Tue and Thu are active, Tue twice
        for day, hour in ((11, 9), (12, 9), (12, 18), (14, 8)):
            await progression_service.record_activity(
                sample_user_id, occurred_at=datetime(2024, 3, day, hour, tzinfo=timezone.utc)
            )

        summary = await progression_service.get_progress_summary(sample_user_id, now=fixed_now)

        assert summary.current_streak_days == 1
        assert summary.best_streak_days == 2
        assert summary.current_streak_weeks == 1
        assert summary.best_streak_weeks == 1
        assert summary.total_attempts == 4
        assert summary.window_weeks == 12
        assert summary.timezone == "UTC"
        assert len(summary.days) == 84
        counts = {d.date: d.count for d in summary.days}
        assert counts[date(2024, 3, 12)] == 2
        assert counts[date(2024, 3, 13)] == 0

    async def test_activity_uses_learner_timezone(self, progression_service, sample_user_id):
        day = await progression_service.record_activity(
            sample_user_id,
            occurred_at=datetime(2024, 3, 14, 23, 30, tzinfo=timezone.utc),
            timezone="Asia/Tokyo",
        )
        assert day.date == date(2024, 3, 15)
        assert day.count == 1

    async def test_today_in_learner_timezone(self, progression_service, sample_user_id):
        # 01:00 Friday in Tokyo is still Thursday in UTC
        now = datetime(2024, 3, 14, 16, 0, tzinfo=timezone.utc)
        await progression_service.record_activity(
            sample_user_id, occurred_at=now - timedelta(days=1), timezone="Asia/Tokyo"
        )

        tokyo = await progression_service.get_progress_summary(
            sample_user_id, timezone="Asia/Tokyo", now=now
        )

        # Last activity was Thursday local; Friday has none yet so grace applies
        assert tokyo.current_streak_days == 1
        assert tokyo.timezone == "Asia/Tokyo"

    @pytest.mark.parametrize("weeks", [0, -3, 105])
    async def test_window_validated(self, progression_service, sample_user_id, weeks):
        with pytest.raises(InvalidWindowError):
            await progression_service.get_progress_summary(sample_user_id, window_weeks=weeks)

    async def test_unknown_timezone(self, progression_service, sample_user_id):
        with pytest.raises(InvalidTimezoneError):
            await progression_service.get_progress_summary(sample_user_id, timezone="Nowhere/Land")

    async def test_empty_history(self, progression_service, sample_user_id, fixed_now):
        summary = await progression_service.get_progress_summary(
            sample_user_id, window_weeks=1, now=fixed_now
        )
        assert summary.current_streak_days == 0
        assert summary.best_streak_weeks == 0
        assert summary.total_attempts == 0
        assert [d.count for d in summary.days] == [0] * 7


class TestSerialization:
    """Tests for the plain-dict views of service results."""

    async def test_selected_to_dict(self, progression_service, make_item, sample_user_id):
        item = await progression_service.add_item(make_item(CEFRLevel.B1, metadata={"topic": "food"}))

        result = await progression_service.select_prompt_for_user(sample_user_id, AREA, QTYPE)
        data = result.to_dict()

        assert data["status"] == "selected"
        assert data["item"]["id"] == str(item.id)
        assert data["item"]["cefr_level"] == "B1"
        assert data["item"]["metadata"] == {"topic": "food"}
        assert data["source"] == "generated"
        assert data["fallback_reason"] == "adjacent_level"
        assert data["user_level"]["cefr_level"] == "A2"

    async def test_exhausted_to_dict(self, progression_service, sample_user_id):
        result = await progression_service.select_prompt_for_user(sample_user_id, AREA, QTYPE)

        assert result.to_dict()["status"] == "exhausted"
        assert result.to_dict()["skill_area"] == AREA

    async def test_summary_and_signals_to_dict(self, progression_service, sample_user_id, fixed_now):
        await progression_service.record_activity(sample_user_id, occurred_at=fixed_now)

        summary = (await progression_service.get_progress_summary(
            sample_user_id, window_weeks=1, now=fixed_now
        )).to_dict()
        signals = (await progression_service.get_level_signals(sample_user_id, AREA, QTYPE)).to_dict()

        assert summary["days"][3] == {"date": "2024-03-14", "count": 1}
        assert summary["current_streak_days"] == 1
        assert signals["display"] == "A2 (0%)"
        assert signals["level"]["numeric_level"] == 2.0
        assert signals["recent_scores"] == []

    def test_exception_to_dict(self):
        error = InvalidWindowError(0)

        data = error.to_dict()

        assert data["error"] == "InvalidWindowError"
        assert data["message"] == error.message
