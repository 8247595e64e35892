"""Level adjustment engine.

Pure functions that turn one graded score plus the current level state into
the next level state. Thresholds live in ``proficiency.shared.constants`` as
explicit tables so the same fixtures reproduce the same trajectories.
"""

import logging
from typing import Sequence

from proficiency.modules.levels.interface import LevelAdjustmentResult, UserSkillLevel
from proficiency.shared.constants import (
    CEFR_BREAKPOINTS,
    CEFR_NUMERIC_VALUES,
    DEFAULT_NUMERIC_LEVEL,
    GOOD_SCORE_THRESHOLD,
    LEVEL_DOWN_MAX_AVERAGE,
    LEVEL_PRECISION,
    LEVEL_UP_MIN_AVERAGE,
    LEVEL_UP_MIN_STREAK,
    LOWEST_BAND_ADJUSTMENT,
    MAX_NUMERIC_LEVEL,
    MIN_NUMERIC_LEVEL,
    SCORE_ADJUSTMENT_BANDS,
    SIGNAL_WINDOW,
    STABILITY_MIN_ATTEMPTS,
    STABILITY_SCORE_CEILING,
    STABILITY_SCORE_FLOOR,
    STREAK_BONUS,
    STREAK_BONUS_MIN_STREAK,
)
from proficiency.shared.exceptions import InconsistentStateError, InvalidCEFRLevelError
from proficiency.shared.models import CEFRLevel

logger = logging.getLogger(__name__)


# ===================
# Band Mapping
# ===================


def clamp_level(numeric_level: float) -> float:
    """Clamp a numeric level into [1.0, 6.0]."""
    return max(MIN_NUMERIC_LEVEL, min(MAX_NUMERIC_LEVEL, numeric_level))


def numeric_to_cefr(numeric_level: float) -> CEFRLevel:
    """Map a numeric level to its CEFR band.

    Breakpoints sit at 1.5/2.5/3.5/4.5/5.5; each bound is exclusive.
    """
    for upper_bound, label in CEFR_BREAKPOINTS:
        if numeric_level < upper_bound:
            return CEFRLevel(label)
    return CEFRLevel.C2


def cefr_to_numeric(cefr_level: CEFRLevel | str) -> float:
    """Canonical numeric value of a band (A1 -> 1.0 ... C2 -> 6.0)."""
    label = cefr_level.value if isinstance(cefr_level, CEFRLevel) else cefr_level
    if label not in CEFR_NUMERIC_VALUES:
        raise InvalidCEFRLevelError(str(label))
    return CEFR_NUMERIC_VALUES[label]


def get_adjacent_levels(cefr_level: CEFRLevel) -> list[CEFRLevel]:
    """Bands one below and one above, lower first. Edges have one neighbour."""
    bands = list(CEFRLevel)
    index = bands.index(cefr_level)
    adjacent = []
    if index > 0:
        adjacent.append(bands[index - 1])
    if index < len(bands) - 1:
        adjacent.append(bands[index + 1])
    return adjacent


# ===================
# Per-attempt Adjustment
# ===================


def base_adjustment(score: float) -> float:
    """Look up the base delta for a score."""
    for minimum, delta in SCORE_ADJUSTMENT_BANDS:
        if score >= minimum:
            return delta
    return LOWEST_BAND_ADJUSTMENT


def calculate_level_adjustment(
    current_numeric_level: float,
    score: float,
    attempts_at_level: int = 0,
    correct_streak: int = 0,
) -> float:
    """Signed delta for one graded attempt.

    ``current_numeric_level`` does not affect the delta; it is accepted so
    callers can pass the full state and the clamp happens in
    ``apply_level_adjustment``.

    Args:
        current_numeric_level: Level before the attempt
        score: Overall score in [0, 100]
        attempts_at_level: Attempts since the band last changed, before this one
        correct_streak: Consecutive good attempts, before this one

    Returns:
        Delta rounded to the storage precision
    """
    delta = base_adjustment(score)

    if correct_streak >= STREAK_BONUS_MIN_STREAK and score >= GOOD_SCORE_THRESHOLD:
        delta += STREAK_BONUS

    if (
        attempts_at_level >= STABILITY_MIN_ATTEMPTS
        and STABILITY_SCORE_FLOOR <= score < STABILITY_SCORE_CEILING
    ):
        delta = max(0.0, delta)

    return round(delta, LEVEL_PRECISION)


def apply_level_adjustment(current_numeric_level: float, delta: float) -> float:
    """New level after a delta, clamped and rounded to two decimals."""
    return round(clamp_level(current_numeric_level + delta), LEVEL_PRECISION)


def next_level_state(level: UserSkillLevel, score: float) -> LevelAdjustmentResult:
    """Compute the post-attempt state for ``level``.

    The streak bonus and stability dampening read the counters as they
    were before this attempt.
    """
    delta = calculate_level_adjustment(
        level.numeric_level,
        score,
        attempts_at_level=level.attempts_at_level,
        correct_streak=level.correct_streak,
    )
    new_numeric = apply_level_adjustment(level.numeric_level, delta)
    new_cefr = numeric_to_cefr(new_numeric)
    band_changed = new_cefr != level.cefr_level

    return LevelAdjustmentResult(
        numeric_level=new_numeric,
        cefr_level=new_cefr,
        delta=delta,
        attempts_at_level=1 if band_changed else level.attempts_at_level + 1,
        correct_streak=level.correct_streak + 1 if score >= GOOD_SCORE_THRESHOLD else 0,
        band_changed=band_changed,
    )


def restore_invariants(level: UserSkillLevel) -> UserSkillLevel:
    """Repair a level read from storage.

    An out-of-range numeric level is clamped and logged; a band label that
    disagrees with the numeric level is recomputed. Never raises.
    """
    numeric = level.numeric_level
    if not MIN_NUMERIC_LEVEL <= numeric <= MAX_NUMERIC_LEVEL:
        error = InconsistentStateError(
            "UserSkillLevel",
            f"numeric_level {numeric} outside [{MIN_NUMERIC_LEVEL}, {MAX_NUMERIC_LEVEL}]",
        )
        logger.warning(
            f"{error.message}; clamping on read",
            extra={"level_id": str(level.id), "user_id": str(level.user_id)},
        )
        numeric = round(clamp_level(numeric), LEVEL_PRECISION)

    cefr = numeric_to_cefr(numeric)
    if numeric == level.numeric_level and cefr == level.cefr_level:
        return level
    return level.copy(numeric_level=numeric, cefr_level=cefr)


# ===================
# Trend Signals
# ===================


def _recent_average(recent_scores: Sequence[float]) -> float | None:
    if len(recent_scores) < SIGNAL_WINDOW:
        return None
    window = list(recent_scores)[-SIGNAL_WINDOW:]
    return sum(window) / len(window)


def should_level_up(
    cefr_level: CEFRLevel,
    correct_streak: int,
    recent_scores: Sequence[float],
) -> bool:
    """Advisory: sustained excellent scores suggest the learner is under-leveled."""
    if cefr_level == CEFRLevel.C2:
        return False
    average = _recent_average(recent_scores)
    if average is None:
        return False
    return average >= LEVEL_UP_MIN_AVERAGE and correct_streak >= LEVEL_UP_MIN_STREAK


def should_level_down(cefr_level: CEFRLevel, recent_scores: Sequence[float]) -> bool:
    """Advisory: sustained poor scores suggest the learner is over-leveled."""
    if cefr_level == CEFRLevel.A1:
        return False
    average = _recent_average(recent_scores)
    if average is None:
        return False
    return average < LEVEL_DOWN_MAX_AVERAGE


# ===================
# Display Helpers
# ===================


def calculate_overall_skill_level(numeric_levels: Sequence[float]) -> tuple[CEFRLevel, float]:
    """Mean level across question types in a skill area.

    Returns the default A2/2.0 when there is nothing to average.
    """
    if not numeric_levels:
        return numeric_to_cefr(DEFAULT_NUMERIC_LEVEL), DEFAULT_NUMERIC_LEVEL
    average = round(sum(numeric_levels) / len(numeric_levels), LEVEL_PRECISION)
    return numeric_to_cefr(average), average


def get_level_progress(numeric_level: float) -> int:
    """Progress within the current whole level as a percentage (0-99)."""
    fraction = numeric_level - int(numeric_level)
    return int(round(fraction * 100)) % 100


def format_level(cefr_level: CEFRLevel, numeric_level: float) -> str:
    """Human readable level, e.g. ``"B1 (40%)"``."""
    return f"{cefr_level.value} ({get_level_progress(numeric_level)}%)"
