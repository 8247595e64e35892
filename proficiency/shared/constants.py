"""Application-wide constants.

This module centralizes the thresholds and tables the level engine and the
prompt selector depend on. Values that need to be configurable at runtime
go in config.py instead.
"""

# ===================
# Level Scale
# ===================

MIN_NUMERIC_LEVEL = 1.0
MAX_NUMERIC_LEVEL = 6.0
DEFAULT_NUMERIC_LEVEL = 2.0

# Stored with two decimal places
LEVEL_PRECISION = 2

# Upper bounds (exclusive) of each CEFR band on the numeric scale.
# Anything at or above the last bound is C2.
CEFR_BREAKPOINTS: tuple[tuple[float, str], ...] = (
    (1.5, "A1"),
    (2.5, "A2"),
    (3.5, "B1"),
    (4.5, "B2"),
    (5.5, "C1"),
)

# Canonical numeric value of each band
CEFR_NUMERIC_VALUES: dict[str, float] = {
    "A1": 1.0,
    "A2": 2.0,
    "B1": 3.0,
    "B2": 4.0,
    "C1": 5.0,
    "C2": 6.0,
}


# ===================
# Score Scale
# ===================

MIN_SCORE = 0.0
MAX_SCORE = 100.0

# An attempt at or above this score counts toward the correct streak
GOOD_SCORE_THRESHOLD = 70.0


# ===================
# Level Adjustment
# ===================

# (minimum score, delta) checked top to bottom; the first match wins
SCORE_ADJUSTMENT_BANDS: tuple[tuple[float, float], ...] = (
    (85.0, 0.15),
    (70.0, 0.05),
    (55.0, 0.0),
    (40.0, -0.05),
)
LOWEST_BAND_ADJUSTMENT = -0.15

# Streak bonus
STREAK_BONUS_MIN_STREAK = 5
STREAK_BONUS = 0.05

# Stability dampening for learners settled in a band
STABILITY_MIN_ATTEMPTS = 10
STABILITY_SCORE_FLOOR = 55.0
STABILITY_SCORE_CEILING = 70.0


# ===================
# Level Signals
# ===================

SIGNAL_WINDOW = 5
LEVEL_UP_MIN_AVERAGE = 85.0
LEVEL_UP_MIN_STREAK = 5
LEVEL_DOWN_MAX_AVERAGE = 40.0


# ===================
# Progress / Streaks
# ===================

DEFAULT_PROGRESS_WINDOW_WEEKS = 12
MAX_PROGRESS_WINDOW_WEEKS = 104


# ===================
# Skill Areas
# ===================

VALID_QUESTION_TYPES: dict[str, tuple[str, ...]] = {
    "speaking": (
        "listen_then_speak",
        "read_then_speak",
        "speak_about_photo",
    ),
    "writing": (
        "writing_sample",
        "interactive_writing",
        "write_about_photo",
        "custom_writing",
    ),
    "listening": (
        "listen_and_type",
        "listen_and_respond",
        "listen_and_complete",
        "listen_and_summarize",
    ),
    "reading": (
        "read_and_select",
        "fill_in_the_blanks",
        "read_and_complete",
        "interactive_reading",
    ),
}
