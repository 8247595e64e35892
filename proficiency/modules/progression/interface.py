"""Progression Module - Orchestration of levels, prompts and streaks."""

from dataclasses import dataclass
from typing import Any

from proficiency.modules.levels.interface import UserSkillLevel
from proficiency.modules.streaks.interface import ActivityDay


@dataclass(frozen=True)
class ProgressSummary:
    """Dashboard view of a learner's practice history."""

    days: list[ActivityDay]
    current_streak_days: int
    best_streak_days: int
    current_streak_weeks: int
    best_streak_weeks: int
    total_attempts: int
    timezone: str
    window_weeks: int

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for API responses."""
        return {
            "days": [day.to_dict() for day in self.days],
            "current_streak_days": self.current_streak_days,
            "best_streak_days": self.best_streak_days,
            "current_streak_weeks": self.current_streak_weeks,
            "best_streak_weeks": self.best_streak_weeks,
            "total_attempts": self.total_attempts,
            "timezone": self.timezone,
            "window_weeks": self.window_weeks,
        }


@dataclass(frozen=True)
class LevelSignals:
    """Advisory trend signals for one level. They never change the level."""

    level: UserSkillLevel
    recent_scores: list[float]
    should_level_up: bool
    should_level_down: bool
    display: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "level": self.level.to_dict(),
            "recent_scores": self.recent_scores,
            "should_level_up": self.should_level_up,
            "should_level_down": self.should_level_down,
            "display": self.display,
        }
