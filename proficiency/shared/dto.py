"""Value objects shared between the API layer and the domain layer.

Each value object validates on construction and raises the domain
``ValidationError`` subclasses so callers see the same errors regardless
of which surface they came in through.
"""

from dataclasses import dataclass
import math

from proficiency.shared.constants import MAX_SCORE, MIN_SCORE, VALID_QUESTION_TYPES
from proficiency.shared.exceptions import (
    InvalidQuestionTypeError,
    InvalidScoreError,
    InvalidSkillAreaError,
)
from proficiency.shared.models import SkillArea


@dataclass(frozen=True)
class Score:
    """Value object for a graded score.

    Enforces business rule: score must be 0-100.
    """
    value: float

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, (int, float)):
            raise InvalidScoreError(self.value)
        if self.value != self.value or not MIN_SCORE <= self.value <= MAX_SCORE:
            raise InvalidScoreError(self.value)

    @property
    def rounded(self) -> int:
        """Whole-point score, halves rounded up (84.5 -> 85)."""
        return math.floor(self.value + 0.5)

    @classmethod
    def from_number(cls, value: float) -> "Score":
        """Create Score from a number."""
        return cls(value=value)


@dataclass(frozen=True)
class SkillSlot:
    """A (skill area, question type) pair a level is tracked against."""
    skill_area: str
    question_type: str

    def __post_init__(self) -> None:
        if self.skill_area not in VALID_QUESTION_TYPES:
            raise InvalidSkillAreaError(self.skill_area)
        if self.question_type not in VALID_QUESTION_TYPES[self.skill_area]:
            raise InvalidQuestionTypeError(self.skill_area, self.question_type)

    @classmethod
    def of(cls, skill_area: str | SkillArea, question_type: str) -> "SkillSlot":
        """Create a SkillSlot, accepting either enum or plain string skill areas."""
        area = skill_area.value if isinstance(skill_area, SkillArea) else skill_area
        return cls(skill_area=area, question_type=question_type)
