"""Level API schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from proficiency.modules.levels.interface import SkillOverview, UserSkillLevel
from proficiency.modules.progression.interface import LevelSignals
from proficiency.shared.models import CEFRLevel, SkillArea


# ===================
# Request Schemas
# ===================

class LevelUpdateRequest(BaseModel):
    """Request to apply one graded attempt."""

    skill_area: SkillArea = Field(
        ...,
        description="Skill area of the attempt",
    )
    question_type: str = Field(
        ...,
        min_length=1,
        max_length=50,
        description="Question type within the skill area",
    )
    # Range is enforced by the domain so out-of-range scores map to 400
    score: float = Field(
        ...,
        description="Overall score between 0 and 100",
        examples=[82.5],
    )
    item_id: UUID | None = Field(
        default=None,
        description="Practice item the attempt was made on",
    )


# ===================
# Response Schemas
# ===================

class SkillLevelResponse(BaseModel):
    """One stored level."""

    id: UUID
    skill_area: str
    question_type: str
    numeric_level: float = Field(..., description="Numeric level in [1.0, 6.0]")
    cefr_level: CEFRLevel
    attempts_at_level: int
    correct_streak: int
    updated_at: datetime

    @classmethod
    def from_domain(cls, level: UserSkillLevel) -> "SkillLevelResponse":
        return cls(
            id=level.id,
            skill_area=level.skill_area,
            question_type=level.question_type,
            numeric_level=level.numeric_level,
            cefr_level=level.cefr_level,
            attempts_at_level=level.attempts_at_level,
            correct_streak=level.correct_streak,
            updated_at=level.updated_at,
        )


class SkillOverviewResponse(BaseModel):
    """Aggregate level for one skill area."""

    skill_area: str
    cefr_level: CEFRLevel
    numeric_level: float
    display: str = Field(..., description="Human readable level, e.g. 'B1 (40%)'")
    levels: list[SkillLevelResponse] = Field(default_factory=list)

    @classmethod
    def from_domain(cls, overview: SkillOverview) -> "SkillOverviewResponse":
        return cls(
            skill_area=overview.skill_area,
            cefr_level=overview.cefr_level,
            numeric_level=overview.numeric_level,
            display=overview.display,
            levels=[SkillLevelResponse.from_domain(lvl) for lvl in overview.levels],
        )


class LevelDetailResponse(BaseModel):
    """One level with advisory signals."""

    level: SkillLevelResponse
    display: str
    recent_scores: list[float] = Field(
        default_factory=list,
        description="Most recent graded scores, oldest first",
    )
    should_level_up: bool
    should_level_down: bool

    @classmethod
    def from_domain(cls, signals: LevelSignals) -> "LevelDetailResponse":
        return cls(
            level=SkillLevelResponse.from_domain(signals.level),
            display=signals.display,
            recent_scores=signals.recent_scores,
            should_level_up=signals.should_level_up,
            should_level_down=signals.should_level_down,
        )
