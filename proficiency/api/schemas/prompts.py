"""Prompt selection API schemas."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field

from proficiency.api.schemas.levels import SkillLevelResponse
from proficiency.modules.prompts.interface import InventoryCount, PracticeItem, Selected
from proficiency.shared.models import CEFRLevel, FallbackReason, SelectionSource


class PracticeItemResponse(BaseModel):
    """A practice item as served to the client."""

    id: UUID
    skill_area: str
    question_type: str
    cefr_level: CEFRLevel | None = Field(
        default=None,
        description="Band of the item, null for static bank items",
    )
    content: dict[str, Any]
    times_used: int
    quality_score: float | None = None
    expires_at: datetime | None = None

    @classmethod
    def from_domain(cls, item: PracticeItem) -> "PracticeItemResponse":
        return cls(
            id=item.id,
            skill_area=item.skill_area,
            question_type=item.question_type,
            cefr_level=item.cefr_level,
            content=item.content,
            times_used=item.times_used,
            quality_score=item.quality_score,
            expires_at=item.expires_at,
        )


class SelectionResponse(BaseModel):
    """Result of selecting the next prompt."""

    item: PracticeItemResponse
    source: SelectionSource = Field(
        ...,
        description="'generated' for an exact-band item, 'fallback' otherwise",
    )
    fallback_reason: FallbackReason | None = None
    user_level: SkillLevelResponse

    @classmethod
    def from_domain(cls, selected: Selected) -> "SelectionResponse":
        return cls(
            item=PracticeItemResponse.from_domain(selected.item),
            source=selected.source,
            fallback_reason=selected.fallback_reason,
            user_level=SkillLevelResponse.from_domain(selected.user_level),
        )


class InventoryEntry(BaseModel):
    """Active item count for one bucket."""

    skill_area: str
    question_type: str
    cefr_level: str = Field(..., description="Band label, or 'static'")
    count: int


class InventoryResponse(BaseModel):
    """Active item counts per skill area, question type and band."""

    entries: list[InventoryEntry]
    total: int

    @classmethod
    def from_domain(cls, counts: list[InventoryCount]) -> "InventoryResponse":
        entries = [
            InventoryEntry(
                skill_area=c.skill_area,
                question_type=c.question_type,
                cefr_level=c.cefr_level,
                count=c.count,
            )
            for c in counts
        ]
        return cls(entries=entries, total=sum(e.count for e in entries))
