"""SQLAlchemy models for Prompts module."""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Uuid,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from proficiency.modules.prompts.interface import ItemUsage, PracticeItem
from proficiency.shared.database import Base
from proficiency.shared.models import CEFRLevel

# JSONB on PostgreSQL, plain JSON elsewhere
JSONType = JSON().with_variant(JSONB(), "postgresql")


class PracticeItemModel(Base):
    """Practice item database model. A null ``cefr_level`` marks a static-bank item."""

    __tablename__ = "practice_items"
    __table_args__ = (
        Index("ix_practice_items_lookup", "skill_area", "question_type", "cefr_level", "is_active"),
        CheckConstraint(
            "quality_score IS NULL OR (quality_score >= 0 AND quality_score <= 100)",
            name="ck_quality_score_range",
        ),
    )

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    skill_area: Mapped[str] = mapped_column(String(20), nullable=False)
    question_type: Mapped[str] = mapped_column(String(50), nullable=False)
    cefr_level: Mapped[Optional[str]] = mapped_column(String(2), nullable=True)
    content: Mapped[dict] = mapped_column(JSONType, nullable=False)
    times_used: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    quality_score: Mapped[Optional[float]] = mapped_column(
        Numeric(5, 2, asdecimal=False), nullable=True
    )
    expires_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    item_metadata: Mapped[Optional[dict]] = mapped_column("metadata", JSONType, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    @classmethod
    def from_domain(cls, item: PracticeItem) -> "PracticeItemModel":
        return cls(
            id=item.id,
            skill_area=item.skill_area,
            question_type=item.question_type,
            cefr_level=item.cefr_level.value if item.cefr_level else None,
            content=item.content,
            times_used=item.times_used,
            quality_score=item.quality_score,
            expires_at=item.expires_at,
            is_active=item.is_active,
            item_metadata=item.metadata or None,
            created_at=item.created_at,
        )

    def to_domain(self) -> PracticeItem:
        """Convert to the interface dataclass."""
        return PracticeItem(
            id=self.id,
            skill_area=self.skill_area,
            question_type=self.question_type,
            cefr_level=CEFRLevel(self.cefr_level) if self.cefr_level else None,
            content=self.content,
            times_used=self.times_used,
            quality_score=float(self.quality_score) if self.quality_score is not None else None,
            expires_at=self.expires_at,
            is_active=self.is_active,
            metadata=self.item_metadata or {},
            created_at=self.created_at,
        )


class ItemUsageModel(Base):
    """Append-only record of an item served to a user."""

    __tablename__ = "item_usage"
    __table_args__ = (
        Index("ix_item_usage_user_used_at", "user_id", "used_at"),
        Index("ix_item_usage_user_item", "user_id", "item_id"),
    )

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    user_id: Mapped[UUID] = mapped_column(Uuid, nullable=False)
    item_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("practice_items.id", ondelete="CASCADE"),
        nullable=False,
    )
    score: Mapped[Optional[float]] = mapped_column(Numeric(5, 2, asdecimal=False), nullable=True)
    used_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    def to_domain(self) -> ItemUsage:
        return ItemUsage(
            id=self.id,
            user_id=self.user_id,
            item_id=self.item_id,
            score=float(self.score) if self.score is not None else None,
            used_at=self.used_at,
        )
