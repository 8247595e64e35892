"""SQLAlchemy models for Levels module."""

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
    Uuid,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from proficiency.modules.levels.interface import UserSkillLevel
from proficiency.shared.database import Base
from proficiency.shared.models import CEFRLevel


class UserSkillLevelModel(Base):
    """Per-user, per-question-type proficiency."""

    __tablename__ = "user_skill_levels"
    __table_args__ = (
        UniqueConstraint("user_id", "skill_area", "question_type", name="uq_user_skill_level"),
        CheckConstraint("attempts_at_level >= 0", name="ck_attempts_non_negative"),
        CheckConstraint("correct_streak >= 0", name="ck_streak_non_negative"),
    )

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    user_id: Mapped[UUID] = mapped_column(Uuid, nullable=False, index=True)
    skill_area: Mapped[str] = mapped_column(String(20), nullable=False)
    question_type: Mapped[str] = mapped_column(String(50), nullable=False)
    numeric_level: Mapped[float] = mapped_column(Numeric(3, 2, asdecimal=False), nullable=False)
    cefr_level: Mapped[str] = mapped_column(String(2), nullable=False)
    attempts_at_level: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    correct_streak: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    def to_domain(self) -> UserSkillLevel:
        """Convert to the interface dataclass."""
        return UserSkillLevel(
            id=self.id,
            user_id=self.user_id,
            skill_area=self.skill_area,
            question_type=self.question_type,
            numeric_level=float(self.numeric_level),
            cefr_level=CEFRLevel(self.cefr_level),
            attempts_at_level=self.attempts_at_level,
            correct_streak=self.correct_streak,
            version=self.version,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )
