"""SQLAlchemy models for Streaks module."""

from datetime import date, datetime
from uuid import UUID, uuid4

from sqlalchemy import CheckConstraint, Date, DateTime, Integer, UniqueConstraint, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from proficiency.modules.streaks.interface import ActivityDay
from proficiency.shared.database import Base


class ActivityDayModel(Base):
    """Sessions per learner per local calendar date."""

    __tablename__ = "activity_days"
    __table_args__ = (
        UniqueConstraint("user_id", "activity_date", name="uq_activity_user_date"),
        CheckConstraint("session_count >= 0", name="ck_session_count_non_negative"),
    )

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    user_id: Mapped[UUID] = mapped_column(Uuid, nullable=False, index=True)
    activity_date: Mapped[date] = mapped_column(Date, nullable=False)
    session_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_active_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    def to_domain(self) -> ActivityDay:
        return ActivityDay(date=self.activity_date, count=self.session_count)
