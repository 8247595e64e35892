"""Progress API schemas."""

from datetime import date, datetime

from pydantic import BaseModel, Field

from proficiency.modules.progression.interface import ProgressSummary
from proficiency.modules.streaks.interface import ActivityDay


class ActivityRequest(BaseModel):
    """Record one practice session."""

    occurred_at: datetime | None = Field(
        default=None,
        description="When the session happened (defaults to now)",
    )
    timezone: str | None = Field(
        default=None,
        max_length=64,
        description="IANA timezone used to pick the calendar date",
        examples=["Europe/Berlin"],
    )


class ActivityDayResponse(BaseModel):
    """Sessions counted on one local date."""

    date: date
    count: int

    @classmethod
    def from_domain(cls, day: ActivityDay) -> "ActivityDayResponse":
        return cls(date=day.date, count=day.count)


class ProgressSummaryResponse(BaseModel):
    """Activity window and streak statistics."""

    days: list[ActivityDayResponse] = Field(
        ...,
        description="One entry per day of the window, oldest first",
    )
    current_streak_days: int
    best_streak_days: int
    current_streak_weeks: int
    best_streak_weeks: int
    total_attempts: int
    timezone: str
    window_weeks: int

    @classmethod
    def from_domain(cls, summary: ProgressSummary) -> "ProgressSummaryResponse":
        return cls(
            days=[ActivityDayResponse.from_domain(day) for day in summary.days],
            current_streak_days=summary.current_streak_days,
            best_streak_days=summary.best_streak_days,
            current_streak_weeks=summary.current_streak_weeks,
            best_streak_weeks=summary.best_streak_weeks,
            total_attempts=summary.total_attempts,
            timezone=summary.timezone,
            window_weeks=summary.window_weeks,
        )
