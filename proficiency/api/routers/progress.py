"""Progress API routes."""

from fastapi import APIRouter, Query, status

from proficiency.api.dependencies import CurrentUserId, ProgressionServiceDep
from proficiency.api.schemas.common import ErrorResponse
from proficiency.api.schemas.progress import (
    ActivityDayResponse,
    ActivityRequest,
    ProgressSummaryResponse,
)

router = APIRouter()


@router.get(
    "",
    response_model=ProgressSummaryResponse,
    summary="Progress summary",
    description="Daily activity for the window plus daily and weekly streaks.",
    responses={400: {"model": ErrorResponse}},
)
async def get_progress(
    user_id: CurrentUserId,
    service: ProgressionServiceDep,
    weeks: int | None = Query(default=None, description="Window length in weeks"),
    tz: str | None = Query(default=None, description="IANA timezone for 'today'"),
) -> ProgressSummaryResponse:
    """Get the learner's progress summary.

    Window and timezone are validated by the service, so bad values
    surface as 400 responses.
    """
    summary = await service.get_progress_summary(user_id, window_weeks=weeks, timezone=tz)
    return ProgressSummaryResponse.from_domain(summary)


@router.post(
    "/activity",
    response_model=ActivityDayResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Record activity",
    description="Count one practice session on the learner's local date.",
    responses={400: {"model": ErrorResponse}},
)
async def record_activity(
    request: ActivityRequest,
    user_id: CurrentUserId,
    service: ProgressionServiceDep,
) -> ActivityDayResponse:
    day = await service.record_activity(
        user_id,
        occurred_at=request.occurred_at,
        timezone=request.timezone,
    )
    return ActivityDayResponse.from_domain(day)
