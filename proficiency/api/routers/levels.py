"""Level API routes."""

from fastapi import APIRouter

from proficiency.api.dependencies import CurrentUserId, ProgressionServiceDep
from proficiency.api.schemas.common import ErrorResponse
from proficiency.api.schemas.levels import (
    LevelDetailResponse,
    LevelUpdateRequest,
    SkillLevelResponse,
    SkillOverviewResponse,
)

router = APIRouter()


@router.get(
    "",
    response_model=list[SkillOverviewResponse],
    summary="Get all levels",
    description="Aggregate level per skill area with the levels behind it.",
)
async def get_levels(
    user_id: CurrentUserId,
    service: ProgressionServiceDep,
) -> list[SkillOverviewResponse]:
    overview = await service.get_skill_overview(user_id)
    return [SkillOverviewResponse.from_domain(entry) for entry in overview]


@router.get(
    "/{skill_area}/{question_type}",
    response_model=LevelDetailResponse,
    summary="Get one level",
    description="Get (or create at the default) the level for one question type.",
    responses={400: {"model": ErrorResponse}},
)
async def get_level(
    skill_area: str,
    question_type: str,
    user_id: CurrentUserId,
    service: ProgressionServiceDep,
) -> LevelDetailResponse:
    """Get a level with its level-up / level-down signals.

    Args:
        skill_area: Skill area value
        question_type: Question type within the skill area
        user_id: Caller from the X-User-Id header
        service: Progression service

    Returns:
        Level detail
    """
    signals = await service.get_level_signals(user_id, skill_area, question_type)
    return LevelDetailResponse.from_domain(signals)


@router.post(
    "/update",
    response_model=SkillLevelResponse,
    summary="Apply a graded attempt",
    description="Adjust the learner's level after one graded attempt.",
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)
async def update_level(
    request: LevelUpdateRequest,
    user_id: CurrentUserId,
    service: ProgressionServiceDep,
) -> SkillLevelResponse:
    level = await service.update_user_level(
        user_id,
        request.skill_area.value,
        request.question_type,
        request.score,
        item_id=request.item_id,
    )
    return SkillLevelResponse.from_domain(level)
