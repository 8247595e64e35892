"""Prompt selection API routes."""

from fastapi import APIRouter, Query

from proficiency.api.dependencies import CurrentUserId, ProgressionServiceDep
from proficiency.api.schemas.common import ErrorResponse
from proficiency.api.schemas.prompts import InventoryResponse, SelectionResponse
from proficiency.modules.prompts.interface import unwrap_selection
from proficiency.shared.models import SkillArea

router = APIRouter()


@router.get(
    "/select",
    response_model=SelectionResponse,
    summary="Select next prompt",
    description=(
        "Pick the next practice item for the learner's current level. "
        "Responds 404 with code NO_ITEM_AVAILABLE when nothing can be served."
    ),
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
)
async def select_prompt(
    user_id: CurrentUserId,
    service: ProgressionServiceDep,
    skill_area: SkillArea = Query(..., description="Skill area"),
    question_type: str = Query(..., min_length=1, description="Question type"),
) -> SelectionResponse:
    result = await service.select_prompt_for_user(user_id, skill_area.value, question_type)
    return SelectionResponse.from_domain(unwrap_selection(result))


@router.get(
    "/inventory",
    response_model=InventoryResponse,
    summary="Item inventory",
    description="Active item counts per skill area, question type and band.",
)
async def get_inventory(service: ProgressionServiceDep) -> InventoryResponse:
    return InventoryResponse.from_domain(await service.get_prompt_inventory())
