"""FastAPI dependency injection for services and caller identity.

Identity is established upstream; requests carry the learner's id in the
``X-User-Id`` header.
"""

from typing import Annotated
from uuid import UUID

from fastapi import Depends, Header

from proficiency.api.middleware.error_handler import UnauthorizedError
from proficiency.modules.progression.service import ProgressionService
from proficiency.shared.service_registry import get_service_registry


# ===================
# Service Dependencies
# ===================

def get_progression_service() -> ProgressionService:
    """Get the progression service wired by the service registry."""
    return get_service_registry().get_progression_service()


ProgressionServiceDep = Annotated[ProgressionService, Depends(get_progression_service)]


# ===================
# Caller Identity
# ===================

async def get_current_user_id(
    x_user_id: Annotated[str | None, Header(alias="X-User-Id")] = None,
) -> UUID:
    """Get the learner id from the ``X-User-Id`` header.

    Raises:
        UnauthorizedError: If the header is missing or not a UUID
    """
    if not x_user_id:
        raise UnauthorizedError("Missing X-User-Id header")
    try:
        return UUID(x_user_id)
    except ValueError:
        raise UnauthorizedError("X-User-Id must be a UUID")


CurrentUserId = Annotated[UUID, Depends(get_current_user_id)]
