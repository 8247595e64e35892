"""API routers package."""

from proficiency.api.routers.health import router as health_router
from proficiency.api.routers.levels import router as levels_router
from proficiency.api.routers.progress import router as progress_router
from proficiency.api.routers.prompts import router as prompts_router

__all__ = [
    "health_router",
    "levels_router",
    "progress_router",
    "prompts_router",
]
