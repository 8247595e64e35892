"""FastAPI application setup and configuration."""

from contextlib import asynccontextmanager
import logging
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from proficiency.api.middleware.error_handler import setup_exception_handlers
from proficiency.api.middleware.logging import RequestLoggingMiddleware, setup_logging
from proficiency.shared.config import get_settings, validate_settings
from proficiency.shared.database import init_db, shutdown, startup
from proficiency.shared.feature_flags import is_database_persistence_enabled

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Validates settings and, when database persistence is enabled,
    verifies the connection and creates missing tables.
    """
    validate_settings()
    db_enabled = is_database_persistence_enabled()
    if db_enabled:
        await startup()
        await init_db()
    else:
        logger.info("Database persistence disabled, using in-memory stores")
    yield
    if db_enabled:
        await shutdown()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance
    """
    settings = get_settings()
    setup_logging()

    application = FastAPI(
        title="Adaptive Proficiency Engine API",
        description="""
        Adaptive proficiency tracking for language learners:
        - Per question type levels adjusted after each graded attempt
        - Level-aware practice prompt selection with graceful fallback
        - Daily activity and streak summaries in the learner's timezone
        """,
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    cors_origins = settings.cors_origins_list
    if settings.is_production and not cors_origins:
        logger.warning(
            "No CORS_ORIGINS configured in production. "
            "API will not be accessible from browsers."
        )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=[
            "Content-Type",
            "Accept",
            "Origin",
            "X-Requested-With",
            "X-Request-ID",
            "X-User-Id",
        ],
        max_age=600,  # 10 minutes
    )

    setup_exception_handlers(application)
    application.add_middleware(RequestLoggingMiddleware)

    from proficiency.api.routers import (
        health_router,
        levels_router,
        progress_router,
        prompts_router,
    )

    application.include_router(
        health_router,
        prefix="/health",
        tags=["Health"],
    )
    application.include_router(
        levels_router,
        prefix="/levels",
        tags=["Levels"],
    )
    application.include_router(
        prompts_router,
        prefix="/prompts",
        tags=["Prompts"],
    )
    application.include_router(
        progress_router,
        prefix="/progress",
        tags=["Progress"],
    )

    return application


app = create_app()
