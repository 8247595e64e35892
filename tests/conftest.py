"""Test configuration and fixtures."""

import os
from pathlib import Path

# Load environment variables before any imports that need them
from dotenv import load_dotenv
project_root = Path(__file__).parent.parent
load_dotenv(project_root / ".env")

# Tests default to in-memory stores unless a test opts in
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("FF_USE_DATABASE_PERSISTENCE", "false")

from datetime import datetime, timezone
from uuid import UUID

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from proficiency.modules.levels.service import LevelStore
from proficiency.modules.progression.service import ProgressionService
from proficiency.modules.prompts.interface import PracticeItem
from proficiency.modules.prompts.service import ItemPool
from proficiency.modules.streaks.service import ActivityLog
from proficiency.shared.config import Settings, get_settings
from proficiency.shared.database import init_db
from proficiency.shared.feature_flags import FeatureFlagManager, get_feature_flags
from proficiency.shared.models import CEFRLevel
from proficiency.shared.service_registry import ServiceRegistry, get_service_registry


@pytest.fixture(autouse=True)
def reset_singletons():
    """Reset cached settings, flag overrides and the service registry around each test."""
    get_settings.cache_clear()
    get_feature_flags.cache_clear()
    FeatureFlagManager._instance = None
    get_service_registry.cache_clear()
    ServiceRegistry._instance = None
    yield
    get_settings.cache_clear()
    get_feature_flags.cache_clear()
    FeatureFlagManager._instance = None
    get_service_registry.cache_clear()
    ServiceRegistry._instance = None


@pytest.fixture
def settings():
    """Settings with the documented defaults."""
    return Settings(_env_file=None, environment="test")


@pytest.fixture
def sample_user_id():
    """Sample user UUID."""
    return UUID("12345678-1234-5678-1234-567812345678")


@pytest.fixture
def other_user_id():
    """A second learner."""
    return UUID("87654321-4321-8765-4321-876543218765")


@pytest.fixture
def fixed_now():
    """A Thursday afternoon in UTC."""
    return datetime(2024, 3, 14, 15, 0, tzinfo=timezone.utc)


@pytest.fixture
def level_store(settings):
    return LevelStore(default_numeric_level=settings.default_numeric_level)


@pytest.fixture
def item_pool():
    return ItemPool()


@pytest.fixture
def activity_log():
    return ActivityLog()


@pytest.fixture
def progression_service(level_store, item_pool, activity_log, settings):
    """ProgressionService wired to fresh in-memory stores."""
    return ProgressionService(level_store, item_pool, activity_log, settings)


@pytest.fixture
def make_item():
    """Factory for practice items in the reading/read_and_select slot."""

    def _make(
        cefr_level: CEFRLevel | None = CEFRLevel.A2,
        skill_area: str = "reading",
        question_type: str = "read_and_select",
        **kwargs,
    ) -> PracticeItem:
        return PracticeItem(
            skill_area=skill_area,
            question_type=question_type,
            content=kwargs.pop("content", {"prompt": "Choose the correct word"}),
            cefr_level=cefr_level,
            **kwargs,
        )

    return _make


# ===================
# Database fixtures
# ===================

@pytest.fixture
async def db_engine():
    """In-memory SQLite engine shared across connections."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    """Session factory bound to the test engine."""
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
