"""Unit tests for service registry."""

import os
from unittest.mock import patch

from proficiency.modules.progression.service import ProgressionService
from proficiency.shared.config import get_settings
from proficiency.shared.feature_flags import FeatureFlagManager
from proficiency.shared.service_registry import (
    ServiceRegistry,
    get_progression_service,
    get_service_registry,
)


def fresh_registry() -> ServiceRegistry:
    """Registry that re-reads settings and flags from the current environment."""
    get_settings.cache_clear()
    FeatureFlagManager._instance = None
    ServiceRegistry._instance = None
    registry = ServiceRegistry()
    registry.clear_cache()
    return registry


class TestServiceRegistry:
    """Tests for ServiceRegistry."""

    def test_singleton_pattern(self):
        ServiceRegistry._instance = None
        assert ServiceRegistry() is ServiceRegistry()

    def test_inmemory_stores_by_default(self):
        with patch.dict(os.environ, {"FF_USE_DATABASE_PERSISTENCE": "false"}):
            registry = fresh_registry()

            assert type(registry.get_level_store()).__name__ == "LevelStore"
            assert type(registry.get_item_pool()).__name__ == "ItemPool"
            assert type(registry.get_activity_log()).__name__ == "ActivityLog"

    def test_database_stores_when_enabled(self):
        with patch.dict(os.environ, {"FF_USE_DATABASE_PERSISTENCE": "true"}):
            registry = fresh_registry()

            assert type(registry.get_level_store()).__name__ == "DatabaseLevelStore"
            assert type(registry.get_item_pool()).__name__ == "DatabaseItemPool"
            assert type(registry.get_activity_log()).__name__ == "DatabaseActivityLog"

    def test_fallback_on_db_error(self):
        """Test fallback to in-memory when DB store creation fails."""
        with patch.dict(os.environ, {"FF_USE_DATABASE_PERSISTENCE": "true"}):
            registry = fresh_registry()

            with patch(
                "proficiency.modules.levels.db_service.DatabaseLevelStore",
                side_effect=RuntimeError("DB connection failed"),
            ):
                store = registry.get_level_store()

            assert type(store).__name__ == "LevelStore"

    def test_progression_service_wired_to_stores(self):
        with patch.dict(os.environ, {"FF_USE_DATABASE_PERSISTENCE": "false"}):
            registry = fresh_registry()

            service = registry.get_progression_service()

            assert isinstance(service, ProgressionService)
            assert service._levels is registry.get_level_store()
            assert service._pool is registry.get_item_pool()
            assert service._activity is registry.get_activity_log()

    def test_service_caching(self):
        registry = fresh_registry()
        assert registry.get_progression_service() is registry.get_progression_service()

    def test_clear_cache(self):
        registry = fresh_registry()
        first = registry.get_progression_service()

        registry.clear_cache()

        assert registry.get_service_info() == {}
        assert registry.get_progression_service() is not first

    def test_get_service_info(self):
        with patch.dict(os.environ, {"FF_USE_DATABASE_PERSISTENCE": "false"}):
            registry = fresh_registry()
            assert registry.get_service_info() == {}

            registry.get_progression_service()

            assert registry.get_service_info() == {
                "levels": "LevelStore",
                "prompts": "ItemPool",
                "streaks": "ActivityLog",
                "progression": "ProgressionService",
            }

    def test_repr(self):
        with patch.dict(os.environ, {"FF_USE_DATABASE_PERSISTENCE": "false"}):
            registry = fresh_registry()
            assert "db_enabled=False" in repr(registry)


class TestConvenienceFunctions:
    """Tests for module-level getters."""

    def test_get_service_registry_is_cached(self):
        assert get_service_registry() is get_service_registry()

    def test_get_progression_service(self):
        assert get_progression_service() is get_service_registry().get_progression_service()
