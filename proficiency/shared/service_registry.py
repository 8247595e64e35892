"""Unified service registry for dependency injection.

This module provides a centralized factory that switches between
in-memory and database-backed stores based on feature flags, and wires
them into the ProgressionService.

Usage:
    from proficiency.shared.service_registry import get_service_registry

    registry = get_service_registry()
    progression = registry.get_progression_service()

The registry automatically:
- Returns DB stores when FF_USE_DATABASE_PERSISTENCE=true
- Falls back to in-memory stores when the DB store cannot be created
- Caches instances for consistent singleton behavior
"""

from functools import lru_cache
from typing import TYPE_CHECKING
import logging

from proficiency.shared.feature_flags import FeatureFlags, get_feature_flags

if TYPE_CHECKING:
    from proficiency.modules.levels.interface import ILevelStore
    from proficiency.modules.progression.service import ProgressionService
    from proficiency.modules.prompts.interface import IItemPool
    from proficiency.modules.streaks.interface import IActivityLog

logger = logging.getLogger(__name__)


class ServiceRegistry:
    """Unified service factory with feature flag support.

    Features:
    - Lazy instantiation
    - Feature flag-based implementation selection
    - Automatic fallback when a database store cannot be built
    - Instance caching
    """

    _instance: "ServiceRegistry | None" = None

    def __new__(cls) -> "ServiceRegistry":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self) -> None:
        if self._initialized:
            return
        self._flags = get_feature_flags()
        self._level_store: "ILevelStore | None" = None
        self._item_pool: "IItemPool | None" = None
        self._activity_log: "IActivityLog | None" = None
        self._progression_service: "ProgressionService | None" = None
        self._initialized = True
        logger.info("ServiceRegistry initialized")

    def get_level_store(self) -> "ILevelStore":
        """Get the level store instance.

        Returns database-backed store if FF_USE_DATABASE_PERSISTENCE is enabled,
        otherwise returns in-memory store.
        """
        if self._level_store is None:
            self._level_store = self._create_level_store()
        return self._level_store

    def get_item_pool(self) -> "IItemPool":
        """Get the practice item pool instance."""
        if self._item_pool is None:
            self._item_pool = self._create_item_pool()
        return self._item_pool

    def get_activity_log(self) -> "IActivityLog":
        """Get the activity log instance."""
        if self._activity_log is None:
            self._activity_log = self._create_activity_log()
        return self._activity_log

    def get_progression_service(self) -> "ProgressionService":
        """Get the progression service wired to the current stores."""
        if self._progression_service is None:
            from proficiency.modules.progression.service import ProgressionService

            self._progression_service = ProgressionService(
                level_store=self.get_level_store(),
                item_pool=self.get_item_pool(),
                activity_log=self.get_activity_log(),
            )
        return self._progression_service

    def _create_level_store(self) -> "ILevelStore":
        """Create level store based on feature flags."""
        if self._flags.is_enabled(FeatureFlags.USE_DATABASE_PERSISTENCE):
            try:
                from proficiency.modules.levels.db_service import DatabaseLevelStore

                logger.info("Creating DatabaseLevelStore")
                return DatabaseLevelStore()
            except Exception as e:
                logger.warning(f"Failed to create DatabaseLevelStore, falling back: {e}")

        from proficiency.modules.levels.service import LevelStore

        logger.info("Creating in-memory LevelStore")
        return LevelStore()

    def _create_item_pool(self) -> "IItemPool":
        """Create item pool based on feature flags."""
        if self._flags.is_enabled(FeatureFlags.USE_DATABASE_PERSISTENCE):
            try:
                from proficiency.modules.prompts.db_service import DatabaseItemPool

                logger.info("Creating DatabaseItemPool")
                return DatabaseItemPool()
            except Exception as e:
                logger.warning(f"Failed to create DatabaseItemPool, falling back: {e}")

        from proficiency.modules.prompts.service import ItemPool

        logger.info("Creating in-memory ItemPool")
        return ItemPool()

    def _create_activity_log(self) -> "IActivityLog":
        """Create activity log based on feature flags."""
        if self._flags.is_enabled(FeatureFlags.USE_DATABASE_PERSISTENCE):
            try:
                from proficiency.modules.streaks.db_service import DatabaseActivityLog

                logger.info("Creating DatabaseActivityLog")
                return DatabaseActivityLog()
            except Exception as e:
                logger.warning(f"Failed to create DatabaseActivityLog, falling back: {e}")

        from proficiency.modules.streaks.service import ActivityLog

        logger.info("Creating in-memory ActivityLog")
        return ActivityLog()

    def clear_cache(self) -> None:
        """Clear all cached instances.

        Use this when feature flags change at runtime to force
        recreation with new settings.
        """
        self._level_store = None
        self._item_pool = None
        self._activity_log = None
        self._progression_service = None
        logger.info("ServiceRegistry cache cleared")

    def get_service_info(self) -> dict[str, str]:
        """Get information about currently instantiated services.

        Returns:
            Dictionary of service names to their implementation types
        """
        info = {}
        if self._level_store:
            info["levels"] = type(self._level_store).__name__
        if self._item_pool:
            info["prompts"] = type(self._item_pool).__name__
        if self._activity_log:
            info["streaks"] = type(self._activity_log).__name__
        if self._progression_service:
            info["progression"] = type(self._progression_service).__name__
        return info

    def __repr__(self) -> str:
        db_enabled = self._flags.is_enabled(FeatureFlags.USE_DATABASE_PERSISTENCE)
        return f"ServiceRegistry(db_enabled={db_enabled}, services={self.get_service_info()})"


@lru_cache
def get_service_registry() -> ServiceRegistry:
    """Get the singleton ServiceRegistry instance."""
    return ServiceRegistry()


def get_progression_service() -> "ProgressionService":
    """Get the progression service from the registry.

    This is the recommended way to get a ProgressionService instance,
    as it respects feature flags and provides fallback behavior.
    """
    return get_service_registry().get_progression_service()
