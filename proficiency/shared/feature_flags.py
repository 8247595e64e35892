"""Feature flag management for safe feature rollout.

Usage:
    from proficiency.shared.feature_flags import get_feature_flags, FeatureFlags

    flags = get_feature_flags()
    if flags.is_enabled(FeatureFlags.USE_DATABASE_PERSISTENCE):
        # Use database-backed stores
    else:
        # Use in-memory stores

Environment Variables:
    FF_USE_DATABASE_PERSISTENCE: Enable database persistence (default: false)
    FF_ENABLE_QUALITY_TRACKING: Refine item quality scores from graded attempts (default: true)
"""

from enum import Enum
from functools import lru_cache
import logging

from proficiency.shared.config import get_settings

logger = logging.getLogger(__name__)


class FeatureFlags(str, Enum):
    """Available feature flags.

    Each flag corresponds to an environment variable with FF_ prefix.
    """

    USE_DATABASE_PERSISTENCE = "use_database_persistence"
    ENABLE_QUALITY_TRACKING = "enable_quality_tracking"

    @property
    def settings_key(self) -> str:
        """Get the Settings attribute backing this flag."""
        return f"ff_{self.value}"


class FeatureFlagManager:
    """Manages feature flags with environment variable and runtime overrides.

    Singleton that supports:
    - Environment variable configuration
    - Runtime overrides for testing
    """

    _instance: "FeatureFlagManager | None" = None

    def __new__(cls) -> "FeatureFlagManager":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self) -> None:
        if self._initialized:
            return
        self._overrides: dict[str, bool] = {}
        self._initialized = True
        logger.info("FeatureFlagManager initialized")

    def is_enabled(self, flag: FeatureFlags) -> bool:
        """Check if a feature flag is enabled.

        Priority:
        1. Runtime overrides (set via enable/disable methods)
        2. Settings (FF_<FLAG_NAME> from the environment or .env)
        """
        if flag.value in self._overrides:
            return self._overrides[flag.value]

        return bool(getattr(get_settings(), flag.settings_key))

    def enable(self, flag: FeatureFlags) -> None:
        """Enable a feature flag at runtime."""
        self._overrides[flag.value] = True
        logger.info(f"Feature flag enabled: {flag.value}")

    def disable(self, flag: FeatureFlags) -> None:
        """Disable a feature flag at runtime."""
        self._overrides[flag.value] = False
        logger.info(f"Feature flag disabled: {flag.value}")

    def clear_override(self, flag: FeatureFlags) -> None:
        """Clear runtime override for a flag, reverting to environment variable."""
        if flag.value in self._overrides:
            del self._overrides[flag.value]
            logger.info(f"Feature flag override cleared: {flag.value}")

    def clear_all_overrides(self) -> None:
        """Clear all runtime overrides, reverting to environment variables."""
        self._overrides.clear()
        logger.info("All feature flag overrides cleared")

    def get_all_states(self) -> dict[str, bool]:
        """Get the current state of all feature flags.

        Useful for debugging and health endpoints.
        """
        return {flag.value: self.is_enabled(flag) for flag in FeatureFlags}

    def __repr__(self) -> str:
        states = self.get_all_states()
        enabled = [k for k, v in states.items() if v]
        return f"FeatureFlagManager(enabled={enabled})"


@lru_cache
def get_feature_flags() -> FeatureFlagManager:
    """Get the singleton FeatureFlagManager instance."""
    return FeatureFlagManager()


def is_database_persistence_enabled() -> bool:
    """Check if database persistence is enabled."""
    return get_feature_flags().is_enabled(FeatureFlags.USE_DATABASE_PERSISTENCE)


def is_quality_tracking_enabled() -> bool:
    """Check if item quality refinement is enabled."""
    return get_feature_flags().is_enabled(FeatureFlags.ENABLE_QUALITY_TRACKING)
