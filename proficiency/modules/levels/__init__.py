"""Levels Module - Per-skill proficiency tracking and adjustment.

Usage:
    # Recommended: Use service registry (respects feature flags)
    from proficiency.shared.service_registry import get_service_registry
    store = get_service_registry().get_level_store()

    # Direct access (bypasses feature flags)
    from proficiency.modules.levels import get_inmemory_level_store
    from proficiency.modules.levels import get_db_level_store
"""

from proficiency.modules.levels.adjuster import (
    apply_level_adjustment,
    calculate_level_adjustment,
    calculate_overall_skill_level,
    cefr_to_numeric,
    format_level,
    get_adjacent_levels,
    get_level_progress,
    next_level_state,
    numeric_to_cefr,
    should_level_down,
    should_level_up,
)
from proficiency.modules.levels.interface import (
    ILevelStore,
    LevelAdjustmentResult,
    SkillOverview,
    UserSkillLevel,
)
from proficiency.modules.levels.service import LevelStore
from proficiency.modules.levels.service import get_level_store as get_inmemory_level_store
from proficiency.modules.levels.db_service import DatabaseLevelStore, get_db_level_store
from proficiency.modules.levels.models import UserSkillLevelModel

__all__ = [
    # Interface types
    "ILevelStore",
    "LevelAdjustmentResult",
    "SkillOverview",
    "UserSkillLevel",
    # Adjustment engine
    "apply_level_adjustment",
    "calculate_level_adjustment",
    "calculate_overall_skill_level",
    "cefr_to_numeric",
    "format_level",
    "get_adjacent_levels",
    "get_level_progress",
    "next_level_state",
    "numeric_to_cefr",
    "should_level_down",
    "should_level_up",
    # Implementations
    "LevelStore",
    "DatabaseLevelStore",
    # Models
    "UserSkillLevelModel",
    # Factory functions
    "get_inmemory_level_store",
    "get_db_level_store",
]
