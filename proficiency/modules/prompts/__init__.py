"""Prompts Module - Practice item pool and level-aware selection.

Usage:
    # Recommended: Use service registry (respects feature flags)
    from proficiency.shared.service_registry import get_service_registry
    pool = get_service_registry().get_item_pool()

    # Direct access (bypasses feature flags)
    from proficiency.modules.prompts import get_inmemory_item_pool
    from proficiency.modules.prompts import get_db_item_pool
"""

from proficiency.modules.prompts.interface import (
    Exhausted,
    IItemPool,
    InventoryCount,
    ItemUsage,
    PracticeItem,
    Selected,
    SelectionResult,
    unwrap_selection,
)
from proficiency.modules.prompts.selector import PromptSelector, rank_candidates, refine_quality
from proficiency.modules.prompts.service import ItemPool
from proficiency.modules.prompts.service import get_item_pool as get_inmemory_item_pool
from proficiency.modules.prompts.db_service import DatabaseItemPool, get_db_item_pool
from proficiency.modules.prompts.models import ItemUsageModel, PracticeItemModel

__all__ = [
    # Interface types
    "Exhausted",
    "IItemPool",
    "InventoryCount",
    "ItemUsage",
    "PracticeItem",
    "Selected",
    "SelectionResult",
    "unwrap_selection",
    # Selection
    "PromptSelector",
    "rank_candidates",
    "refine_quality",
    # Implementations
    "ItemPool",
    "DatabaseItemPool",
    # Models
    "ItemUsageModel",
    "PracticeItemModel",
    # Factory functions
    "get_inmemory_item_pool",
    "get_db_item_pool",
]
