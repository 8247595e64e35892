"""Progression Module - Level updates, prompt selection and progress summaries.

Usage:
    # Recommended: Use service registry (respects feature flags)
    from proficiency.modules.progression import get_progression_service
    service = get_progression_service()

    level = await service.update_user_level(user_id, "speaking", "read_then_speak", 82)
    result = await service.select_prompt_for_user(user_id, "speaking", "read_then_speak")
"""

from proficiency.modules.progression.interface import LevelSignals, ProgressSummary
from proficiency.modules.progression.service import ProgressionService

# Registry-based service getter (recommended)
from proficiency.shared.service_registry import get_progression_service

__all__ = [
    # Interface types
    "LevelSignals",
    "ProgressSummary",
    # Implementation
    "ProgressionService",
    # Factory functions
    "get_progression_service",
]
