"""Shared utilities and common code."""

from proficiency.shared.config import Settings, get_settings, validate_settings
from proficiency.shared.database import (
    Base,
    close_db,
    get_db_session,
    init_db,
    shutdown,
    startup,
)
from proficiency.shared.models import (
    CEFRLevel,
    FallbackReason,
    SelectionSource,
    SkillArea,
)

__all__ = [
    # Config
    "Settings",
    "get_settings",
    "validate_settings",
    # Database
    "Base",
    "get_db_session",
    "init_db",
    "close_db",
    "startup",
    "shutdown",
    # Enums
    "SkillArea",
    "CEFRLevel",
    "SelectionSource",
    "FallbackReason",
]
