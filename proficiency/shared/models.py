"""Common enums used across modules."""

from enum import Enum


class SkillArea(str, Enum):
    """Language skill areas."""

    SPEAKING = "speaking"
    WRITING = "writing"
    LISTENING = "listening"
    READING = "reading"


class CEFRLevel(str, Enum):
    """CEFR proficiency bands, lowest first."""

    A1 = "A1"
    A2 = "A2"
    B1 = "B1"
    B2 = "B2"
    C1 = "C1"
    C2 = "C2"

    @property
    def rank(self) -> int:
        return list(CEFRLevel).index(self)


class SelectionSource(str, Enum):
    """Where a selected practice item came from."""

    GENERATED = "generated"
    FALLBACK = "fallback"


class FallbackReason(str, Enum):
    """Why selection left the learner's exact band."""

    ADJACENT_LEVEL = "adjacent_level"
    POOL_EXHAUSTED = "pool_exhausted"
