"""Shared exceptions for the proficiency engine.

This module defines a consistent exception hierarchy used across all modules
to standardize error handling and provide clear error semantics.
"""

from typing import Any
from uuid import UUID


class ProficiencyException(Exception):
    """Base exception for all application errors.

    All domain-specific exceptions should inherit from this class
    to enable consistent error handling at the API layer.
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


# ===================
# Resource Errors
# ===================

class ResourceNotFoundError(ProficiencyException):
    """Raised when a requested resource is not found."""

    def __init__(
        self,
        resource_type: str,
        resource_id: UUID | str,
    ) -> None:
        super().__init__(
            f"{resource_type} not found: {resource_id}",
            {"resource_type": resource_type, "resource_id": str(resource_id)}
        )


class SkillLevelNotFoundError(ResourceNotFoundError):
    """Raised when a user has no level row for a skill area and question type."""

    def __init__(self, user_id: UUID, skill_area: str, question_type: str) -> None:
        super().__init__("SkillLevel", f"{user_id}/{skill_area}/{question_type}")
        self.details.update({"skill_area": skill_area, "question_type": question_type})


class PracticeItemNotFoundError(ResourceNotFoundError):
    """Raised when a practice item is not found."""

    def __init__(self, item_id: UUID) -> None:
        super().__init__("PracticeItem", item_id)


class NoItemAvailableError(ResourceNotFoundError):
    """Raised when no practice item can be served at any tier."""

    def __init__(self, skill_area: str, question_type: str, cefr_level: str | None = None) -> None:
        ProficiencyException.__init__(
            self,
            f"No practice item available for {skill_area}/{question_type}",
            {
                "skill_area": skill_area,
                "question_type": question_type,
                "cefr_level": cefr_level,
            },
        )


# ===================
# State Errors
# ===================

class InvalidStateError(ProficiencyException):
    """Raised when an operation is invalid for the current state."""
    pass


class InconsistentStateError(InvalidStateError):
    """Raised when a stored value violates a domain invariant."""

    def __init__(self, entity: str, reason: str) -> None:
        super().__init__(
            f"Inconsistent {entity}: {reason}",
            {"entity": entity, "reason": reason}
        )


class ConcurrentUpdateError(InvalidStateError):
    """Raised when a conditional write loses a race with another writer."""

    def __init__(self, entity: str, entity_id: UUID | str, expected_version: int) -> None:
        super().__init__(
            f"{entity} {entity_id} was modified concurrently",
            {
                "entity": entity,
                "entity_id": str(entity_id),
                "expected_version": expected_version,
            }
        )


# ===================
# Validation Errors
# ===================

class ValidationError(ProficiencyException):
    """Raised when input validation fails."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(
            f"Validation error for '{field}': {message}",
            {"field": field}
        )


class InvalidScoreError(ValidationError):
    """Raised when a score is out of valid range."""

    def __init__(self, score: float) -> None:
        super().__init__(
            "score",
            f"Score must be between 0 and 100, got {score}"
        )


class InvalidSkillAreaError(ValidationError):
    """Raised when a skill area is not recognized."""

    def __init__(self, skill_area: str) -> None:
        super().__init__("skill_area", f"Unknown skill area '{skill_area}'")


class InvalidQuestionTypeError(ValidationError):
    """Raised when a question type does not belong to the skill area."""

    def __init__(self, skill_area: str, question_type: str) -> None:
        super().__init__(
            "question_type",
            f"Question type '{question_type}' is not valid for skill area '{skill_area}'"
        )
        self.details["skill_area"] = skill_area


class InvalidCEFRLevelError(ValidationError):
    """Raised when a CEFR label is not one of A1..C2."""

    def __init__(self, cefr_level: str) -> None:
        super().__init__("cefr_level", f"Unknown CEFR level '{cefr_level}'")


class InvalidTimezoneError(ValidationError):
    """Raised when a timezone is not a valid IANA key."""

    def __init__(self, tz_name: str) -> None:
        super().__init__("timezone", f"Unknown timezone '{tz_name}'")


class InvalidWindowError(ValidationError):
    """Raised when a progress window is outside the supported range."""

    def __init__(self, window_weeks: int) -> None:
        super().__init__(
            "window_weeks",
            f"Window must be between 1 and 104 weeks, got {window_weeks}"
        )


# ===================
# Configuration Errors
# ===================

class ConfigurationError(ProficiencyException):
    """Raised when there's a configuration problem."""
    pass

