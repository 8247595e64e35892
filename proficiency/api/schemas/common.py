"""Common API response schemas."""

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Structured error response."""

    success: bool = False
    error: dict[str, Any] = Field(
        ...,
        description="Error details",
        examples=[{
            "code": "NO_ITEM_AVAILABLE",
            "message": "No practice item available for reading/multiple_choice",
            "details": {},
        }],
    )
    request_id: str = Field(
        ...,
        description="Unique request identifier for debugging",
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Error timestamp",
    )
