"""API middleware package."""

from proficiency.api.middleware.error_handler import (
    APIError,
    UnauthorizedError,
    create_error_response,
    setup_exception_handlers,
)
from proficiency.api.middleware.logging import RequestLoggingMiddleware, setup_logging

__all__ = [
    "APIError",
    "UnauthorizedError",
    "create_error_response",
    "setup_exception_handlers",
    "RequestLoggingMiddleware",
    "setup_logging",
]
