from .base import (
    AppError,
    DomainError,
    DuplicateValueError,
    InfrastructureError,
    NotFoundError,
    RateLimitedError,
    RouteNotFoundError,
    ValidationError,
)
from .http import handle_app_error, register_error_handler

__all__ = [
    "AppError",
    "DomainError",
    "DuplicateValueError",
    "InfrastructureError",
    "NotFoundError",
    "RateLimitedError",
    "RouteNotFoundError",
    "ValidationError",
    "handle_app_error",
    "register_error_handler",
]
