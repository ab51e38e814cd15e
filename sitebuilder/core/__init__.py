"""Core business logic: orders, reconciliation, auth, sites."""
from .exceptions import (
    AuthError,
    ConflictError,
    ForbiddenError,
    InvalidCredentialsError,
    InvalidTransitionError,
    NotFoundError,
    SiteBuilderError,
    UpstreamError,
    ValidationError,
)
from .orders import Order, OrderStatus

__all__ = [
    "AuthError",
    "ConflictError",
    "ForbiddenError",
    "InvalidCredentialsError",
    "InvalidTransitionError",
    "NotFoundError",
    "Order",
    "OrderStatus",
    "SiteBuilderError",
    "UpstreamError",
    "ValidationError",
]
