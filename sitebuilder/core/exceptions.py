"""
Exception hierarchy for the site builder backend.

Every exception carries:
- Error code (stable identifier for logs and clients)
- HTTP status code (for API responses)
- A message that is safe to return to the caller

The API layer renders any ``SiteBuilderError`` as ``{"error": message}``.
"""

from typing import Any, Dict, Optional


class SiteBuilderError(Exception):
    """Base exception for all application errors."""

    def __init__(
        self,
        message: str,
        error_code: str = "internal_error",
        http_status: int = 500,
        **kwargs: Any,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.http_status = http_status
        self.metadata = kwargs

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for API responses"""
        return {"error": self.message}


# ============================================================================
# CLIENT ERRORS
# ============================================================================

class ValidationError(SiteBuilderError):
    """A required field is missing or malformed."""

    def __init__(self, message: str, **kwargs: Any):
        super().__init__(message, error_code="validation_error", http_status=400, **kwargs)


class ConflictError(SiteBuilderError):
    """
    The resource already exists.

    Reported as 400 to match the public contract of /api/register.
    """

    def __init__(self, message: str, **kwargs: Any):
        super().__init__(message, error_code="conflict", http_status=400, **kwargs)


class InvalidCredentialsError(SiteBuilderError):
    """Login failed. The message never reveals whether the email exists."""

    def __init__(self, message: str = "Invalid credentials", **kwargs: Any):
        super().__init__(message, error_code="invalid_credentials", http_status=400, **kwargs)


class AuthError(SiteBuilderError):
    """Missing, malformed, invalid or expired bearer token."""

    def __init__(self, message: str, **kwargs: Any):
        super().__init__(message, error_code="unauthorized", http_status=401, **kwargs)


class ForbiddenError(SiteBuilderError):
    """Admin key missing from configuration or not matching."""

    def __init__(self, message: str, **kwargs: Any):
        super().__init__(message, error_code="forbidden", http_status=403, **kwargs)


class NotFoundError(SiteBuilderError):
    def __init__(self, message: str, **kwargs: Any):
        super().__init__(message, error_code="not_found", http_status=404, **kwargs)


# ============================================================================
# UPSTREAM / INTERNAL ERRORS
# ============================================================================

class UpstreamError(SiteBuilderError):
    """
    A payment processor or registrar call failed.

    The upstream message is passed through verbatim.
    """

    def __init__(self, message: str, provider: Optional[str] = None, **kwargs: Any):
        super().__init__(
            message, error_code="upstream_error", http_status=500, provider=provider, **kwargs
        )
        self.provider = provider


class InvalidTransitionError(SiteBuilderError):
    """An order status change that would move backwards or skip a step."""

    def __init__(self, order_id: str, from_status: str, to_status: str):
        super().__init__(
            f"Order {order_id} cannot move from {from_status} to {to_status}",
            error_code="invalid_transition",
            http_status=409,
            order_id=order_id,
        )
        self.from_status = from_status
        self.to_status = to_status
