"""Domain registrar clients."""
from .base import (
    AvailabilityResult,
    RegistrarClient,
    RegistrarError,
    RegistrationResult,
    parse_price,
)
from .dynadot import DynadotClient
from .namecom import NamecomClient

__all__ = [
    "AvailabilityResult",
    "DynadotClient",
    "NamecomClient",
    "RegistrarClient",
    "RegistrarError",
    "RegistrationResult",
    "parse_price",
]
