"""External integrations: Stripe and domain registrars."""
from .registrars import DynadotClient, NamecomClient, RegistrarError
from .stripe_client import StripeClient
from .webhook_handler import WebhookError, WebhookHandler

__all__ = [
    "DynadotClient",
    "NamecomClient",
    "RegistrarError",
    "StripeClient",
    "WebhookError",
    "WebhookHandler",
]
