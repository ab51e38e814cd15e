"""
FastAPI dependencies wiring stores, clients and services.

Stores and clients are cheap to build; the ones holding no state are
created per request from the cached settings. Tests swap any of them via
``app.dependency_overrides``.
"""
import secrets
from functools import lru_cache
from typing import Any, Dict, Optional

from fastapi import Depends, Header

from sitebuilder.config import Settings, get_settings
from sitebuilder.core.auth import AuthService
from sitebuilder.core.exceptions import ForbiddenError
from sitebuilder.core.reconciliation import DomainOrderReconciler
from sitebuilder.core.sites import SitePublisher
from sitebuilder.integrations import DynadotClient, NamecomClient, StripeClient, WebhookHandler
from sitebuilder.storage import OrderStore, UserStore


@lru_cache()
def get_stripe_client() -> StripeClient:
    return StripeClient(get_settings())


def get_order_store(settings: Settings = Depends(get_settings)) -> OrderStore:
    return OrderStore(settings.orders_file)


def get_user_store(settings: Settings = Depends(get_settings)) -> UserStore:
    return UserStore(settings.users_file)


def get_site_publisher(settings: Settings = Depends(get_settings)) -> SitePublisher:
    return SitePublisher(settings.sites_dir)


def get_dynadot_client(settings: Settings = Depends(get_settings)) -> DynadotClient:
    return DynadotClient(
        api_key=settings.dynadot_api_key,
        api_url=settings.dynadot_api_url,
        timeout=settings.registrar_timeout,
    )


def get_namecom_client(settings: Settings = Depends(get_settings)) -> NamecomClient:
    return NamecomClient(
        username=settings.namecom_username,
        token=settings.namecom_token,
        api_url=settings.namecom_api_url,
        timeout=settings.registrar_timeout,
    )


def get_auth_service(
    user_store: UserStore = Depends(get_user_store),
    settings: Settings = Depends(get_settings),
) -> AuthService:
    return AuthService(user_store, settings)


def get_webhook_handler(
    stripe_client: StripeClient = Depends(get_stripe_client),
    order_store: OrderStore = Depends(get_order_store),
    namecom: NamecomClient = Depends(get_namecom_client),
) -> WebhookHandler:
    """Webhook handler with domain order reconciliation registered."""
    handler = WebhookHandler(stripe_client)
    reconciler = DomainOrderReconciler(order_store, namecom)
    handler.register_handler(
        "payment_intent.succeeded", reconciler.handle_payment_intent_succeeded
    )
    return handler


async def get_current_user(
    authorization: Optional[str] = Header(default=None),
    auth: AuthService = Depends(get_auth_service),
) -> Dict[str, Any]:
    """
    Identity of the bearer token's owner.

    Raises:
        AuthError: If the header is missing, malformed or the token invalid
    """
    return auth.authenticate_header(authorization)


async def require_admin(
    x_admin_key: Optional[str] = Header(default=None, alias="X-Admin-Key"),
    settings: Settings = Depends(get_settings),
) -> None:
    """
    Guard for admin endpoints.

    Raises:
        ForbiddenError: If no admin key is configured or the header differs
    """
    if not settings.admin_key:
        raise ForbiddenError("Admin key not configured")
    if not secrets.compare_digest((x_admin_key or "").encode(), settings.admin_key.encode()):
        raise ForbiddenError("Invalid admin key")
