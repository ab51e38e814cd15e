"""
API routes.
"""
from typing import Any, Dict, Optional

import structlog
from fastapi import APIRouter, Depends, Header, Request, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.concurrency import run_in_threadpool

from sitebuilder.config import Settings, get_settings
from sitebuilder.core.auth import AuthService
from sitebuilder.core.domains import check_domain, normalize_domain
from sitebuilder.core.exceptions import ValidationError
from sitebuilder.core.orders import Order, new_order_id, to_cents
from sitebuilder.core.reconciliation import DOMAIN_PURCHASE
from sitebuilder.core.sites import SitePublisher
from sitebuilder.integrations import (
    DynadotClient,
    NamecomClient,
    StripeClient,
    WebhookError,
    WebhookHandler,
)
from sitebuilder.monitoring.health import HealthCheck
from sitebuilder.storage import OrderStore

from .dependencies import (
    get_auth_service,
    get_current_user,
    get_dynadot_client,
    get_namecom_client,
    get_order_store,
    get_site_publisher,
    get_stripe_client,
    get_webhook_handler,
    require_admin,
)
from .schemas import (
    ClientSecretResponse,
    CreateCustomerRequest,
    CreateDomainPaymentRequest,
    CreatePaymentIntentRequest,
    CreateSiteRequest,
    CreateSiteResponse,
    CreateStripeSubscriptionRequest,
    CreateSubscriptionRequest,
    CredentialsRequest,
    CustomerResponse,
    DomainCheckResponse,
    DomainPaymentResponse,
    DomainRequest,
    HealthCheckResponse,
    NamecomRegisterRequest,
    PublishSiteRequest,
    PublishSiteResponse,
    StatusResponse,
    SubscriptionSetupResponse,
    TokenResponse,
    WebhookResponse,
)

logger = structlog.get_logger(__name__)

# Create routers
payment_router = APIRouter(prefix="/api", tags=["payments"])
webhook_router = APIRouter(prefix="/api", tags=["webhooks"])
domain_router = APIRouter(prefix="/api", tags=["domains"])
auth_router = APIRouter(prefix="/api", tags=["auth"])
site_router = APIRouter(prefix="/api/site", tags=["sites"])
admin_router = APIRouter(prefix="/api/admin", tags=["admin"])
monitoring_router = APIRouter(tags=["monitoring"])


def _currency(requested: Optional[str], settings: Settings) -> str:
    return (requested or settings.default_currency).lower()


@payment_router.post(
    "/create-payment-intent",
    response_model=ClientSecretResponse,
    summary="Create a one-time payment",
)
async def create_payment_intent(
    request: CreatePaymentIntentRequest,
    stripe_client: StripeClient = Depends(get_stripe_client),
    settings: Settings = Depends(get_settings),
) -> ClientSecretResponse:
    """Create a PaymentIntent and return its client secret."""
    payment_intent = await stripe_client.create_payment_intent(
        amount_cents=request.amount,
        currency=_currency(request.currency, settings),
        metadata={"plan": request.plan or ""},
    )
    return ClientSecretResponse(client_secret=payment_intent.client_secret)


@payment_router.post(
    "/create-subscription",
    response_model=SubscriptionSetupResponse,
    summary="Prepare a monthly subscription",
    description="Create a recurring price for the plan and a SetupIntent to collect a card",
)
async def create_subscription(
    request: CreateSubscriptionRequest,
    stripe_client: StripeClient = Depends(get_stripe_client),
    settings: Settings = Depends(get_settings),
) -> SubscriptionSetupResponse:
    if not request.plan:
        raise ValidationError("Plan name is required")

    price = await stripe_client.create_subscription_price(
        unit_amount=request.price,
        currency=_currency(request.currency, settings),
        plan_name=request.plan,
    )
    setup_intent = await stripe_client.create_setup_intent()

    return SubscriptionSetupResponse(client_secret=setup_intent.client_secret, price_id=price.id)


@payment_router.post(
    "/create-domain-payment",
    response_model=DomainPaymentResponse,
    summary="Start a domain purchase",
    description="Create a PaymentIntent for the domain and record a pending order",
)
async def create_domain_payment(
    request: CreateDomainPaymentRequest,
    stripe_client: StripeClient = Depends(get_stripe_client),
    order_store: OrderStore = Depends(get_order_store),
    settings: Settings = Depends(get_settings),
) -> DomainPaymentResponse:
    domain = normalize_domain(request.domain)
    currency = _currency(request.currency, settings)

    payment_intent = await stripe_client.create_payment_intent(
        amount_cents=to_cents(request.price),
        currency=currency,
        metadata={"type": DOMAIN_PURCHASE, "domain": domain},
    )

    order = await run_in_threadpool(
        order_store.create,
        Order(
            id=new_order_id(),
            domain=domain,
            price=request.price,
            currency=currency,
            stripe_payment_intent_id=payment_intent.id,
        ),
    )

    return DomainPaymentResponse(client_secret=payment_intent.client_secret, order_id=order.id)


@payment_router.post(
    "/stripe/create-customer",
    response_model=CustomerResponse,
    summary="Create a Stripe customer",
)
async def create_customer(
    request: CreateCustomerRequest,
    stripe_client: StripeClient = Depends(get_stripe_client),
) -> CustomerResponse:
    customer = await stripe_client.create_customer(request.email, request.user_id)
    return CustomerResponse(customer_id=customer.id)


@payment_router.post(
    "/stripe/create-subscription",
    summary="Subscribe a customer to a price",
    description="Optionally attach a payment method first and make it the invoice default",
)
async def create_stripe_subscription(
    request: CreateStripeSubscriptionRequest,
    stripe_client: StripeClient = Depends(get_stripe_client),
) -> Dict[str, Any]:
    if not request.customer_id or not request.price_id:
        raise ValidationError("customerId and priceId required")

    if request.payment_method:
        await stripe_client.attach_payment_method(request.customer_id, request.payment_method)

    return await stripe_client.create_subscription(request.customer_id, request.price_id)


@webhook_router.post(
    "/webhook",
    response_model=WebhookResponse,
    summary="Stripe webhook endpoint",
    description="Verify the signature, then always acknowledge",
)
async def stripe_webhook(
    request: Request,
    stripe_signature: Optional[str] = Header(default=None, alias="Stripe-Signature"),
    webhook_handler: WebhookHandler = Depends(get_webhook_handler),
) -> WebhookResponse:
    """
    Handle Stripe webhook events.

    Only signature failures are reported back (400). Processing errors are
    logged and the event is acknowledged anyway.
    """
    body = await request.body()

    try:
        event = webhook_handler.verify_signature(body, stripe_signature)
    except WebhookError as e:
        raise ValidationError(f"Webhook Error: {e}")

    result = await webhook_handler.process_event(event)
    logger.info(
        "api_webhook_acknowledged",
        event_id=event.id,
        event_type=event.type,
        status=result["status"],
    )
    return WebhookResponse(received=True)


@domain_router.post(
    "/check-domain",
    response_model=DomainCheckResponse,
    summary="Check availability with both registrars",
)
async def check_domain_availability(
    request: DomainRequest,
    dynadot: DynadotClient = Depends(get_dynadot_client),
    namecom: NamecomClient = Depends(get_namecom_client),
) -> Dict[str, Any]:
    return await check_domain(normalize_domain(request.domain), dynadot, namecom)


@domain_router.post("/namecom/check", summary="Check availability with Name.com")
async def namecom_check(
    request: DomainRequest,
    namecom: NamecomClient = Depends(get_namecom_client),
) -> Dict[str, Any]:
    if not request.domain:
        raise ValidationError("Domain required")
    result = await namecom.check_availability(normalize_domain(request.domain))
    return result.model_dump()


@domain_router.post("/namecom/register", summary="Register a domain with Name.com")
async def namecom_register(
    request: NamecomRegisterRequest,
    user: Dict[str, Any] = Depends(get_current_user),
    namecom: NamecomClient = Depends(get_namecom_client),
) -> Dict[str, Any]:
    domain = normalize_domain(request.domain)
    logger.info("api_namecom_register", user_id=user.get("id"), domain=domain)
    result = await namecom.register_domain(domain, request.years, request.contact)
    return result.model_dump()


@auth_router.post("/register", response_model=TokenResponse, summary="Create an account")
async def register(
    request: CredentialsRequest,
    auth: AuthService = Depends(get_auth_service),
) -> TokenResponse:
    token = await run_in_threadpool(auth.register, request.email, request.password)
    return TokenResponse(token=token)


@auth_router.post("/login", response_model=TokenResponse, summary="Log in")
async def login(
    request: CredentialsRequest,
    auth: AuthService = Depends(get_auth_service),
) -> TokenResponse:
    token = await run_in_threadpool(auth.login, request.email, request.password)
    return TokenResponse(token=token)


@site_router.post("/create", response_model=CreateSiteResponse, summary="Save a site")
async def create_site(
    request: CreateSiteRequest,
    user: Dict[str, Any] = Depends(get_current_user),
    publisher: SitePublisher = Depends(get_site_publisher),
) -> CreateSiteResponse:
    site_id, preview_url = await run_in_threadpool(
        publisher.create, user["id"], request.name, request.html
    )
    return CreateSiteResponse(site_id=site_id, preview_url=preview_url)


@site_router.post("/publish", response_model=PublishSiteResponse, summary="Publish a site")
async def publish_site(
    request: PublishSiteRequest,
    user: Dict[str, Any] = Depends(get_current_user),
    publisher: SitePublisher = Depends(get_site_publisher),
) -> PublishSiteResponse:
    public_url = await run_in_threadpool(publisher.publish, user["id"], request.site_id)
    return PublishSiteResponse(public_url=public_url)


@admin_router.get(
    "/orders",
    summary="List all orders",
    dependencies=[Depends(require_admin)],
)
async def list_orders(order_store: OrderStore = Depends(get_order_store)) -> Dict[str, Any]:
    return await run_in_threadpool(order_store.load_documents)


@monitoring_router.get("/api/health", response_model=StatusResponse, summary="Health check")
async def health() -> Dict[str, Any]:
    return await HealthCheck().liveness()


@monitoring_router.get("/api/status", response_model=StatusResponse, summary="Status")
async def status_endpoint() -> Dict[str, Any]:
    return await HealthCheck().liveness()


@monitoring_router.get(
    "/api/health/ready",
    response_model=HealthCheckResponse,
    summary="Readiness probe",
    responses={503: {"model": HealthCheckResponse}},
)
async def readiness(response: Response) -> Dict[str, Any]:
    result = await HealthCheck().readiness()
    if result["status"] != "healthy":
        response.status_code = 503
    return result


@monitoring_router.get(
    "/metrics",
    summary="Prometheus metrics",
    include_in_schema=False,
)
async def prometheus_metrics() -> Response:
    """Expose Prometheus metrics."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
