"""
Stripe API client.

A thin pass-through over the Stripe SDK:
- No retries and no idempotency keys; the caller sees the first failure
- Every SDK error is logged, counted and re-raised as ``UpstreamError``
  with Stripe's message unchanged
- SDK calls run in the threadpool so they do not block the event loop
- Webhook signature verification
"""
import time
from typing import Any, Callable, Dict, Optional, TypeVar

import stripe
import structlog
from starlette.concurrency import run_in_threadpool

from sitebuilder.config import Settings, get_settings
from sitebuilder.core.exceptions import UpstreamError
from sitebuilder.monitoring.metrics import metrics

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class StripeClient:
    """
    Wrapper for the Stripe API used by the payment endpoints.

    Covers one-time PaymentIntents, monthly subscription prices with a
    SetupIntent, customers, payment method attachment and subscriptions.
    """

    def __init__(self, settings: Optional[Settings] = None) -> None:
        """Initialize Stripe client."""
        settings = settings or get_settings()
        stripe.api_key = settings.stripe_secret_key
        stripe.api_version = settings.stripe_api_version
        self.settings = settings

        logger.info(
            "stripe_client_initialized",
            api_version=stripe.api_version,
            test_mode=settings.is_test_mode,
        )

    async def _call(self, operation: str, func: Callable[[], T]) -> T:
        """
        Run one SDK call, recording metrics and translating errors.

        Raises:
            UpstreamError: If Stripe rejects the call
        """
        start_time = time.time()
        try:
            result = await run_in_threadpool(func)
        except stripe.StripeError as e:
            duration = time.time() - start_time
            metrics.record_stripe_api_call(operation, "error", duration)
            metrics.record_stripe_api_error(type(e).__name__)
            logger.error(
                "stripe_api_error",
                operation=operation,
                error_type=type(e).__name__,
                error_code=getattr(e, "code", None),
                error_message=e.user_message or str(e),
            )
            raise UpstreamError(e.user_message or str(e), provider="stripe") from e

        metrics.record_stripe_api_call(operation, "success", time.time() - start_time)
        return result

    async def create_payment_intent(
        self,
        amount_cents: int,
        currency: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> stripe.PaymentIntent:
        """
        Create a Stripe PaymentIntent.

        Args:
            amount_cents: Amount in cents
            currency: Currency code (e.g., 'usd')
            metadata: Optional metadata

        Returns:
            stripe.PaymentIntent: Created payment intent
        """
        logger.info(
            "creating_payment_intent",
            amount_cents=amount_cents,
            currency=currency,
        )

        payment_intent = await self._call(
            "create_payment_intent",
            lambda: stripe.PaymentIntent.create(
                amount=amount_cents,
                currency=currency,
                metadata=metadata or {},
            ),
        )

        logger.info(
            "payment_intent_created",
            payment_intent_id=payment_intent.id,
            status=payment_intent.status,
        )
        return payment_intent

    async def create_subscription_price(
        self, unit_amount: int, currency: str, plan_name: str
    ) -> stripe.Price:
        """
        Create a recurring Price with an inline product named after the plan.

        Args:
            unit_amount: Price per interval in cents
            currency: Currency code
            plan_name: Product name shown on invoices
        """
        logger.info("creating_subscription_price", unit_amount=unit_amount, plan=plan_name)

        price = await self._call(
            "create_price",
            lambda: stripe.Price.create(
                unit_amount=unit_amount,
                currency=currency,
                recurring={"interval": self.settings.subscription_interval},
                product_data={"name": plan_name},
            ),
        )

        logger.info("subscription_price_created", price_id=price.id)
        return price

    async def create_setup_intent(self) -> stripe.SetupIntent:
        """Create a SetupIntent for collecting a card for off-session use."""
        setup_intent = await self._call(
            "create_setup_intent",
            lambda: stripe.SetupIntent.create(
                payment_method_types=["card"],
                usage="off_session",
            ),
        )

        logger.info("setup_intent_created", setup_intent_id=setup_intent.id)
        return setup_intent

    async def create_customer(self, email: Optional[str], user_id: Any) -> stripe.Customer:
        """Create a customer tagged with the application's user id."""
        customer = await self._call(
            "create_customer",
            lambda: stripe.Customer.create(
                email=email,
                metadata={"userId": "" if user_id is None else str(user_id)},
            ),
        )

        logger.info("customer_created", customer_id=customer.id)
        return customer

    async def attach_payment_method(self, customer_id: str, payment_method: str) -> None:
        """
        Attach a payment method and make it the customer's invoice default.

        Args:
            customer_id: Stripe Customer id
            payment_method: Stripe PaymentMethod id
        """
        await self._call(
            "attach_payment_method",
            lambda: stripe.PaymentMethod.attach(payment_method, customer=customer_id),
        )
        await self._call(
            "update_customer",
            lambda: stripe.Customer.modify(
                customer_id,
                invoice_settings={"default_payment_method": payment_method},
            ),
        )

        logger.info(
            "payment_method_attached",
            customer_id=customer_id,
            payment_method=payment_method,
        )

    async def create_subscription(self, customer_id: str, price_id: str) -> Dict[str, Any]:
        """
        Create a subscription for one price.

        Returns:
            Dict[str, Any]: The subscription, with the latest invoice's
            PaymentIntent expanded
        """
        subscription = await self._call(
            "create_subscription",
            lambda: stripe.Subscription.create(
                customer=customer_id,
                items=[{"price": price_id}],
                expand=["latest_invoice.payment_intent"],
            ),
        )

        logger.info(
            "subscription_created",
            subscription_id=subscription.id,
            status=subscription.status,
        )
        return subscription.to_dict()

    def construct_webhook_event(self, payload: bytes, signature: str) -> stripe.Event:
        """
        Verify a webhook signature and build the event.

        Raises:
            stripe.SignatureVerificationError: If the signature does not match
            ValueError: If the payload is not valid JSON
        """
        return stripe.Webhook.construct_event(
            payload=payload,
            sig_header=signature,
            secret=self.settings.stripe_webhook_secret,
        )
