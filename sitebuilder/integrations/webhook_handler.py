"""
Stripe webhook handler with signature verification and event routing.

Implements:
- Webhook signature verification
- Event type routing to registered handlers
- Failure isolation: a handler that raises is logged and the event is
  still acknowledged, so Stripe does not redeliver it
"""
import time
from typing import Any, Awaitable, Callable, Dict, Optional

import stripe
import structlog

from sitebuilder.monitoring.metrics import metrics

from .stripe_client import StripeClient

logger = structlog.get_logger(__name__)

EventHandler = Callable[[Dict[str, Any]], Awaitable[Any]]


class WebhookError(Exception):
    """Raised when a webhook delivery fails signature verification."""

    pass


class WebhookHandler:
    """
    Handles Stripe webhook events.

    Features:
    - Signature verification using the Stripe webhook secret
    - Event type routing to registered handlers
    - Informational handlers for subscription lifecycle events
    """

    def __init__(self, stripe_client: StripeClient):
        """
        Initialize webhook handler.

        Args:
            stripe_client: Client holding the webhook signing secret
        """
        self.stripe_client = stripe_client
        self.event_handlers: Dict[str, EventHandler] = {}

        self.register_handler("invoice.payment_succeeded", self.handle_invoice_payment_succeeded)
        self.register_handler("payment_method.attached", self.handle_payment_method_attached)
        self.register_handler(
            "customer.subscription.deleted", self.handle_customer_subscription_deleted
        )

    def register_handler(self, event_type: str, handler: EventHandler) -> None:
        """
        Register a handler for a specific event type.

        Args:
            event_type: Stripe event type (e.g., 'payment_intent.succeeded')
            handler: Async callable receiving the event's data object

        Example:
            async def handle_payment_succeeded(payment_intent):
                ...

            handler.register_handler('payment_intent.succeeded', handle_payment_succeeded)
        """
        self.event_handlers[event_type] = handler
        logger.debug("webhook_handler_registered", event_type=event_type)

    def verify_signature(self, payload: bytes, signature: Optional[str]) -> stripe.Event:
        """
        Verify webhook signature and construct event.

        Args:
            payload: Raw request body as bytes
            signature: Stripe-Signature header value

        Returns:
            stripe.Event: Verified Stripe event

        Raises:
            WebhookError: If the header is missing or verification fails
        """
        if not signature:
            metrics.record_webhook_signature_failure()
            logger.warning("webhook_signature_missing")
            raise WebhookError("No signatures found matching the expected signature for payload")

        try:
            event = self.stripe_client.construct_webhook_event(payload, signature)
        except stripe.SignatureVerificationError as e:
            metrics.record_webhook_signature_failure()
            logger.warning("webhook_signature_verification_failed", error=str(e))
            raise WebhookError(str(e)) from e
        except ValueError as e:
            metrics.record_webhook_signature_failure()
            logger.warning("webhook_payload_invalid", error=str(e))
            raise WebhookError(f"Invalid payload: {e}") from e

        logger.info(
            "webhook_signature_verified",
            event_id=event.id,
            event_type=event.type,
        )
        return event

    async def process_event(self, event: stripe.Event) -> Dict[str, Any]:
        """
        Route a verified event to its handler.

        Never raises: handler failures are logged and reported in the
        returned status so the delivery is still acknowledged.

        Returns:
            Dict[str, Any]: Processing result
        """
        event_id = event.id
        event_type = event.type
        start_time = time.time()

        handler = self.event_handlers.get(event_type)
        if handler is None:
            logger.info("webhook_unhandled_event_type", event_id=event_id, event_type=event_type)
            metrics.record_webhook_event(event_type, "ignored", time.time() - start_time)
            return {"status": "ignored", "event_id": event_id, "event_type": event_type}

        event_data = event.data.object
        if hasattr(event_data, "to_dict"):
            event_data = event_data.to_dict()

        try:
            result = await handler(event_data)
        except Exception as e:
            logger.error(
                "webhook_event_processing_failed",
                event_id=event_id,
                event_type=event_type,
                error=str(e),
                exc_info=True,
            )
            metrics.record_webhook_event(event_type, "failed", time.time() - start_time)
            return {
                "status": "failed",
                "event_id": event_id,
                "event_type": event_type,
                "error": str(e),
            }

        metrics.record_webhook_event(event_type, "handled", time.time() - start_time)
        logger.info("webhook_event_processed", event_id=event_id, event_type=event_type)
        return {
            "status": "handled",
            "event_id": event_id,
            "event_type": event_type,
            "result": result,
        }

    async def handle_invoice_payment_succeeded(self, invoice: Dict[str, Any]) -> None:
        logger.info("invoice_payment_succeeded", invoice_id=invoice.get("id"))

    async def handle_payment_method_attached(self, payment_method: Dict[str, Any]) -> None:
        logger.info(
            "payment_method_attached_to_customer",
            payment_method_id=payment_method.get("id"),
            customer_id=payment_method.get("customer"),
        )

    async def handle_customer_subscription_deleted(self, subscription: Dict[str, Any]) -> None:
        logger.info("subscription_canceled", subscription_id=subscription.get("id"))
