"""
Domain order reconciliation driven by ``payment_intent.succeeded``.

Steps for a PaymentIntent whose metadata marks a domain purchase:
1. Find the order created for the intent and move it pending → paid
2. Ask Name.com to register the domain, exactly once
3. Move the order to registered or registration_failed and keep the
   registrar's answer on the order

Orders that are no longer pending are left alone, so a redelivered event
does not register the domain twice. An intent with no matching order
still triggers a registration attempt on every delivery.
"""
from typing import Any, Dict, Optional

import structlog
from starlette.concurrency import run_in_threadpool

from sitebuilder.core.orders import Order, OrderStatus
from sitebuilder.integrations.registrars import NamecomClient, RegistrationResult
from sitebuilder.monitoring.metrics import metrics
from sitebuilder.storage import OrderStore

logger = structlog.get_logger(__name__)

DOMAIN_PURCHASE = "domain_purchase"


class DomainOrderReconciler:
    """Advances domain orders when Stripe reports a successful payment."""

    def __init__(self, order_store: OrderStore, registrar: NamecomClient):
        self.order_store = order_store
        self.registrar = registrar

    async def _advance(self, order_id: str, to_status: OrderStatus, registrar_result: Any = None) -> Order:
        def mutate(order: Order) -> Order:
            previous = order.advance(to_status)
            if registrar_result is not None:
                order.registrar_result = registrar_result
            metrics.record_order_transition(previous.value, to_status.value)
            return order

        order = await run_in_threadpool(self.order_store.update, order_id, mutate)
        logger.info("order_status_changed", order_id=order_id, status=to_status.value)
        return order

    async def handle_payment_intent_succeeded(self, payment_intent: Dict[str, Any]) -> Dict[str, Any]:
        """
        Handle payment_intent.succeeded.

        Args:
            payment_intent: PaymentIntent object data

        Returns:
            Dict[str, Any]: What happened, for logs and tests
        """
        payment_intent_id = payment_intent["id"]
        meta = payment_intent.get("metadata") or {}
        domain = meta.get("domain")

        logger.info("payment_succeeded", payment_intent_id=payment_intent_id)

        if meta.get("type") != DOMAIN_PURCHASE or not domain:
            return {"payment_intent_id": payment_intent_id, "action": "none"}

        logger.info("processing_domain_order", domain=domain, payment_intent_id=payment_intent_id)

        order = await run_in_threadpool(self.order_store.find_by_payment_intent, payment_intent_id)
        order_id: Optional[str] = None

        if order is None:
            logger.warning("order_not_found_for_payment", payment_intent_id=payment_intent_id)
        elif order.status is not OrderStatus.PENDING:
            logger.info(
                "order_already_reconciled",
                order_id=order.id,
                status=order.status.value,
            )
            return {"payment_intent_id": payment_intent_id, "order_id": order.id, "action": "skipped"}
        else:
            order_id = order.id
            await self._advance(order_id, OrderStatus.PAID)

        status = await self._register(domain, order_id)
        return {
            "payment_intent_id": payment_intent_id,
            "order_id": order_id,
            "action": "registration_attempted",
            "status": status.value if status else None,
        }

    async def _register(self, domain: str, order_id: Optional[str]) -> Optional[OrderStatus]:
        try:
            result: RegistrationResult = await self.registrar.register_domain(domain, 1, {})
        except Exception as e:
            logger.error("domain_registration_error", domain=domain, order_id=order_id, error=str(e))
            if order_id is None:
                return None
            await self._advance(order_id, OrderStatus.REGISTRATION_FAILED, {"error": str(e)})
            return OrderStatus.REGISTRATION_FAILED

        logger.info(
            "domain_registration_result",
            domain=domain,
            order_id=order_id,
            success=result.success,
            error=result.error,
        )
        if order_id is None:
            return None

        if result.success:
            await self._advance(order_id, OrderStatus.REGISTERED, result.raw)
            return OrderStatus.REGISTERED

        await self._advance(
            order_id,
            OrderStatus.REGISTRATION_FAILED,
            {"error": result.error, "raw": result.raw} if result.raw is not None else {"error": result.error},
        )
        return OrderStatus.REGISTRATION_FAILED
