"""
Unit tests for domain order reconciliation on payment_intent.succeeded.
"""
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from sitebuilder.core.orders import Order, OrderStatus
from sitebuilder.core.reconciliation import DomainOrderReconciler
from sitebuilder.integrations.registrars import NamecomClient, RegistrarError, RegistrationResult
from sitebuilder.storage import OrderStore

REGISTERED = RegistrationResult(
    domain="example.com", success=True, raw={"order": 4242, "totalPaid": 10.99}
)


@pytest.fixture
def registrar() -> AsyncMock:
    mock = AsyncMock(spec=NamecomClient)
    mock.register_domain.return_value = REGISTERED
    return mock


@pytest.fixture
def reconciler(order_store: OrderStore, registrar: AsyncMock) -> DomainOrderReconciler:
    return DomainOrderReconciler(order_store, registrar)


@pytest.fixture
def pending_order(order_store: OrderStore) -> Order:
    return order_store.create(
        Order(
            id="order_1000",
            domain="example.com",
            price=Decimal("12.99"),
            currency="usd",
            stripe_payment_intent_id="pi_test_123",
        )
    )


class TestDomainOrderReconciler:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_successful_registration(
        self, reconciler, registrar, order_store, pending_order, succeeded_intent
    ) -> None:
        result = await reconciler.handle_payment_intent_succeeded(succeeded_intent())

        assert result["status"] == "registered"
        registrar.register_domain.assert_awaited_once_with("example.com", 1, {})

        order = order_store.get(pending_order.id)
        assert order.status is OrderStatus.REGISTERED
        assert order.paid_at is not None
        assert order.registrar_result == {"order": 4242, "totalPaid": 10.99}

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_rejected_registration(
        self, reconciler, registrar, order_store, pending_order, succeeded_intent
    ) -> None:
        registrar.register_domain.return_value = RegistrationResult(
            domain="example.com",
            success=False,
            error="Invalid Argument: Domain is not available",
            raw={"message": "Invalid Argument"},
        )

        result = await reconciler.handle_payment_intent_succeeded(succeeded_intent())

        assert result["status"] == "registration_failed"
        order = order_store.get(pending_order.id)
        assert order.status is OrderStatus.REGISTRATION_FAILED
        assert order.paid_at is not None
        assert order.registrar_result == {
            "error": "Invalid Argument: Domain is not available",
            "raw": {"message": "Invalid Argument"},
        }

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_unreachable_registrar(
        self, reconciler, registrar, order_store, pending_order, succeeded_intent
    ) -> None:
        registrar.register_domain.side_effect = RegistrarError(
            "Name.com request timed out", "namecom"
        )

        result = await reconciler.handle_payment_intent_succeeded(succeeded_intent())

        assert result["status"] == "registration_failed"
        order = order_store.get(pending_order.id)
        assert order.status is OrderStatus.REGISTRATION_FAILED
        assert order.registrar_result == {"error": "Name.com request timed out"}

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_redelivery_does_not_register_twice(
        self, reconciler, registrar, order_store, pending_order, succeeded_intent
    ) -> None:
        await reconciler.handle_payment_intent_succeeded(succeeded_intent())
        result = await reconciler.handle_payment_intent_succeeded(succeeded_intent())

        assert result["action"] == "skipped"
        registrar.register_domain.assert_awaited_once()
        assert order_store.get(pending_order.id).status is OrderStatus.REGISTERED

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_failed_order_is_not_retried_on_redelivery(
        self, reconciler, registrar, order_store, pending_order, succeeded_intent
    ) -> None:
        registrar.register_domain.side_effect = RegistrarError("down", "namecom")
        await reconciler.handle_payment_intent_succeeded(succeeded_intent())

        registrar.register_domain.side_effect = None
        result = await reconciler.handle_payment_intent_succeeded(succeeded_intent())

        assert result["action"] == "skipped"
        assert registrar.register_domain.await_count == 1
        assert order_store.get(pending_order.id).status is OrderStatus.REGISTRATION_FAILED

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_unmatched_intent_still_attempts_registration(
        self, reconciler, registrar, order_store, succeeded_intent
    ) -> None:
        intent = succeeded_intent("pi_unknown")

        first = await reconciler.handle_payment_intent_succeeded(intent)
        await reconciler.handle_payment_intent_succeeded(intent)

        assert first["order_id"] is None
        assert first["status"] is None
        # No order to guard on, so every delivery registers again.
        assert registrar.register_domain.await_count == 2
        assert order_store.load_documents() == {}

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_other_payments_are_ignored(
        self, reconciler, registrar, order_store, pending_order, succeeded_intent
    ) -> None:
        result = await reconciler.handle_payment_intent_succeeded(
            succeeded_intent("pi_test_123", domain=None)
        )

        assert result["action"] == "none"
        registrar.register_domain.assert_not_awaited()
        assert order_store.get(pending_order.id).status is OrderStatus.PENDING

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_other_orders_untouched(
        self, reconciler, order_store, pending_order, succeeded_intent
    ) -> None:
        other = order_store.create(
            Order(
                id="order_2000",
                domain="other.com",
                price=Decimal("8.00"),
                currency="usd",
                stripe_payment_intent_id="pi_other",
            )
        )
        before = order_store.load_documents()[other.id]

        await reconciler.handle_payment_intent_succeeded(succeeded_intent())

        assert order_store.load_documents()[other.id] == before
