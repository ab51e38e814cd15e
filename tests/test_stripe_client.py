"""
Unit tests for the Stripe client wrapper.

The SDK resource classes are patched; nothing reaches Stripe.
"""
from unittest.mock import MagicMock, patch

import pytest
import stripe

from sitebuilder.core.exceptions import UpstreamError
from sitebuilder.integrations import StripeClient


@pytest.fixture
def stripe_client(test_settings) -> StripeClient:
    return StripeClient(test_settings)


class TestStripeClient:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_create_payment_intent(self, stripe_client: StripeClient) -> None:
        intent = MagicMock(id="pi_1", client_secret="pi_1_secret", status="requires_payment_method")
        with patch("stripe.PaymentIntent.create", return_value=intent) as create:
            result = await stripe_client.create_payment_intent(1299, "usd", {"plan": "pro"})

        assert result.client_secret == "pi_1_secret"
        create.assert_called_once_with(amount=1299, currency="usd", metadata={"plan": "pro"})

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_create_subscription_price(self, stripe_client: StripeClient) -> None:
        with patch("stripe.Price.create", return_value=MagicMock(id="price_1")) as create:
            price = await stripe_client.create_subscription_price(2000, "usd", "Pro")

        assert price.id == "price_1"
        create.assert_called_once_with(
            unit_amount=2000,
            currency="usd",
            recurring={"interval": "month"},
            product_data={"name": "Pro"},
        )

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_create_setup_intent(self, stripe_client: StripeClient) -> None:
        with patch("stripe.SetupIntent.create", return_value=MagicMock(id="seti_1")) as create:
            await stripe_client.create_setup_intent()

        create.assert_called_once_with(payment_method_types=["card"], usage="off_session")

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_create_customer_tags_user_id(self, stripe_client: StripeClient) -> None:
        with patch("stripe.Customer.create", return_value=MagicMock(id="cus_1")) as create:
            await stripe_client.create_customer("a@example.com", 7)

        create.assert_called_once_with(email="a@example.com", metadata={"userId": "7"})

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_attach_payment_method_sets_invoice_default(self, stripe_client: StripeClient) -> None:
        with patch("stripe.PaymentMethod.attach") as attach, patch("stripe.Customer.modify") as modify:
            await stripe_client.attach_payment_method("cus_1", "pm_1")

        attach.assert_called_once_with("pm_1", customer="cus_1")
        modify.assert_called_once_with(
            "cus_1", invoice_settings={"default_payment_method": "pm_1"}
        )

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_create_subscription_expands_payment_intent(self, stripe_client: StripeClient) -> None:
        subscription = MagicMock(id="sub_1", status="incomplete")
        subscription.to_dict.return_value = {"id": "sub_1", "status": "incomplete"}
        with patch("stripe.Subscription.create", return_value=subscription) as create:
            result = await stripe_client.create_subscription("cus_1", "price_1")

        assert result == {"id": "sub_1", "status": "incomplete"}
        create.assert_called_once_with(
            customer="cus_1",
            items=[{"price": "price_1"}],
            expand=["latest_invoice.payment_intent"],
        )

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_stripe_error_becomes_upstream_error(self, stripe_client: StripeClient) -> None:
        error = stripe.CardError("Your card was declined.", param=None, code="card_declined")
        with patch("stripe.PaymentIntent.create", side_effect=error):
            with pytest.raises(UpstreamError) as exc_info:
                await stripe_client.create_payment_intent(1299, "usd")

        assert exc_info.value.http_status == 500
        assert exc_info.value.to_dict() == {"error": "Your card was declined."}
