"""
Domain order model and its status lifecycle.

State machine:
    PENDING → PAID → REGISTERED
                ↓
        REGISTRATION_FAILED

Status only moves forward. ``Order.advance`` is the single place a status
changes, and it refuses anything not listed in ``ALLOWED_TRANSITIONS``.

Stored documents keep the camelCase keys of the existing ledger
(``stripePaymentIntent``, ``createdAt``, ...) so older order files load
unchanged.
"""

from __future__ import annotations

import time
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer

from sitebuilder.core.exceptions import InvalidTransitionError


class OrderStatus(str, Enum):
    """Domain order lifecycle states."""

    PENDING = "pending"
    PAID = "paid"
    REGISTERED = "registered"
    REGISTRATION_FAILED = "registration_failed"


ALLOWED_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.PAID}),
    OrderStatus.PAID: frozenset({OrderStatus.REGISTERED, OrderStatus.REGISTRATION_FAILED}),
    OrderStatus.REGISTERED: frozenset(),
    OrderStatus.REGISTRATION_FAILED: frozenset(),
}


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_order_id() -> str:
    """Order ids are ``order_<epoch millis>``."""
    return f"order_{int(time.time() * 1000)}"


def to_cents(price: Decimal | float | int | str) -> int:
    """Convert a major-unit price to integer cents, rounding half up."""
    amount = Decimal(str(price)) * 100
    return int(amount.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class Order(BaseModel):
    """A domain purchase tracked from payment intent to registrar fulfilment."""

    model_config = ConfigDict(populate_by_name=True, use_enum_values=False)

    id: str
    domain: str
    price: Decimal
    currency: str
    stripe_payment_intent_id: str = Field(alias="stripePaymentIntent")
    status: OrderStatus = OrderStatus.PENDING
    created_at: datetime = Field(default_factory=utcnow, alias="createdAt")
    paid_at: Optional[datetime] = Field(default=None, alias="paidAt")
    registrar_result: Optional[Any] = Field(default=None, alias="namecomResult")

    @field_serializer("price")
    def serialize_price(self, price: Decimal) -> float:
        return float(price)

    @property
    def is_final(self) -> bool:
        return not ALLOWED_TRANSITIONS[self.status]

    def can_advance(self, to_status: OrderStatus) -> bool:
        return to_status in ALLOWED_TRANSITIONS[self.status]

    def advance(self, to_status: OrderStatus) -> OrderStatus:
        """
        Move the order to ``to_status``.

        Returns:
            OrderStatus: The status the order had before the move

        Raises:
            InvalidTransitionError: If the move is not a forward step
        """
        if not self.can_advance(to_status):
            raise InvalidTransitionError(self.id, self.status.value, to_status.value)
        previous = self.status
        self.status = to_status
        if to_status is OrderStatus.PAID:
            self.paid_at = utcnow()
        return previous

    def to_document(self) -> dict[str, Any]:
        """Serialize to the JSON document stored in the ledger."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
