"""
Order ledger.

Orders live in one JSON object keyed by order id. A sidecar document maps
Stripe PaymentIntent ids to order ids so webhook correlation does not need
to scan the ledger. The index is written under the same lock as the
ledger; a miss falls back to a scan and rebuilds it.
"""
from pathlib import Path
from typing import Any, Callable, Dict, Optional, TypeVar

import structlog
from pydantic import ValidationError as PydanticValidationError

from sitebuilder.core.orders import Order

from .json_store import JsonDocumentStore

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class OrderStore:
    """Persistence for domain purchase orders."""

    def __init__(self, path: Path):
        path = Path(path)
        self.ledger = JsonDocumentStore(path, "orders")
        self.index = JsonDocumentStore(
            path.with_name(f"{path.stem}_by_payment{path.suffix}"), "orders_by_payment"
        )

    @staticmethod
    def _parse(order_id: str, record: Any) -> Optional[Order]:
        try:
            return Order.model_validate(record)
        except PydanticValidationError as e:
            logger.warning("order_record_invalid", order_id=order_id, error=str(e))
            return None

    @staticmethod
    def _build_index(document: Dict[str, Any]) -> Dict[str, str]:
        return {
            record["stripePaymentIntent"]: order_id
            for order_id, record in document.items()
            if isinstance(record, dict) and record.get("stripePaymentIntent")
        }

    def load_documents(self) -> Dict[str, Any]:
        """Raw ledger documents keyed by order id."""
        return self.ledger.load()

    def load(self) -> Dict[str, Order]:
        """
        Load every parseable order.

        Returns:
            Dict[str, Order]: Orders keyed by id
        """
        orders: Dict[str, Order] = {}
        for order_id, record in self.ledger.load().items():
            order = self._parse(order_id, record)
            if order is not None:
                orders[order_id] = order
        return orders

    def save(self, orders: Dict[str, Order]) -> None:
        """Overwrite the whole ledger and rebuild the index."""
        document = {order_id: order.to_document() for order_id, order in orders.items()}
        with self.ledger.transaction() as current:
            current.clear()
            current.update(document)
            self.index.save(self._build_index(document))

    def create(self, order: Order) -> Order:
        """
        Insert a new order.

        If the generated id is already taken (two orders in the same
        millisecond) the numeric suffix is bumped until it is free.
        """
        with self.ledger.transaction() as document:
            while order.id in document:
                prefix, _, stamp = order.id.rpartition("_")
                order.id = f"{prefix}_{int(stamp) + 1}"

            document[order.id] = order.to_document()

            index = self.index.load()
            index[order.stripe_payment_intent_id] = order.id
            self.index.save(index)

        logger.info(
            "order_created",
            order_id=order.id,
            domain=order.domain,
            payment_intent_id=order.stripe_payment_intent_id,
        )
        return order

    def get(self, order_id: str) -> Optional[Order]:
        record = self.ledger.load().get(order_id)
        if record is None:
            return None
        return self._parse(order_id, record)

    def find_by_payment_intent(self, payment_intent_id: str) -> Optional[Order]:
        """
        Find the order created for a Stripe PaymentIntent.

        Args:
            payment_intent_id: Stripe PaymentIntent id

        Returns:
            Optional[Order]: The matching order, or None
        """
        with self.ledger.lock:
            document = self.ledger.load()

            order_id = self.index.load().get(payment_intent_id)
            record = document.get(order_id) if order_id else None
            if isinstance(record, dict) and record.get("stripePaymentIntent") == payment_intent_id:
                return self._parse(order_id, record)

            rebuilt = self._build_index(document)
            order_id = rebuilt.get(payment_intent_id)
            if order_id is None:
                return None

            logger.info(
                "order_index_rebuilt",
                payment_intent_id=payment_intent_id,
                entries=len(rebuilt),
            )
            self.index.save(rebuilt)
            return self._parse(order_id, document[order_id])

    def update(self, order_id: str, mutate: Callable[[Order], T]) -> T:
        """
        Apply ``mutate`` to one order and persist it.

        Other orders in the ledger are written back untouched.

        Raises:
            KeyError: If the order does not exist or cannot be parsed
        """
        with self.ledger.transaction() as document:
            order = self._parse(order_id, document.get(order_id)) if order_id in document else None
            if order is None:
                raise KeyError(order_id)
            result = mutate(order)
            document[order_id] = order.to_document()
        return result
