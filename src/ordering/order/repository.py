"""Repository for the Order aggregate.

Besides the standard ``add``/``get`` it offers lookups by the external
references the gateway and the carrier call back with, and the guarded write
used by the fulfillment orchestrator.
"""

import threading

import structlog
from protean.exceptions import ExpectedVersionError, ObjectNotFoundError, ValidationError
from shared.errors import ConcurrentModification

from ordering.domain import ordering
from ordering.order.order import PRICING_FIELDS, Order

logger = structlog.get_logger(__name__)

# Serializes check-and-write for providers without conditional updates
_write_lock = threading.Lock()


@ordering.repository(part_of=Order)
class OrderRepository:
    def find_by_transaction_ref(self, transaction_ref: str) -> Order:
        results = self._dao.query.filter(transaction_ref=transaction_ref).all().items
        if not results:
            raise ObjectNotFoundError(f"No order found for transaction {transaction_ref}")
        return results[0]

    def find_by_tracking_number(self, tracking_number: str) -> Order:
        results = self._dao.query.filter(tracking_number=tracking_number).all().items
        if not results:
            raise ObjectNotFoundError(f"No order found for tracking number {tracking_number}")
        return results[0]

    def conditional_update(self, order: Order, expected_status: str) -> Order:
        """Persist ``order`` only if the stored copy is still as the caller loaded it.

        The stored document must have ``expected_status`` and the revision
        ``order`` was read at. A mismatch means another writer got there first
        and raises ``ConcurrentModification``; the caller should re-fetch.
        Frozen pricing fields must be untouched.
        """
        with _write_lock:
            current = self._dao.get(order.id)

            if current.status != expected_status or current.revision != order.revision:
                logger.warning(
                    "Guarded write lost to a concurrent update",
                    order_id=str(order.id),
                    expected_status=expected_status,
                    stored_status=current.status,
                    expected_revision=order.revision,
                    stored_revision=current.revision,
                )
                raise ConcurrentModification(
                    f"Order {order.id} changed since it was loaded "
                    f"(expected {expected_status}, found {current.status})"
                )

            if current.pricing_snapshot() != order.pricing_snapshot():
                changed = [
                    name
                    for name, before, after in zip(
                        PRICING_FIELDS, current.pricing_snapshot(), order.pricing_snapshot(), strict=True
                    )
                    if before != after
                ]
                raise ValidationError({name: ["Pricing is frozen after order creation"] for name in changed})

            order.revision = current.revision + 1
            try:
                self.add(order)
            except ExpectedVersionError as exc:
                order.revision = current.revision
                raise ConcurrentModification(f"Order {order.id} was updated concurrently") from exc

        logger.debug(
            "Order saved",
            order_id=str(order.id),
            status=order.status,
            revision=order.revision,
        )
        return order
