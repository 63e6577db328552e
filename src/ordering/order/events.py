"""Domain events for the Order aggregate.

Events are immutable facts raised by the aggregate's mutators and stored with
the order when it is persisted. They form the order's audit trail.
"""

from protean.fields import DateTime, Float, Identifier, String, Text

from ordering.domain import ordering


@ordering.event(part_of="Order")
class OrderCreated:
    """An order was placed with its totals frozen."""

    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = Identifier()
    lines = Text(required=True, sanitize=False)  # JSON: list of line snapshots
    subtotal = Float(required=True)
    order_discount_percent = Float()
    total_amount = Float(required=True)
    currency = String(default="SAR", sanitize=False)
    payment_method = String(required=True, sanitize=False)
    created_at = DateTime(required=True)


@ordering.event(part_of="Order")
class PaymentInitiated:
    """An invoice was opened with the payment gateway."""

    __version__ = 1

    order_id = Identifier(required=True)
    transaction_ref = String(required=True, sanitize=False)
    payment_url = String(sanitize=False)
    initiated_at = DateTime(required=True)


@ordering.event(part_of="Order")
class PaymentFailed:
    """The gateway reported the invoice as failed or cancelled."""

    __version__ = 1

    order_id = Identifier(required=True)
    transaction_ref = String(sanitize=False)
    reason = String(required=True, sanitize=False)
    failed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderConfirmed:
    """Payment was confirmed (or a cash order was accepted by staff)."""

    __version__ = 1

    order_id = Identifier(required=True)
    payment_method = String(required=True, sanitize=False)
    paid_amount = Float()
    confirmed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderProcessing:
    """Staff accepted the order for packing."""

    __version__ = 1

    order_id = Identifier(required=True)
    started_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderShipped:
    """The carrier accepted the shipment and issued a tracking number."""

    __version__ = 1

    order_id = Identifier(required=True)
    carrier = String(required=True, sanitize=False)
    tracking_number = String(required=True, sanitize=False)
    label_url = String(sanitize=False)
    shipped_at = DateTime(required=True)


@ordering.event(part_of="Order")
class ShippingStatusUpdated:
    """The carrier reported a new tracking status."""

    __version__ = 1

    order_id = Identifier(required=True)
    tracking_number = String(required=True, sanitize=False)
    shipping_status = String(required=True, sanitize=False)
    updated_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderDelivered:
    """The carrier reported the parcel as delivered."""

    __version__ = 1

    order_id = Identifier(required=True)
    delivered_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderCancelled:
    """The order was cancelled before shipment."""

    __version__ = 1

    order_id = Identifier(required=True)
    reason = String(required=True, sanitize=False)
    cancelled_by = String(required=True, sanitize=False)
    previous_status = String(required=True, sanitize=False)
    cancelled_at = DateTime(required=True)
