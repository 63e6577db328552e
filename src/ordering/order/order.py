"""Order aggregate — the core of the ordering domain.

Pricing is computed once at checkout and frozen on the aggregate. After
creation only the status, payment and shipping fields change, and only through
the mutators below, each of which enforces the state machine.

State Machine:
    PENDING → CONFIRMED → PROCESSING → SHIPPED → DELIVERED
    CANCELLED (from PENDING, CONFIRMED, PROCESSING)

Payment and shipping progress are tracked alongside the status:
    payment_status:  pending → paid | failed (failed → pending on a new invoice)
    shipping_status: requested → created → shipped → in_transit … → delivered
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import (
    DateTime,
    Float,
    HasMany,
    Identifier,
    Integer,
    String,
    Text,
    ValueObject,
)
from shared.errors import ConcurrentModification, InvalidTransition

from ordering.domain import ordering
from ordering.order.events import (
    OrderCancelled,
    OrderConfirmed,
    OrderCreated,
    OrderDelivered,
    OrderProcessing,
    OrderShipped,
    PaymentFailed,
    PaymentInitiated,
    ShippingStatusUpdated,
)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentMethod(Enum):
    PAYLINK = "paylink"
    CASH_ON_DELIVERY = "cod"


class PaymentStatus(Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"


class ShippingStatus(Enum):
    REQUESTED = "requested"
    CREATED = "created"
    SHIPPED = "shipped"
    IN_TRANSIT = "in_transit"
    EXCEPTION = "exception"
    DELIVERED = "delivered"
    UNKNOWN = "unknown"


# State machine transition map
_VALID_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.CONFIRMED, OrderStatus.CANCELLED},
    OrderStatus.CONFIRMED: {OrderStatus.PROCESSING, OrderStatus.CANCELLED},
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: set(),  # Terminal
    OrderStatus.CANCELLED: set(),  # Terminal
}

# States from which a shipment may be requested from the carrier
SHIPPABLE_STATES = {OrderStatus.CONFIRMED, OrderStatus.PROCESSING}

# Pricing fields frozen at creation
PRICING_FIELDS = (
    "subtotal",
    "total_after_item_discounts",
    "order_discount_percent",
    "order_discount_amount",
    "total_savings",
    "total_amount",
    "currency",
)


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@ordering.value_object(part_of="Order")
class ShippingAddress:
    """Delivery address captured at checkout.

    The snapshot stays on the order even if the customer later edits their
    profile. Guests supply their contact email here.
    """

    full_name = String(required=True, max_length=255, sanitize=False)
    phone = String(required=True, max_length=30, sanitize=False)
    street = String(required=True, max_length=255, sanitize=False)
    city = String(max_length=100, sanitize=False)
    region = String(max_length=100, sanitize=False)
    postal_code = String(max_length=20, sanitize=False)
    country = String(max_length=100, default="Saudi Arabia", sanitize=False)
    email = String(max_length=255, sanitize=False)


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@ordering.entity(part_of="Order")
class OrderLine:
    """A product and quantity on an order, priced at order time."""

    product_id = Identifier(required=True)
    product_name = String(required=True, max_length=255, sanitize=False)
    unit_price = Float(required=True, min_value=0.0)
    quantity = Integer(required=True, min_value=1)
    item_discount_percent = Float(default=0.0)
    subtotal = Float(required=True)
    item_discount_amount = Float(default=0.0)
    after_item_discount = Float(required=True)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@ordering.aggregate
class Order:
    customer_id = Identifier()  # Empty for guest checkout
    customer_email = String(max_length=255, sanitize=False)
    lines = HasMany(OrderLine)
    shipping_address = ValueObject(ShippingAddress)
    notes = Text(sanitize=False)

    # Pricing (frozen at creation)
    subtotal = Float(default=0.0)
    total_after_item_discounts = Float(default=0.0)
    order_discount_percent = Float(default=0.0)
    order_discount_amount = Float(default=0.0)
    total_savings = Float(default=0.0)
    total_amount = Float(default=0.0)
    currency = String(max_length=3, default="SAR", sanitize=False)
    item_count = Integer(default=0)

    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)

    # Payment
    payment_method = String(choices=PaymentMethod, default=PaymentMethod.PAYLINK.value)
    payment_status = String(choices=PaymentStatus, default=PaymentStatus.PENDING.value)
    transaction_ref = String(max_length=255, sanitize=False)
    payment_url = String(max_length=1000, sanitize=False)
    payment_failure_reason = String(max_length=500, sanitize=False)
    paid_amount = Float()
    paid_at = DateTime()

    # Shipping
    carrier = String(max_length=100, sanitize=False)
    tracking_number = String(max_length=255, sanitize=False)
    shipping_status = String(max_length=50, sanitize=False)
    label_url = String(max_length=1000, sanitize=False)
    shipping_error = String(max_length=500, sanitize=False)

    cancellation_reason = String(max_length=500, sanitize=False)
    cancelled_by = String(max_length=50, sanitize=False)

    # Incremented on every guarded write
    revision = Integer(default=0)
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def create(
        cls,
        lines_data,
        totals,
        shipping_address,
        payment_method=PaymentMethod.PAYLINK.value,
        customer_id=None,
        customer_email=None,
        notes=None,
        currency="SAR",
    ):
        """Create a new order with its pricing frozen.

        Args:
            lines_data: List of dicts with product_id and product_name, in the
                        same order as ``totals.lines``.
            totals: ``OrderTotals`` computed by the pricing module.
            shipping_address: Dict with full_name, phone, street, city,
                              region, postal_code, country, email.
            payment_method: "paylink" or "cod".
        """
        if len(lines_data) != len(totals.lines):
            raise ValidationError({"lines": ["Line snapshots do not match computed totals"]})

        now = datetime.now(UTC)
        order = cls(
            customer_id=customer_id,
            customer_email=customer_email,
            shipping_address=ShippingAddress(**shipping_address),
            notes=notes,
            subtotal=float(totals.subtotal),
            total_after_item_discounts=float(totals.total_after_item_discounts),
            order_discount_percent=float(totals.order_discount_percent),
            order_discount_amount=float(totals.order_discount_amount),
            total_savings=float(totals.total_savings),
            total_amount=float(totals.total_amount),
            currency=currency,
            item_count=totals.item_count,
            status=OrderStatus.PENDING.value,
            payment_method=payment_method,
            payment_status=PaymentStatus.PENDING.value,
            revision=0,
            created_at=now,
            updated_at=now,
        )

        snapshots = []
        for data, line_totals in zip(lines_data, totals.lines, strict=True):
            line = OrderLine(
                product_id=data["product_id"],
                product_name=data["product_name"],
                unit_price=float(line_totals.unit_price),
                quantity=line_totals.quantity,
                item_discount_percent=float(line_totals.discount_percent),
                subtotal=float(line_totals.subtotal),
                item_discount_amount=float(line_totals.item_discount_amount),
                after_item_discount=float(line_totals.after_item_discount),
            )
            order.add_lines(line)
            snapshots.append(
                {
                    "product_id": str(line.product_id),
                    "product_name": line.product_name,
                    "unit_price": line.unit_price,
                    "quantity": line.quantity,
                    "item_discount_percent": line.item_discount_percent,
                    "after_item_discount": line.after_item_discount,
                }
            )

        order.raise_(
            OrderCreated(
                order_id=str(order.id),
                customer_id=str(customer_id) if customer_id else None,
                lines=json.dumps(snapshots),
                subtotal=order.subtotal,
                order_discount_percent=order.order_discount_percent,
                total_amount=order.total_amount,
                currency=currency,
                payment_method=payment_method,
                created_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------
    def _assert_can_transition(self, target_status):
        """Validate that the current state allows transition to target."""
        current = OrderStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise InvalidTransition(
                f"Cannot transition order {self.id} from {current.value} to {target_status.value}",
                current=current.value,
                target=target_status.value,
            )

    def _touch(self):
        now = datetime.now(UTC)
        self.updated_at = now
        return now

    def pricing_snapshot(self) -> tuple:
        return tuple(getattr(self, name) for name in PRICING_FIELDS)

    @property
    def is_terminal(self) -> bool:
        return not _VALID_TRANSITIONS[OrderStatus(self.status)]

    @property
    def shipment_in_flight(self) -> bool:
        return self.shipping_status == ShippingStatus.REQUESTED.value

    @property
    def contact_email(self):
        if self.customer_email:
            return self.customer_email
        if self.shipping_address:
            return self.shipping_address.email
        return None

    # -------------------------------------------------------------------
    # Payment
    # -------------------------------------------------------------------
    def mark_payment_initiated(self, transaction_ref, payment_url=None):
        """Record the invoice opened with the payment gateway."""
        if OrderStatus(self.status) != OrderStatus.PENDING:
            raise InvalidTransition(
                f"Payment can only be initiated for pending orders, order is {self.status}",
                current=self.status,
            )
        if self.payment_method != PaymentMethod.PAYLINK.value:
            raise InvalidTransition(f"Order {self.id} is paid by {self.payment_method}, not through the gateway")
        if self.transaction_ref and self.payment_status != PaymentStatus.FAILED.value:
            raise InvalidTransition(f"Order {self.id} already has invoice {self.transaction_ref}")
        if not transaction_ref:
            raise ValidationError({"transaction_ref": ["Transaction reference is required"]})

        self.transaction_ref = transaction_ref
        self.payment_url = payment_url
        self.payment_status = PaymentStatus.PENDING.value
        self.payment_failure_reason = None
        now = self._touch()

        self.raise_(
            PaymentInitiated(
                order_id=str(self.id),
                transaction_ref=transaction_ref,
                payment_url=payment_url,
                initiated_at=now,
            )
        )

    def record_payment_failure(self, reason):
        """Record that the invoice failed. The order stays pending for a retry."""
        if OrderStatus(self.status) != OrderStatus.PENDING:
            raise InvalidTransition(
                f"Payment failure can only be recorded on pending orders, order is {self.status}",
                current=self.status,
            )
        self.payment_status = PaymentStatus.FAILED.value
        self.payment_failure_reason = reason
        now = self._touch()

        self.raise_(
            PaymentFailed(
                order_id=str(self.id),
                transaction_ref=self.transaction_ref,
                reason=reason,
                failed_at=now,
            )
        )

    def mark_paid(self, paid_amount):
        """Gateway confirmed payment: pending → confirmed."""
        self._assert_can_transition(OrderStatus.CONFIRMED)
        if self.payment_method != PaymentMethod.PAYLINK.value:
            raise InvalidTransition(f"Order {self.id} is not paid through the gateway")

        now = self._touch()
        self.status = OrderStatus.CONFIRMED.value
        self.payment_status = PaymentStatus.PAID.value
        self.paid_amount = paid_amount
        self.paid_at = now

        self.raise_(
            OrderConfirmed(
                order_id=str(self.id),
                payment_method=self.payment_method,
                paid_amount=paid_amount,
                confirmed_at=now,
            )
        )

    def accept_cash_on_delivery(self):
        """Staff accepted a cash-on-delivery order: pending → confirmed.

        Payment stays pending until the parcel is delivered.
        """
        self._assert_can_transition(OrderStatus.CONFIRMED)
        if self.payment_method != PaymentMethod.CASH_ON_DELIVERY.value:
            raise InvalidTransition(f"Order {self.id} must be confirmed by its payment gateway")

        now = self._touch()
        self.status = OrderStatus.CONFIRMED.value

        self.raise_(
            OrderConfirmed(
                order_id=str(self.id),
                payment_method=self.payment_method,
                confirmed_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Fulfillment
    # -------------------------------------------------------------------
    def mark_processing(self):
        """Order accepted for packing: confirmed → processing."""
        self._assert_can_transition(OrderStatus.PROCESSING)
        if self.shipment_in_flight:
            raise ConcurrentModification(f"Order {self.id} has a shipment request in progress")
        now = self._touch()
        self.status = OrderStatus.PROCESSING.value
        self.raise_(
            OrderProcessing(
                order_id=str(self.id),
                started_at=now,
            )
        )

    def request_shipment(self):
        """Claim the order for a carrier call so a second caller backs off."""
        if OrderStatus(self.status) not in SHIPPABLE_STATES:
            raise InvalidTransition(
                f"Order {self.id} must be confirmed or processing to ship, order is {self.status}",
                current=self.status,
                target=OrderStatus.SHIPPED.value,
            )
        if self.shipment_in_flight:
            raise ConcurrentModification(f"A shipment request for order {self.id} is already in progress")

        self.shipping_status = ShippingStatus.REQUESTED.value
        self.shipping_error = None
        self._touch()

    def release_shipment_request(self, error, restore_status=None):
        """Drop the claim after a failed carrier call, keeping the error for staff."""
        if not self.shipment_in_flight:
            return
        self.shipping_status = restore_status
        self.shipping_error = (error or "")[:500]
        self._touch()

    def attach_shipment(self, carrier, tracking_number, label_url=None):
        """Attach the carrier's shipment details ahead of the shipped transition."""
        if OrderStatus(self.status) not in SHIPPABLE_STATES:
            raise InvalidTransition(
                f"Shipment can only be attached to confirmed or processing orders, order is {self.status}",
                current=self.status,
            )
        if not tracking_number:
            raise ValidationError({"tracking_number": ["Tracking number is required"]})

        self.carrier = carrier
        self.tracking_number = tracking_number
        self.label_url = label_url
        self.shipping_status = ShippingStatus.CREATED.value
        self.shipping_error = None
        self._touch()

    def mark_shipped(self):
        """processing → shipped. Requires an attached tracking number."""
        self._assert_can_transition(OrderStatus.SHIPPED)
        if not self.tracking_number:
            raise InvalidTransition(
                f"Order {self.id} has no tracking number and cannot be marked shipped",
                current=self.status,
                target=OrderStatus.SHIPPED.value,
            )

        now = self._touch()
        self.status = OrderStatus.SHIPPED.value
        self.shipping_status = ShippingStatus.SHIPPED.value

        self.raise_(
            OrderShipped(
                order_id=str(self.id),
                carrier=self.carrier,
                tracking_number=self.tracking_number,
                label_url=self.label_url,
                shipped_at=now,
            )
        )

    def record_shipping_status(self, shipping_status):
        """Record a tracking status reported by the carrier."""
        if OrderStatus(self.status) != OrderStatus.SHIPPED:
            raise InvalidTransition(
                f"Tracking updates apply to shipped orders only, order is {self.status}",
                current=self.status,
            )
        if shipping_status == self.shipping_status:
            return

        self.shipping_status = shipping_status
        now = self._touch()

        self.raise_(
            ShippingStatusUpdated(
                order_id=str(self.id),
                tracking_number=self.tracking_number,
                shipping_status=shipping_status,
                updated_at=now,
            )
        )

    def mark_delivered(self):
        """shipped → delivered. Cash orders are settled at the door."""
        self._assert_can_transition(OrderStatus.DELIVERED)

        now = self._touch()
        self.status = OrderStatus.DELIVERED.value
        self.shipping_status = ShippingStatus.DELIVERED.value
        if self.payment_method == PaymentMethod.CASH_ON_DELIVERY.value:
            self.payment_status = PaymentStatus.PAID.value
            self.paid_amount = self.total_amount
            self.paid_at = now

        self.raise_(
            OrderDelivered(
                order_id=str(self.id),
                delivered_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Cancellation
    # -------------------------------------------------------------------
    def cancel(self, reason, cancelled_by):
        """Cancel the order. Not possible once it has shipped."""
        current = OrderStatus(self.status)
        self._assert_can_transition(OrderStatus.CANCELLED)
        if self.shipment_in_flight:
            raise ConcurrentModification(f"Order {self.id} has a shipment request in progress")

        now = self._touch()
        self.status = OrderStatus.CANCELLED.value
        self.cancellation_reason = reason
        self.cancelled_by = cancelled_by

        self.raise_(
            OrderCancelled(
                order_id=str(self.id),
                reason=reason,
                cancelled_by=cancelled_by,
                previous_status=current.value,
                cancelled_at=now,
            )
        )
