"""Order fulfillment — sequences payment, shipment and notifications around an Order.

Every operation follows the same shape: load the order, let the aggregate
decide whether the step is allowed, call the external system, then persist
with a guarded write that only succeeds if nobody else touched the order in
between. External calls that create something (invoices, shipments) are
never repeated once their reference is stored on the order.
"""

from dataclasses import dataclass
from decimal import Decimal

import structlog
from fulfillment.carrier import get_carrier
from fulfillment.carrier.port import Recipient, TrackingResult, TrackingState
from identity.customers import get_directory
from notifications.dispatcher import OrderNotifier
from payments.gateway import get_gateway
from payments.gateway.port import CustomerContact, InvoiceState
from payments.gateway.settings import PaymentGatewaySettings
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain
from shared.errors import AmountMismatch, InvalidTransition

from ordering.order.order import (
    SHIPPABLE_STATES,
    Order,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
)

logger = structlog.get_logger(__name__)

CENTS = Decimal("0.01")

# Fallbacks for incomplete address snapshots
DEFAULT_REGION = "Riyadh"
DEFAULT_POSTAL_CODE = "00000"


@dataclass(frozen=True)
class PaymentInitiation:
    transaction_ref: str
    redirect_url: str | None = None
    created: bool = True


class FulfillmentOrchestrator:
    """Drives an order through payment, shipment, delivery and cancellation."""

    def __init__(
        self,
        gateway=None,
        carrier=None,
        notifier: OrderNotifier | None = None,
        customers=None,
        payment_settings: PaymentGatewaySettings | None = None,
    ):
        self._gateway = gateway
        self._carrier = carrier
        self._customers = customers
        self.notifier = notifier or OrderNotifier()
        self.payment_settings = payment_settings or PaymentGatewaySettings.from_env()

    # Adapters resolve lazily so swapped singletons are honoured
    @property
    def gateway(self):
        return self._gateway or get_gateway()

    @property
    def carrier(self):
        return self._carrier or get_carrier()

    @property
    def customers(self):
        return self._customers or get_directory()

    @property
    def repository(self):
        return current_domain.repository_for(Order)

    def get_order(self, order_id) -> Order:
        return self.repository.get(order_id)

    def _customer_name(self, order) -> str | None:
        customer = self.customers.get(order.customer_id) if order.customer_id else None
        return customer.name if customer else None

    # -------------------------------------------------------------------
    # Payment
    # -------------------------------------------------------------------
    def _contact_for(self, order) -> CustomerContact:
        customer = self.customers.get(order.customer_id) if order.customer_id else None
        address = order.shipping_address
        return CustomerContact(
            name=(customer.name if customer else None) or (address.full_name if address else None) or "Customer",
            email=(customer.email if customer else None) or order.contact_email,
            mobile=(customer.phone if customer else None) or (address.phone if address else None),
        )

    def initiate_payment(self, order_id, callback_url: str | None = None) -> PaymentInitiation:
        """Open a gateway invoice for a pending order, at most once.

        An order that already holds a live invoice reference gets that
        reference back without another gateway call. Only a failed invoice
        may be replaced.
        """
        order = self.get_order(order_id)

        if order.payment_method != PaymentMethod.PAYLINK.value:
            raise InvalidTransition(f"Order {order.id} is paid on delivery and has no invoice")
        if order.transaction_ref and order.payment_status != PaymentStatus.FAILED.value:
            logger.info(
                "Payment already initiated",
                order_id=str(order.id),
                transaction_ref=order.transaction_ref,
            )
            return PaymentInitiation(order.transaction_ref, order.payment_url, created=False)
        if OrderStatus(order.status) != OrderStatus.PENDING:
            raise InvalidTransition(
                f"Payment can only be initiated for pending orders, order is {order.status}",
                current=order.status,
            )

        invoice = self.gateway.create_invoice(
            order,
            self._contact_for(order),
            callback_url or self.payment_settings.callback_url_for(order.id),
        )

        order.mark_payment_initiated(invoice.transaction_ref, invoice.redirect_url)
        self.repository.conditional_update(order, OrderStatus.PENDING.value)

        logger.info(
            "Payment initiated",
            order_id=str(order.id),
            transaction_ref=invoice.transaction_ref,
        )
        return PaymentInitiation(invoice.transaction_ref, invoice.redirect_url)

    def on_payment_confirmed(self, transaction_ref: str) -> Order:
        """Handle the gateway's callback for an invoice.

        The callback itself is not trusted: the invoice is fetched from the
        gateway and its status and amount decide what happens. Repeated
        callbacks for an order that is already confirmed are no-ops.
        """
        order = self.repository.find_by_transaction_ref(transaction_ref)
        status = OrderStatus(order.status)

        if status == OrderStatus.CANCELLED:
            logger.error(
                "Payment callback for a cancelled order",
                order_id=str(order.id),
                transaction_ref=transaction_ref,
            )
            raise InvalidTransition(
                f"Order {order.id} was cancelled before its payment was confirmed",
                current=order.status,
                target=OrderStatus.CONFIRMED.value,
            )
        if status != OrderStatus.PENDING:
            logger.info(
                "Payment already confirmed",
                order_id=str(order.id),
                transaction_ref=transaction_ref,
                status=order.status,
            )
            return order

        invoice = self.gateway.get_invoice(transaction_ref)

        if invoice.status == InvoiceState.PAID:
            expected = Decimal(str(order.total_amount)).quantize(CENTS)
            received = Decimal(str(invoice.amount)).quantize(CENTS) if invoice.amount is not None else None
            if received != expected:
                logger.critical(
                    "Paid amount does not match order total",
                    order_id=str(order.id),
                    transaction_ref=transaction_ref,
                    expected=str(expected),
                    received=str(received),
                )
                raise AmountMismatch(
                    f"Gateway reports {received} paid for order {order.id}, expected {expected}",
                    expected=float(expected),
                    received=float(received) if received is not None else None,
                    raw=invoice.raw,
                )

            order.mark_paid(float(received))
            self.repository.conditional_update(order, OrderStatus.PENDING.value)
            logger.info("Order confirmed", order_id=str(order.id), transaction_ref=transaction_ref)
            self.notifier.notify_status_changed(order, self._customer_name(order))

        elif invoice.status == InvoiceState.FAILED:
            if order.payment_status != PaymentStatus.FAILED.value:
                reason = f"Gateway reported invoice as {invoice.raw.get('orderStatus') or 'failed'}"
                order.record_payment_failure(reason)
                self.repository.conditional_update(order, OrderStatus.PENDING.value)
                logger.warning(
                    "Payment failed",
                    order_id=str(order.id),
                    transaction_ref=transaction_ref,
                    reason=reason,
                )

        else:
            logger.info("Payment still pending", order_id=str(order.id), transaction_ref=transaction_ref)

        return order

    def confirm_cash_order(self, order_id) -> Order:
        """Staff accept a cash-on-delivery order."""
        order = self.get_order(order_id)
        order.accept_cash_on_delivery()
        self.repository.conditional_update(order, OrderStatus.PENDING.value)
        logger.info("Cash order confirmed", order_id=str(order.id))
        self.notifier.notify_status_changed(order, self._customer_name(order))
        return order

    # -------------------------------------------------------------------
    # Fulfillment
    # -------------------------------------------------------------------
    def acknowledge(self, order_id) -> Order:
        """Staff start packing a confirmed order."""
        order = self.get_order(order_id)
        order.mark_processing()
        self.repository.conditional_update(order, OrderStatus.CONFIRMED.value)
        logger.info("Order processing", order_id=str(order.id))
        return order

    def _recipient_for(self, order) -> Recipient:
        """Customer profile address first, then the order's own snapshot."""
        customer = self.customers.get(order.customer_id) if order.customer_id else None
        address = customer.default_address if customer and customer.default_address else order.shipping_address
        if address is None:
            raise ValidationError({"shipping_address": [f"Order {order.id} has no shipping address"]})
        return Recipient(
            full_name=address.full_name,
            phone=address.phone,
            street=address.street,
            city=address.city or "",
            region=address.region or DEFAULT_REGION,
            postal_code=address.postal_code or DEFAULT_POSTAL_CODE,
            country=address.country or "Saudi Arabia",
        )

    def _release_claim(self, order_id, expected_status: str, previous_shipping_status, error: str) -> None:
        try:
            order = self.get_order(order_id)
            order.release_shipment_request(error, restore_status=previous_shipping_status)
            self.repository.conditional_update(order, expected_status)
        except Exception as exc:
            # Order stays claimed until staff release it
            logger.error(
                "Could not release shipment claim",
                order_id=str(order_id),
                error=str(exc),
            )

    def ship(self, order_id) -> Order:
        """Register the shipment with the carrier and mark the order shipped.

        The order is first claimed so that a concurrent ``ship`` backs off
        with ``ConcurrentModification`` instead of creating a second parcel.
        Shipment details and the status change are written together; if the
        carrier call fails the claim is dropped and nothing else changes.
        """
        order = self.get_order(order_id)
        status = order.status
        if OrderStatus(status) not in SHIPPABLE_STATES:
            raise InvalidTransition(
                f"Order {order.id} must be confirmed or processing to ship, order is {status}",
                current=status,
                target=OrderStatus.SHIPPED.value,
            )

        if not order.tracking_number:
            previous_shipping_status = order.shipping_status
            order.request_shipment()
            self.repository.conditional_update(order, status)

            try:
                recipient = self._recipient_for(order)
                result = self.carrier.create_shipment(order, recipient)
            except Exception as exc:
                logger.warning(
                    "Shipment request failed",
                    order_id=str(order.id),
                    error=str(exc),
                )
                self._release_claim(order.id, status, previous_shipping_status, str(exc))
                raise

            order.attach_shipment(self.carrier.name, result.tracking_number, result.label_url)
        else:
            logger.info(
                "Shipment already registered, completing transition",
                order_id=str(order.id),
                tracking_number=order.tracking_number,
            )

        if OrderStatus(order.status) == OrderStatus.CONFIRMED:
            order.mark_processing()
        order.mark_shipped()

        try:
            self.repository.conditional_update(order, status)
        except Exception:
            logger.critical(
                "Shipment created but order could not be updated",
                order_id=str(order.id),
                tracking_number=order.tracking_number,
            )
            raise

        logger.info(
            "Order shipped",
            order_id=str(order.id),
            carrier=order.carrier,
            tracking_number=order.tracking_number,
        )
        self.notifier.notify_status_changed(order, self._customer_name(order))
        return order

    def _deliver(self, order) -> Order:
        order.mark_delivered()
        self.repository.conditional_update(order, OrderStatus.SHIPPED.value)
        logger.info("Order delivered", order_id=str(order.id), tracking_number=order.tracking_number)
        self.notifier.notify_status_changed(order, self._customer_name(order))
        return order

    def track(self, order_id) -> TrackingResult:
        """Ask the carrier where the parcel is and record what it says."""
        order = self.get_order(order_id)
        if not order.tracking_number:
            raise InvalidTransition(f"Order {order.id} has not been shipped", current=order.status)

        result = self.carrier.track_shipment(order.tracking_number)

        if OrderStatus(order.status) == OrderStatus.SHIPPED:
            if result.status == TrackingState.DELIVERED:
                self._deliver(order)
            elif result.status != TrackingState.UNKNOWN and result.status.value != order.shipping_status:
                order.record_shipping_status(result.status.value)
                self.repository.conditional_update(order, OrderStatus.SHIPPED.value)

        return result

    def on_delivery_reported(self, tracking_number: str) -> Order:
        """Carrier webhook: the parcel with ``tracking_number`` was delivered."""
        order = self.repository.find_by_tracking_number(tracking_number)
        if OrderStatus(order.status) == OrderStatus.DELIVERED:
            logger.info("Delivery already recorded", order_id=str(order.id), tracking_number=tracking_number)
            return order
        return self._deliver(order)

    def mark_delivered(self, order_id) -> Order:
        """Staff record a delivery the carrier has not reported."""
        order = self.get_order(order_id)
        return self._deliver(order)

    # -------------------------------------------------------------------
    # Cancellation
    # -------------------------------------------------------------------
    def cancel(self, order_id, reason: str, cancelled_by: str = "admin") -> Order:
        """Cancel an order that has not shipped. Payments are not refunded."""
        order = self.get_order(order_id)
        status = order.status
        order.cancel(reason, cancelled_by)
        self.repository.conditional_update(order, status)

        if order.payment_status == PaymentStatus.PAID.value:
            logger.warning(
                "Paid order cancelled, refund must be arranged manually",
                order_id=str(order.id),
                paid_amount=order.paid_amount,
            )
        logger.info("Order cancelled", order_id=str(order.id), reason=reason, cancelled_by=cancelled_by)
        self.notifier.notify_status_changed(order, self._customer_name(order))
        return order

    def update_status(self, order_id, status: str, reason: str | None = None, cancelled_by: str = "admin"):
        """Route an admin status change to the operation that performs it."""
        try:
            target = OrderStatus(status)
        except ValueError:
            raise ValidationError({"status": [f"Unknown order status: {status}"]}) from None

        if target == OrderStatus.CONFIRMED:
            return self.confirm_cash_order(order_id)
        if target == OrderStatus.PROCESSING:
            return self.acknowledge(order_id)
        if target == OrderStatus.SHIPPED:
            return self.ship(order_id)
        if target == OrderStatus.DELIVERED:
            return self.mark_delivered(order_id)
        if target == OrderStatus.CANCELLED:
            return self.cancel(order_id, reason or "Cancelled by staff", cancelled_by)

        order = self.get_order(order_id)
        raise InvalidTransition(
            f"Order {order.id} cannot be moved back to {target.value}",
            current=order.status,
            target=target.value,
        )
