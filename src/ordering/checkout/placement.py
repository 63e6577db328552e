"""Order placement — turns a checkout request into a priced, persisted Order.

Prices come from the catalogue at the moment of placement and are frozen on
the order. Staff are alerted once the order is stored. Gateway orders then get
an invoice; if the gateway is down the order still stands as ``pending`` and
payment can be initiated again later.
"""

from dataclasses import dataclass

import structlog
from catalogue import get_catalog
from identity.customers import get_directory
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain
from shared.errors import ConcurrentModification, InvalidTransition, PaymentGatewayUnavailable, PaymentRejected

from ordering.order.fulfillment import FulfillmentOrchestrator
from ordering.order.order import Order, PaymentMethod
from ordering.pricing.discounts import resolve_discount, validate_discount_percent
from ordering.pricing.totals import LineInput, compute_totals

logger = structlog.get_logger(__name__)

REQUIRED_ADDRESS_FIELDS = ("full_name", "phone", "street")


@dataclass(frozen=True)
class PlacementResult:
    order: Order
    payment_url: str | None = None
    payment_error: str | None = None


def _merge_lines(lines) -> dict[str, int]:
    """Sum quantities per product so tiers see the full quantity ordered."""
    if not lines:
        raise ValidationError({"lines": ["Order must have at least one line"]})

    quantities: dict[str, int] = {}
    for line in lines:
        product_id = str(line.get("product_id") or "")
        quantity = line.get("quantity")
        if not product_id:
            raise ValidationError({"lines": ["Each line needs a product_id"]})
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
            raise ValidationError({"quantity": [f"Quantity for {product_id} must be a whole number of at least 1"]})
        quantities[product_id] = quantities.get(product_id, 0) + quantity
    return quantities


def _address_dict(address) -> dict:
    if address is None:
        return {}
    if isinstance(address, dict):
        return dict(address)
    return {
        "full_name": address.full_name,
        "phone": address.phone,
        "street": address.street,
        "city": address.city,
        "region": address.region,
        "postal_code": address.postal_code,
        "country": address.country,
    }


class OrderPlacementService:
    def __init__(self, catalog=None, customers=None, orchestrator: FulfillmentOrchestrator | None = None):
        self._catalog = catalog
        self._customers = customers
        self.orchestrator = orchestrator or FulfillmentOrchestrator(customers=customers)

    @property
    def catalog(self):
        return self._catalog or get_catalog()

    @property
    def customers(self):
        return self._customers or get_directory()

    def place_order(
        self,
        lines,
        shipping_address=None,
        payment_method: str = PaymentMethod.PAYLINK.value,
        customer_id=None,
        customer_email: str | None = None,
        order_discount_percent: float = 0.0,
        notes: str | None = None,
    ) -> PlacementResult:
        try:
            PaymentMethod(payment_method)
        except ValueError:
            raise ValidationError({"payment_method": [f"Unknown payment method: {payment_method}"]}) from None
        order_discount_percent = validate_discount_percent(order_discount_percent, field="order_discount_percent")

        customer = None
        if customer_id:
            customer = self.customers.get(customer_id)
            if customer is None:
                raise ValidationError({"customer_id": [f"Unknown customer: {customer_id}"]})

        address = _address_dict(shipping_address)
        if not address and customer and customer.default_address:
            address = _address_dict(customer.default_address)
        missing = [name for name in REQUIRED_ADDRESS_FIELDS if not address.get(name)]
        if missing:
            raise ValidationError({"shipping_address": [f"Missing {', '.join(missing)}"]})

        line_snapshots = []
        line_inputs = []
        for product_id, quantity in _merge_lines(lines).items():
            product = self.catalog.get(product_id)
            if product is None or not product.active:
                raise ValidationError({"lines": [f"Unknown product: {product_id}"]})

            discount = resolve_discount(product.discount_tiers, product.general_discount, quantity)
            line_inputs.append(LineInput(unit_price=product.unit_price, quantity=quantity, discount_percent=discount))
            line_snapshots.append({"product_id": product.product_id, "product_name": product.name})

        totals = compute_totals(line_inputs, order_discount_percent)

        order = Order.create(
            lines_data=line_snapshots,
            totals=totals,
            shipping_address=address,
            payment_method=payment_method,
            customer_id=customer.customer_id if customer else None,
            customer_email=customer_email or (customer.email if customer else None),
            notes=notes,
        )
        current_domain.repository_for(Order).add(order)

        logger.info(
            "Order placed",
            order_id=str(order.id),
            customer_id=order.customer_id,
            total_amount=order.total_amount,
            payment_method=payment_method,
        )
        self.orchestrator.notifier.notify_created(order, customer.name if customer else None)

        if payment_method != PaymentMethod.PAYLINK.value:
            return PlacementResult(order=order)

        try:
            initiation = self.orchestrator.initiate_payment(order.id)
        except PaymentGatewayUnavailable as exc:
            logger.warning("Payment gateway unavailable, order left pending", order_id=str(order.id), error=str(exc))
            return PlacementResult(order=self.orchestrator.get_order(order.id), payment_error=exc.kind)
        except PaymentRejected as exc:
            logger.warning("Payment invoice rejected", order_id=str(order.id), error=str(exc))
            stored = self.orchestrator.get_order(order.id)
            try:
                stored.record_payment_failure(exc.message)
                current_domain.repository_for(Order).conditional_update(stored, stored.status)
            except (ConcurrentModification, InvalidTransition) as conflict:
                # The order stands; only the failure note was lost
                logger.warning(
                    "Payment failure not recorded, order changed meanwhile",
                    order_id=str(order.id),
                    error=str(conflict),
                )
                stored = self.orchestrator.get_order(order.id)
            return PlacementResult(order=stored, payment_error=exc.kind)

        return PlacementResult(
            order=self.orchestrator.get_order(order.id),
            payment_url=initiation.redirect_url,
        )
