"""Pydantic request/response schemas for the Ordering API.

These are external contracts (anti-corruption layer) — separate from
the Order aggregate and its value objects.
"""

from datetime import datetime

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class ShippingAddressSchema(BaseModel):
    full_name: str
    phone: str
    street: str
    city: str | None = None
    region: str | None = None
    postal_code: str | None = None
    country: str = "Saudi Arabia"
    email: str | None = None


class OrderLineRequest(BaseModel):
    product_id: str
    quantity: int = Field(ge=1)


# ---------------------------------------------------------------------------
# Request Schemas
# ---------------------------------------------------------------------------
class CreateOrderRequest(BaseModel):
    lines: list[OrderLineRequest] = Field(min_length=1)
    shipping_address: ShippingAddressSchema | None = None
    payment_method: str = "paylink"
    customer_id: str | None = None
    customer_email: str | None = None
    order_discount_percent: float = Field(default=0.0, ge=0, le=100)
    notes: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "lines": [{"product_id": "prod-001", "quantity": 30}],
                    "shipping_address": {
                        "full_name": "Sara Al-Harbi",
                        "phone": "+966500000000",
                        "street": "King Fahd Road 12",
                        "city": "Riyadh",
                        "region": "Riyadh",
                        "postal_code": "12211",
                    },
                    "payment_method": "paylink",
                    "customer_id": "cust-001",
                }
            ]
        }
    }


class InitiatePaymentRequest(BaseModel):
    callback_url: str | None = None


class PaymentCallbackRequest(BaseModel):
    transaction_ref: str = Field(alias="transactionNo")
    order_status: str | None = Field(default=None, alias="orderStatus")

    model_config = {"populate_by_name": True}


class DeliveryWebhookRequest(BaseModel):
    tracking_number: str


class CancelOrderRequest(BaseModel):
    reason: str
    cancelled_by: str = "admin"


class UpdateStatusRequest(BaseModel):
    status: str
    reason: str | None = None


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------
class OrderLineResponse(BaseModel):
    product_id: str
    product_name: str
    unit_price: float
    quantity: int
    item_discount_percent: float
    subtotal: float
    item_discount_amount: float
    after_item_discount: float


class OrderResponse(BaseModel):
    order_id: str
    status: str
    customer_id: str | None = None
    lines: list[OrderLineResponse]
    subtotal: float
    total_after_item_discounts: float
    order_discount_percent: float
    order_discount_amount: float
    total_savings: float
    total_amount: float
    currency: str
    payment_method: str
    payment_status: str | None = None
    transaction_ref: str | None = None
    payment_url: str | None = None
    carrier: str | None = None
    tracking_number: str | None = None
    shipping_status: str | None = None
    label_url: str | None = None
    cancellation_reason: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_order(cls, order) -> "OrderResponse":
        return cls(
            order_id=str(order.id),
            status=order.status,
            customer_id=str(order.customer_id) if order.customer_id else None,
            lines=[
                OrderLineResponse(
                    product_id=str(line.product_id),
                    product_name=line.product_name,
                    unit_price=line.unit_price,
                    quantity=line.quantity,
                    item_discount_percent=line.item_discount_percent,
                    subtotal=line.subtotal,
                    item_discount_amount=line.item_discount_amount,
                    after_item_discount=line.after_item_discount,
                )
                for line in order.lines
            ],
            subtotal=order.subtotal,
            total_after_item_discounts=order.total_after_item_discounts,
            order_discount_percent=order.order_discount_percent,
            order_discount_amount=order.order_discount_amount,
            total_savings=order.total_savings,
            total_amount=order.total_amount,
            currency=order.currency,
            payment_method=order.payment_method,
            payment_status=order.payment_status,
            transaction_ref=order.transaction_ref,
            payment_url=order.payment_url,
            carrier=order.carrier,
            tracking_number=order.tracking_number,
            shipping_status=order.shipping_status,
            label_url=order.label_url,
            cancellation_reason=order.cancellation_reason,
            created_at=order.created_at,
            updated_at=order.updated_at,
        )


class CreateOrderResponse(BaseModel):
    order: OrderResponse
    payment_url: str | None = None
    payment_error: str | None = None


class PaymentInitiationResponse(BaseModel):
    transaction_ref: str
    redirect_url: str | None = None
    created: bool


class TrackingEventResponse(BaseModel):
    scan_type: str
    description: str = ""
    occurred_at: str | None = None
    location: str | None = None


class TrackingResponse(BaseModel):
    order_id: str
    tracking_number: str
    status: str
    order_status: str
    events: list[TrackingEventResponse]
