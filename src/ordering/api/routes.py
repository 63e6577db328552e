"""FastAPI routes for the Ordering domain — order placement and fulfillment."""

from fastapi import APIRouter, Header, HTTPException, Request
from pydantic import ValidationError as PydanticValidationError

from ordering.api.schemas import (
    CancelOrderRequest,
    CreateOrderRequest,
    CreateOrderResponse,
    DeliveryWebhookRequest,
    InitiatePaymentRequest,
    OrderResponse,
    PaymentCallbackRequest,
    PaymentInitiationResponse,
    TrackingEventResponse,
    TrackingResponse,
    UpdateStatusRequest,
)
from ordering.checkout.placement import OrderPlacementService
from ordering.order.fulfillment import FulfillmentOrchestrator

order_router = APIRouter(prefix="/orders", tags=["orders"])


# ---------------------------------------------------------------------------
# Placement
# ---------------------------------------------------------------------------
@order_router.post("", status_code=201, response_model=CreateOrderResponse)
async def create_order(body: CreateOrderRequest) -> CreateOrderResponse:
    result = OrderPlacementService().place_order(
        lines=[line.model_dump() for line in body.lines],
        shipping_address=body.shipping_address.model_dump() if body.shipping_address else None,
        payment_method=body.payment_method,
        customer_id=body.customer_id,
        customer_email=body.customer_email,
        order_discount_percent=body.order_discount_percent,
        notes=body.notes,
    )
    return CreateOrderResponse(
        order=OrderResponse.from_order(result.order),
        payment_url=result.payment_url,
        payment_error=result.payment_error,
    )


@order_router.get("/{order_id}", response_model=OrderResponse)
async def get_order(order_id: str) -> OrderResponse:
    return OrderResponse.from_order(FulfillmentOrchestrator().get_order(order_id))


# ---------------------------------------------------------------------------
# Payment
# ---------------------------------------------------------------------------
@order_router.post("/{order_id}/payment", response_model=PaymentInitiationResponse)
async def initiate_payment(order_id: str, body: InitiatePaymentRequest | None = None) -> PaymentInitiationResponse:
    initiation = FulfillmentOrchestrator().initiate_payment(
        order_id,
        callback_url=body.callback_url if body else None,
    )
    return PaymentInitiationResponse(
        transaction_ref=initiation.transaction_ref,
        redirect_url=initiation.redirect_url,
        created=initiation.created,
    )


@order_router.post("/payments/callback", response_model=OrderResponse)
async def payment_callback(body: PaymentCallbackRequest) -> OrderResponse:
    order = FulfillmentOrchestrator().on_payment_confirmed(body.transaction_ref)
    return OrderResponse.from_order(order)


@order_router.put("/{order_id}/confirm", response_model=OrderResponse)
async def confirm_cash_order(order_id: str) -> OrderResponse:
    return OrderResponse.from_order(FulfillmentOrchestrator().confirm_cash_order(order_id))


# ---------------------------------------------------------------------------
# Fulfillment
# ---------------------------------------------------------------------------
@order_router.put("/{order_id}/processing", response_model=OrderResponse)
async def acknowledge_order(order_id: str) -> OrderResponse:
    return OrderResponse.from_order(FulfillmentOrchestrator().acknowledge(order_id))


@order_router.post("/{order_id}/shipment", response_model=OrderResponse)
async def ship_order(order_id: str) -> OrderResponse:
    return OrderResponse.from_order(FulfillmentOrchestrator().ship(order_id))


@order_router.get("/{order_id}/tracking", response_model=TrackingResponse)
async def track_order(order_id: str) -> TrackingResponse:
    orchestrator = FulfillmentOrchestrator()
    result = orchestrator.track(order_id)
    order = orchestrator.get_order(order_id)
    return TrackingResponse(
        order_id=str(order.id),
        tracking_number=order.tracking_number,
        status=result.status.value,
        order_status=order.status,
        events=[
            TrackingEventResponse(
                scan_type=event.scan_type,
                description=event.description,
                occurred_at=event.occurred_at,
                location=event.location,
            )
            for event in result.events
        ],
    )


@order_router.post("/shipments/delivered", response_model=OrderResponse)
async def delivery_webhook(
    request: Request,
    x_carrier_signature: str = Header(default=""),
) -> OrderResponse:
    """Carrier callback reporting a delivered parcel.

    The signature covers the body exactly as sent, so it is checked against
    the raw bytes before any parsing.
    """
    raw = (await request.body()).decode("utf-8", errors="replace")
    orchestrator = FulfillmentOrchestrator()
    if not orchestrator.carrier.verify_webhook_signature(raw, x_carrier_signature):
        raise HTTPException(status_code=401, detail="Invalid webhook signature")
    try:
        body = DeliveryWebhookRequest.model_validate_json(raw)
    except PydanticValidationError as exc:
        raise HTTPException(status_code=422, detail=exc.errors(include_url=False, include_context=False)) from None
    return OrderResponse.from_order(orchestrator.on_delivery_reported(body.tracking_number))


# ---------------------------------------------------------------------------
# Cancellation / admin status
# ---------------------------------------------------------------------------
@order_router.put("/{order_id}/cancel", response_model=OrderResponse)
async def cancel_order(order_id: str, body: CancelOrderRequest) -> OrderResponse:
    order = FulfillmentOrchestrator().cancel(order_id, reason=body.reason, cancelled_by=body.cancelled_by)
    return OrderResponse.from_order(order)


@order_router.put("/{order_id}/status", response_model=OrderResponse)
async def update_order_status(order_id: str, body: UpdateStatusRequest) -> OrderResponse:
    order = FulfillmentOrchestrator().update_status(order_id, body.status, reason=body.reason)
    return OrderResponse.from_order(order)
