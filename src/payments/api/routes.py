"""FastAPI routes for driving the fake payment gateway outside production."""

import os

from fastapi import APIRouter, HTTPException

from payments.api.schemas import (
    ConfigureGatewayRequest,
    GatewayConfigResponse,
    SetInvoiceStatusRequest,
    StatusResponse,
)
from payments.gateway import get_gateway
from payments.gateway.fake_adapter import FakeGateway
from payments.gateway.port import InvoiceState

payment_router = APIRouter(prefix="/payments", tags=["payments"])


def _fake_gateway() -> FakeGateway:
    if os.environ.get("PROTEAN_ENV") == "production":
        raise HTTPException(status_code=403, detail="Gateway configuration not available in production")

    gateway = get_gateway()
    if not isinstance(gateway, FakeGateway):
        raise HTTPException(status_code=400, detail="Gateway configuration only available for FakeGateway")
    return gateway


@payment_router.post("/gateway/configure", response_model=GatewayConfigResponse)
async def configure_gateway(body: ConfigureGatewayRequest) -> GatewayConfigResponse:
    """Configure the FakeGateway behavior (non-production only).

    It allows toggling success/failure behavior for manual API testing.
    """
    gateway = _fake_gateway()
    gateway.configure(
        should_succeed=body.should_succeed,
        failure_reason=body.failure_reason,
        unavailable=body.unavailable,
    )
    return GatewayConfigResponse(
        gateway=type(gateway).__name__,
        should_succeed=gateway.should_succeed,
        failure_reason=gateway.failure_reason,
        unavailable=gateway.unavailable,
    )


@payment_router.put("/gateway/invoices/{transaction_ref}", response_model=StatusResponse)
async def set_invoice_status(transaction_ref: str, body: SetInvoiceStatusRequest) -> StatusResponse:
    """Script what the FakeGateway reports for an invoice, e.g. to simulate payment."""
    gateway = _fake_gateway()
    try:
        state = InvoiceState(body.status)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Unknown invoice status: {body.status}") from None
    gateway.set_invoice_status(transaction_ref, state, amount=body.amount)
    return StatusResponse(status=state.value)
