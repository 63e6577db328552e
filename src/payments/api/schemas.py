"""Pydantic request/response schemas for the fake gateway controls."""

from pydantic import BaseModel


class ConfigureGatewayRequest(BaseModel):
    should_succeed: bool = True
    failure_reason: str = "Invoice rejected"
    unavailable: bool = False


class SetInvoiceStatusRequest(BaseModel):
    status: str
    amount: float | None = None


class GatewayConfigResponse(BaseModel):
    gateway: str
    should_succeed: bool
    failure_reason: str
    unavailable: bool


class StatusResponse(BaseModel):
    status: str = "ok"
