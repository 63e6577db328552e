"""FastAPI application assembly for the back office.

Kept apart from the ``app`` entry module so tests can build the same
application against a domain the test fixtures have already initialized.
"""

from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from protean.integrations.fastapi import register_exception_handlers
from shared.errors import (
    AmountMismatch,
    ConcurrentModification,
    FulfillmentError,
    InvalidTransition,
    PaymentGatewayUnavailable,
    PaymentRejected,
    ShipmentDataIncomplete,
    ShipmentRejected,
    ShippingUnavailable,
)

from ordering.api.routes import order_router
from ordering.domain import ordering
from ordering.utils.logging import bind_request_context, clear_request_context

# Most specific first
ERROR_STATUS_CODES = (
    (InvalidTransition, 409),
    (ConcurrentModification, 409),
    (AmountMismatch, 409),
    (PaymentRejected, 422),
    (ShipmentRejected, 422),
    (ShipmentDataIncomplete, 502),
    (PaymentGatewayUnavailable, 503),
    (ShippingUnavailable, 503),
)

# Route-to-domain mapping
ROUTE_DOMAIN_MAP = {
    "/orders": ordering,
    "/payments": ordering,
}


def _resolve_domain(path: str):
    """Return the domain for the given request path, or None."""
    for prefix, domain in ROUTE_DOMAIN_MAP.items():
        if path.startswith(prefix):
            return domain
    return None


def status_code_for(exc: FulfillmentError) -> int:
    for error_class, status_code in ERROR_STATUS_CODES:
        if isinstance(exc, error_class):
            return status_code
    return 500


async def fulfillment_error_handler(request: Request, exc: FulfillmentError) -> JSONResponse:
    return JSONResponse(status_code=status_code_for(exc), content={"error": exc.to_dict()})


def create_app() -> FastAPI:
    from payments.api import payment_router

    app = FastAPI(
        title="Back Office API",
        description="Order pricing, payment and shipment orchestration",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def domain_context_middleware(request: Request, call_next):
        """Push the correct Protean domain context for each request."""
        clear_request_context()
        bind_request_context(
            request_id=request.headers.get("X-Request-ID") or uuid4().hex[:12],
            method=request.method,
            path=request.url.path,
        )
        domain = _resolve_domain(request.url.path)
        if domain is not None:
            with domain.domain_context():
                response = await call_next(request)
            return response
        # No domain match: health check, docs
        return await call_next(request)

    register_exception_handlers(app)
    app.add_exception_handler(FulfillmentError, fulfillment_error_handler)

    app.include_router(order_router)
    app.include_router(payment_router)

    @app.get("/health")
    async def health():
        return JSONResponse(
            content={
                "status": "ok",
                "domains": {
                    "ordering": {"name": ordering.name},
                },
            }
        )

    return app
