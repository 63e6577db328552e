"""Payment gateway selection.

``PAYMENT_GATEWAY`` picks the adapter the first time ``get_gateway()`` is
called: ``fake`` (default) or ``paylink``. The fake can be scripted over
HTTP through ``/payments/gateway`` outside production.
"""

import os

import structlog

from payments.gateway.fake_adapter import FakeGateway
from payments.gateway.paylink_adapter import PayLinkGateway
from payments.gateway.port import PaymentGateway

logger = structlog.get_logger(__name__)

_GATEWAYS = {
    "fake": FakeGateway,
    "paylink": PayLinkGateway,
}

_current_gateway: PaymentGateway | None = None


def get_gateway() -> PaymentGateway:
    global _current_gateway
    if _current_gateway is None:
        name = os.environ.get("PAYMENT_GATEWAY", "fake").lower()
        _current_gateway = _GATEWAYS.get(name, FakeGateway)()
        logger.info("Payment gateway selected", gateway=type(_current_gateway).__name__)
    return _current_gateway


def set_gateway(gateway: PaymentGateway) -> None:
    global _current_gateway
    _current_gateway = gateway


def reset_gateway() -> None:
    global _current_gateway
    _current_gateway = None
