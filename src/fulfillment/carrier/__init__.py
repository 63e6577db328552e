"""Shipping carrier selection.

``CARRIER_ADAPTER`` picks the adapter the first time ``get_carrier()`` is
called: ``fake`` (default) or ``jt_express``. Tests install their own with
``set_carrier()``.
"""

import os

import structlog

logger = structlog.get_logger(__name__)

_carrier_instance = None


def _carrier_from_env():
    adapter = os.environ.get("CARRIER_ADAPTER", "fake").lower()
    if adapter == "jt_express":
        from fulfillment.carrier.jt_express_adapter import JTExpressCarrier

        return JTExpressCarrier()
    if adapter == "fake":
        from fulfillment.carrier.fake_adapter import FakeCarrier

        return FakeCarrier()
    raise ValueError(f"Unknown carrier adapter: {adapter}")


def get_carrier():
    global _carrier_instance
    if _carrier_instance is None:
        _carrier_instance = _carrier_from_env()
        logger.info("Carrier adapter selected", carrier=_carrier_instance.name)
    return _carrier_instance


def set_carrier(carrier):
    global _carrier_instance
    _carrier_instance = carrier


def reset_carrier():
    global _carrier_instance
    _carrier_instance = None
