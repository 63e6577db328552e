"""Error taxonomy for order fulfillment.

Input validation uses Protean's ``ValidationError`` and missing orders use
``ObjectNotFoundError``, like the rest of the domain. The classes below cover
outcomes of the state machine and of the external payment/shipping services,
so callers can branch on the type (or ``kind``) instead of parsing messages.
"""


class FulfillmentError(Exception):
    """Base class for business and integration failures around an Order."""

    kind = "fulfillment_error"
    retryable = False

    def __init__(self, message: str, raw=None) -> None:
        super().__init__(message)
        self.message = message
        self.raw = raw

    def to_dict(self) -> dict:
        return {"kind": self.kind, "message": self.message}


# ---------------------------------------------------------------------------
# Payment gateway
# ---------------------------------------------------------------------------
class PaymentGatewayUnavailable(FulfillmentError):
    """Network, timeout or authentication failure talking to the gateway."""

    kind = "payment_gateway_unavailable"
    retryable = True


class PaymentRejected(FulfillmentError):
    """The gateway refused the request (invalid amount, bad customer data...)."""

    kind = "payment_rejected"


class AmountMismatch(FulfillmentError):
    """The gateway reports a paid amount different from the order total."""

    kind = "amount_mismatch"

    def __init__(self, message: str, expected: float, received: float, raw=None) -> None:
        super().__init__(message, raw=raw)
        self.expected = expected
        self.received = received


# ---------------------------------------------------------------------------
# Shipping carrier
# ---------------------------------------------------------------------------
class ShippingUnavailable(FulfillmentError):
    """Network, timeout or server failure talking to the carrier."""

    kind = "shipping_unavailable"
    retryable = True


class ShipmentRejected(FulfillmentError):
    """The carrier answered with a business error code."""

    kind = "shipment_rejected"


class ShipmentDataIncomplete(FulfillmentError):
    """The carrier accepted the request but returned no tracking number."""

    kind = "shipment_data_incomplete"
    retryable = True


# ---------------------------------------------------------------------------
# State machine
# ---------------------------------------------------------------------------
class InvalidTransition(FulfillmentError):
    """A mutator was called from a state that does not allow it."""

    kind = "invalid_transition"

    def __init__(self, message: str, current: str | None = None, target: str | None = None) -> None:
        super().__init__(message)
        self.current = current
        self.target = target


class ConcurrentModification(FulfillmentError):
    """A guarded write lost against another writer. Re-fetch and retry."""

    kind = "concurrent_modification"
    retryable = True
