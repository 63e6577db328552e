"""Fake carrier adapter — deterministic carrier for testing and development.

Generates mock tracking numbers and labels, and reports whatever tracking
state a test scripts for a parcel. Configurable success/failure behavior for
integration testing.
"""

from datetime import UTC, datetime
from uuid import uuid4

from shared.errors import ShipmentDataIncomplete, ShipmentRejected, ShippingUnavailable

from fulfillment.carrier.port import (
    CarrierPort,
    Recipient,
    ShipmentResult,
    TrackingEvent,
    TrackingResult,
    TrackingState,
)

_FAILURES = {
    "unavailable": ShippingUnavailable,
    "rejected": ShipmentRejected,
    "incomplete": ShipmentDataIncomplete,
}


class FakeCarrier(CarrierPort):
    """Fake carrier that always succeeds by default."""

    name = "fake"

    def __init__(self):
        self.should_succeed = True
        self.failure_mode = "unavailable"
        self.failure_reason = "Carrier unavailable"
        self.tracking: dict[str, TrackingState] = {}
        self.calls: list[dict] = []
        # Runs inside create_shipment, before the response is returned
        self.on_create = None

    def configure(
        self,
        should_succeed: bool = True,
        failure_reason: str = "Carrier unavailable",
        failure_mode: str = "unavailable",
    ):
        """Configure the fake carrier behavior for testing."""
        if failure_mode not in _FAILURES:
            raise ValueError(f"Unknown failure mode: {failure_mode}")
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason
        self.failure_mode = failure_mode

    def set_tracking_state(self, tracking_number: str, state: TrackingState):
        self.tracking[tracking_number] = state

    def create_shipment(self, order, recipient: Recipient) -> ShipmentResult:
        self.calls.append({"method": "create_shipment", "order_id": str(order.id), "recipient": recipient})

        if self.on_create is not None:
            self.on_create(order)
        if not self.should_succeed:
            raise _FAILURES[self.failure_mode](self.failure_reason)

        tracking_number = f"FAKE-{uuid4().hex[:12].upper()}"
        self.tracking[tracking_number] = TrackingState.IN_TRANSIT
        return ShipmentResult(
            tracking_number=tracking_number,
            label_url=f"https://fake-carrier.example.com/labels/{tracking_number}.pdf",
            raw={"billCode": tracking_number},
        )

    def track_shipment(self, tracking_number: str) -> TrackingResult:
        self.calls.append({"method": "track_shipment", "tracking_number": tracking_number})

        if not self.should_succeed and self.failure_mode == "unavailable":
            raise ShippingUnavailable(self.failure_reason)

        state = self.tracking.get(tracking_number, TrackingState.UNKNOWN)
        events = ()
        if state != TrackingState.UNKNOWN:
            events = (
                TrackingEvent(
                    scan_type=state.value,
                    description=f"Parcel {state.value.replace('_', ' ')}",
                    occurred_at=datetime.now(UTC).isoformat(),
                    location="Riyadh Hub",
                ),
            )
        return TrackingResult(status=state, events=events, raw={"billCode": tracking_number})

    def verify_webhook_signature(self, _payload: str, signature: str) -> bool:
        return signature == "test-signature"

    def calls_to(self, method: str) -> list[dict]:
        return [call for call in self.calls if call["method"] == method]
