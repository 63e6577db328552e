"""Carrier port — abstract interface for shipping carrier integrations.

All carrier adapters must implement this interface. The domain code
programs against the port; adapters are swapped via configuration.
Adapters normalize whatever the carrier returns into the result types below
before handing control back.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum


class TrackingState(Enum):
    IN_TRANSIT = "in_transit"
    DELIVERED = "delivered"
    EXCEPTION = "exception"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class Recipient:
    """Where a parcel goes."""

    full_name: str
    phone: str
    street: str
    city: str = ""
    region: str = ""
    postal_code: str = ""
    country: str = "Saudi Arabia"

    @property
    def one_line(self) -> str:
        parts = [self.street, self.city, f"{self.region} {self.postal_code}".strip()]
        return ", ".join(part for part in parts if part)


@dataclass(frozen=True)
class ShipmentResult:
    tracking_number: str
    label_url: str | None = None
    raw: dict = field(default_factory=dict, compare=False)


@dataclass(frozen=True)
class TrackingEvent:
    scan_type: str
    description: str = ""
    occurred_at: str | None = None
    location: str | None = None


@dataclass(frozen=True)
class TrackingResult:
    status: TrackingState
    events: tuple[TrackingEvent, ...] = ()
    raw: dict = field(default_factory=dict, compare=False)

    @property
    def is_delivered(self) -> bool:
        return self.status == TrackingState.DELIVERED


class CarrierPort(ABC):
    """Abstract interface for carrier adapters."""

    name = "carrier"

    @abstractmethod
    def create_shipment(self, order, recipient: Recipient) -> ShipmentResult:
        """Register a shipment for ``order`` with the carrier.

        Raises ShippingUnavailable, ShipmentRejected or ShipmentDataIncomplete.
        """
        ...

    @abstractmethod
    def track_shipment(self, tracking_number: str) -> TrackingResult:
        """Get current tracking status for a shipment."""
        ...

    @abstractmethod
    def verify_webhook_signature(self, payload: str, signature: str) -> bool:
        """Verify that a webhook callback is authentic.

        Returns:
            True if the signature is valid, False otherwise.
        """
        ...
