"""Payment gateway port (abstract interface).

Defines the contract that all payment gateway adapters must implement.
This enables swapping between FakeGateway (dev/test) and PayLinkGateway
(production) without changing any domain or application code.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum


class InvoiceState(Enum):
    PAID = "paid"
    PENDING = "pending"
    FAILED = "failed"


@dataclass(frozen=True)
class CustomerContact:
    """Who the invoice is addressed to."""

    name: str
    email: str | None = None
    mobile: str | None = None


@dataclass(frozen=True)
class InvoiceResult:
    """An invoice opened with the gateway."""

    transaction_ref: str
    redirect_url: str | None = None
    raw: dict = field(default_factory=dict, compare=False)


@dataclass(frozen=True)
class InvoiceStatus:
    """Current state of an invoice as reported by the gateway."""

    status: InvoiceState
    amount: float | None = None
    raw: dict = field(default_factory=dict, compare=False)

    @property
    def is_paid(self) -> bool:
        return self.status == InvoiceState.PAID


_STATUS_ALIASES = {
    "paid": InvoiceState.PAID,
    "completed": InvoiceState.PAID,
    "pending": InvoiceState.PENDING,
    "processing": InvoiceState.PENDING,
    "created": InvoiceState.PENDING,
}


def normalize_invoice_status(value: str | None) -> InvoiceState:
    """Map the gateway's free-form order status onto ``InvoiceState``.

    Anything not recognised as paid or still in progress (Canceled, Failed,
    Expired, an empty value...) counts as failed.
    """
    if not value:
        return InvoiceState.FAILED
    return _STATUS_ALIASES.get(value.strip().lower(), InvoiceState.FAILED)


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    @abstractmethod
    def create_invoice(self, order, customer: CustomerContact, callback_url: str) -> InvoiceResult:
        """Open an invoice for ``order.total_amount``.

        Not idempotent: every call opens a new invoice with the gateway.
        """
        ...

    @abstractmethod
    def get_invoice(self, transaction_ref: str) -> InvoiceStatus:
        """Fetch the current status of an invoice."""
        ...
