"""Configurable fake payment gateway for development and testing.

This adapter simulates the invoicing gateway without any external calls.
It can be configured at runtime to succeed, reject or be unreachable, and
the status (and paid amount) reported for invoices can be scripted, making
it useful for:
- Manual API testing via /payments/gateway/configure
- Automated tests with predictable outcomes
- Development without real gateway credentials
"""

from uuid import uuid4

from shared.errors import PaymentGatewayUnavailable, PaymentRejected

from payments.gateway.port import (
    CustomerContact,
    InvoiceResult,
    InvoiceState,
    InvoiceStatus,
    PaymentGateway,
)


class FakeGateway(PaymentGateway):
    """Configurable fake payment gateway."""

    def __init__(self) -> None:
        self.should_succeed: bool = True
        self.unavailable: bool = False
        self.failure_reason: str = "Invoice rejected"
        self.invoices: dict[str, dict] = {}
        self.calls: list[dict] = []

    def configure(
        self,
        should_succeed: bool,
        failure_reason: str = "Invoice rejected",
        unavailable: bool = False,
    ) -> None:
        """Configure gateway behavior at runtime."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason
        self.unavailable = unavailable

    def set_invoice_status(self, transaction_ref: str, status: InvoiceState, amount: float | None = None) -> None:
        """Script what ``get_invoice`` reports for an invoice."""
        invoice = self.invoices.setdefault(transaction_ref, {"amount": amount})
        invoice["status"] = status
        if amount is not None:
            invoice["amount"] = amount

    def create_invoice(self, order, customer: CustomerContact, callback_url: str) -> InvoiceResult:
        call = {
            "method": "create_invoice",
            "order_id": str(order.id),
            "amount": order.total_amount,
            "customer": customer,
            "callback_url": callback_url,
        }
        self.calls.append(call)

        if self.unavailable:
            raise PaymentGatewayUnavailable("Payment gateway unreachable")
        if not self.should_succeed:
            raise PaymentRejected(self.failure_reason, raw={"msg": self.failure_reason})

        transaction_ref = f"fake_inv_{uuid4().hex[:12]}"
        self.invoices[transaction_ref] = {"status": InvoiceState.PENDING, "amount": order.total_amount}
        return InvoiceResult(
            transaction_ref=transaction_ref,
            redirect_url=f"https://pay.example.test/{transaction_ref}",
            raw={"transactionNo": transaction_ref},
        )

    def get_invoice(self, transaction_ref: str) -> InvoiceStatus:
        self.calls.append({"method": "get_invoice", "transaction_ref": transaction_ref})

        if self.unavailable:
            raise PaymentGatewayUnavailable("Payment gateway unreachable")
        invoice = self.invoices.get(transaction_ref)
        if invoice is None:
            raise PaymentRejected(f"Unknown invoice {transaction_ref}")
        return InvoiceStatus(
            status=invoice["status"],
            amount=invoice.get("amount"),
            raw={"orderStatus": invoice["status"].value, "amount": invoice.get("amount")},
        )

    def calls_to(self, method: str) -> list[dict]:
        return [call for call in self.calls if call["method"] == method]
