"""PayLink invoicing gateway adapter.

Every operation authenticates first (``/api/auth`` returns a short-lived
bearer token) and then calls the invoice endpoint. Token fetches and invoice
lookups are read-only and retried with exponential backoff; invoice creation
is never retried here because a lost response may still have opened an
invoice on the gateway side.
"""

from decimal import Decimal

import requests
import structlog
from shared.errors import PaymentGatewayUnavailable, PaymentRejected
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from payments.gateway.port import (
    CustomerContact,
    InvoiceResult,
    InvoiceStatus,
    PaymentGateway,
    normalize_invoice_status,
)
from payments.gateway.settings import PaymentGatewaySettings

logger = structlog.get_logger(__name__)


def _body(response) -> dict:
    try:
        data = response.json()
    except ValueError:
        return {"text": (response.text or "")[:500]}
    return data if isinstance(data, dict) else {"data": data}


def _error_message(body: dict, default: str) -> str:
    for key in ("title", "detail", "msg", "message", "error"):
        if body.get(key):
            return str(body[key])
    return default


def _local_mobile(mobile: str | None) -> str | None:
    if mobile and mobile.startswith("+966"):
        return "0" + mobile[4:]
    return mobile


def _log_retry(retry_state) -> None:
    logger.warning(
        "Retrying payment gateway call",
        attempt=retry_state.attempt_number,
        error=str(retry_state.outcome.exception()),
    )


class PayLinkGateway(PaymentGateway):
    """Production gateway talking to the PayLink REST API."""

    def __init__(
        self,
        settings: PaymentGatewaySettings | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self.settings = settings or PaymentGatewaySettings.from_env()
        self.session = session or requests.Session()

    # -------------------------------------------------------------------
    # Transport
    # -------------------------------------------------------------------
    def _retrying(self) -> Retrying:
        return Retrying(
            retry=retry_if_exception_type(PaymentGatewayUnavailable),
            stop=stop_after_attempt(self.settings.max_attempts),
            wait=wait_exponential(multiplier=self.settings.backoff_seconds, max=10),
            before_sleep=_log_retry,
            reraise=True,
        )

    def _send(self, method: str, path: str, **kwargs):
        url = f"{self.settings.base_url.rstrip('/')}{path}"
        try:
            response = self.session.request(method, url, timeout=self.settings.timeout, **kwargs)
        except requests.RequestException as exc:
            raise PaymentGatewayUnavailable(f"Payment gateway unreachable: {exc}") from exc

        if response.status_code >= 500:
            body = _body(response)
            raise PaymentGatewayUnavailable(
                f"Payment gateway error {response.status_code}: {_error_message(body, 'server error')}",
                raw=body,
            )
        return response

    def _fetch_token(self) -> str:
        response = self._send(
            "POST",
            "/api/auth",
            json={
                "apiId": self.settings.app_id,
                "secretKey": self.settings.secret_key,
                "persistToken": False,
            },
        )
        body = _body(response)
        token = body.get("id_token") if response.status_code < 400 else None
        if not token:
            logger.error("Payment gateway authentication failed", status_code=response.status_code)
            raise PaymentGatewayUnavailable("Payment gateway authentication failed", raw=body)
        return token

    def _auth_headers(self) -> dict:
        token = self._retrying()(self._fetch_token)
        return {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
            "accept": "application/json",
        }

    # -------------------------------------------------------------------
    # Payload mapping
    # -------------------------------------------------------------------
    def _products(self, order) -> list[dict]:
        """Map order lines to PayLink products.

        Each line is sent at its discounted unit price. If those lines do not
        add up to the order total to the cent (order-level discount, uneven
        division) a single line carrying the exact total is sent instead.
        """
        total = Decimal(str(order.total_amount))
        products = []
        line_sum = Decimal(0)
        for line in order.lines:
            unit_price = (Decimal(str(line.after_item_discount)) / line.quantity).quantize(Decimal("0.01"))
            line_sum += unit_price * line.quantity
            products.append(
                {
                    "title": line.product_name,
                    "description": "",
                    "price": float(unit_price),
                    "qty": line.quantity,
                    "imageSrc": "",
                    "isDigital": False,
                    "productCost": 0,
                    "specificVat": 0,
                }
            )

        if products and line_sum == total:
            return products
        return [
            {
                "title": "Order payment",
                "description": f"Payment for order {order.id}",
                "price": float(total),
                "qty": 1,
                "isDigital": False,
                "productCost": 0,
                "specificVat": 0,
            }
        ]

    def _invoice_payload(self, order, customer: CustomerContact, callback_url: str) -> dict:
        return {
            "amount": order.total_amount,
            "callBackUrl": callback_url,
            "cancelUrl": self.settings.cancel_url,
            "clientEmail": customer.email,
            "clientMobile": _local_mobile(customer.mobile),
            "clientName": customer.name,
            "currency": order.currency or self.settings.currency,
            "note": f"Order #{order.id}",
            "orderNumber": str(order.id),
            "products": self._products(order),
        }

    # -------------------------------------------------------------------
    # PaymentGateway
    # -------------------------------------------------------------------
    def create_invoice(self, order, customer: CustomerContact, callback_url: str) -> InvoiceResult:
        headers = self._auth_headers()
        payload = self._invoice_payload(order, customer, callback_url)
        logger.debug("Creating payment invoice", order_id=str(order.id), amount=payload["amount"])

        response = self._send("POST", "/api/addInvoice", json=payload, headers=headers)
        body = _body(response)
        if response.status_code >= 400:
            message = _error_message(body, f"Invoice rejected with status {response.status_code}")
            logger.warning("Payment invoice rejected", order_id=str(order.id), reason=message)
            raise PaymentRejected(message, raw=body)

        transaction_ref = body.get("transactionNo")
        if not transaction_ref:
            raise PaymentRejected("Gateway response did not include a transaction number", raw=body)

        logger.info("Payment invoice created", order_id=str(order.id), transaction_ref=transaction_ref)
        return InvoiceResult(transaction_ref=str(transaction_ref), redirect_url=body.get("url"), raw=body)

    def _fetch_invoice(self, transaction_ref: str) -> InvoiceStatus:
        headers = self._auth_headers()
        response = self._send("GET", f"/api/getInvoice/{transaction_ref}", headers=headers)
        body = _body(response)
        if response.status_code >= 400:
            raise PaymentRejected(
                _error_message(body, f"Invoice {transaction_ref} not found"),
                raw=body,
            )

        amount = body.get("amount")
        return InvoiceStatus(
            status=normalize_invoice_status(body.get("orderStatus")),
            amount=float(amount) if amount is not None else None,
            raw=body,
        )

    def get_invoice(self, transaction_ref: str) -> InvoiceStatus:
        return self._retrying()(self._fetch_invoice, transaction_ref)
