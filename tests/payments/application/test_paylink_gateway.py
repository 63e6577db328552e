"""Tests for the PayLink adapter against a mocked HTTP session."""

from types import SimpleNamespace

import pytest
import requests
from payments.gateway.paylink_adapter import PayLinkGateway
from payments.gateway.port import CustomerContact, InvoiceState
from shared.errors import PaymentGatewayUnavailable, PaymentRejected

CUSTOMER = CustomerContact(name="Sara Al-Harbi", email="sara@example.com", mobile="+966500000000")
CALLBACK = "https://shop.test/orders/ord-0001/status"


def _route(session, make_response, invoice=None, lookup=None, auth=None):
    """Answer each endpoint with a fixed response, or a list consumed in order."""
    answers = {"/api/auth": auth, "/api/addInvoice": invoice, "/api/getInvoice": lookup}

    def respond(method, url, **kwargs):
        for path, answer in answers.items():
            if path in url:
                if answer is None:
                    return make_response(200, {"id_token": "tok-1"})
                if isinstance(answer, list):
                    answer = answer.pop(0)
                if isinstance(answer, Exception):
                    raise answer
                return answer
        raise AssertionError(f"Unexpected call to {url}")

    session.request.side_effect = respond


def _calls_to(session, path):
    return [call for call in session.request.call_args_list if path in call.args[1]]


class TestCreateInvoice:
    def test_authenticates_then_creates(self, paylink_settings, session, make_response, make_order):
        _route(
            session,
            make_response,
            invoice=make_response(200, {"transactionNo": "1712345", "url": "https://paylink.test/pay/1712345"}),
        )
        gateway = PayLinkGateway(settings=paylink_settings, session=session)

        result = gateway.create_invoice(make_order(), CUSTOMER, CALLBACK)

        assert result.transaction_ref == "1712345"
        assert result.redirect_url == "https://paylink.test/pay/1712345"

        auth_call = _calls_to(session, "/api/auth")[0]
        assert auth_call.args == ("POST", "https://paylink.test/api/auth")
        assert auth_call.kwargs["json"] == {"apiId": "APP_ID_1", "secretKey": "secret-1", "persistToken": False}
        assert auth_call.kwargs["timeout"] == 5

        invoice_call = _calls_to(session, "/api/addInvoice")[0]
        assert invoice_call.kwargs["headers"]["Authorization"] == "Bearer tok-1"

    def test_payload(self, paylink_settings, session, make_response, make_order):
        _route(session, make_response, invoice=make_response(200, {"transactionNo": "1712345"}))
        gateway = PayLinkGateway(settings=paylink_settings, session=session)

        gateway.create_invoice(make_order(), CUSTOMER, CALLBACK)

        payload = _calls_to(session, "/api/addInvoice")[0].kwargs["json"]
        assert payload["amount"] == 270.0
        assert payload["callBackUrl"] == CALLBACK
        assert payload["cancelUrl"] == "https://shop.test/checkout/cancelled"
        assert payload["clientMobile"] == "0500000000"
        assert payload["clientName"] == "Sara Al-Harbi"
        assert payload["orderNumber"] == "ord-0001"
        assert payload["products"] == [
            {
                "title": "Citric Acid 25kg",
                "description": "",
                "price": 90.0,
                "qty": 3,
                "imageSrc": "",
                "isDigital": False,
                "productCost": 0,
                "specificVat": 0,
            }
        ]

    def test_single_line_when_lines_do_not_add_up(self, paylink_settings, session, make_response, make_order):
        _route(session, make_response, invoice=make_response(200, {"transactionNo": "1712345"}))
        gateway = PayLinkGateway(settings=paylink_settings, session=session)
        order = make_order(
            total_amount=243.0,
            lines=[SimpleNamespace(product_name="Citric Acid 25kg", quantity=3, after_item_discount=270.0)],
        )

        gateway.create_invoice(order, CUSTOMER, CALLBACK)

        products = _calls_to(session, "/api/addInvoice")[0].kwargs["json"]["products"]
        assert len(products) == 1
        assert products[0]["title"] == "Order payment"
        assert products[0]["price"] == 243.0
        assert products[0]["qty"] == 1

    def test_uneven_unit_price_falls_back_to_single_line(self, paylink_settings, session, make_response, make_order):
        _route(session, make_response, invoice=make_response(200, {"transactionNo": "1712345"}))
        gateway = PayLinkGateway(settings=paylink_settings, session=session)
        order = make_order(
            total_amount=10.0,
            lines=[SimpleNamespace(product_name="Buffer Solution", quantity=3, after_item_discount=10.0)],
        )

        gateway.create_invoice(order, CUSTOMER, CALLBACK)

        products = _calls_to(session, "/api/addInvoice")[0].kwargs["json"]["products"]
        assert [product["price"] for product in products] == [10.0]

    def test_business_rejection(self, paylink_settings, session, make_response, make_order):
        body = {"title": "Invalid mobile number", "status": 400}
        _route(session, make_response, invoice=make_response(400, body))
        gateway = PayLinkGateway(settings=paylink_settings, session=session)

        with pytest.raises(PaymentRejected) as exc:
            gateway.create_invoice(make_order(), CUSTOMER, CALLBACK)

        assert exc.value.message == "Invalid mobile number"
        assert exc.value.raw == body

    def test_missing_transaction_number_rejected(self, paylink_settings, session, make_response, make_order):
        _route(session, make_response, invoice=make_response(200, {"success": True}))
        gateway = PayLinkGateway(settings=paylink_settings, session=session)

        with pytest.raises(PaymentRejected):
            gateway.create_invoice(make_order(), CUSTOMER, CALLBACK)

    def test_server_error_not_retried(self, paylink_settings, session, make_response, make_order):
        _route(session, make_response, invoice=make_response(502, None, text="Bad Gateway"))
        gateway = PayLinkGateway(settings=paylink_settings, session=session)

        with pytest.raises(PaymentGatewayUnavailable):
            gateway.create_invoice(make_order(), CUSTOMER, CALLBACK)
        assert len(_calls_to(session, "/api/addInvoice")) == 1

    def test_timeout_not_retried(self, paylink_settings, session, make_response, make_order):
        _route(session, make_response, invoice=requests.Timeout("read timed out"))
        gateway = PayLinkGateway(settings=paylink_settings, session=session)

        with pytest.raises(PaymentGatewayUnavailable):
            gateway.create_invoice(make_order(), CUSTOMER, CALLBACK)
        assert len(_calls_to(session, "/api/addInvoice")) == 1

    def test_auth_failure_is_unavailable(self, paylink_settings, session, make_response, make_order):
        _route(session, make_response, auth=make_response(401, {"title": "Unauthorized"}))
        gateway = PayLinkGateway(settings=paylink_settings, session=session)

        with pytest.raises(PaymentGatewayUnavailable):
            gateway.create_invoice(make_order(), CUSTOMER, CALLBACK)
        assert len(_calls_to(session, "/api/auth")) == 3
        assert _calls_to(session, "/api/addInvoice") == []

    def test_auth_retried_until_it_succeeds(self, paylink_settings, session, make_response, make_order):
        _route(
            session,
            make_response,
            auth=[requests.ConnectionError("reset"), make_response(200, {"id_token": "tok-2"})],
            invoice=make_response(200, {"transactionNo": "1712345"}),
        )
        gateway = PayLinkGateway(settings=paylink_settings, session=session)

        result = gateway.create_invoice(make_order(), CUSTOMER, CALLBACK)

        assert result.transaction_ref == "1712345"
        assert len(_calls_to(session, "/api/auth")) == 2


class TestGetInvoice:
    @pytest.mark.parametrize(
        "order_status,expected",
        [
            ("Paid", InvoiceState.PAID),
            ("PAID", InvoiceState.PAID),
            ("Pending", InvoiceState.PENDING),
            ("Processing", InvoiceState.PENDING),
            ("Canceled", InvoiceState.FAILED),
            ("Failed", InvoiceState.FAILED),
        ],
    )
    def test_status_normalized(self, paylink_settings, session, make_response, order_status, expected):
        _route(session, make_response, lookup=make_response(200, {"orderStatus": order_status, "amount": 270}))
        gateway = PayLinkGateway(settings=paylink_settings, session=session)

        status = gateway.get_invoice("1712345")

        assert status.status == expected
        assert status.amount == 270.0
        assert _calls_to(session, "/api/getInvoice")[0].args == ("GET", "https://paylink.test/api/getInvoice/1712345")

    def test_missing_amount(self, paylink_settings, session, make_response):
        _route(session, make_response, lookup=make_response(200, {"orderStatus": "Pending"}))
        gateway = PayLinkGateway(settings=paylink_settings, session=session)
        assert gateway.get_invoice("1712345").amount is None

    def test_retried_on_server_error(self, paylink_settings, session, make_response):
        _route(
            session,
            make_response,
            lookup=[
                make_response(503, {"title": "Service Unavailable"}),
                make_response(200, {"orderStatus": "Paid", "amount": 270}),
            ],
        )
        gateway = PayLinkGateway(settings=paylink_settings, session=session)

        status = gateway.get_invoice("1712345")

        assert status.is_paid
        assert len(_calls_to(session, "/api/getInvoice")) == 2

    def test_gives_up_after_max_attempts(self, paylink_settings, session, make_response):
        _route(session, make_response, lookup=requests.Timeout("read timed out"))
        gateway = PayLinkGateway(settings=paylink_settings, session=session)

        with pytest.raises(PaymentGatewayUnavailable):
            gateway.get_invoice("1712345")
        assert len(_calls_to(session, "/api/getInvoice")) == 3

    def test_unknown_invoice_rejected(self, paylink_settings, session, make_response):
        _route(session, make_response, lookup=make_response(404, {"detail": "Invoice not found"}))
        gateway = PayLinkGateway(settings=paylink_settings, session=session)

        with pytest.raises(PaymentRejected) as exc:
            gateway.get_invoice("999")
        assert exc.value.message == "Invoice not found"
        assert len(_calls_to(session, "/api/getInvoice")) == 1
