"""Integration tests for the fake gateway control endpoints."""

import pytest
from fastapi.testclient import TestClient
from ordering.api.application import create_app
from payments.gateway import set_gateway
from payments.gateway.paylink_adapter import PayLinkGateway
from payments.gateway.port import InvoiceState
from payments.gateway.settings import PaymentGatewaySettings


@pytest.fixture()
def client(gateway):
    return TestClient(create_app())


def test_configure_gateway(client, gateway):
    response = client.post(
        "/payments/gateway/configure",
        json={"should_succeed": False, "failure_reason": "Card declined"},
    )
    assert response.status_code == 200
    assert response.json()["gateway"] == "FakeGateway"
    assert gateway.should_succeed is False
    assert gateway.failure_reason == "Card declined"


def test_set_invoice_status(client, gateway):
    response = client.put("/payments/gateway/invoices/inv-9", json={"status": "paid", "amount": 99.5})
    assert response.status_code == 200
    assert gateway.invoices["inv-9"] == {"status": InvoiceState.PAID, "amount": 99.5}


def test_unknown_invoice_status(client):
    response = client.put("/payments/gateway/invoices/inv-9", json={"status": "refunded"})
    assert response.status_code == 400


def test_real_gateway_cannot_be_configured(client):
    set_gateway(PayLinkGateway(settings=PaymentGatewaySettings()))
    response = client.post("/payments/gateway/configure", json={"should_succeed": True})
    assert response.status_code == 400


def test_disabled_in_production(client, monkeypatch):
    monkeypatch.setenv("PROTEAN_ENV", "production")
    response = client.post("/payments/gateway/configure", json={"should_succeed": True})
    assert response.status_code == 403
