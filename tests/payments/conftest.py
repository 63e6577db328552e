from types import SimpleNamespace
from unittest.mock import Mock

import pytest
import requests
from payments.gateway.settings import PaymentGatewaySettings


def _response(status_code=200, body=None, text=None):
    response = Mock(spec=requests.Response)
    response.status_code = status_code
    response.text = text if text is not None else str(body)
    if body is None:
        response.json.side_effect = ValueError("No JSON object could be decoded")
    else:
        response.json.return_value = body
    return response


def _order(total_amount=270.0, lines=None, order_id="ord-0001"):
    if lines is None:
        lines = [SimpleNamespace(product_name="Citric Acid 25kg", quantity=3, after_item_discount=270.0)]
    return SimpleNamespace(id=order_id, total_amount=total_amount, currency="SAR", lines=lines)


@pytest.fixture
def paylink_settings():
    return PaymentGatewaySettings(
        base_url="https://paylink.test",
        app_id="APP_ID_1",
        secret_key="secret-1",
        timeout=5,
        frontend_url="https://shop.test/",
        max_attempts=3,
        backoff_seconds=0,
    )


@pytest.fixture
def session():
    return Mock(spec=requests.Session)


@pytest.fixture
def make_response():
    return _response


@pytest.fixture
def make_order():
    return _order
