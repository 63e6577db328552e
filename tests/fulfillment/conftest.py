from types import SimpleNamespace
from unittest.mock import Mock

import pytest
import requests
from fulfillment.carrier.port import Recipient
from fulfillment.carrier.settings import CarrierSettings, SenderAddress


def _response(status_code=200, body=None, text=None):
    response = Mock(spec=requests.Response)
    response.status_code = status_code
    response.text = text if text is not None else str(body)
    if body is None:
        response.json.side_effect = ValueError("Expecting value")
    else:
        response.json.return_value = body
    return response


@pytest.fixture
def carrier_settings():
    return CarrierSettings(
        base_url="https://jt.test/api/",
        private_key="key-123",
        customer_code="CUST01",
        timeout=7,
        sender=SenderAddress(name="Warehouse", mobile="0511111111"),
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
def recipient():
    return Recipient(
        full_name="Sara Al-Harbi",
        phone="+966500000000",
        street="King Fahd Road 12",
        city="Riyadh",
        region="Riyadh",
        postal_code="12211",
    )


@pytest.fixture
def order():
    return SimpleNamespace(
        id="ord-0001",
        lines=[
            SimpleNamespace(product_name="Citric Acid 25kg", quantity=3, after_item_discount=270.0),
            SimpleNamespace(product_name="Caustic Soda 1kg", quantity=4, after_item_discount=49.0),
        ],
    )
