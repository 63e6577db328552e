from types import SimpleNamespace

import pytest
from notifications.channel.fake_email import FakeEmailAdapter
from notifications.dispatcher import OrderNotifier
from notifications.settings import NotificationSettings


def _order(**overrides):
    values = {
        "id": "0f3c2a9e-41d7-4c1b-9a55-7d2e8b61c4aa",
        "status": "pending",
        "currency": "SAR",
        "subtotal": 3000.0,
        "total_savings": 150.0,
        "total_amount": 2850.0,
        "payment_method": "paylink",
        "lines": [SimpleNamespace(product_name="Citric Acid 25kg", quantity=30, after_item_discount=2850.0)],
        "shipping_address": SimpleNamespace(
            full_name="Sara Al-Harbi",
            phone="+966500000000",
            street="King Fahd Road 12",
            city="Riyadh",
            region="Riyadh",
        ),
        "contact_email": "sara@example.com",
        "carrier": None,
        "tracking_number": None,
        "cancellation_reason": None,
    }
    values.update(overrides)
    return SimpleNamespace(**values)


@pytest.fixture
def make_order():
    return _order


@pytest.fixture
def mailbox():
    return FakeEmailAdapter()


@pytest.fixture
def notifier(mailbox):
    return OrderNotifier(channel=mailbox, settings=NotificationSettings(admin_email="ops@example.com"))
