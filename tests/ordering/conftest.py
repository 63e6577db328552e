import pytest
from catalogue import set_catalog
from catalogue.memory_adapter import InMemoryProductCatalog
from fulfillment.carrier import set_carrier
from fulfillment.carrier.fake_adapter import FakeCarrier
from identity.customers import set_directory
from identity.customers.memory_adapter import InMemoryCustomerDirectory
from notifications.channel import set_email_channel
from notifications.channel.fake_email import FakeEmailAdapter
from notifications.dispatcher import OrderNotifier
from notifications.settings import NotificationSettings
from payments.gateway import set_gateway
from payments.gateway.fake_adapter import FakeGateway
from payments.gateway.port import InvoiceState
from protean.integrations.pytest import DomainFixture

ADMIN_EMAIL = "ops@example.com"

ADDRESS = {
    "full_name": "Sara Al-Harbi",
    "phone": "+966500000000",
    "street": "King Fahd Road 12",
    "city": "Riyadh",
    "region": "Riyadh",
    "postal_code": "12211",
    "country": "Saudi Arabia",
}


@pytest.fixture(scope="session")
def ordering_bed():
    from ordering.domain import ordering

    bed = DomainFixture(ordering)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(ordering_bed):
    with ordering_bed.domain_context():
        yield


# ---------------------------------------------------------------------------
# Adapters
# ---------------------------------------------------------------------------
@pytest.fixture
def catalog():
    catalog = InMemoryProductCatalog(
        [
            {
                "product_id": "prod-acid",
                "name": "Citric Acid 25kg",
                "unit_price": 100.0,
                "discount_tiers": [
                    {"min_quantity": 10, "discount_percent": 5},
                    {"min_quantity": 50, "discount_percent": 15},
                ],
            },
            {
                "product_id": "prod-soda",
                "name": "Caustic Soda 1kg",
                "unit_price": 12.5,
                "general_discount": 2,
            },
            {
                "product_id": "prod-retired",
                "name": "Discontinued Solvent",
                "unit_price": 40.0,
                "active": False,
            },
        ]
    )
    set_catalog(catalog)
    return catalog


@pytest.fixture
def directory():
    directory = InMemoryCustomerDirectory(
        [
            {
                "customer_id": "cust-001",
                "name": "Sara Al-Harbi",
                "email": "sara@example.com",
                "phone": "+966500000000",
                "default_address": ADDRESS,
            },
            {
                "customer_id": "cust-002",
                "name": "Omar Saleh",
                "email": None,
                "phone": "+966511111111",
            },
        ]
    )
    set_directory(directory)
    return directory


@pytest.fixture
def gateway():
    gateway = FakeGateway()
    set_gateway(gateway)
    return gateway


@pytest.fixture
def carrier():
    carrier = FakeCarrier()
    set_carrier(carrier)
    return carrier


@pytest.fixture
def mailbox():
    mailbox = FakeEmailAdapter()
    set_email_channel(mailbox)
    return mailbox


@pytest.fixture
def notifier(mailbox):
    return OrderNotifier(channel=mailbox, settings=NotificationSettings(admin_email=ADMIN_EMAIL))


# ---------------------------------------------------------------------------
# Services
# ---------------------------------------------------------------------------
@pytest.fixture
def orchestrator(gateway, carrier, notifier, directory):
    from ordering.order.fulfillment import FulfillmentOrchestrator

    return FulfillmentOrchestrator(gateway=gateway, carrier=carrier, notifier=notifier, customers=directory)


@pytest.fixture
def placement(catalog, directory, orchestrator):
    from ordering.checkout.placement import OrderPlacementService

    return OrderPlacementService(catalog=catalog, customers=directory, orchestrator=orchestrator)


@pytest.fixture
def place_order(placement):
    """Place an order for three units of citric acid unless told otherwise."""

    def _place(**overrides):
        kwargs = {
            "lines": [{"product_id": "prod-acid", "quantity": 3}],
            "shipping_address": ADDRESS,
            "payment_method": "paylink",
            "customer_id": "cust-001",
        }
        kwargs.update(overrides)
        return placement.place_order(**kwargs).order

    return _place


@pytest.fixture
def confirmed_order(place_order, gateway, orchestrator):
    order = place_order()
    gateway.set_invoice_status(order.transaction_ref, InvoiceState.PAID, amount=order.total_amount)
    return orchestrator.on_payment_confirmed(order.transaction_ref)


@pytest.fixture
def shipped_order(confirmed_order, orchestrator):
    return orchestrator.ship(confirmed_order.id)
