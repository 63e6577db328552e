import os
from pathlib import Path

import pytest


def pytest_addoption(parser):
    parser.addoption(
        "--env",
        action="store",
        default="test",
        help="Config environment to run tests on",
    )


def pytest_sessionstart(session):
    """Pytest hook to run before collecting tests.

    Selects the Protean config overlay and pins every external adapter to its
    fake, so no test talks to a real gateway, carrier or mail relay.
    """
    os.environ["PROTEAN_ENV"] = session.config.option.env
    os.environ["PAYMENT_GATEWAY"] = "fake"
    os.environ["CARRIER_ADAPTER"] = "fake"
    os.environ["EMAIL_ADAPTER"] = "fake"
    os.environ.pop("ADMIN_EMAIL", None)


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        # Get the test file path relative to the tests directory
        test_path = Path(item.fspath)

        # Mark tests based on their directory
        if "/domain/" in str(test_path):
            item.add_marker(pytest.mark.domain)
        elif "/application/" in str(test_path):
            item.add_marker(pytest.mark.application)
        elif "/integration/" in str(test_path):
            item.add_marker(pytest.mark.integration)
            # Integration tests are often slower
            if not any(m.name == "fast" for m in item.iter_markers()):
                item.add_marker(pytest.mark.slow)


@pytest.fixture(autouse=True)
def reset_adapters():
    """Drop adapter singletons so one test's fakes never leak into the next."""
    from catalogue import reset_catalog
    from fulfillment.carrier import reset_carrier
    from identity.customers import reset_directory
    from notifications.channel import reset_channels
    from payments.gateway import reset_gateway

    yield

    reset_gateway()
    reset_carrier()
    reset_channels()
    reset_catalog()
    reset_directory()
