import nox

PYTHON_VERSIONS = ["3.11", "3.12", "3.13", "3.14"]


def _install(session: nox.Session) -> None:
    """Install the project with the test extra into the nox virtualenv."""
    session.install("-e", ".[test]")


@nox.session(python=PYTHON_VERSIONS)
def tests(session: nox.Session) -> None:
    """Run full test suite across Python versions."""
    _install(session)
    session.run("pytest")


@nox.session(python=PYTHON_VERSIONS)
def tests_domain(session: nox.Session) -> None:
    """Run domain-layer tests only (pricing and the order state machine)."""
    _install(session)
    session.run(
        "pytest",
        "tests/ordering/domain/",
    )


@nox.session(python=PYTHON_VERSIONS)
def tests_adapters(session: nox.Session) -> None:
    """Run adapter and read-model tests; none of them need the ordering domain."""
    _install(session)
    session.run(
        "pytest",
        "tests/payments/",
        "tests/fulfillment/",
        "tests/notifications/",
        "tests/catalogue/",
        "tests/identity/",
    )
