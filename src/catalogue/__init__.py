"""Product catalogue lookup used when pricing orders.

Provides get_catalog() / set_catalog() to swap implementations. Defaults to
an empty in-memory catalogue.
"""

from catalogue.memory_adapter import InMemoryProductCatalog
from catalogue.port import ProductCatalog

_current_catalog: ProductCatalog | None = None


def get_catalog() -> ProductCatalog:
    """Return the current product catalogue."""
    global _current_catalog
    if _current_catalog is None:
        _current_catalog = InMemoryProductCatalog()
    return _current_catalog


def set_catalog(catalog: ProductCatalog) -> None:
    """Override the active catalogue (useful for tests)."""
    global _current_catalog
    _current_catalog = catalog


def reset_catalog() -> None:
    """Reset to an empty in-memory catalogue."""
    global _current_catalog
    _current_catalog = None
