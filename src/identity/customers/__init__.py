"""Customer directory lookup.

Provides get_directory() / set_directory() to swap implementations. Defaults
to an empty in-memory directory.
"""

from identity.customers.memory_adapter import InMemoryCustomerDirectory
from identity.customers.port import CustomerDirectory

_current_directory: CustomerDirectory | None = None


def get_directory() -> CustomerDirectory:
    """Return the current customer directory."""
    global _current_directory
    if _current_directory is None:
        _current_directory = InMemoryCustomerDirectory()
    return _current_directory


def set_directory(directory: CustomerDirectory) -> None:
    """Override the active directory (useful for tests)."""
    global _current_directory
    _current_directory = directory


def reset_directory() -> None:
    """Reset to an empty in-memory directory."""
    global _current_directory
    _current_directory = None
