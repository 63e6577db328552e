"""Email channel port.

Adapters report delivery as a small dict rather than raising, so a mail
outage can never abort the order operation that triggered it::

    {"status": "sent", "message_id": "<...>"}
    {"status": "failed", "message_id": None, "error": "..."}
"""

from abc import ABC, abstractmethod

SENT = "sent"
FAILED = "failed"


def delivered(message_id: str) -> dict:
    return {"message_id": message_id, "status": SENT}


def undelivered(error: str) -> dict:
    return {"message_id": None, "status": FAILED, "error": error}


class EmailPort(ABC):
    """Abstract interface for email dispatch adapters."""

    @abstractmethod
    def send(self, to: str, subject: str, body: str, html_body: str | None = None) -> dict:
        """Send one message to a single recipient. See the module docstring for the result."""
        ...
