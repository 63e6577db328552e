"""Customer directory port — contact details and default shipping address."""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class CustomerAddress:
    full_name: str
    phone: str
    street: str
    city: str = ""
    region: str = ""
    postal_code: str = ""
    country: str = "Saudi Arabia"


@dataclass(frozen=True)
class Customer:
    customer_id: str
    name: str
    email: str | None = None
    phone: str | None = None
    default_address: CustomerAddress | None = None

    @classmethod
    def from_dict(cls, data: dict) -> "Customer":
        address = data.get("default_address")
        return cls(
            customer_id=str(data["customer_id"]),
            name=data["name"],
            email=data.get("email"),
            phone=data.get("phone"),
            default_address=CustomerAddress(**address) if address else None,
        )


class CustomerDirectory(ABC):
    @abstractmethod
    def get(self, customer_id: str) -> Customer | None:
        """Return the customer, or None if unknown."""
        ...
