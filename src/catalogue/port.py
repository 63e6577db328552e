"""Product catalogue port — the read model order placement prices against.

Catalogue CRUD lives elsewhere. Ordering only needs a product's current
name, price and discount policy at the moment an order is placed.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from ordering.pricing.discounts import DiscountTier


@dataclass(frozen=True)
class Product:
    product_id: str
    name: str
    unit_price: float
    general_discount: float = 0.0
    discount_tiers: tuple[DiscountTier, ...] = field(default_factory=tuple)
    active: bool = True

    @classmethod
    def from_dict(cls, data: dict) -> "Product":
        return cls(
            product_id=str(data["product_id"]),
            name=data["name"],
            unit_price=float(data["unit_price"]),
            general_discount=float(data.get("general_discount", 0.0)),
            discount_tiers=tuple(DiscountTier.from_dict(tier) for tier in data.get("discount_tiers", [])),
            active=data.get("active", True),
        )


class ProductCatalog(ABC):
    """Abstract product lookup."""

    @abstractmethod
    def get(self, product_id: str) -> Product | None:
        """Return the product, or None if it does not exist."""
        ...
