"""Quantity-tiered discount resolution.

A product carries a flat ``general_discount`` and an optional list of tiers.
The tier with the highest ``min_quantity`` that the requested quantity meets
wins; when no tier matches, the general discount applies.
"""

from dataclasses import dataclass

from protean.exceptions import ValidationError


@dataclass(frozen=True)
class DiscountTier:
    min_quantity: int
    discount_percent: float

    @classmethod
    def from_dict(cls, data: dict) -> "DiscountTier":
        """Build a tier from either the API shape or the catalogue shape.

        The catalogue stores tiers as ``{"quantity": .., "discount": ..}``.
        """
        min_quantity = data.get("min_quantity", data.get("quantity"))
        discount_percent = data.get("discount_percent", data.get("discount"))
        if min_quantity is None or discount_percent is None:
            raise ValidationError({"discount_tiers": [f"Malformed discount tier: {data}"]})
        return cls(min_quantity=int(min_quantity), discount_percent=float(discount_percent))

    def to_dict(self) -> dict:
        return {"min_quantity": self.min_quantity, "discount_percent": self.discount_percent}


def validate_discount_percent(value, field: str = "discount_percent") -> float:
    """Reject percentages outside [0, 100]. Used at the input boundary."""
    try:
        percent = float(value)
    except (TypeError, ValueError):
        raise ValidationError({field: [f"Discount must be a number, got {value!r}"]}) from None
    if percent < 0 or percent > 100:
        raise ValidationError({field: [f"Discount must be between 0 and 100, got {percent}"]})
    return percent


def validate_tiers(tiers) -> list[DiscountTier]:
    """Validate tier bounds for catalogue data entering the system."""
    validated = []
    for tier in tiers:
        if tier.min_quantity < 1:
            raise ValidationError({"discount_tiers": ["Tier minimum quantity must be at least 1"]})
        validate_discount_percent(tier.discount_percent, field="discount_tiers")
        validated.append(tier)
    return validated


def resolve_discount(tiers, general_discount: float, quantity: int) -> float:
    """Return the discount percentage that applies to ``quantity`` units.

    Tiers are sorted here rather than trusted to arrive sorted. The sort is
    stable, so among tiers sharing a ``min_quantity`` the last one given wins.
    """
    if quantity < 1:
        raise ValidationError({"quantity": ["Quantity must be at least 1"]})

    matched = None
    for tier in sorted(tiers, key=lambda t: t.min_quantity):
        if tier.min_quantity > quantity:
            break
        matched = tier

    if matched is None:
        return general_discount
    return matched.discount_percent
