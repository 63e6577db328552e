"""Tests for quantity-tiered discount resolution."""

import pytest
from ordering.pricing.discounts import (
    DiscountTier,
    resolve_discount,
    validate_discount_percent,
    validate_tiers,
)
from protean.exceptions import ValidationError

TIERS = [DiscountTier(10, 5.0), DiscountTier(50, 15.0)]


class TestResolveDiscount:
    @pytest.mark.parametrize(
        "quantity,expected",
        [
            (5, 0.0),
            (9, 0.0),
            (10, 5.0),
            (30, 5.0),
            (49, 5.0),
            (50, 15.0),
            (500, 15.0),
        ],
    )
    def test_highest_matching_tier_wins(self, quantity, expected):
        assert resolve_discount(TIERS, 0.0, quantity) == expected

    def test_general_discount_applies_below_all_tiers(self):
        assert resolve_discount(TIERS, 3.0, 2) == 3.0

    def test_general_discount_applies_without_tiers(self):
        assert resolve_discount([], 7.5, 1000) == 7.5

    def test_tier_replaces_general_discount(self):
        assert resolve_discount(TIERS, 8.0, 10) == 5.0

    def test_unsorted_tiers_are_sorted(self):
        assert resolve_discount(list(reversed(TIERS)), 0.0, 30) == 5.0

    def test_duplicate_min_quantity_last_one_wins(self):
        tiers = [DiscountTier(10, 5.0), DiscountTier(10, 8.0)]
        assert resolve_discount(tiers, 0.0, 12) == 8.0

    def test_quantity_below_one_rejected(self):
        with pytest.raises(ValidationError) as exc:
            resolve_discount(TIERS, 0.0, 0)
        assert "quantity" in exc.value.messages

    def test_monotonic_in_quantity(self):
        tiers = [DiscountTier(5, 2.0), DiscountTier(20, 4.0), DiscountTier(100, 12.5)]
        discounts = [resolve_discount(tiers, 0.0, quantity) for quantity in range(1, 250)]
        assert discounts == sorted(discounts)

    def test_non_monotonic_source_data_does_not_crash(self):
        tiers = [DiscountTier(10, 20.0), DiscountTier(50, 5.0)]
        assert resolve_discount(tiers, 0.0, 60) == 5.0


class TestDiscountTierParsing:
    def test_from_api_shape(self):
        tier = DiscountTier.from_dict({"min_quantity": 10, "discount_percent": 5})
        assert tier == DiscountTier(10, 5.0)

    def test_from_catalogue_shape(self):
        tier = DiscountTier.from_dict({"quantity": "50", "discount": "15"})
        assert tier == DiscountTier(50, 15.0)

    def test_malformed_tier_rejected(self):
        with pytest.raises(ValidationError):
            DiscountTier.from_dict({"quantity": 10})


class TestValidation:
    @pytest.mark.parametrize("value", [-1, 100.01, "abc", None])
    def test_out_of_range_percent_rejected(self, value):
        with pytest.raises(ValidationError):
            validate_discount_percent(value)

    @pytest.mark.parametrize("value", [0, 0.5, 100])
    def test_bounds_accepted(self, value):
        assert validate_discount_percent(value) == float(value)

    def test_tier_minimum_below_one_rejected(self):
        with pytest.raises(ValidationError):
            validate_tiers([DiscountTier(0, 5.0)])

    def test_tier_percent_out_of_range_rejected(self):
        with pytest.raises(ValidationError):
            validate_tiers([DiscountTier(10, 120.0)])
