"""In-memory product catalogue for development and testing."""

from protean.exceptions import ValidationError

from catalogue.port import Product, ProductCatalog
from ordering.pricing.discounts import validate_discount_percent, validate_tiers


class InMemoryProductCatalog(ProductCatalog):
    def __init__(self, products=None):
        self.products: dict[str, Product] = {}
        for product in products or []:
            self.add(product)

    def add(self, product: Product | dict) -> Product:
        """Register a product, validating its discount policy on the way in."""
        if isinstance(product, dict):
            product = Product.from_dict(product)
        if product.unit_price < 0:
            raise ValidationError({"unit_price": ["Unit price cannot be negative"]})
        validate_discount_percent(product.general_discount, field="general_discount")
        validate_tiers(product.discount_tiers)
        self.products[product.product_id] = product
        return product

    def get(self, product_id: str) -> Product | None:
        return self.products.get(str(product_id))

    def clear(self) -> None:
        self.products.clear()
