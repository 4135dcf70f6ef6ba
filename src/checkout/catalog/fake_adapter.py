"""In-memory product catalog for development and testing.

Holds products and variants in dictionaries and records every restock call so
tests can assert that stock went back exactly once.
"""

from dataclasses import replace

import structlog

from checkout.catalog.port import ProductCatalog, ProductRef, VariantRef

logger = structlog.get_logger(__name__)


class InMemoryCatalog(ProductCatalog):
    """Dictionary-backed catalog."""

    def __init__(self) -> None:
        self.products: dict[str, ProductRef] = {}
        self.variants: dict[str, VariantRef] = {}
        self.restocks: list[dict] = []

    def add_product(self, product: ProductRef, variants=()) -> None:
        self.products[product.id] = product
        for variant in variants:
            self.variants[variant.id] = variant

    def change_price(self, product_id: str, new_price: float) -> None:
        self.products[product_id] = replace(self.products[product_id], price=new_price)

    def get_product(self, product_id: str) -> ProductRef | None:
        return self.products.get(str(product_id))

    def get_variant(self, variant_id: str) -> VariantRef | None:
        return self.variants.get(str(variant_id))

    def stock_of(self, variant_id: str) -> int:
        variant = self.variants.get(str(variant_id))
        return variant.stock_quantity if variant else 0

    def restock(self, variant_id: str, quantity: int) -> None:
        self.restocks.append({"variant_id": str(variant_id), "quantity": quantity})
        variant = self.variants.get(str(variant_id))
        if variant is None:
            logger.warning("Restock requested for unknown variant", variant_id=str(variant_id), quantity=quantity)
            return
        self.variants[variant.id] = replace(variant, stock_quantity=variant.stock_quantity + quantity)
