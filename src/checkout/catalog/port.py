"""Product catalog port (abstract interface).

The catalog is owned by the storefront backend. The checkout core reads
product and variant snapshots from it (for add-to-cart price snapshots) and
writes stock back to it when a cancelled order releases its items.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field


@dataclass(frozen=True)
class ProductRef:
    """Product snapshot as handed out by the catalog."""

    id: str
    name: str
    price: float
    sku: str | None = None
    sizes: tuple[str, ...] = field(default_factory=tuple)
    colors: tuple[str, ...] = field(default_factory=tuple)
    images: tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class VariantRef:
    """Size/colour variant of a product. ``price`` overrides the product price when set."""

    id: str
    product_id: str
    size: str | None = None
    color: str | None = None
    price: float | None = None
    sku: str | None = None
    stock_quantity: int = 0


class ProductCatalog(ABC):
    """Abstract product catalog interface."""

    @abstractmethod
    def get_product(self, product_id: str) -> ProductRef | None:
        """Return the current product snapshot, or None if unknown."""
        ...

    @abstractmethod
    def get_variant(self, variant_id: str) -> VariantRef | None:
        """Return the current variant snapshot, or None if unknown."""
        ...

    @abstractmethod
    def restock(self, variant_id: str, quantity: int) -> None:
        """Return ``quantity`` units of a variant to stock."""
        ...
