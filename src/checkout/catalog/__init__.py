"""Catalog adapter factory.

Command handlers are instantiated by the domain, so they reach the catalog
through get_catalog(). Tests swap in their own instance with set_catalog().
"""

import os

from checkout.catalog.port import ProductCatalog

_catalog_instance: ProductCatalog | None = None


def get_catalog() -> ProductCatalog:
    """Return the configured catalog adapter. Defaults to InMemoryCatalog."""
    global _catalog_instance
    if _catalog_instance is None:
        adapter = os.environ.get("CATALOG_ADAPTER", "memory")
        if adapter == "memory":
            from checkout.catalog.fake_adapter import InMemoryCatalog

            _catalog_instance = InMemoryCatalog()
        else:
            raise ValueError(f"Unknown catalog adapter: {adapter}")
    return _catalog_instance


def set_catalog(catalog: ProductCatalog) -> None:
    """Override the active catalog (useful for tests)."""
    global _catalog_instance
    _catalog_instance = catalog


def reset_catalog() -> None:
    """Reset to the default catalog."""
    global _catalog_instance
    _catalog_instance = None
