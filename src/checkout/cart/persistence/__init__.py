"""Remote cart persistence adapters.

build_cart_persistence() returns a fresh adapter for one shopping session.
The remote cart is optional: "none" yields no adapter and the cart stays
local only.
"""

import os

from checkout.cart.persistence.port import CartPersistence


def build_cart_persistence(adapter: str | None = None) -> CartPersistence | None:
    """Build the configured adapter. Uses CART_PERSISTENCE_ADAPTER when ``adapter`` is omitted."""
    adapter = adapter or os.environ.get("CART_PERSISTENCE_ADAPTER", "memory")
    if adapter == "none":
        return None
    if adapter == "memory":
        from checkout.cart.persistence.fake_adapter import InMemoryCartPersistence

        return InMemoryCartPersistence()
    raise ValueError(f"Unknown cart persistence adapter: {adapter}")
