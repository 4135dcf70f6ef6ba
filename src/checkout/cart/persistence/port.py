"""Remote cart persistence port (abstract interface).

A signed-in shopper's cart is mirrored to the storefront backend so that it
follows them across devices. The contract is best-effort: adapters raise
RemoteUnavailable on any failure and the cart store carries on locally.
"""

from abc import ABC, abstractmethod


class CartPersistence(ABC):
    """Abstract remote cart store keyed by session."""

    @abstractmethod
    async def save_cart(self, session_id: str, items: list[dict]) -> None:
        """Replace the remote cart for ``session_id`` with ``items``."""
        ...

    @abstractmethod
    async def load_cart(self, session_id: str) -> list[dict]:
        """Return the remote cart lines for ``session_id`` (empty if none)."""
        ...

    @abstractmethod
    async def clear_cart(self, session_id: str) -> None:
        """Delete the remote cart for ``session_id``."""
        ...
