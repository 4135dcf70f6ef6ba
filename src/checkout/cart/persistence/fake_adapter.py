"""Configurable in-memory remote cart for development and testing.

Behaves like the hosted cart table: whole-cart writes keyed by session. It can
be told to fail or to respond slowly, which is how tests exercise the
write-through failure and timeout paths.
"""

import asyncio
import copy

from checkout.cart.persistence.port import CartPersistence
from checkout.exceptions import RemoteUnavailable


class InMemoryCartPersistence(CartPersistence):
    """Dictionary-backed remote cart."""

    def __init__(self) -> None:
        self.carts: dict[str, list[dict]] = {}
        self.should_succeed: bool = True
        self.failure_reason: str = "Connection refused"
        self.latency: float = 0.0
        self.calls: list[dict] = []

    def configure(self, should_succeed: bool = True, failure_reason: str = "Connection refused", latency: float = 0.0):
        """Configure adapter behaviour at runtime."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason
        self.latency = latency

    async def _respond(self) -> None:
        if self.latency:
            await asyncio.sleep(self.latency)
        if not self.should_succeed:
            raise RemoteUnavailable("cart persistence", self.failure_reason)

    async def save_cart(self, session_id: str, items: list[dict]) -> None:
        self.calls.append({"method": "save_cart", "session_id": session_id, "items": copy.deepcopy(items)})
        await self._respond()
        self.carts[session_id] = copy.deepcopy(items)

    async def load_cart(self, session_id: str) -> list[dict]:
        self.calls.append({"method": "load_cart", "session_id": session_id})
        await self._respond()
        return copy.deepcopy(self.carts.get(session_id, []))

    async def clear_cart(self, session_id: str) -> None:
        self.calls.append({"method": "clear_cart", "session_id": session_id})
        await self._respond()
        self.carts.pop(session_id, None)
