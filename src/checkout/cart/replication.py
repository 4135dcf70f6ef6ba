"""Write-through replication of the local cart to the remote cart store.

The replicator is the fallible half of the cart: CartStore mutates its local
lines first and only then hands the full snapshot over here. Writes coalesce
to the latest snapshot, run under a bounded timeout, and every failure
(timeouts and adapter bugs included) is logged and recorded without ever
reaching the caller. A remote cart that does not look like a list of line
snapshots is treated as unreadable.
"""

import asyncio
import math
from dataclasses import dataclass
from datetime import UTC, datetime

import structlog

from checkout.config import remote_timeout

logger = structlog.get_logger(__name__)

_REQUIRED_LINE_FIELDS = ("product_id", "product_name", "unit_price", "quantity")


def _is_number(value):
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def is_line_snapshot(line) -> bool:
    """True when ``line`` can be adopted as a cart line."""
    if not isinstance(line, dict) or any(line.get(name) in (None, "") for name in _REQUIRED_LINE_FIELDS):
        return False
    quantity, unit_price = line["quantity"], line["unit_price"]
    return (
        isinstance(quantity, int)
        and not isinstance(quantity, bool)
        and quantity >= 1
        and _is_number(unit_price)
        and unit_price >= 0
    )


@dataclass(frozen=True)
class SyncFailure:
    """One failed remote cart call, kept for diagnostics."""

    operation: str
    session_id: str
    reason: str
    occurred_at: datetime


class CartReplicator:
    """Best-effort mirror of one session's cart.

    With no persistence adapter or no attached session, replication is a
    no-op. When no event loop is running, the latest snapshot is held until
    ``flush()`` is awaited.
    """

    def __init__(self, persistence=None, session_id=None, timeout=None):
        self.persistence = persistence
        self.session_id = session_id
        self.timeout = remote_timeout() if timeout is None else timeout
        self.failures: list[SyncFailure] = []
        self._pending = None
        self._task = None

    @property
    def enabled(self) -> bool:
        return self.persistence is not None and self.session_id is not None

    @property
    def has_pending(self) -> bool:
        return self._pending is not None

    def attach(self, session_id):
        self.session_id = session_id

    def detach(self):
        self._pending = None
        self.session_id = None

    # -------------------------------------------------------------------
    # Write-through
    # -------------------------------------------------------------------
    def schedule(self, snapshot: list[dict]) -> None:
        """Queue ``snapshot`` for the remote cart, replacing any queued one."""
        if not self.enabled:
            return

        self._pending = (self.session_id, snapshot)
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return

        if self._task is None or self._task.done():
            self._task = loop.create_task(self._drain())

    async def flush(self) -> None:
        """Wait until every queued snapshot has been written (or has failed)."""
        if self._task is not None and not self._task.done():
            await self._task
        if self._pending is not None:
            await self._drain()

    async def _drain(self):
        while self._pending is not None:
            (session_id, snapshot), self._pending = self._pending, None
            await self._save(session_id, snapshot)

    async def _save(self, session_id, snapshot):
        try:
            await asyncio.wait_for(self.persistence.save_cart(session_id, snapshot), self.timeout)
        except Exception as exc:
            self.record_failure("save_cart", session_id, exc)
            return
        logger.debug("Cart replicated", session_id=session_id, line_count=len(snapshot))

    # -------------------------------------------------------------------
    # Session reads and resets
    # -------------------------------------------------------------------
    async def load(self) -> list[dict] | None:
        """Fetch the remote cart. Returns None when it could not be read."""
        if not self.enabled:
            return None
        try:
            lines = await asyncio.wait_for(self.persistence.load_cart(self.session_id), self.timeout)
        except Exception as exc:
            self.record_failure("load_cart", self.session_id, exc)
            return None

        if lines is None:
            return []
        if not isinstance(lines, list) or not all(is_line_snapshot(line) for line in lines):
            self.record_failure("load_cart", self.session_id, "Malformed remote cart")
            return None
        return lines

    async def clear(self) -> bool:
        """Delete the remote cart, dropping any queued snapshot first."""
        if not self.enabled:
            return False

        self._pending = None
        if self._task is not None and not self._task.done():
            await self._task
        try:
            await asyncio.wait_for(self.persistence.clear_cart(self.session_id), self.timeout)
        except Exception as exc:
            self.record_failure("clear_cart", self.session_id, exc)
            return False
        return True

    def record_failure(self, operation, session_id, error):
        """Log a failed remote call and keep it in ``failures``."""
        reason = error if isinstance(error, str) else (str(error) or type(error).__name__)
        self.failures.append(
            SyncFailure(
                operation=operation,
                session_id=session_id,
                reason=reason,
                occurred_at=datetime.now(UTC),
            )
        )
        logger.warning(
            "Remote cart call failed",
            operation=operation,
            session_id=session_id,
            reason=reason,
        )
