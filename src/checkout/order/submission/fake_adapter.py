"""Fake order submitter — deterministic backend for testing and development.

Remembers receipts by idempotency key, so retried submissions behave like the
real backend. Configurable success/failure and latency.
"""

import asyncio
import copy
from uuid import uuid4

from checkout.exceptions import RemoteUnavailable
from checkout.order.submission.port import OrderSubmitter, SubmissionReceipt


class FakeOrderSubmitter(OrderSubmitter):
    """Fake backend that accepts every order by default."""

    def __init__(self):
        self.should_succeed = True
        self.failure_reason = "Order service unavailable"
        self.latency = 0.0
        self.calls: list[dict] = []
        self.receipts: dict[str, SubmissionReceipt] = {}

    def configure(
        self,
        should_succeed: bool = True,
        failure_reason: str = "Order service unavailable",
        latency: float = 0.0,
    ):
        """Configure the fake submitter behavior for testing."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason
        self.latency = latency

    @property
    def orders_created(self) -> int:
        return len(self.receipts)

    async def submit_order(self, payload: dict) -> SubmissionReceipt:
        self.calls.append(copy.deepcopy(payload))
        if self.latency:
            await asyncio.sleep(self.latency)
        if not self.should_succeed:
            raise RemoteUnavailable("order submission", self.failure_reason)

        key = payload.get("idempotency_key") or str(uuid4())
        if key not in self.receipts:
            self.receipts[key] = SubmissionReceipt(
                order_id=f"ord-{uuid4().hex[:8]}",
                order_number=payload["order_number"],
            )
        return self.receipts[key]
