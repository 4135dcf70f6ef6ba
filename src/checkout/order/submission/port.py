"""Order submission port — abstract interface for the order-persistence backend.

The order assembler programs against this port; adapters are swapped via
configuration. Adapters raise RemoteUnavailable when the backend cannot be
reached.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class SubmissionReceipt:
    """Backend acknowledgement of a recorded order."""

    order_id: str
    order_number: str


class OrderSubmitter(ABC):
    """Abstract interface for order submission adapters."""

    @abstractmethod
    async def submit_order(self, payload: dict) -> SubmissionReceipt:
        """Record the order described by ``payload``.

        Submitting the same ``idempotency_key`` twice must yield the receipt
        of the first recorded order.
        """
        ...
