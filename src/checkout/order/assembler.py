"""Order assembler — freezes a cart into an order submission and hands it to the backend.

``create_order`` validates the checkout inputs and captures an immutable
OrderSubmission: frozen line snapshots, frozen addresses, and totals
recomputed from the lines at that moment rather than taken from a cached
summary.

``checkout`` runs the two-phase protocol against a CartStore:

1. Assemble a submission pinned to the cart revision and the checkout inputs,
   or reuse the pending one when neither has changed since the last attempt.
2. Submit it under its idempotency key. Only a confirmed receipt clears the
   cart; a failure leaves cart and pending submission in place, so a retry
   sends the same key and the backend cannot record the order twice. Lines
   added while the submission was in flight stay in the cart.
"""

import asyncio
import json
from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import uuid4

import structlog
from protean.exceptions import ValidationError

from checkout.cart.summary import CartSummary, summarize
from checkout.config import PricingPolicy, ShippingMethod, remote_timeout
from checkout.exceptions import RemoteUnavailable
from checkout.order.numbering import generate_order_number
from checkout.order.order import REQUIRED_ADDRESS_FIELDS, Address
from checkout.order.submission import get_order_submitter

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class SubmittedLine:
    product_id: str
    product_name: str
    unit_price: float
    quantity: int
    variant_id: str | None = None
    sku: str | None = None
    size: str | None = None
    color: str | None = None

    @property
    def line_total(self) -> float:
        return self.unit_price * self.quantity

    @classmethod
    def freeze(cls, line):
        data = line if isinstance(line, dict) else line.snapshot()
        return cls(
            product_id=str(data["product_id"]),
            variant_id=str(data["variant_id"]) if data.get("variant_id") else None,
            product_name=data["product_name"],
            sku=data.get("sku"),
            size=data.get("size"),
            color=data.get("color"),
            unit_price=float(data["unit_price"]),
            quantity=int(data["quantity"]),
        )

    def as_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "variant_id": self.variant_id,
            "product_name": self.product_name,
            "sku": self.sku,
            "size": self.size,
            "color": self.color,
            "unit_price": self.unit_price,
            "quantity": self.quantity,
        }


@dataclass(frozen=True)
class OrderSubmission:
    """Everything the backend needs to record one order. Never mutated."""

    order_number: str
    idempotency_key: str
    lines: tuple[SubmittedLine, ...]
    shipping_address: Address
    billing_address: Address
    shipping_method: ShippingMethod
    summary: CartSummary
    customer_id: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def to_payload(self) -> dict:
        return {
            "order_number": self.order_number,
            "idempotency_key": self.idempotency_key,
            "customer_id": self.customer_id,
            "line_items": [line.as_dict() for line in self.lines],
            "shipping_address": self.shipping_address.as_dict(),
            "billing_address": self.billing_address.as_dict(),
            "shipping_method": self.shipping_method.value,
            "subtotal": float(self.summary.subtotal),
            "tax_amount": float(self.summary.tax_amount),
            "shipping_amount": float(self.summary.shipping_fee),
            "discount_amount": float(self.summary.discount_amount),
            "total_amount": float(self.summary.grand_total),
            "currency": self.summary.currency,
        }


@dataclass(frozen=True)
class PendingCheckout:
    """A submission waiting for its receipt, valid for one cart revision and input set."""

    revision: int
    fingerprint: str
    submission: OrderSubmission

    def matches(self, revision, fingerprint) -> bool:
        return self.revision == revision and self.fingerprint == fingerprint


def _address_data(address):
    if address is None:
        return None
    if isinstance(address, Address):
        return address.as_dict()
    return dict(address)


def _missing_fields(data):
    return [name for name in REQUIRED_ADDRESS_FIELDS if not str(data.get(name) or "").strip()]


class OrderAssembler:
    def __init__(self, submitter=None, policy=None, timeout=None):
        self._submitter = submitter
        self.policy = policy or PricingPolicy()
        self.timeout = remote_timeout() if timeout is None else timeout

    @property
    def submitter(self):
        return self._submitter or get_order_submitter()

    # -------------------------------------------------------------------
    # Phase 1: assemble
    # -------------------------------------------------------------------
    def create_order(
        self,
        line_items,
        shipping_address,
        billing_address=None,
        shipping_method=ShippingMethod.STANDARD.value,
        discount_amount=0,
        customer_id=None,
        idempotency_key=None,
    ) -> OrderSubmission:
        """Validate the checkout inputs and freeze them into an OrderSubmission.

        Raises:
            ValidationError: listing every problem found, keyed by input.
        """
        lines = [SubmittedLine.freeze(line) for line in line_items]
        shipping = _address_data(shipping_address) or {}
        billing = _address_data(billing_address)

        errors = {}
        if not lines:
            errors["line_items"] = ["Cannot check out an empty cart"]
        missing = _missing_fields(shipping)
        if missing:
            errors["shipping_address"] = [f"{name} is required" for name in missing]
        if billing is not None:
            missing = _missing_fields(billing)
            if missing:
                errors["billing_address"] = [f"{name} is required" for name in missing]
        try:
            method = ShippingMethod(shipping_method)
        except ValueError:
            errors["shipping_method"] = [f"Unknown shipping method: {shipping_method}"]
        if errors:
            raise ValidationError(errors)

        summary = summarize(lines, self.policy, discount_amount=discount_amount, shipping_method=method)
        submission = OrderSubmission(
            order_number=generate_order_number(),
            idempotency_key=idempotency_key or uuid4().hex,
            lines=tuple(lines),
            shipping_address=Address.from_mapping(shipping),
            billing_address=Address.from_mapping(billing or shipping),
            shipping_method=method,
            summary=summary,
            customer_id=str(customer_id) if customer_id else None,
        )
        logger.debug(
            "Order assembled",
            order_number=submission.order_number,
            line_count=len(lines),
            total_amount=str(summary.grand_total),
        )
        return submission

    # -------------------------------------------------------------------
    # Phase 2: submit
    # -------------------------------------------------------------------
    async def submit(self, submission: OrderSubmission):
        """Send ``submission`` to the backend. Failures propagate as RemoteUnavailable."""
        try:
            receipt = await asyncio.wait_for(
                self.submitter.submit_order(submission.to_payload()),
                self.timeout,
            )
        except (TimeoutError, OSError) as exc:
            logger.warning(
                "Order submission failed",
                order_number=submission.order_number,
                idempotency_key=submission.idempotency_key,
                reason=str(exc) or type(exc).__name__,
            )
            raise RemoteUnavailable("order submission", str(exc) or type(exc).__name__) from exc
        except RemoteUnavailable as exc:
            logger.warning(
                "Order submission failed",
                order_number=submission.order_number,
                idempotency_key=submission.idempotency_key,
                reason=exc.reason,
            )
            raise

        logger.info(
            "Order submitted",
            order_id=receipt.order_id,
            order_number=receipt.order_number,
        )
        return receipt

    async def checkout(
        self,
        store,
        shipping_address,
        billing_address=None,
        shipping_method=ShippingMethod.STANDARD.value,
        customer_id=None,
    ):
        """Place an order for everything in ``store``; only the ordered lines leave the cart, and only on success."""
        fingerprint = json.dumps(
            {
                "shipping_address": _address_data(shipping_address),
                "billing_address": _address_data(billing_address),
                "shipping_method": getattr(shipping_method, "value", shipping_method),
                "customer_id": str(customer_id) if customer_id else None,
            },
            sort_keys=True,
            default=str,
        )

        pending = store.pending_checkout
        if pending is None or not pending.matches(store.revision, fingerprint):
            submission = self.create_order(
                store.lines,
                shipping_address,
                billing_address=billing_address,
                shipping_method=shipping_method,
                discount_amount=store.cart.discount_amount or 0,
                customer_id=customer_id,
            )
            pending = PendingCheckout(revision=store.revision, fingerprint=fingerprint, submission=submission)
            store.pending_checkout = pending
        else:
            logger.info(
                "Retrying pending order submission",
                order_number=pending.submission.order_number,
                idempotency_key=pending.submission.idempotency_key,
            )

        receipt = await self.submit(pending.submission)
        if store.revision == pending.revision:
            store.clear()
        else:
            logger.info(
                "Cart changed during submission; keeping lines added since",
                order_number=receipt.order_number,
            )
            store.remove_ordered(pending.submission.lines)
        return receipt
