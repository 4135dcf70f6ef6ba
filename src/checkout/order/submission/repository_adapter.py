"""Order submitter backed by the checkout domain's own Order repository.

Translates the submission payload into a PlaceOrder command and processes it
synchronously, which makes the receipt available as soon as the order is
stored.
"""

import json

from protean.utils.globals import current_domain

from checkout.order.creation import PlaceOrder
from checkout.order.submission.port import OrderSubmitter, SubmissionReceipt


def build_place_order(payload: dict) -> PlaceOrder:
    return PlaceOrder(
        order_number=payload["order_number"],
        idempotency_key=payload.get("idempotency_key"),
        customer_id=payload.get("customer_id"),
        line_items=json.dumps(payload["line_items"]),
        shipping_address=json.dumps(payload["shipping_address"]),
        billing_address=json.dumps(payload["billing_address"]) if payload.get("billing_address") else None,
        shipping_method=payload.get("shipping_method", "standard"),
        subtotal=payload["subtotal"],
        shipping_amount=payload.get("shipping_amount", 0.0),
        tax_amount=payload.get("tax_amount", 0.0),
        discount_amount=payload.get("discount_amount", 0.0),
        total_amount=payload["total_amount"],
        currency=payload.get("currency", "INR"),
    )


class RepositoryOrderSubmitter(OrderSubmitter):
    async def submit_order(self, payload: dict) -> SubmissionReceipt:
        result = current_domain.process(build_place_order(payload), asynchronous=False)
        return SubmissionReceipt(order_id=result["order_id"], order_number=result["order_number"])
