"""Order placement — command and handler.

PlaceOrder is idempotent on ``idempotency_key``: a retried submission of the
same checkout returns the order recorded the first time instead of creating
a duplicate.
"""

import json

import structlog
from protean import handle
from protean.fields import Float, Identifier, String, Text
from protean.utils.globals import current_domain

from checkout.config import ShippingMethod
from checkout.domain import checkout
from checkout.order.order import Order

logger = structlog.get_logger(__name__)


@checkout.command(part_of="Order")
class PlaceOrder:
    order_number = String(required=True, max_length=30)
    idempotency_key = String(max_length=64)
    customer_id = Identifier()
    line_items = Text(required=True)  # JSON: list of line dicts
    shipping_address = Text(required=True)  # JSON: address dict
    billing_address = Text()  # JSON: address dict, defaults to shipping
    shipping_method = String(choices=ShippingMethod, default=ShippingMethod.STANDARD.value)
    subtotal = Float(required=True, min_value=0.0)
    shipping_amount = Float(default=0.0)
    tax_amount = Float(default=0.0)
    discount_amount = Float(default=0.0)
    total_amount = Float(required=True, min_value=0.0)
    currency = String(max_length=3, default="INR")


def _loads(value):
    return json.loads(value) if isinstance(value, str) else value


def find_by_idempotency_key(idempotency_key):
    if not idempotency_key:
        return None
    repo = current_domain.repository_for(Order)
    matches = repo._dao.query.filter(idempotency_key=idempotency_key).all().items
    return matches[0] if matches else None


@checkout.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        existing = find_by_idempotency_key(command.idempotency_key)
        if existing is not None:
            logger.info(
                "Duplicate order submission ignored",
                order_id=str(existing.id),
                idempotency_key=command.idempotency_key,
            )
            return {"order_id": str(existing.id), "order_number": existing.order_number}

        order = Order.place(
            order_number=command.order_number,
            idempotency_key=command.idempotency_key,
            customer_id=command.customer_id,
            lines=_loads(command.line_items),
            shipping_address=_loads(command.shipping_address),
            billing_address=_loads(command.billing_address) if command.billing_address else None,
            shipping_method=command.shipping_method or ShippingMethod.STANDARD.value,
            pricing={
                "subtotal": command.subtotal,
                "shipping_amount": command.shipping_amount or 0.0,
                "tax_amount": command.tax_amount or 0.0,
                "discount_amount": command.discount_amount or 0.0,
                "total_amount": command.total_amount,
                "currency": command.currency or "INR",
            },
        )
        current_domain.repository_for(Order).add(order)
        logger.info(
            "Order placed",
            order_id=str(order.id),
            order_number=order.order_number,
            total_amount=order.pricing.total_amount,
        )
        return {"order_id": str(order.id), "order_number": order.order_number}
