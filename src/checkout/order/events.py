"""Domain events for the Order aggregate.

Every status transition of an order raises exactly one of these versioned,
immutable facts.
"""

from protean.fields import DateTime, Float, Identifier, Integer, String

from checkout.domain import checkout


@checkout.event(part_of="Order")
class OrderPlaced:
    """A checkout was accepted and a pending order recorded."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    customer_id = Identifier()
    item_count = Integer(required=True)
    total_amount = Float(required=True)
    currency = String(default="INR")
    placed_at = DateTime(required=True)


@checkout.event(part_of="Order")
class OrderConfirmed:
    """Payment was captured for the order."""

    __version__ = 1

    order_id = Identifier(required=True)
    payment_id = String()
    confirmed_at = DateTime(required=True)


@checkout.event(part_of="Order")
class OrderProcessing:
    """The fulfillment partner started producing the order."""

    __version__ = 1

    order_id = Identifier(required=True)
    started_at = DateTime(required=True)


@checkout.event(part_of="Order")
class OrderShipped:
    __version__ = 1

    order_id = Identifier(required=True)
    carrier = String()
    tracking_number = String()
    tracking_url = String()
    shipped_at = DateTime(required=True)


@checkout.event(part_of="Order")
class OrderDelivered:
    __version__ = 1

    order_id = Identifier(required=True)
    delivered_at = DateTime(required=True)


@checkout.event(part_of="Order")
class OrderCancelled:
    """The order was cancelled before it shipped."""

    __version__ = 1

    order_id = Identifier(required=True)
    reason = String()
    cancelled_by = String()
    previous_status = String(required=True)
    cancelled_at = DateTime(required=True)


@checkout.event(part_of="Order")
class OrderReturned:
    """A shipped order came back and its payment was refunded."""

    __version__ = 1

    order_id = Identifier(required=True)
    reason = String()
    returned_at = DateTime(required=True)


@checkout.event(part_of="Order")
class OrderPaymentFailed:
    __version__ = 1

    order_id = Identifier(required=True)
    reason = String()
    failed_at = DateTime(required=True)
