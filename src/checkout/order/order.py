"""Order aggregate (CQRS) — an immutable snapshot of a cart plus its status lifecycle.

Line items, addresses and pricing are frozen when the order is placed; the
live catalog may change prices afterwards without touching them. What does
change is the status, driven by payment and fulfillment notifications:

State Machine:
    pending → confirmed → processing → shipped → delivered
    pending | confirmed | processing → cancelled   (cancel requested)
    shipped → cancelled                            (returned, payment refunded)

``delivered`` and ``cancelled`` are terminal. Cancelling an already cancelled
order is a no-op.
"""

from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import (
    Boolean,
    DateTime,
    Float,
    HasMany,
    Identifier,
    Integer,
    String,
    ValueObject,
)

from checkout.config import ShippingMethod
from checkout.domain import checkout
from checkout.order.events import (
    OrderCancelled,
    OrderConfirmed,
    OrderDelivered,
    OrderPaymentFailed,
    OrderPlaced,
    OrderProcessing,
    OrderReturned,
    OrderShipped,
)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentStatus(Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


class CancellationActor(Enum):
    CUSTOMER = "customer"
    SYSTEM = "system"
    ADMIN = "admin"
    FULFILLMENT = "fulfillment"


_VALID_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.CONFIRMED, OrderStatus.CANCELLED},
    OrderStatus.CONFIRMED: {OrderStatus.PROCESSING, OrderStatus.CANCELLED},
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED, OrderStatus.CANCELLED},  # Cancelled only via return
    OrderStatus.DELIVERED: set(),  # Terminal
    OrderStatus.CANCELLED: set(),  # Terminal
}

# States from which a cancel request is honoured
_CANCELLABLE_STATES = {
    OrderStatus.PENDING,
    OrderStatus.CONFIRMED,
    OrderStatus.PROCESSING,
}

ADDRESS_FIELDS = ("name", "phone", "email", "address_line", "city", "state", "postal_code", "country")
REQUIRED_ADDRESS_FIELDS = ("name", "phone", "address_line", "city", "postal_code")


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@checkout.value_object(part_of="Order")
class Address:
    """A delivery or billing address captured at checkout."""

    name = String(required=True, max_length=255)
    phone = String(required=True, max_length=20)
    email = String(max_length=254)
    address_line = String(required=True, max_length=500)
    city = String(required=True, max_length=100)
    state = String(max_length=100)
    postal_code = String(required=True, max_length=20)
    country = String(max_length=2, default="IN")

    @classmethod
    def from_mapping(cls, data):
        return cls(**{field: data[field] for field in ADDRESS_FIELDS if data.get(field) is not None})

    def as_dict(self) -> dict:
        return {field: getattr(self, field) for field in ADDRESS_FIELDS}


@checkout.value_object(part_of="Order")
class OrderPricing:
    """Totals frozen at checkout, exactly as the cart aggregator computed them."""

    subtotal = Float(default=0.0)
    shipping_amount = Float(default=0.0)
    tax_amount = Float(default=0.0)
    discount_amount = Float(default=0.0)
    total_amount = Float(default=0.0)
    currency = String(max_length=3, default="INR")


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@checkout.entity(part_of="Order")
class OrderLine:
    """A frozen cart line: price and quantity as they were at checkout."""

    product_id = Identifier(required=True)
    variant_id = Identifier()
    product_name = String(required=True, max_length=255)
    sku = String(max_length=50)
    size = String(max_length=20)
    color = String(max_length=50)
    unit_price = Float(required=True, min_value=0.0)
    quantity = Integer(required=True, min_value=1)
    line_total = Float(min_value=0.0)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@checkout.aggregate
class Order:
    order_number = String(required=True, max_length=30)
    idempotency_key = String(max_length=64)
    customer_id = Identifier()
    items = HasMany(OrderLine)
    shipping_address = ValueObject(Address)
    billing_address = ValueObject(Address)
    shipping_method = String(choices=ShippingMethod, default=ShippingMethod.STANDARD.value)
    pricing = ValueObject(OrderPricing)
    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    payment_status = String(choices=PaymentStatus, default=PaymentStatus.PENDING.value)
    payment_id = String(max_length=255)
    carrier = String(max_length=100)
    tracking_number = String(max_length=255)
    tracking_url = String(max_length=500)
    cancellation_reason = String(max_length=500)
    cancelled_by = String(choices=CancellationActor)
    stock_restored = Boolean(default=False)
    created_at = DateTime()
    order_date = DateTime()
    shipped_at = DateTime()
    delivered_at = DateTime()
    cancelled_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def total_cannot_be_negative(self):
        if self.pricing and self.pricing.total_amount < 0:
            raise ValidationError({"pricing": ["Order total cannot be negative"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        order_number,
        lines,
        shipping_address,
        pricing,
        billing_address=None,
        shipping_method=ShippingMethod.STANDARD.value,
        customer_id=None,
        idempotency_key=None,
    ):
        """Record a new pending order.

        Args:
            order_number: Shopper-facing order number.
            lines: List of dicts with product_id, variant_id, product_name,
                   sku, size, color, unit_price, quantity.
            shipping_address: Address dict; billing defaults to it.
            pricing: Dict with subtotal, shipping_amount, tax_amount,
                     discount_amount, total_amount, currency.
        """
        if not lines:
            raise ValidationError({"line_items": ["An order needs at least one line item"]})

        now = datetime.now(UTC)
        order = cls(
            order_number=order_number,
            idempotency_key=idempotency_key,
            customer_id=customer_id,
            shipping_address=Address.from_mapping(shipping_address),
            billing_address=Address.from_mapping(billing_address or shipping_address),
            shipping_method=ShippingMethod(shipping_method).value,
            pricing=OrderPricing(**pricing),
            created_at=now,
            updated_at=now,
        )
        for line in lines:
            order.add_items(
                OrderLine(
                    product_id=line["product_id"],
                    variant_id=line.get("variant_id"),
                    product_name=line["product_name"],
                    sku=line.get("sku"),
                    size=line.get("size"),
                    color=line.get("color"),
                    unit_price=line["unit_price"],
                    quantity=line["quantity"],
                    line_total=line["unit_price"] * line["quantity"],
                )
            )

        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                order_number=order_number,
                customer_id=customer_id,
                item_count=sum(line.quantity for line in order.items),
                total_amount=order.pricing.total_amount,
                currency=order.pricing.currency,
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # State transition helper
    # -------------------------------------------------------------------
    def _assert_can_transition(self, target_status):
        current = OrderStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise ValidationError({"status": [f"Cannot transition from {current.value} to {target_status.value}"]})

    @property
    def is_cancelled(self) -> bool:
        return self.status == OrderStatus.CANCELLED.value

    # -------------------------------------------------------------------
    # Lifecycle transitions
    # -------------------------------------------------------------------
    def confirm(self, payment_id=None):
        """Payment captured: pending → confirmed."""
        self._assert_can_transition(OrderStatus.CONFIRMED)
        now = datetime.now(UTC)
        self.status = OrderStatus.CONFIRMED.value
        self.payment_status = PaymentStatus.PAID.value
        self.payment_id = payment_id
        self.order_date = now
        self.updated_at = now

        self.raise_(OrderConfirmed(order_id=str(self.id), payment_id=payment_id, confirmed_at=now))

    def mark_processing(self):
        self._assert_can_transition(OrderStatus.PROCESSING)
        now = datetime.now(UTC)
        self.status = OrderStatus.PROCESSING.value
        self.updated_at = now

        self.raise_(OrderProcessing(order_id=str(self.id), started_at=now))

    def record_shipment(self, carrier=None, tracking_number=None, tracking_url=None):
        self._assert_can_transition(OrderStatus.SHIPPED)
        now = datetime.now(UTC)
        self.status = OrderStatus.SHIPPED.value
        self.carrier = carrier
        self.tracking_number = tracking_number
        self.tracking_url = tracking_url
        self.shipped_at = now
        self.updated_at = now

        self.raise_(
            OrderShipped(
                order_id=str(self.id),
                carrier=carrier,
                tracking_number=tracking_number,
                tracking_url=tracking_url,
                shipped_at=now,
            )
        )

    def record_delivery(self):
        self._assert_can_transition(OrderStatus.DELIVERED)
        now = datetime.now(UTC)
        self.status = OrderStatus.DELIVERED.value
        self.delivered_at = now
        self.updated_at = now

        self.raise_(OrderDelivered(order_id=str(self.id), delivered_at=now))

    def cancel(self, reason=None, cancelled_by=CancellationActor.CUSTOMER.value):
        """Cancel before shipment. Returns False when the order was already cancelled."""
        if self.is_cancelled:
            return False

        current = OrderStatus(self.status)
        if current not in _CANCELLABLE_STATES:
            raise ValidationError({"status": [f"Cannot cancel an order in {current.value} state"]})

        now = datetime.now(UTC)
        self.cancellation_reason = reason
        self.cancelled_by = cancelled_by
        self.cancelled_at = now
        self.updated_at = now
        self.status = OrderStatus.CANCELLED.value

        self.raise_(
            OrderCancelled(
                order_id=str(self.id),
                reason=reason,
                cancelled_by=cancelled_by,
                previous_status=current.value,
                cancelled_at=now,
            )
        )
        return True

    def record_return(self, reason=None):
        """A shipped order was returned: shipped → cancelled, payment refunded."""
        if OrderStatus(self.status) != OrderStatus.SHIPPED:
            raise ValidationError({"status": ["Only shipped orders can be returned"]})

        now = datetime.now(UTC)
        self.cancellation_reason = reason
        self.cancelled_by = CancellationActor.FULFILLMENT.value
        self.cancelled_at = now
        self.updated_at = now
        self.payment_status = PaymentStatus.REFUNDED.value
        self.status = OrderStatus.CANCELLED.value

        self.raise_(OrderReturned(order_id=str(self.id), reason=reason, returned_at=now))

    def record_payment_failure(self, reason=None):
        """Payment could not be captured: pending → cancelled. No-op when already cancelled."""
        if self.is_cancelled:
            return False
        if OrderStatus(self.status) != OrderStatus.PENDING:
            raise ValidationError({"status": ["Payment failures can only be recorded on pending orders"]})

        now = datetime.now(UTC)
        self.cancellation_reason = reason
        self.cancelled_by = CancellationActor.SYSTEM.value
        self.cancelled_at = now
        self.updated_at = now
        self.payment_status = PaymentStatus.FAILED.value
        self.status = OrderStatus.CANCELLED.value

        self.raise_(OrderPaymentFailed(order_id=str(self.id), reason=reason, failed_at=now))
        return True

    # -------------------------------------------------------------------
    # Stock restoration bookkeeping
    # -------------------------------------------------------------------
    def stock_to_restore(self):
        """(variant_id, quantity) pairs still owed back to the catalog."""
        if not self.is_cancelled or self.stock_restored:
            return []
        return [(str(line.variant_id), line.quantity) for line in self.items if line.variant_id]

    def mark_stock_restored(self):
        self.stock_restored = True
        self.updated_at = datetime.now(UTC)
