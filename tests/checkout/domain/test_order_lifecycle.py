"""Domain tests for the Order aggregate state machine."""

import pytest
from checkout.order.events import (
    OrderCancelled,
    OrderConfirmed,
    OrderPaymentFailed,
    OrderPlaced,
    OrderReturned,
    OrderShipped,
)
from checkout.order.order import Order, OrderStatus, PaymentStatus
from protean.exceptions import ValidationError


def _make_order(address, lines=None):
    return Order.place(
        order_number="KLTZ241019ABCDEF123456",
        idempotency_key="key-001",
        lines=lines
        or [
            {
                "product_id": "prod-tee",
                "variant_id": "var-tee-m-black",
                "product_name": "Oversized Tee",
                "unit_price": 1999.0,
                "quantity": 2,
            },
            {
                "product_id": "prod-hoodie",
                "product_name": "Heavyweight Hoodie",
                "unit_price": 1500.0,
                "quantity": 1,
            },
        ],
        shipping_address=address,
        pricing={
            "subtotal": 5498.0,
            "shipping_amount": 0.0,
            "tax_amount": 990.0,
            "discount_amount": 0.0,
            "total_amount": 6488.0,
            "currency": "INR",
        },
    )


def _advance(order, target):
    path = [
        (OrderStatus.CONFIRMED, lambda: order.confirm(payment_id="pay-001")),
        (OrderStatus.PROCESSING, order.mark_processing),
        (OrderStatus.SHIPPED, lambda: order.record_shipment(carrier="Delhivery", tracking_number="TRK-1")),
        (OrderStatus.DELIVERED, order.record_delivery),
    ]
    for status, step in path:
        if OrderStatus(order.status) == target:
            return order
        step()
        assert order.status == status.value
    return order


class TestPlaceOrder:
    def test_new_order_is_pending(self, address):
        order = _make_order(address)

        assert order.status == OrderStatus.PENDING.value
        assert order.payment_status == PaymentStatus.PENDING.value
        assert order.created_at is not None
        assert order.stock_restored is False

    def test_lines_are_frozen_with_totals(self, address):
        order = _make_order(address)

        tee = next(line for line in order.items if line.product_id == "prod-tee")
        assert tee.unit_price == 1999.0
        assert tee.quantity == 2
        assert tee.line_total == 3998.0

    def test_billing_defaults_to_shipping(self, address):
        order = _make_order(address)

        assert order.billing_address.as_dict() == order.shipping_address.as_dict()
        assert order.shipping_address.country == "IN"

    def test_raises_order_placed(self, address):
        order = _make_order(address)

        assert len(order._events) == 1
        event = order._events[0]
        assert isinstance(event, OrderPlaced)
        assert event.item_count == 3
        assert event.total_amount == 6488.0

    def test_order_without_lines_rejected(self, address):
        with pytest.raises(ValidationError) as exc:
            Order.place(
                order_number="KLTZ241019ABCDEF123456",
                lines=[],
                shipping_address=address,
                pricing={"subtotal": 0.0, "total_amount": 0.0},
            )

        assert "line_items" in exc.value.messages


class TestForwardTransitions:
    def test_confirm_records_payment_and_order_date(self, address):
        order = _make_order(address)
        order._events.clear()

        order.confirm(payment_id="pay-001")

        assert order.status == OrderStatus.CONFIRMED.value
        assert order.payment_status == PaymentStatus.PAID.value
        assert order.payment_id == "pay-001"
        assert order.order_date is not None
        assert isinstance(order._events[0], OrderConfirmed)

    def test_full_happy_path(self, address):
        order = _advance(_make_order(address), OrderStatus.DELIVERED)

        assert order.status == OrderStatus.DELIVERED.value
        assert order.shipped_at is not None
        assert order.delivered_at is not None
        assert order.tracking_number == "TRK-1"

    def test_shipment_event_carries_tracking(self, address):
        order = _advance(_make_order(address), OrderStatus.PROCESSING)
        order._events.clear()

        order.record_shipment(carrier="Delhivery", tracking_number="TRK-9", tracking_url="https://t.example/TRK-9")

        event = order._events[0]
        assert isinstance(event, OrderShipped)
        assert event.tracking_url == "https://t.example/TRK-9"

    @pytest.mark.parametrize(
        "step",
        ["mark_processing", "record_shipment", "record_delivery"],
    )
    def test_cannot_skip_states(self, address, step):
        order = _make_order(address)

        with pytest.raises(ValidationError) as exc:
            getattr(order, step)()

        assert "status" in exc.value.messages

    def test_delivered_is_terminal(self, address):
        order = _advance(_make_order(address), OrderStatus.DELIVERED)

        with pytest.raises(ValidationError):
            order.cancel()
        with pytest.raises(ValidationError):
            order.record_return()


class TestCancel:
    @pytest.mark.parametrize(
        "state",
        [OrderStatus.PENDING, OrderStatus.CONFIRMED, OrderStatus.PROCESSING],
    )
    def test_cancellable_states(self, address, state):
        order = _advance(_make_order(address), state)
        order._events.clear()

        assert order.cancel(reason="Changed my mind") is True

        assert order.status == OrderStatus.CANCELLED.value
        assert order.cancelled_at is not None
        assert order.cancellation_reason == "Changed my mind"
        event = order._events[0]
        assert isinstance(event, OrderCancelled)
        assert event.previous_status == state.value

    def test_cancel_twice_is_a_no_op(self, address):
        order = _make_order(address)
        order.cancel()
        cancelled_at = order.cancelled_at
        order._events.clear()

        assert order.cancel() is False

        assert order.cancelled_at == cancelled_at
        assert order._events == []

    def test_shipped_order_cannot_be_cancelled(self, address):
        order = _advance(_make_order(address), OrderStatus.SHIPPED)

        with pytest.raises(ValidationError):
            order.cancel()

        assert order.status == OrderStatus.SHIPPED.value


class TestReturn:
    def test_return_cancels_and_refunds(self, address):
        order = _advance(_make_order(address), OrderStatus.SHIPPED)
        order._events.clear()

        order.record_return(reason="Wrong size")

        assert order.status == OrderStatus.CANCELLED.value
        assert order.payment_status == PaymentStatus.REFUNDED.value
        assert isinstance(order._events[0], OrderReturned)

    def test_only_shipped_orders_can_be_returned(self, address):
        order = _advance(_make_order(address), OrderStatus.PROCESSING)

        with pytest.raises(ValidationError):
            order.record_return()


class TestPaymentFailure:
    def test_pending_order_cancelled_with_failed_payment(self, address):
        order = _make_order(address)
        order._events.clear()

        assert order.record_payment_failure(reason="Card declined") is True

        assert order.status == OrderStatus.CANCELLED.value
        assert order.payment_status == PaymentStatus.FAILED.value
        assert order.cancelled_at is not None
        assert isinstance(order._events[0], OrderPaymentFailed)

    def test_confirmed_order_rejects_payment_failure(self, address):
        order = _advance(_make_order(address), OrderStatus.CONFIRMED)

        with pytest.raises(ValidationError):
            order.record_payment_failure()


class TestStockToRestore:
    def test_nothing_owed_while_active(self, address):
        assert _make_order(address).stock_to_restore() == []

    def test_only_variant_tracked_lines_are_owed(self, address):
        order = _make_order(address)
        order.cancel()

        assert order.stock_to_restore() == [("var-tee-m-black", 2)]

    def test_nothing_owed_once_restored(self, address):
        order = _make_order(address)
        order.cancel()
        order.mark_stock_restored()

        assert order.stock_to_restore() == []
