"""BDD tests for the order lifecycle."""

from dataclasses import replace
from datetime import UTC, datetime

from checkout.catalog import get_catalog, set_catalog
from checkout.catalog.fake_adapter import InMemoryCatalog
from checkout.order.cancellation import CancelOrder
from checkout.order.fulfillment_events import FulfillmentOrderEventHandler
from checkout.order.lifecycle import ConfirmOrder, MarkProcessing, RecordPaymentFailure, RecordShipment
from checkout.order.order import Order
from protean import current_domain
from protean.exceptions import ValidationError
from pytest_bdd import given, parsers, scenarios, then, when
from shared.events.fulfillment import FulfillmentStatusChanged

scenarios("features/order_lifecycle.feature")


def _process(command):
    return current_domain.process(command, asynchronous=False)


def _order(order_id):
    return current_domain.repository_for(Order).get(order_id)


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(
    parsers.cfparse("a placed order for {qty:d} medium black tees with {stock:d} in stock"),
    target_fixture="order_id",
)
def placed_order(qty, stock, tee, tee_medium_black, place_order):
    catalog = InMemoryCatalog()
    catalog.add_product(tee, variants=[replace(tee_medium_black, stock_quantity=stock)])
    set_catalog(catalog)
    return place_order(quantity=qty)


@given("the order is processing")
def order_is_processing(order_id):
    _process(ConfirmOrder(order_id=order_id, payment_id="pay-bdd"))
    _process(MarkProcessing(order_id=order_id))


@given("the order is shipped")
def order_is_shipped(order_id):
    order_is_processing(order_id)
    _process(RecordShipment(order_id=order_id, carrier="Delhivery", tracking_number="TRK-BDD"))


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when("the order is cancelled")
@when("the order is cancelled again")
def cancel_order(order_id):
    _process(CancelOrder(order_id=order_id, reason="Changed my mind"))


@when("the shopper tries to cancel the order")
def try_cancel_order(order_id, error):
    try:
        _process(CancelOrder(order_id=order_id, reason="Too late"))
    except ValidationError as exc:
        error["exc"] = exc


@when(parsers.cfparse('the fulfillment partner reports "{status}" with tracking "{tracking_number}"'))
def partner_reports_with_tracking(order_id, status, tracking_number):
    FulfillmentOrderEventHandler().on_status_changed(
        FulfillmentStatusChanged(
            order_id=order_id,
            new_status=status,
            occurred_at=datetime.now(UTC),
            carrier="Delhivery",
            tracking_number=tracking_number,
        )
    )


@when(parsers.re(r'the fulfillment partner reports "(?P<status>\w+)"$'))
def partner_reports(order_id, status):
    FulfillmentOrderEventHandler().on_status_changed(
        FulfillmentStatusChanged(order_id=order_id, new_status=status, occurred_at=datetime.now(UTC))
    )


@when("the payment fails")
def payment_fails(order_id):
    _process(RecordPaymentFailure(order_id=order_id, reason="Card declined"))


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the order status is "{status}"'))
def order_status_is(order_id, status):
    assert _order(order_id).status == status


@then(parsers.cfparse('the payment status is "{status}"'))
def payment_status_is(order_id, status):
    assert _order(order_id).payment_status == status


@then(parsers.cfparse('the order tracking number is "{tracking_number}"'))
def tracking_number_is(order_id, tracking_number):
    assert _order(order_id).tracking_number == tracking_number


@then(parsers.cfparse("the medium black tee stock is {stock:d}"))
def tee_stock_is(stock):
    assert get_catalog().stock_of("var-tee-m-black") == stock


@then("the cancellation is rejected")
def cancellation_rejected(error):
    assert isinstance(error["exc"], ValidationError)
