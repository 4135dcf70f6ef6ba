"""BDD tests for checkout."""

import asyncio

from checkout.exceptions import RemoteUnavailable
from checkout.order.assembler import OrderAssembler
from checkout.order.submission.fake_adapter import FakeOrderSubmitter
from protean.exceptions import ValidationError
from pytest_bdd import given, parsers, scenarios, then, when

scenarios("features/checkout.feature")


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given("the order service is available", target_fixture="submitter")
def order_service_available():
    return FakeOrderSubmitter()


@given("the order service is down", target_fixture="submitter")
def order_service_down():
    submitter = FakeOrderSubmitter()
    submitter.configure(should_succeed=False, failure_reason="503 Service Unavailable")
    return submitter


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
def _checkout(store, submitter, shipping_address, error):
    assembler = OrderAssembler(submitter=submitter)
    try:
        asyncio.run(assembler.checkout(store, shipping_address))
    except (RemoteUnavailable, ValidationError) as exc:
        error["exc"] = exc


@when("the shopper checks out")
def shopper_checks_out(store, submitter, address, error):
    _checkout(store, submitter, address, error)


@when("the shopper checks out without a city or postal code")
def shopper_checks_out_with_partial_address(store, submitter, address, error):
    partial = {key: value for key, value in address.items() if key not in ("city", "postal_code")}
    _checkout(store, submitter, partial, error)


@when("the order service recovers")
def order_service_recovers(submitter):
    submitter.configure(should_succeed=True)


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse("an order is recorded with total {total:d}"))
def order_recorded(submitter, total):
    assert submitter.orders_created == 1
    assert submitter.calls[-1]["total_amount"] == float(total)


@then(parsers.cfparse("exactly {count:d} order is recorded"))
def exactly_n_orders(submitter, count):
    assert submitter.orders_created == count


@then("every attempt used the same idempotency key")
def same_idempotency_key(submitter):
    keys = {call["idempotency_key"] for call in submitter.calls}
    assert len(submitter.calls) > 1
    assert len(keys) == 1


@then("checkout fails because the order service is unavailable")
def checkout_failed(error):
    assert isinstance(error["exc"], RemoteUnavailable)
    assert "503" in str(error["exc"])


@then(parsers.cfparse('checkout is rejected for "{first}" and "{second}"'))
def checkout_rejected(error, first, second):
    assert isinstance(error["exc"], ValidationError)
    messages = error["exc"].messages["shipping_address"]
    assert first in messages
    assert second in messages
