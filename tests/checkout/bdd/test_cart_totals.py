"""BDD tests for cart totals."""

from decimal import Decimal

from checkout.catalog.port import ProductRef
from protean.exceptions import ValidationError
from pytest_bdd import parsers, scenarios, then, when

scenarios("features/cart_totals.feature")


def product_named(name, price):
    return ProductRef(id=f"prod-{name.lower().replace(' ', '-')}", name=name, price=float(price))


def line_named(store, name):
    return next(line for line in store.lines if line.product_name == name)


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when(parsers.cfparse('the shopper adds {qty:d} of "{name}" priced {price:d}'))
def add_to_cart(store, qty, name, price):
    store.add_item(product_named(name, price), quantity=qty)


@when(parsers.cfparse('the shopper tries to add {qty:d} of "{name}" priced {price:d}'))
def try_add_to_cart(store, qty, name, price, error):
    try:
        store.add_item(product_named(name, price), quantity=qty)
    except ValidationError as exc:
        error["exc"] = exc


@when(parsers.cfparse('the shopper sets the quantity of "{name}" to {qty:d}'))
def set_quantity(store, name, qty):
    store.update_quantity(line_named(store, name).id, qty)


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(
    parsers.cfparse(
        "the cart summary shows {count:d} items, subtotal {subtotal:d}, shipping {shipping:d}, "
        "tax {tax:d} and total {total:d}"
    )
)
def summary_shows(store, count, subtotal, shipping, tax, total):
    summary = store.summary
    assert summary.item_count == count
    assert summary.subtotal == Decimal(subtotal)
    assert summary.shipping_fee == Decimal(shipping)
    assert summary.tax_amount == Decimal(tax)
    assert summary.grand_total == Decimal(total)


@then(parsers.cfparse("the cart shipping fee is {fee:d}"))
def shipping_fee_is(store, fee):
    assert store.summary.shipping_fee == Decimal(fee)


@then("the quantity is rejected")
def quantity_rejected(error):
    assert isinstance(error["exc"], ValidationError)
    assert "quantity" in error["exc"].messages
