"""Shared BDD fixtures and step definitions for the Checkout domain."""

import pytest
from checkout.cart.store import CartStore
from checkout.catalog.port import ProductRef
from pytest_bdd import given, parsers, then


def _product_named(name, price):
    return ProductRef(id=f"prod-{name.lower().replace(' ', '-')}", name=name, price=float(price))


def _line_named(store, name):
    return next((line for line in store.lines if line.product_name == name), None)


# ---------------------------------------------------------------------------
# Scalar fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def error():
    """Container for captured errors."""
    return {"exc": None}


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given("an empty cart", target_fixture="store")
def empty_cart():
    return CartStore()


@given(parsers.cfparse('a cart holding {qty:d} of "{name}" priced {price:d}'), target_fixture="store")
def cart_holding(qty, name, price):
    store = CartStore()
    store.add_item(_product_named(name, price), quantity=qty)
    return store


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse("the cart has {count:d} lines"))
def cart_has_n_lines(store, count):
    assert len(store.lines) == count


@then(parsers.cfparse('the cart holds {qty:d} of "{name}"'))
def cart_holds(store, qty, name):
    line = _line_named(store, name)
    assert line is not None
    assert line.quantity == qty
