import pytest
from checkout.catalog import reset_catalog, set_catalog
from checkout.catalog.fake_adapter import InMemoryCatalog
from checkout.catalog.port import ProductRef, VariantRef
from checkout.order.submission import reset_order_submitter
from protean.integrations.pytest import DomainFixture


@pytest.fixture(scope="session")
def checkout_bed():
    from checkout.domain import checkout

    bed = DomainFixture(checkout)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(checkout_bed):
    with checkout_bed.domain_context():
        yield

        from protean import current_domain

        for _, provider in current_domain.providers.items():
            provider._data_reset()
        current_domain.event_store.store._data_reset()

    reset_catalog()
    reset_order_submitter()


@pytest.fixture
def tee():
    return ProductRef(id="prod-tee", name="Oversized Tee", price=1999.0, sku="TEE", sizes=("M", "L"))


@pytest.fixture
def tee_medium_black():
    return VariantRef(
        id="var-tee-m-black",
        product_id="prod-tee",
        size="M",
        color="Black",
        sku="TEE-M-BLK",
        stock_quantity=10,
    )


@pytest.fixture
def hoodie():
    return ProductRef(id="prod-hoodie", name="Heavyweight Hoodie", price=1500.0, sku="HOOD")


@pytest.fixture
def catalog(tee, tee_medium_black, hoodie):
    """An in-memory catalog installed as the active one for command handlers."""
    catalog = InMemoryCatalog()
    catalog.add_product(tee, variants=[tee_medium_black])
    catalog.add_product(hoodie)
    set_catalog(catalog)
    return catalog


@pytest.fixture
def address():
    return {
        "name": "Asha Rao",
        "phone": "+91 98450 00000",
        "email": "asha@example.com",
        "address_line": "12 MG Road",
        "city": "Bengaluru",
        "state": "KA",
        "postal_code": "560001",
    }


@pytest.fixture
def place_order(address):
    """Place an order for the medium black tee through PlaceOrder; returns the order id."""
    import json

    from checkout.cart.summary import summarize
    from checkout.order.creation import PlaceOrder
    from protean import current_domain

    def _place(idempotency_key="idem-001", quantity=2):
        lines = [
            {
                "product_id": "prod-tee",
                "variant_id": "var-tee-m-black",
                "product_name": "Oversized Tee",
                "size": "M",
                "color": "Black",
                "unit_price": 1999.0,
                "quantity": quantity,
            }
        ]
        pricing = summarize(lines).as_pricing()
        result = current_domain.process(
            PlaceOrder(
                order_number="KLTZ241019ABCDEF123456",
                idempotency_key=idempotency_key,
                line_items=json.dumps(lines),
                shipping_address=json.dumps(address),
                subtotal=pricing["subtotal"],
                shipping_amount=pricing["shipping_amount"],
                tax_amount=pricing["tax_amount"],
                total_amount=pricing["total_amount"],
            ),
            asynchronous=False,
        )
        return result["order_id"]

    return _place
