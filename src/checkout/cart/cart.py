"""Cart aggregate — the line items selected during one shopping session.

The cart is never stored in the checkout repository: it lives inside a
session-scoped CartStore and is replicated to the remote cart collaborator as
a plain list of line-item snapshots. The aggregate only guards the line-item
rules (positive quantities, one line per product/variant pair, non-negative
prices and discounts).
"""

from datetime import UTC, datetime

from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String

from checkout.domain import checkout


def merge_key(product_id, variant_id=None):
    """Composite key under which repeated adds collapse into one line."""
    return (str(product_id), str(variant_id) if variant_id else None)


@checkout.entity(part_of="Cart")
class LineItem:
    """One product (and optional variant) in the cart.

    ``unit_price`` is the price seen when the item was first added; later
    catalog price changes do not touch it.
    """

    product_id = Identifier(required=True)
    variant_id = Identifier()
    product_name = String(required=True, max_length=255)
    sku = String(max_length=50)
    size = String(max_length=20)
    color = String(max_length=50)
    unit_price = Float(required=True, min_value=0.0)
    quantity = Integer(required=True, min_value=1)
    added_at = DateTime()

    @property
    def key(self):
        return merge_key(self.product_id, self.variant_id)

    def snapshot(self) -> dict:
        """Plain dict used for replication and order assembly."""
        return {
            "product_id": str(self.product_id),
            "variant_id": str(self.variant_id) if self.variant_id else None,
            "product_name": self.product_name,
            "sku": self.sku,
            "size": self.size,
            "color": self.color,
            "unit_price": self.unit_price,
            "quantity": self.quantity,
        }


@checkout.aggregate
class Cart:
    session_id = String(max_length=255)
    customer_id = Identifier()
    items = HasMany(LineItem)
    discount_amount = Float(default=0.0, min_value=0.0)
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, session_id=None, customer_id=None):
        now = datetime.now(UTC)
        return cls(
            session_id=session_id,
            customer_id=customer_id,
            created_at=now,
            updated_at=now,
        )

    # -------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------
    def find_line(self, product_id, variant_id=None):
        key = merge_key(product_id, variant_id)
        return next((i for i in self.items if i.key == key), None)

    def line_by_id(self, line_item_id):
        return next((i for i in self.items if str(i.id) == str(line_item_id)), None)

    # -------------------------------------------------------------------
    # Line management
    # -------------------------------------------------------------------
    def add_line(
        self,
        product_id,
        product_name,
        unit_price,
        quantity,
        variant_id=None,
        size=None,
        color=None,
        sku=None,
    ):
        """Add a line, or increase the quantity of the line with the same product/variant."""
        now = datetime.now(UTC)
        existing = self.find_line(product_id, variant_id)

        if existing:
            existing.quantity += quantity
            line = existing
        else:
            line = LineItem(
                product_id=product_id,
                variant_id=variant_id,
                product_name=product_name,
                unit_price=unit_price,
                quantity=quantity,
                size=size,
                color=color,
                sku=sku,
                added_at=now,
            )
            self.add_items(line)

        self.updated_at = now
        return line

    def set_quantity(self, line_item_id, new_quantity):
        """Set a line's quantity. A quantity of zero or less removes the line.

        Returns True when the cart changed.
        """
        line = self.line_by_id(line_item_id)
        if line is None:
            return False
        if new_quantity <= 0:
            return self.remove_line(line_item_id)

        line.quantity = new_quantity
        self.updated_at = datetime.now(UTC)
        return True

    def remove_line(self, line_item_id):
        """Remove a line. Unknown ids are ignored; returns True when a line was removed."""
        line = self.line_by_id(line_item_id)
        if line is None:
            return False

        self.remove_items(line)
        self.updated_at = datetime.now(UTC)
        return True

    def empty(self):
        for line in list(self.items):
            self.remove_items(line)
        self.discount_amount = 0.0
        self.updated_at = datetime.now(UTC)

    def replace_lines(self, snapshots):
        """Replace every line with the given snapshots (used when adopting a remote cart).

        Snapshots sharing a product/variant collapse into one line. Every new
        line is built before the old ones are dropped, so a ValidationError
        leaves the cart as it was.
        """
        now = datetime.now(UTC)
        lines = {}
        for snapshot in snapshots:
            key = merge_key(snapshot["product_id"], snapshot.get("variant_id"))
            if key in lines:
                lines[key].quantity += snapshot["quantity"]
                continue
            lines[key] = LineItem(
                product_id=snapshot["product_id"],
                variant_id=snapshot.get("variant_id"),
                product_name=snapshot["product_name"],
                unit_price=snapshot["unit_price"],
                quantity=snapshot["quantity"],
                size=snapshot.get("size"),
                color=snapshot.get("color"),
                sku=snapshot.get("sku"),
                added_at=now,
            )

        for line in list(self.items):
            self.remove_items(line)
        for line in lines.values():
            self.add_items(line)
        self.updated_at = now

    def apply_discount(self, amount):
        if amount < 0:
            raise ValidationError({"discount_amount": ["Discount cannot be negative"]})
        self.discount_amount = float(amount)
        self.updated_at = datetime.now(UTC)
