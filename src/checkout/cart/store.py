"""CartStore — the session-scoped source of truth for the active cart.

One store exists per shopping session and is passed explicitly to whatever
needs it. Local mutations are synchronous: the Cart aggregate changes, the
summary is recomputed and the revision is bumped before the replicator is
even asked to mirror the new snapshot. Remote failures therefore can never
undo or block what the shopper just did.
"""

import structlog
from protean.exceptions import ValidationError

from checkout.cart.cart import Cart, merge_key
from checkout.cart.replication import CartReplicator
from checkout.cart.summary import summarize, to_money
from checkout.config import PricingPolicy

logger = structlog.get_logger(__name__)


def _assert_quantity(quantity, allow_non_positive=False):
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise ValidationError({"quantity": ["Quantity must be a whole number"]})
    if quantity < 1 and not allow_non_positive:
        raise ValidationError({"quantity": ["Quantity must be at least 1"]})


def merge_snapshots(*snapshot_lists):
    """Merge line snapshots by (product, variant), adding quantities.

    The first occurrence of a key keeps its position and price snapshot.
    """
    merged = {}
    for snapshots in snapshot_lists:
        for snapshot in snapshots:
            key = merge_key(snapshot["product_id"], snapshot.get("variant_id"))
            if key in merged:
                merged[key]["quantity"] += int(snapshot["quantity"])
            else:
                merged[key] = {**snapshot, "quantity": int(snapshot["quantity"])}
    return list(merged.values())


class CartStore:
    def __init__(self, persistence=None, session_id=None, policy=None, timeout=None):
        self.policy = policy or PricingPolicy()
        self.cart = Cart.create(session_id=session_id)
        self.replicator = CartReplicator(persistence, session_id=session_id, timeout=timeout)
        self.revision = 0
        self.pending_checkout = None
        self._summary = summarize([], self.policy)

    # -------------------------------------------------------------------
    # Read side
    # -------------------------------------------------------------------
    @property
    def session_id(self):
        return self.replicator.session_id

    @property
    def lines(self):
        return list(self.cart.items)

    @property
    def summary(self):
        return self._summary

    @property
    def is_empty(self) -> bool:
        return not self.cart.items

    @property
    def sync_failures(self):
        return list(self.replicator.failures)

    def snapshot(self) -> list[dict]:
        return [line.snapshot() for line in self.cart.items]

    def is_in_cart(self, product_id, variant_id=None) -> bool:
        return self.cart.find_line(product_id, variant_id) is not None

    def get_quantity(self, product_id, variant_id=None) -> int:
        line = self.cart.find_line(product_id, variant_id)
        return line.quantity if line else 0

    # -------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------
    def add_item(self, product, variant=None, quantity=1):
        """Add ``quantity`` of a product (or one of its variants) to the cart.

        The unit price is snapshotted now: the variant's own price when it
        has one, otherwise the product's price.
        """
        _assert_quantity(quantity)

        unit_price = variant.price if variant is not None and variant.price is not None else product.price
        line = self.cart.add_line(
            product_id=product.id,
            product_name=product.name,
            unit_price=unit_price,
            quantity=quantity,
            variant_id=variant.id if variant is not None else None,
            size=variant.size if variant is not None else None,
            color=variant.color if variant is not None else None,
            sku=(variant.sku if variant is not None and variant.sku else product.sku),
        )
        self._changed()
        logger.debug(
            "Item added to cart",
            product_id=str(product.id),
            variant_id=str(variant.id) if variant is not None else None,
            quantity=quantity,
            revision=self.revision,
        )
        return line

    def update_quantity(self, line_item_id, new_quantity) -> bool:
        """Set a line's quantity; zero or less removes it. Unknown ids are a no-op."""
        _assert_quantity(new_quantity, allow_non_positive=True)

        if not self.cart.set_quantity(line_item_id, new_quantity):
            return False
        self._changed()
        return True

    def remove_item(self, line_item_id) -> bool:
        if not self.cart.remove_line(line_item_id):
            return False
        self._changed()
        return True

    def clear(self):
        if self.is_empty and not self.cart.discount_amount:
            return
        self.cart.empty()
        self._changed()

    def remove_ordered(self, ordered_lines):
        """Take ordered quantities out of the cart, keeping whatever was added since.

        ``ordered_lines`` need ``product_id``, ``variant_id`` and ``quantity``.
        The discount went into the order, so it is dropped too.
        """
        for ordered in ordered_lines:
            line = self.cart.find_line(ordered.product_id, ordered.variant_id)
            if line is not None:
                self.cart.set_quantity(line.id, line.quantity - ordered.quantity)
        self.cart.discount_amount = 0.0
        self._changed()

    def apply_discount(self, amount):
        amount = to_money(amount)
        if amount < 0:
            raise ValidationError({"discount_amount": ["Discount cannot be negative"]})
        if amount > summarize(self.cart.items, self.policy).grand_total:
            raise ValidationError({"discount_amount": ["Discount cannot exceed the cart total"]})

        self.cart.apply_discount(float(amount))
        self._changed()

    # -------------------------------------------------------------------
    # Session lifecycle
    # -------------------------------------------------------------------
    async def attach_session(self, session_id):
        """Adopt the remote cart for ``session_id``, folding in the local lines.

        When the remote cart cannot be read or holds lines the cart rejects,
        the local cart is kept as is and the session is still attached so
        later mutations replicate.
        """
        self.replicator.attach(session_id)
        self.cart.session_id = session_id

        remote_lines = await self.replicator.load()
        if remote_lines is None:
            if self.replicator.enabled:
                logger.warning("Keeping local cart; remote cart unavailable", session_id=session_id)
            return

        merged = merge_snapshots(remote_lines, self.snapshot())
        try:
            self.cart.replace_lines(merged)
        except ValidationError as exc:
            self.replicator.record_failure("load_cart", session_id, f"Remote cart rejected: {exc.messages}")
            logger.warning("Keeping local cart; remote cart rejected", session_id=session_id)
            return
        self._changed()
        logger.info(
            "Cart session attached",
            session_id=session_id,
            remote_lines=len(remote_lines),
            merged_lines=len(merged),
        )

    async def sign_out(self):
        """Empty the cart locally and remotely, then stop replicating."""
        session_id = self.session_id
        self.cart.empty()
        self._changed(replicate=False)

        await self.replicator.clear()
        self.replicator.detach()
        self.cart.session_id = None
        logger.info("Cart session detached", session_id=session_id)

    async def flush(self):
        await self.replicator.flush()

    def _changed(self, replicate=True):
        self.revision += 1
        self.pending_checkout = None
        self._summary = self._recompute()
        if replicate:
            self.replicator.schedule(self.snapshot())

    def _recompute(self):
        discount = to_money(self.cart.discount_amount or 0)
        if discount:
            gross = summarize(self.cart.items, self.policy).grand_total
            if discount > gross:
                logger.info("Discount withdrawn; cart total fell below it", discount=str(discount))
                self.cart.discount_amount = 0.0
                discount = to_money(0)
        return summarize(self.cart.items, self.policy, discount_amount=discount)
