"""Cart aggregator — pure computation of cart totals.

``summarize`` turns a list of line items into a CartSummary. It has no side
effects and performs no I/O, so the cart page, the checkout page and the
order assembler all derive identical numbers from identical lines.

Amounts are computed with ``Decimal``. Tax is rounded half-up to the policy's
quantum (one currency unit by default), and standard shipping is waived only
when the subtotal is strictly above the free-shipping threshold.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from checkout.config import PricingPolicy, ShippingMethod
from checkout.exceptions import ComputationInvariantViolation

ZERO = Decimal("0")


@dataclass(frozen=True)
class CartSummary:
    """Derived totals of a cart. Never stored or mutated on its own."""

    item_count: int = 0
    subtotal: Decimal = ZERO
    shipping_fee: Decimal = ZERO
    tax_amount: Decimal = ZERO
    discount_amount: Decimal = ZERO
    grand_total: Decimal = ZERO
    currency: str = "INR"

    @property
    def is_empty(self) -> bool:
        return self.item_count == 0

    def as_pricing(self) -> dict:
        """Float amounts in the shape stored on an Order."""
        return {
            "subtotal": float(self.subtotal),
            "shipping_amount": float(self.shipping_fee),
            "tax_amount": float(self.tax_amount),
            "discount_amount": float(self.discount_amount),
            "total_amount": float(self.grand_total),
            "currency": self.currency,
        }


def to_money(value) -> Decimal:
    """Convert a price coming from a Float field, an int or a string to Decimal."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def _read(line, name):
    if isinstance(line, dict):
        return line[name]
    return getattr(line, name)


def _ensure_valid(name, value):
    if isinstance(value, Decimal) and not value.is_finite():
        raise ComputationInvariantViolation(name, value)
    if value < 0:
        raise ComputationInvariantViolation(name, value)


def summarize(lines, policy=None, discount_amount=0, shipping_method=ShippingMethod.STANDARD) -> CartSummary:
    """Compute the CartSummary for ``lines``.

    Args:
        lines: LineItem entities, order lines or snapshot dicts; each needs
            ``unit_price`` and ``quantity``.
        policy: Pricing rules. Defaults to ``PricingPolicy()``.
        discount_amount: Flat discount subtracted from the grand total.
        shipping_method: A ShippingMethod or its string value.
    """
    policy = policy or PricingPolicy()
    method = ShippingMethod(shipping_method)
    lines = list(lines)

    item_count = sum(int(_read(line, "quantity")) for line in lines)
    subtotal = sum(
        (to_money(_read(line, "unit_price")) * int(_read(line, "quantity")) for line in lines),
        ZERO,
    )
    _ensure_valid("item_count", item_count)
    _ensure_valid("subtotal", subtotal)

    shipping_fee = policy.shipping_fee_for(method, subtotal) if lines else ZERO
    tax_amount = (subtotal * policy.tax_rate).quantize(policy.tax_quantum, rounding=ROUND_HALF_UP)
    discount = to_money(discount_amount)
    grand_total = subtotal + shipping_fee + tax_amount - discount

    for name, value in (
        ("shipping_fee", shipping_fee),
        ("tax_amount", tax_amount),
        ("discount_amount", discount),
        ("grand_total", grand_total),
    ):
        _ensure_valid(name, value)

    return CartSummary(
        item_count=item_count,
        subtotal=subtotal,
        shipping_fee=shipping_fee,
        tax_amount=tax_amount,
        discount_amount=discount,
        grand_total=grand_total,
        currency=policy.currency,
    )
