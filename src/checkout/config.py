"""Checkout configuration — pricing rules, shipping methods, and remote call timeouts.

Values come from environment variables so deployments can tune the pricing
rules without a code change. Every component accepts an explicit
``PricingPolicy``; ``PricingPolicy()`` gives the storefront defaults.
"""

import os
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

DEFAULT_REMOTE_TIMEOUT = 5.0


class ShippingMethod(Enum):
    STANDARD = "standard"
    EXPRESS = "express"
    SAME_DAY = "same_day"


@dataclass(frozen=True)
class PricingPolicy:
    """Pricing rules applied by the cart aggregator.

    Standard shipping is free only when the subtotal is strictly greater than
    ``free_shipping_threshold``. Express and same-day shipping are fixed fees.
    Tax is rounded half-up to ``tax_quantum``.
    """

    free_shipping_threshold: Decimal = Decimal("2999")
    flat_shipping_fee: Decimal = Decimal("99")
    express_shipping_fee: Decimal = Decimal("199")
    same_day_shipping_fee: Decimal = Decimal("499")
    tax_rate: Decimal = Decimal("0.18")
    tax_quantum: Decimal = Decimal("1")
    currency: str = "INR"

    @classmethod
    def from_env(cls, environ=None) -> "PricingPolicy":
        env = os.environ if environ is None else environ
        defaults = cls()
        return cls(
            free_shipping_threshold=Decimal(
                env.get("CHECKOUT_FREE_SHIPPING_THRESHOLD", str(defaults.free_shipping_threshold))
            ),
            flat_shipping_fee=Decimal(env.get("CHECKOUT_FLAT_SHIPPING_FEE", str(defaults.flat_shipping_fee))),
            express_shipping_fee=Decimal(env.get("CHECKOUT_EXPRESS_SHIPPING_FEE", str(defaults.express_shipping_fee))),
            same_day_shipping_fee=Decimal(
                env.get("CHECKOUT_SAME_DAY_SHIPPING_FEE", str(defaults.same_day_shipping_fee))
            ),
            tax_rate=Decimal(env.get("CHECKOUT_TAX_RATE", str(defaults.tax_rate))),
            tax_quantum=Decimal(env.get("CHECKOUT_TAX_QUANTUM", str(defaults.tax_quantum))),
            currency=env.get("CHECKOUT_CURRENCY", defaults.currency),
        )

    def shipping_fee_for(self, method: ShippingMethod, subtotal: Decimal) -> Decimal:
        if method == ShippingMethod.EXPRESS:
            return self.express_shipping_fee
        if method == ShippingMethod.SAME_DAY:
            return self.same_day_shipping_fee
        return Decimal("0") if subtotal > self.free_shipping_threshold else self.flat_shipping_fee


def remote_timeout(environ=None) -> float:
    """Seconds allowed for a single remote cart or order call."""
    env = os.environ if environ is None else environ
    return float(env.get("CHECKOUT_REMOTE_TIMEOUT", DEFAULT_REMOTE_TIMEOUT))
