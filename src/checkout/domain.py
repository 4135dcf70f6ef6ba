"""Checkout bounded context — shopping cart, order totals, and order lifecycle.

Owns the session-scoped cart (local-first, with best-effort replication to a
remote cart), the pure computation of cart totals, the assembly of an immutable
order submission at checkout, and the order status lifecycle driven by
fulfillment events.
"""

from protean.domain import Domain

from checkout.utils.logging import configure_logging, get_logger

# Configure logging for the application
configure_logging()

logger = get_logger(__name__)

# Domain Composition Root
checkout = Domain(name="checkout")
