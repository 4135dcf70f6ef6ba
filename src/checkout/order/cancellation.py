"""Order cancellation — command, handler, and stock restoration."""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from checkout.catalog import get_catalog
from checkout.domain import checkout
from checkout.order.order import CancellationActor, Order

logger = structlog.get_logger(__name__)


def restore_stock(order):
    """Give back the stock of every variant-tracked line of a cancelled order, once."""
    owed = order.stock_to_restore()
    if not owed:
        return

    catalog = get_catalog()
    for variant_id, quantity in owed:
        catalog.restock(variant_id, quantity)
    order.mark_stock_restored()
    logger.info(
        "Stock restored for cancelled order",
        order_id=str(order.id),
        variants=len(owed),
        units=sum(quantity for _, quantity in owed),
    )


@checkout.command(part_of="Order")
class CancelOrder:
    order_id = Identifier(required=True)
    reason = String(max_length=500)
    cancelled_by = String(choices=CancellationActor, default=CancellationActor.CUSTOMER.value)


@checkout.command_handler(part_of=Order)
class CancelOrderHandler:
    @handle(CancelOrder)
    def cancel_order(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        if not order.cancel(reason=command.reason, cancelled_by=command.cancelled_by):
            logger.info("Order already cancelled", order_id=str(command.order_id))
        restore_stock(order)
        repo.add(order)
        return order.status
