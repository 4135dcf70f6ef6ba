"""Inbound cross-boundary event handler — Checkout reacts to fulfillment notifications.

Each FulfillmentStatusChanged event is translated into the matching Order
command. Events that cannot be applied (unknown status, unknown order, a
transition the order does not allow) are logged and dropped so that one bad
notification never stalls the stream.
"""

import structlog
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain
from protean.utils.mixins import handle
from shared.events.fulfillment import FulfillmentStatusChanged

from checkout.domain import checkout
from checkout.order.cancellation import CancelOrder
from checkout.order.lifecycle import MarkProcessing, RecordDelivery, RecordReturn, RecordShipment
from checkout.order.order import CancellationActor, Order

logger = structlog.get_logger(__name__)

# Register external events so Protean can deserialize them
checkout.register_external_event(FulfillmentStatusChanged, "Fulfillment.FulfillmentStatusChanged.v1")


def command_for(event: FulfillmentStatusChanged):
    """Build the Order command for ``event``, or None when the status is not understood."""
    status = (event.new_status or "").strip().lower()

    if status == "processing":
        return MarkProcessing(order_id=event.order_id)
    if status == "shipped":
        return RecordShipment(
            order_id=event.order_id,
            carrier=event.carrier,
            tracking_number=event.tracking_number,
            tracking_url=event.tracking_url,
        )
    if status == "delivered":
        return RecordDelivery(order_id=event.order_id)
    if status == "returned":
        return RecordReturn(order_id=event.order_id, reason=event.reason)
    if status in ("cancelled", "failed"):
        return CancelOrder(
            order_id=event.order_id,
            reason=event.reason or f"Fulfillment {status}",
            cancelled_by=CancellationActor.FULFILLMENT.value,
        )
    return None


@checkout.event_handler(part_of=Order, stream_category="fulfillment::fulfillment")
class FulfillmentOrderEventHandler:
    """Moves Orders through their lifecycle as the fulfillment partner reports progress."""

    @handle(FulfillmentStatusChanged)
    def on_status_changed(self, event: FulfillmentStatusChanged) -> None:
        command = command_for(event)
        if command is None:
            logger.warning(
                "Dropping fulfillment event with unknown status",
                order_id=str(event.order_id),
                new_status=event.new_status,
            )
            return

        logger.info(
            "Applying fulfillment status to order",
            order_id=str(event.order_id),
            new_status=event.new_status,
        )
        try:
            current_domain.process(command, asynchronous=False)
        except ObjectNotFoundError:
            logger.warning(
                "Dropping fulfillment event for unknown order",
                order_id=str(event.order_id),
                new_status=event.new_status,
            )
        except ValidationError as exc:
            logger.warning(
                "Dropping fulfillment event the order cannot apply",
                order_id=str(event.order_id),
                new_status=event.new_status,
                errors=exc.messages,
            )
