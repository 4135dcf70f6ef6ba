"""Cross-boundary event contract for print-on-demand fulfillment notifications.

The fulfillment partner reports status changes for orders it produces and
ships. The webhook endpoint translates each partner notification into this
event, and the checkout domain consumes it to move the Order through its
lifecycle. It is registered as an external event via
domain.register_external_event() with a matching __type__ string so Protean's
stream deserialization works correctly.
"""

from protean.core.event import BaseEvent
from protean.fields import DateTime, Identifier, String


class FulfillmentStatusChanged(BaseEvent):
    """The fulfillment partner reported a new status for an order.

    ``new_status`` is one of processing, shipped, delivered, returned,
    cancelled or failed.
    """

    __version__ = 1

    order_id = Identifier(required=True)
    new_status = String(required=True, max_length=50)
    occurred_at = DateTime(required=True)
    carrier = String(max_length=100)
    tracking_number = String(max_length=255)
    tracking_url = String(max_length=500)
    reason = String(max_length=500)
