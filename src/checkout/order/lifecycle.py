"""Order lifecycle — payment and fulfillment transitions, commands and handler."""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from checkout.domain import checkout
from checkout.order.cancellation import restore_stock
from checkout.order.order import Order


@checkout.command(part_of="Order")
class ConfirmOrder:
    order_id = Identifier(required=True)
    payment_id = String(max_length=255)


@checkout.command(part_of="Order")
class MarkProcessing:
    order_id = Identifier(required=True)


@checkout.command(part_of="Order")
class RecordShipment:
    order_id = Identifier(required=True)
    carrier = String(max_length=100)
    tracking_number = String(max_length=255)
    tracking_url = String(max_length=500)


@checkout.command(part_of="Order")
class RecordDelivery:
    order_id = Identifier(required=True)


@checkout.command(part_of="Order")
class RecordReturn:
    order_id = Identifier(required=True)
    reason = String(max_length=500)


@checkout.command(part_of="Order")
class RecordPaymentFailure:
    order_id = Identifier(required=True)
    reason = String(max_length=500)


@checkout.command_handler(part_of=Order)
class OrderLifecycleHandler:
    @handle(ConfirmOrder)
    def confirm_order(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.confirm(payment_id=command.payment_id)
        repo.add(order)
        return order.status

    @handle(MarkProcessing)
    def mark_processing(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.mark_processing()
        repo.add(order)
        return order.status

    @handle(RecordShipment)
    def record_shipment(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.record_shipment(
            carrier=command.carrier,
            tracking_number=command.tracking_number,
            tracking_url=command.tracking_url,
        )
        repo.add(order)
        return order.status

    @handle(RecordDelivery)
    def record_delivery(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.record_delivery()
        repo.add(order)
        return order.status

    @handle(RecordReturn)
    def record_return(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.record_return(reason=command.reason)
        restore_stock(order)
        repo.add(order)
        return order.status

    @handle(RecordPaymentFailure)
    def record_payment_failure(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.record_payment_failure(reason=command.reason)
        restore_stock(order)
        repo.add(order)
        return order.status
