"""FastAPI routes for the Checkout domain — orders, payments and fulfillment webhooks."""

from datetime import UTC, datetime
from decimal import Decimal

import structlog
from fastapi import APIRouter, HTTPException
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain
from shared.events.fulfillment import FulfillmentStatusChanged

from checkout.api.schemas import (
    CancelOrderRequest,
    FulfillmentWebhookRequest,
    OrderResponse,
    PaymentUpdateRequest,
    StatusResponse,
    SubmissionReceiptResponse,
    SubmitOrderRequest,
)
from checkout.cart.summary import summarize
from checkout.config import PricingPolicy
from checkout.order.cancellation import CancelOrder
from checkout.order.fulfillment_events import FulfillmentOrderEventHandler
from checkout.order.lifecycle import ConfirmOrder, RecordPaymentFailure
from checkout.order.order import Order
from checkout.order.submission.repository_adapter import build_place_order

logger = structlog.get_logger(__name__)

# Partner notification types and the order status each one reports
_WEBHOOK_STATUSES = {
    "package_shipped": "shipped",
    "package_returned": "returned",
    "order_failed": "failed",
}

_TOTAL_TOLERANCE = Decimal("0.01")


def verify_totals(payload: dict, policy: PricingPolicy | None = None) -> None:
    """Reject a submission whose totals differ from what its lines add up to."""
    policy = policy or PricingPolicy.from_env()
    shipping_method = payload.get("shipping_method", "standard")
    discount = Decimal(str(payload.get("discount_amount") or 0))

    gross = summarize(payload["line_items"], policy, shipping_method=shipping_method).grand_total
    if discount > gross:
        raise ValidationError({"discount_amount": [f"Discount {discount} exceeds the order total {gross}"]})

    summary = summarize(payload["line_items"], policy, discount_amount=discount, shipping_method=shipping_method)
    expected = {
        "subtotal": summary.subtotal,
        "shipping_amount": summary.shipping_fee,
        "tax_amount": summary.tax_amount,
        "total_amount": summary.grand_total,
    }
    errors = {
        name: [f"Expected {value}, got {payload[name]}"]
        for name, value in expected.items()
        if abs(Decimal(str(payload[name])) - value) > _TOTAL_TOLERANCE
    }
    if errors:
        raise ValidationError(errors)


def _mapping(value) -> dict:
    return value if isinstance(value, dict) else {}


def fulfillment_event_from_webhook(body: FulfillmentWebhookRequest) -> FulfillmentStatusChanged | None:
    """Translate a partner webhook into a FulfillmentStatusChanged event, if it reports one.

    Returns None for notifications that carry no usable status change,
    malformed ones included.
    """
    data = body.data
    if body.type == "order_status_changed":
        new_status = data.get("status")
    else:
        new_status = _WEBHOOK_STATUSES.get(body.type)

    order = _mapping(data.get("order"))
    order_id = order.get("external_id") or order.get("id")
    if not isinstance(new_status, str) or not new_status or not isinstance(order_id, (str, int)) or not order_id:
        return None

    shipment = _mapping(data.get("shipment"))
    try:
        return FulfillmentStatusChanged(
            order_id=str(order_id),
            new_status=new_status,
            occurred_at=datetime.now(UTC),
            carrier=shipment.get("carrier"),
            tracking_number=shipment.get("tracking_number"),
            tracking_url=shipment.get("tracking_url"),
            reason=data.get("reason"),
        )
    except ValidationError as exc:
        logger.warning(
            "Malformed fulfillment webhook",
            webhook_type=body.type,
            order_id=str(order_id),
            errors=exc.messages,
        )
        return None


def _process(command):
    try:
        return current_domain.process(command, asynchronous=False)
    except ObjectNotFoundError as exc:
        raise HTTPException(status_code=404, detail=f"Order {command.order_id} not found") from exc


def _iso(value):
    return value.isoformat() if value else None


def _order_response(order: Order) -> OrderResponse:
    return OrderResponse(
        order_id=str(order.id),
        order_number=order.order_number,
        customer_id=str(order.customer_id) if order.customer_id else None,
        status=order.status,
        payment_status=order.payment_status,
        shipping_method=order.shipping_method,
        items=[
            {
                "product_id": str(line.product_id),
                "variant_id": str(line.variant_id) if line.variant_id else None,
                "product_name": line.product_name,
                "sku": line.sku,
                "size": line.size,
                "color": line.color,
                "unit_price": line.unit_price,
                "quantity": line.quantity,
                "line_total": line.line_total,
            }
            for line in order.items
        ],
        shipping_address=order.shipping_address.as_dict(),
        billing_address=order.billing_address.as_dict(),
        pricing={
            "subtotal": order.pricing.subtotal,
            "shipping_amount": order.pricing.shipping_amount,
            "tax_amount": order.pricing.tax_amount,
            "discount_amount": order.pricing.discount_amount,
            "total_amount": order.pricing.total_amount,
            "currency": order.pricing.currency,
        },
        carrier=order.carrier,
        tracking_number=order.tracking_number,
        tracking_url=order.tracking_url,
        cancellation_reason=order.cancellation_reason,
        created_at=_iso(order.created_at),
        order_date=_iso(order.order_date),
        shipped_at=_iso(order.shipped_at),
        delivered_at=_iso(order.delivered_at),
        cancelled_at=_iso(order.cancelled_at),
    )


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("", status_code=201, response_model=SubmissionReceiptResponse)
async def submit_order(body: SubmitOrderRequest) -> SubmissionReceiptResponse:
    payload = body.model_dump()
    verify_totals(payload)
    result = current_domain.process(build_place_order(payload), asynchronous=False)
    return SubmissionReceiptResponse(**result)


@order_router.get("/{order_id}", response_model=OrderResponse)
async def get_order(order_id: str) -> OrderResponse:
    try:
        order = current_domain.repository_for(Order).get(order_id)
    except ObjectNotFoundError as exc:
        raise HTTPException(status_code=404, detail=f"Order {order_id} not found") from exc
    return _order_response(order)


@order_router.post("/{order_id}/cancel", response_model=StatusResponse)
async def cancel_order(order_id: str, body: CancelOrderRequest) -> StatusResponse:
    command = CancelOrder(
        order_id=order_id,
        reason=body.reason,
        cancelled_by=body.cancelled_by,
    )
    status = _process(command)
    return StatusResponse(status=status)


@order_router.post("/{order_id}/payment", response_model=StatusResponse)
async def update_payment(order_id: str, body: PaymentUpdateRequest) -> StatusResponse:
    """Apply the payment provider's verdict: paid confirms the order, failed cancels it."""
    if body.status == "paid":
        command = ConfirmOrder(order_id=order_id, payment_id=body.payment_id)
    else:
        command = RecordPaymentFailure(order_id=order_id, reason=body.reason)
    status = _process(command)
    return StatusResponse(status=status)


# ---------------------------------------------------------------------------
# Webhook Router
# ---------------------------------------------------------------------------
webhook_router = APIRouter(prefix="/webhooks", tags=["webhooks"])


@webhook_router.post("/fulfillment", response_model=StatusResponse)
async def fulfillment_webhook(body: FulfillmentWebhookRequest) -> StatusResponse:
    """Acknowledge every partner notification; only status changes are applied."""
    event = fulfillment_event_from_webhook(body)
    if event is None:
        logger.info("Ignoring fulfillment webhook", webhook_type=body.type)
        return StatusResponse(status="ignored")

    FulfillmentOrderEventHandler().on_status_changed(event)
    return StatusResponse(status="processed")
