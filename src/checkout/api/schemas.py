"""Pydantic request/response schemas for the Checkout API.

These are external contracts (anti-corruption layer) — separate from
internal Protean commands.
"""

from typing import Any, Literal

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class AddressSchema(BaseModel):
    name: str
    phone: str
    email: str | None = None
    address_line: str
    city: str
    state: str | None = None
    postal_code: str
    country: str = "IN"


class LineItemSchema(BaseModel):
    product_id: str
    variant_id: str | None = None
    product_name: str
    sku: str | None = None
    size: str | None = None
    color: str | None = None
    unit_price: float = Field(ge=0)
    quantity: int = Field(ge=1)


# ---------------------------------------------------------------------------
# Order Request Schemas
# ---------------------------------------------------------------------------
class SubmitOrderRequest(BaseModel):
    order_number: str
    idempotency_key: str | None = None
    customer_id: str | None = None
    line_items: list[LineItemSchema] = Field(min_length=1)
    shipping_address: AddressSchema
    billing_address: AddressSchema | None = None
    shipping_method: Literal["standard", "express", "same_day"] = "standard"
    subtotal: float = Field(ge=0)
    tax_amount: float = Field(ge=0, default=0.0)
    shipping_amount: float = Field(ge=0, default=0.0)
    discount_amount: float = Field(ge=0, default=0.0)
    total_amount: float = Field(ge=0)
    currency: str = "INR"

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "order_number": "KLTZ2410193F9A0C6E12B4",
                    "idempotency_key": "9b2f3c7e1d5a4f6b8c0d2e4f6a8b0c1d",
                    "line_items": [
                        {
                            "product_id": "prod-001",
                            "variant_id": "var-001-m-black",
                            "product_name": "Oversized Tee",
                            "size": "M",
                            "color": "Black",
                            "unit_price": 1999.0,
                            "quantity": 1,
                        }
                    ],
                    "shipping_address": {
                        "name": "Asha Rao",
                        "phone": "+91 98450 00000",
                        "address_line": "12 MG Road",
                        "city": "Bengaluru",
                        "state": "KA",
                        "postal_code": "560001",
                    },
                    "shipping_method": "standard",
                    "subtotal": 1999.0,
                    "tax_amount": 360.0,
                    "shipping_amount": 99.0,
                    "total_amount": 2458.0,
                    "currency": "INR",
                }
            ]
        }
    }


class CancelOrderRequest(BaseModel):
    reason: str | None = None
    cancelled_by: Literal["customer", "admin", "system"] = "customer"


class PaymentUpdateRequest(BaseModel):
    status: Literal["paid", "failed"]
    payment_id: str | None = None
    reason: str | None = None


class FulfillmentWebhookRequest(BaseModel):
    """Print-on-demand partner notification: ``type`` plus a type-specific ``data`` body."""

    type: str
    data: dict[str, Any] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------
class SubmissionReceiptResponse(BaseModel):
    order_id: str
    order_number: str


class StatusResponse(BaseModel):
    status: str = "ok"


class OrderLineResponse(LineItemSchema):
    line_total: float


class PricingResponse(BaseModel):
    subtotal: float
    shipping_amount: float
    tax_amount: float
    discount_amount: float
    total_amount: float
    currency: str


class OrderResponse(BaseModel):
    order_id: str
    order_number: str
    customer_id: str | None = None
    status: str
    payment_status: str
    shipping_method: str
    items: list[OrderLineResponse]
    shipping_address: AddressSchema
    billing_address: AddressSchema
    pricing: PricingResponse
    carrier: str | None = None
    tracking_number: str | None = None
    tracking_url: str | None = None
    cancellation_reason: str | None = None
    created_at: str | None = None
    order_date: str | None = None
    shipped_at: str | None = None
    delivered_at: str | None = None
    cancelled_at: str | None = None
