"""Checkout domain API package."""

from checkout.api.routes import order_router, webhook_router

__all__ = ["order_router", "webhook_router"]
