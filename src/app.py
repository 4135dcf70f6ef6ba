"""Checkout FastAPI application.

Processes order commands synchronously over HTTP and accepts fulfillment
partner webhooks. Every request runs inside the checkout domain context.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

import structlog
from checkout.domain import checkout
from checkout.exceptions import RemoteUnavailable
from checkout.utils.logging import add_context, clear_context
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from protean.integrations.fastapi import register_exception_handlers

checkout.init()

logger = structlog.get_logger(__name__)

# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Checkout API",
    description="Order submission, order lifecycle, and fulfillment webhooks",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def domain_context_middleware(request: Request, call_next):
    """Push the checkout domain context and bind request details to the log context."""
    add_context(method=request.method, path=request.url.path)
    try:
        with checkout.domain_context():
            return await call_next(request)
    finally:
        clear_context()


register_exception_handlers(app)


@app.exception_handler(RemoteUnavailable)
async def remote_unavailable_handler(request: Request, exc: RemoteUnavailable) -> JSONResponse:
    logger.warning("Collaborator unavailable", collaborator=exc.collaborator, reason=exc.reason)
    return JSONResponse(
        status_code=503,
        content={"detail": str(exc), "error_type": type(exc).__name__},
    )


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from checkout.api import order_router, webhook_router  # noqa: E402

app.include_router(order_router)
app.include_router(webhook_router)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(content={"status": "ok", "domain": checkout.name})
