"""Storefront FastAPI application.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload

PROTEAN_ENV selects the configuration overlay in storefront/domain.toml:
    - "test"       → test database, in-memory cache, event_processing = "sync"
    - "production" → event_processing = "async" (handlers run in src/server.py)
"""

import time
from uuid import uuid4

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

import bootstrap
from shared import config, responses
from shared.errors import register_exception_handlers

storefront = bootstrap.init()

logger = structlog.get_logger(__name__)

# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title=config.APP_NAME,
    description="E-commerce catalog and order API",
    version=config.API_VERSION,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def request_context_middleware(request: Request, call_next):
    """Bind a request id to the log context, log the request and decorate the response."""
    structlog.contextvars.clear_contextvars()
    request_id = request.headers.get("X-Request-ID") or uuid4().hex
    structlog.contextvars.bind_contextvars(request_id=request_id)

    started = time.perf_counter()
    with storefront.domain_context():
        response = await call_next(request)
    duration_ms = round((time.perf_counter() - started) * 1000, 2)

    if response.status_code == 429:
        logger.warning(
            "Rate limit exceeded",
            ip=request.client.host if request.client else None,
            user_id=getattr(request.state, "user_id", None),
            route=request.url.path,
            method=request.method,
            user_agent=request.headers.get("user-agent"),
        )

    rate_limit = getattr(request.state, "rate_limit", None)
    if rate_limit is not None:
        response.headers["X-RateLimit-Limit"] = str(rate_limit.limit)
        response.headers["X-RateLimit-Remaining"] = str(rate_limit.remaining)
    response.headers["X-API-Version"] = config.API_VERSION
    response.headers["X-Request-ID"] = request_id

    logger.debug(
        "Request handled",
        method=request.method,
        path=request.url.path,
        status_code=response.status_code,
        duration_ms=duration_ms,
    )
    return response


register_exception_handlers(app)

# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from admin.api import router as admin_cache_router  # noqa: E402
from catalog.api import admin_product_router, product_router  # noqa: E402
from identity.api import router as identity_router  # noqa: E402
from ordering.api import admin_order_router, my_orders_router, order_router  # noqa: E402

app.include_router(identity_router)
app.include_router(product_router)
app.include_router(my_orders_router)
app.include_router(order_router)
app.include_router(admin_order_router)
app.include_router(admin_product_router)
app.include_router(admin_cache_router)


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------
@app.get("/health")
def health():
    return responses.success(
        {
            "status": "ok",
            "environment": config.ENV,
            "version": config.API_VERSION,
            "event_processing": storefront.config["event_processing"],
        },
        "Service is healthy",
    )
