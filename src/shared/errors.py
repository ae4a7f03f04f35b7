"""Map Protean and application exceptions to error envelopes."""

import traceback

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from shared import responses
from shared.exceptions import (
    AuthenticationError,
    ForbiddenError,
    InvalidOperationError,
    ObjectNotFoundError,
    RateLimitExceeded,
    ValidationError,
)

logger = structlog.get_logger(__name__)


def _message(exc: Exception, default: str) -> str:
    return str(exc.args[0]) if exc.args else default


def _field_messages(messages) -> dict:
    if isinstance(messages, dict):
        return dict(messages)
    if isinstance(messages, str):
        messages = [messages]
    return {"request": list(messages)}


def _validation_messages(exc: RequestValidationError) -> dict[str, list[str]]:
    messages: dict[str, list[str]] = {}
    for error in exc.errors():
        location = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        field = ".".join(location) or "request"
        messages.setdefault(field, []).append(error.get("msg", "Invalid value"))
    return messages


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ObjectNotFoundError)
    async def not_found(request: Request, exc: ObjectNotFoundError):
        return responses.error(_message(exc, "Resource not found"), 404)

    @app.exception_handler(ForbiddenError)
    async def forbidden(request: Request, exc: ForbiddenError):
        return responses.error(exc.message or "Forbidden", 403)

    @app.exception_handler(AuthenticationError)
    async def unauthenticated(request: Request, exc: AuthenticationError):
        return responses.error(exc.message or "Unauthenticated", 401, headers={"WWW-Authenticate": "Bearer"})

    @app.exception_handler(ValidationError)
    async def validation_failed(request: Request, exc: ValidationError):
        return responses.error(getattr(exc, "message", "Validation failed"), 422, errors=_field_messages(exc.messages))

    @app.exception_handler(InvalidOperationError)
    async def invalid_operation(request: Request, exc: InvalidOperationError):
        return responses.error(_message(exc, "Invalid operation"), 422, errors=exc.extra_info or None)

    @app.exception_handler(RequestValidationError)
    async def request_validation_failed(request: Request, exc: RequestValidationError):
        return responses.error("Validation failed", 422, errors=_validation_messages(exc))

    @app.exception_handler(RateLimitExceeded)
    async def rate_limited(request: Request, exc: RateLimitExceeded):
        return responses.error(
            "Too many requests. Please try again later.",
            429,
            errors={"retry_after": exc.retry_after},
            headers={
                "Retry-After": str(exc.retry_after),
                "X-RateLimit-Limit": str(exc.limit),
                "X-RateLimit-Remaining": "0",
            },
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        return responses.error(str(exc.detail), exc.status_code, headers=getattr(exc, "headers", None))

    @app.exception_handler(Exception)
    async def server_error(request: Request, exc: Exception):
        logger.exception("Unhandled error", path=request.url.path, method=request.method)
        return responses.error(
            "Internal server error",
            500,
            debug={
                "exception": type(exc).__name__,
                "detail": str(exc),
                "trace": traceback.format_exception(exc)[-5:],
            },
        )
