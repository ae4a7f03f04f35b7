"""Exceptions raised by commands and queries and mapped to HTTP responses in ``shared.errors``.

Business-rule failures use Protean's exceptions: ``ValidationError`` carries a
``messages`` dict of ``{field: [message, ...]}``, ``InvalidOperationError``
carries the same dict in ``extra_info``. The classes below cover what the
domain layer has no notion of: callers, permissions and rate limits.
"""

from protean.exceptions import InvalidOperationError, ObjectNotFoundError, ValidationError

__all__ = [
    "AuthenticationError",
    "ForbiddenError",
    "InsufficientStockError",
    "InvalidOperationError",
    "ObjectNotFoundError",
    "RateLimitExceeded",
    "StorefrontError",
    "ValidationError",
]


class InsufficientStockError(ValidationError):
    """One or more order lines ask for more units than the product has."""

    message = "Insufficient stock"

    def __init__(self, shortages: list[dict]):
        self.shortages = shortages
        super().__init__(
            {
                "products": [
                    f"Insufficient stock for product {s['product_id']}: "
                    f"requested {s['requested']}, available {s['available']}"
                    for s in shortages
                ]
            }
        )

    def __reduce__(self):
        return (self.__class__, (self.shortages,))


class StorefrontError(Exception):
    """Base class for errors raised at the edge of the application."""

    def __init__(self, message: str = ""):
        super().__init__(message)

    @property
    def message(self) -> str:
        return self.args[0] if self.args else ""


class ForbiddenError(StorefrontError):
    """The caller is authenticated but may not touch this record."""


class AuthenticationError(StorefrontError):
    """Missing or invalid credentials."""


class RateLimitExceeded(StorefrontError):
    def __init__(self, limit: int, retry_after: int):
        self.limit = limit
        self.retry_after = retry_after
        super().__init__("Rate limit exceeded")
