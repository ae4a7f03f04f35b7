"""Central configuration.

Loads environment variables from the ``.env`` file and exposes them as typed
constants. ``PROTEAN_ENV`` selects the overlay, the same variable the domain
uses to pick its ``storefront/domain.toml`` table:

    - "test"        → test database, in-memory cache, fake email channel
    - "development" → file-backed SQLite, in-memory cache, logged email
    - "production"  → Postgres and Redis, events delivered by the Engine

Persistence, brokers and event processing live in ``domain.toml``; this
module holds the settings the web layer and the cache need.
"""

import os

from dotenv import load_dotenv

load_dotenv()

ENV: str = os.getenv("PROTEAN_ENV", "development").lower()

_OVERLAYS = {
    "test": {"CACHE_URL": "memory://"},
    "development": {"CACHE_URL": "memory://"},
    "production": {"CACHE_URL": "redis://localhost:6379/0"},
}


def _setting(name: str) -> str:
    overlay = _OVERLAYS.get(ENV, _OVERLAYS["development"])
    return os.getenv(name, overlay[name])


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


# ── Application ───────────────────────────────────────────
APP_NAME: str = os.getenv("APP_NAME", "Storefront API")
APP_DEBUG: bool = _parse_bool(os.getenv("APP_DEBUG", "true" if ENV == "development" else "false"))
API_VERSION: str = "1.0"

# ── Logging ───────────────────────────────────────────────
_DEFAULT_LOG_LEVELS = {"production": "INFO", "development": "DEBUG", "test": "WARNING"}
LOG_LEVEL: str = os.getenv("LOG_LEVEL", _DEFAULT_LOG_LEVELS.get(ENV, "INFO")).upper()
LOG_DIR: str = os.getenv("LOG_DIR", "logs")
LOG_JSON: bool = _parse_bool(os.getenv("LOG_JSON", "true" if ENV == "production" else "false"))

# ── Cache ─────────────────────────────────────────────────
CACHE_URL: str = _setting("CACHE_URL")
CACHE_PREFIX: str = os.getenv("CACHE_PREFIX", "storefront_cache:")

CACHE_GROUPS: dict[str, dict] = {
    "products": {
        "ttl": int(os.getenv("PRODUCTS_CACHE_TTL", "600")),
        "prefix": "products:",
        "tags": ["products", "api"],
    },
    "search": {
        "ttl": int(os.getenv("SEARCH_CACHE_TTL", "300")),
        "prefix": "search:",
        "tags": ["search", "api"],
    },
    "orders": {
        "ttl": int(os.getenv("ORDERS_CACHE_TTL", "300")),
        "prefix": "orders:",
        "tags": ["orders", "api"],
    },
}

CACHE_TAGS: tuple[str, ...] = ("products", "search", "orders")

# ── Rate Limiting ─────────────────────────────────────────
# "<max requests>,<window minutes>"
RATE_LIMITS: dict[str, str] = {
    "public_browsing": os.getenv("RATE_LIMIT_PUBLIC_BROWSING", "200,1"),
    "search": os.getenv("RATE_LIMIT_SEARCH", "100,1"),
    "authenticated": os.getenv("RATE_LIMIT_AUTHENTICATED", "60,1"),
    "write_operations": os.getenv("RATE_LIMIT_WRITE_OPERATIONS", "30,1"),
    "admin_read": os.getenv("RATE_LIMIT_ADMIN_READ", "100,1"),
    "admin_write": os.getenv("RATE_LIMIT_ADMIN_WRITE", "20,1"),
    "bulk_operations": os.getenv("RATE_LIMIT_BULK_OPERATIONS", "10,1"),
}
RATE_LIMIT_ENABLED: bool = _parse_bool(os.getenv("RATE_LIMIT_ENABLED", "true"))

# ── Notifications ─────────────────────────────────────────
ADMIN_EMAIL: str = os.getenv("ADMIN_EMAIL", "admin@example.com")
EMAIL_CHANNEL: str = os.getenv("EMAIL_CHANNEL", "fake" if ENV == "test" else "log")
NOTIFICATION_MAX_RETRIES: int = int(os.getenv("NOTIFICATION_MAX_RETRIES", "3"))

# ── Auth ──────────────────────────────────────────────────
TOKEN_BYTES: int = int(os.getenv("TOKEN_BYTES", "40"))
PASSWORD_HASH_ITERATIONS: int = int(os.getenv("PASSWORD_HASH_ITERATIONS", "1000" if ENV == "test" else "260000"))

# ── Catalog ───────────────────────────────────────────────
LOW_STOCK_THRESHOLD: int = int(os.getenv("LOW_STOCK_THRESHOLD", "10"))
DEFAULT_PER_PAGE: int = 15
MAX_PER_PAGE: int = 100
