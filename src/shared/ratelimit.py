"""Fixed-window rate limiting on the cache's Redis client.

Limits are named in ``config.RATE_LIMITS`` as ``"<max>,<minutes>"``. Admins
get twice the named limit, other authenticated users get 20 more requests.
Requests are counted per user when authenticated, otherwise per client IP.
"""

import time
from dataclasses import dataclass

import redis
import structlog

from shared import config
from shared.cache import get_cache
from shared.exceptions import RateLimitExceeded

logger = structlog.get_logger(__name__)

AUTHENTICATED_BONUS = 20
KEY_PREFIX = "storefront_ratelimit:"


@dataclass(frozen=True)
class Limit:
    max_attempts: int
    window_seconds: int


@dataclass(frozen=True)
class RateLimitResult:
    limit: int
    remaining: int
    retry_after: int


def parse_limit(name: str) -> Limit:
    try:
        raw = config.RATE_LIMITS[name]
    except KeyError:
        raise LookupError(f"Unknown rate limit: {name}") from None
    max_attempts, minutes = raw.split(",")
    return Limit(int(max_attempts), int(float(minutes) * 60))


def resolve_max_attempts(limit: Limit, authenticated: bool, is_admin: bool) -> int:
    if is_admin:
        return limit.max_attempts * 2
    if authenticated:
        return limit.max_attempts + AUTHENTICATED_BONUS
    return limit.max_attempts


def hit(name: str, identity: str, authenticated: bool = False, is_admin: bool = False) -> RateLimitResult:
    """Count one request against limit ``name`` for ``identity``.

    Raises ``RateLimitExceeded`` once the window's budget is spent.
    """
    limit = parse_limit(name)
    max_attempts = resolve_max_attempts(limit, authenticated, is_admin)

    window = int(time.time() // limit.window_seconds)
    key = f"{KEY_PREFIX}{name}:{identity}:{window}"
    client = get_cache().client

    try:
        pipe = client.pipeline()
        pipe.incr(key)
        pipe.expire(key, limit.window_seconds)
        count, _ = pipe.execute()
    except redis.RedisError as exc:
        logger.warning("Rate limiter unavailable, allowing request", limit=name, error=str(exc))
        return RateLimitResult(limit=max_attempts, remaining=max_attempts, retry_after=0)

    retry_after = limit.window_seconds - int(time.time() % limit.window_seconds)
    if count > max_attempts:
        raise RateLimitExceeded(limit=max_attempts, retry_after=retry_after)

    return RateLimitResult(limit=max_attempts, remaining=max_attempts - count, retry_after=retry_after)
