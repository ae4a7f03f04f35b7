"""FastAPI dependencies for authentication, admin checks and rate limiting."""

from dataclasses import dataclass

import structlog
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from identity.account import authenticate_token
from identity.user import PersonalAccessToken, User
from shared import config, ratelimit
from shared.exceptions import AuthenticationError, ForbiddenError

logger = structlog.get_logger(__name__)

_bearer = HTTPBearer(auto_error=False)


@dataclass
class AuthContext:
    user: User
    token: PersonalAccessToken


def optional_auth(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
) -> AuthContext | None:
    if credentials is None:
        return None
    resolved = authenticate_token(credentials.credentials)
    if resolved is None:
        return None
    user, token = resolved
    request.state.user_id = user.id
    structlog.contextvars.bind_contextvars(user_id=user.id)
    return AuthContext(user=user, token=token)


def require_auth(auth: AuthContext | None = Depends(optional_auth)) -> AuthContext:
    if auth is None:
        raise AuthenticationError("Unauthenticated")
    return auth


def current_user(auth: AuthContext = Depends(require_auth)) -> User:
    return auth.user


def require_admin(user: User = Depends(current_user)) -> User:
    if not user.is_admin:
        logger.warning("Admin access denied", user_id=user.id)
        raise ForbiddenError("Admin access required")
    return user


def rate_limited(name: str):
    """Dependency counting the request against the named limit in ``config.RATE_LIMITS``."""

    def dependency(request: Request, auth: AuthContext | None = Depends(optional_auth)) -> None:
        if not config.RATE_LIMIT_ENABLED:
            return

        if auth is not None:
            identity = f"user:{auth.user.id}"
        else:
            identity = f"ip:{request.client.host if request.client else 'unknown'}"

        result = ratelimit.hit(
            name,
            identity,
            authenticated=auth is not None,
            is_admin=auth is not None and auth.user.is_admin,
        )
        request.state.rate_limit = result

    return dependency
