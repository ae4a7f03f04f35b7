"""Registration, login, logout and token lookup."""

import structlog
from protean import handle
from protean.exceptions import TransactionError, ValidationError
from protean.fields import Boolean, String
from protean.utils.globals import current_domain
from sqlalchemy.exc import IntegrityError

from identity.user import PersonalAccessToken, User, hash_password, hash_token, normalize_email
from shared.db import utcnow
from shared.exceptions import AuthenticationError
from storefront.domain import storefront

logger = structlog.get_logger(__name__)

EMAIL_TAKEN = "The email has already been taken."


@storefront.command(part_of="User")
class RegisterUser:
    """Create an account. Carries the password hash, never the password."""

    name: String(required=True, max_length=255)
    email: String(required=True, max_length=254)
    password_hash: String(required=True, max_length=255, sanitize=False)
    is_admin: Boolean(default=False)


@storefront.command_handler(part_of=User)
class RegisterUserHandler:
    @handle(RegisterUser)
    def register_user(self, command: RegisterUser) -> dict:
        user = User.register(
            name=command.name,
            email=command.email,
            password_hash=command.password_hash,
            is_admin=command.is_admin,
        )
        current_domain.repository_for(User).add(user)
        token, plain = user.issue_token()
        current_domain.repository_for(PersonalAccessToken).add(token)
        return {"user": user.to_response(), "token": plain}


def find_user_by_email(email: str) -> User | None:
    return current_domain.repository_for(User).query.filter(email=normalize_email(email)).all().first


def email_taken(email: str) -> bool:
    return find_user_by_email(email) is not None


def _is_unique_violation(exc: BaseException) -> bool:
    return isinstance(exc, IntegrityError) or isinstance(exc.__cause__, IntegrityError)


def register(name: str, email: str, password: str, is_admin: bool = False) -> dict:
    """Create an account and return ``{"user", "token"}`` with a fresh plain-text token.

    The lookup catches the common duplicate; the unique index on ``email``
    catches two registrations racing past it.
    """
    email = normalize_email(email)
    if email_taken(email):
        raise ValidationError({"email": [EMAIL_TAKEN]})

    command = RegisterUser(name=name, email=email, password_hash=hash_password(password), is_admin=is_admin)
    try:
        result = current_domain.process(command, asynchronous=False)
    except (IntegrityError, TransactionError) as exc:
        if not _is_unique_violation(exc):
            raise
        logger.warning("Duplicate registration rejected", email=email)
        raise ValidationError({"email": [EMAIL_TAKEN]}) from exc

    logger.info("User registered", user_id=result["user"]["id"])
    return result


def login(email: str, password: str) -> dict:
    user = find_user_by_email(email)
    if user is None or not user.check_password(password):
        logger.warning("Failed login attempt", email=email)
        raise AuthenticationError("Invalid credentials")

    token, plain = user.issue_token()
    current_domain.repository_for(PersonalAccessToken).add(token)

    logger.info("User logged in", user_id=user.id)
    return {"user": user.to_response(), "token": plain}


def logout(token_id: str) -> None:
    """Revoke the token used for the current request."""
    repo = current_domain.repository_for(PersonalAccessToken)
    token = repo.get_or_none(token_id)
    if token is not None:
        repo._dao.delete(token)
        logger.info("User logged out", user_id=token.user_id)


def authenticate_token(plain: str) -> tuple[User, PersonalAccessToken] | None:
    repo = current_domain.repository_for(PersonalAccessToken)
    token = repo.query.filter(token_hash=hash_token(plain)).all().first
    if token is None:
        return None
    user = current_domain.repository_for(User).get_or_none(token.user_id)
    if user is None:
        return None

    token.last_used_at = utcnow()
    repo.add(token)
    return user, token
