"""User accounts and the personal access tokens they authenticate with."""

import hashlib
import hmac
import secrets

from protean.fields import Boolean, DateTime, Identifier, String
from sqlalchemy import UniqueConstraint

from shared import config
from shared.db import utcnow
from storefront.domain import storefront

_HASH_ALGORITHM = "pbkdf2_sha256"


def hash_password(password: str, salt: str | None = None, iterations: int | None = None) -> str:
    salt = salt or secrets.token_hex(16)
    iterations = iterations or config.PASSWORD_HASH_ITERATIONS
    digest = hashlib.pbkdf2_hmac("sha256", password.encode(), salt.encode(), iterations).hex()
    return f"{_HASH_ALGORITHM}${iterations}${salt}${digest}"


def verify_password(password: str, encoded: str) -> bool:
    try:
        algorithm, iterations, salt, _ = encoded.split("$", 3)
    except ValueError:
        return False
    if algorithm != _HASH_ALGORITHM:
        return False
    return hmac.compare_digest(hash_password(password, salt, int(iterations)), encoded)


def hash_token(plain: str) -> str:
    return hashlib.sha256(plain.encode()).hexdigest()


def normalize_email(email: str) -> str:
    return email.strip().lower()


@storefront.aggregate
class User:
    name: String(required=True, max_length=255)
    email: String(required=True, max_length=254)
    password_hash: String(required=True, max_length=255, sanitize=False)
    is_admin: Boolean(default=False)
    created_at: DateTime(default=utcnow)
    updated_at: DateTime(default=utcnow)

    @classmethod
    def register(cls, name: str, email: str, password_hash: str, is_admin: bool = False) -> "User":
        from identity.events import UserRegistered

        now = utcnow()
        user = cls(
            name=name.strip(),
            email=normalize_email(email),
            password_hash=password_hash,
            is_admin=is_admin,
            created_at=now,
            updated_at=now,
        )
        user.raise_(UserRegistered(user_id=user.id, name=user.name, email=user.email, registered_at=now))
        return user

    def check_password(self, password: str) -> bool:
        return verify_password(password, self.password_hash)

    def issue_token(self, name: str = "api") -> tuple["PersonalAccessToken", str]:
        """Create a token for this user. The plain text is only available here."""
        plain = secrets.token_urlsafe(config.TOKEN_BYTES)
        token = PersonalAccessToken(user_id=self.id, name=name, token_hash=hash_token(plain), created_at=utcnow())
        return token, plain

    def to_response(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "is_admin": self.is_admin,
            "created_at": self.created_at,
        }


@storefront.database_model(part_of=User)
class UserModel:
    __table_args__ = (UniqueConstraint("email", name="uq_user_email"),)


@storefront.aggregate
class PersonalAccessToken:
    user_id: Identifier(required=True)
    name: String(required=True, max_length=255)
    token_hash: String(required=True, max_length=64, sanitize=False)
    last_used_at: DateTime()
    created_at: DateTime(default=utcnow)


@storefront.database_model(part_of=PersonalAccessToken)
class PersonalAccessTokenModel:
    __table_args__ = (UniqueConstraint("token_hash", name="uq_personal_access_token_hash"),)
