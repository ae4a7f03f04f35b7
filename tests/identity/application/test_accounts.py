"""Tests for registration, login, logout and bearer token lookup."""

import pytest
from protean import current_domain

from identity import account
from identity.user import PersonalAccessToken, User, hash_password, verify_password
from shared.exceptions import AuthenticationError, ValidationError


def _users():
    return current_domain.repository_for(User).query.all().items


class TestPasswords:
    def test_hash_and_verify(self):
        hashed = hash_password("password123")

        assert hashed != "password123"
        assert verify_password("password123", hashed)
        assert not verify_password("wrong-password", hashed)


class TestRegister:
    def test_creates_user_and_token(self):
        result = account.register("Jane", "Jane@Example.com", "password123")

        assert result["user"]["email"] == "jane@example.com"
        assert result["user"]["is_admin"] is False
        assert account.authenticate_token(result["token"])[0].id == result["user"]["id"]

    def test_tokens_are_stored_hashed(self):
        token = account.register("Jane", "jane@example.com", "password123")["token"]

        stored = current_domain.repository_for(PersonalAccessToken).query.all().items
        assert len(stored) == 1
        assert stored[0].token_hash != token

    def test_duplicate_email_rejected(self):
        account.register("Jane", "jane@example.com", "password123")

        with pytest.raises(ValidationError) as exc:
            account.register("Other Jane", "JANE@example.com", "password123")

        assert exc.value.messages == {"email": ["The email has already been taken."]}
        assert len(_users()) == 1

    def test_concurrent_duplicate_hits_unique_index(self, monkeypatch):
        account.register("Jane", "jane@example.com", "password123")
        # Second request read the table before the first one committed
        monkeypatch.setattr(account, "email_taken", lambda email: False)

        with pytest.raises(ValidationError) as exc:
            account.register("Other Jane", "jane@example.com", "password123")

        assert exc.value.messages == {"email": ["The email has already been taken."]}
        assert len(_users()) == 1

    def test_admin_flag(self):
        result = account.register("Boss", "boss@example.com", "password123", is_admin=True)

        assert result["user"]["is_admin"] is True


class TestLogin:
    def test_issues_new_token(self):
        first = account.register("Jane", "jane@example.com", "password123")["token"]

        result = account.login("jane@example.com", "password123")

        assert result["token"] != first
        assert account.authenticate_token(result["token"])[0].id == result["user"]["id"]

    def test_wrong_password(self):
        account.register("Jane", "jane@example.com", "password123")
        with pytest.raises(AuthenticationError):
            account.login("jane@example.com", "nope-nope")

    def test_unknown_email(self):
        with pytest.raises(AuthenticationError):
            account.login("ghost@example.com", "password123")


class TestLogout:
    def test_revokes_only_current_token(self):
        first = account.register("Jane", "jane@example.com", "password123")["token"]
        second = account.login("jane@example.com", "password123")["token"]

        _, token = account.authenticate_token(first)
        account.logout(token.id)

        assert account.authenticate_token(first) is None
        assert account.authenticate_token(second) is not None

    def test_unknown_token(self):
        assert account.authenticate_token("not-a-token") is None

    def test_authenticate_records_last_use(self):
        token = account.register("Jane", "jane@example.com", "password123")["token"]

        _, stored = account.authenticate_token(token)

        assert stored.last_used_at is not None
