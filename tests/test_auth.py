"""Tests for passwords, tokens and the admin check."""

import pytest
from datetime import timedelta
from uuid import uuid4

from expense_tracker.auth import (
    LEGACY_ADMIN_EMAIL,
    AuthenticationError,
    AuthorizationError,
    TokenService,
    hash_password,
    is_admin,
    require_admin,
    verify_password,
)
from expense_tracker.config import AuthSettings
from expense_tracker.models.expense import User


def _user(email="bob@example.com", admin=False):
    return User(name="Bob", email=email, is_admin=admin)


class TestIsAdmin:
    """Tests for the admin predicate, including the legacy email shim."""

    def test_flag(self):
        assert is_admin(_user(admin=True)) is True

    def test_legacy_email_without_flag(self):
        assert is_admin(_user(email=LEGACY_ADMIN_EMAIL)) is True

    def test_legacy_email_any_case(self):
        assert is_admin(_user(email="AdminTrust@Email.com")) is True

    def test_regular_user(self):
        assert is_admin(_user()) is False

    def test_none(self):
        assert is_admin(None) is False

    def test_require_admin(self):
        admin = _user(admin=True)
        assert require_admin(admin) is admin
        with pytest.raises(AuthorizationError, match="Admin access required"):
            require_admin(_user())


class TestPasswords:
    def test_round_trip(self):
        hashed = hash_password("secret123")
        assert hashed != "secret123"
        assert verify_password("secret123", hashed) is True
        assert verify_password("wrong", hashed) is False

    def test_missing_hash_never_matches(self):
        """OAuth-only accounts have no password."""
        assert verify_password("secret123", None) is False

    def test_malformed_hash_is_a_mismatch(self):
        assert verify_password("secret123", "not-a-bcrypt-hash") is False


class TestTokens:
    def setup_method(self):
        self.tokens = TokenService(AuthSettings(jwt_secret="test-secret-value"))

    def test_round_trip(self):
        user_id = uuid4()
        token = self.tokens.create_token(user_id)
        assert self.tokens.decode_token(token) == user_id

    def test_expired(self):
        token = self.tokens.create_token(uuid4(), expires_delta=timedelta(seconds=-1))
        with pytest.raises(AuthenticationError, match="Invalid or expired token"):
            self.tokens.decode_token(token)

    def test_wrong_secret(self):
        other = TokenService(AuthSettings(jwt_secret="another-secret"))
        with pytest.raises(AuthenticationError):
            self.tokens.decode_token(other.create_token(uuid4()))

    def test_garbage(self):
        with pytest.raises(AuthenticationError):
            self.tokens.decode_token("not.a.token")

    def test_empty(self):
        with pytest.raises(AuthenticationError, match="No token provided"):
            self.tokens.decode_token("")
