"""
Authentication and Authorization Package

Passwords (bcrypt), access tokens (JWT), Google sign-in, and the
admin check.
"""

from expense_tracker.auth.admin import (
    LEGACY_ADMIN_EMAIL,
    AuthorizationError,
    is_admin,
    require_admin,
)
from expense_tracker.auth.google_oauth import (
    GoogleOAuthClient,
    GoogleOAuthError,
    GoogleProfile,
)
from expense_tracker.auth.passwords import hash_password, verify_password
from expense_tracker.auth.tokens import AuthenticationError, TokenService

__all__ = [
    "LEGACY_ADMIN_EMAIL",
    "AuthenticationError",
    "AuthorizationError",
    "GoogleOAuthClient",
    "GoogleOAuthError",
    "GoogleProfile",
    "TokenService",
    "hash_password",
    "is_admin",
    "require_admin",
    "verify_password",
]
