"""
Access Tokens

Signed JWTs whose subject is the user ID.

DESIGN DECISION: Tokens are stateless. Nothing is stored server-side,
so logging out is a client concern, and a deleted user's token is
rejected when the user lookup fails rather than by revocation.
"""

from datetime import datetime, timedelta
from typing import Optional
from uuid import UUID

from jose import JWTError, jwt

from expense_tracker.config import AuthSettings, get_settings


class AuthenticationError(Exception):
    """Missing, invalid or expired credentials."""
    pass


class TokenService:
    """Issues and verifies access tokens."""

    def __init__(self, settings: Optional[AuthSettings] = None):
        self._settings = settings or get_settings().auth

    def create_token(self, user_id: UUID, expires_delta: Optional[timedelta] = None) -> str:
        expire = datetime.utcnow() + (
            expires_delta or timedelta(minutes=self._settings.token_expire_minutes)
        )
        to_encode = {
            "sub": str(user_id),
            "exp": expire,
            "iat": datetime.utcnow(),
        }
        return jwt.encode(
            to_encode,
            self._settings.jwt_secret,
            algorithm=self._settings.jwt_algorithm,
        )

    def decode_token(self, token: str) -> UUID:
        """
        Verify a token and return the user ID it was issued for.

        Raises:
            AuthenticationError: If the token is invalid or expired
        """
        if not token:
            raise AuthenticationError("No token provided")
        try:
            payload = jwt.decode(
                token,
                self._settings.jwt_secret,
                algorithms=[self._settings.jwt_algorithm],
            )
        except JWTError:
            raise AuthenticationError("Invalid or expired token")

        try:
            return UUID(payload["sub"])
        except (KeyError, ValueError, TypeError):
            raise AuthenticationError("Invalid or expired token")
