"""
FastAPI dependencies shared by the routers.

The components live on `app.state`, so each request reaches the same
services without any module-level globals.
"""

from typing import Optional
from uuid import UUID

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from expense_tracker.audit import create_correlation_id
from expense_tracker.auth import AuthenticationError, require_admin
from expense_tracker.models.expense import User
from expense_tracker.orchestrator import AppComponents


# auto_error=False so a missing header becomes our own 401, not FastAPI's 403
bearer_scheme = HTTPBearer(auto_error=False)


def get_components(request: Request) -> AppComponents:
    return request.app.state.components


def get_correlation_id() -> UUID:
    """One correlation ID per request, shared by every audit event it emits."""
    return create_correlation_id()


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    components: AppComponents = Depends(get_components),
) -> User:
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("No token provided")
    return await components.accounts.authenticate_token(credentials.credentials)


async def get_admin_user(user: User = Depends(get_current_user)) -> User:
    return require_admin(user)
