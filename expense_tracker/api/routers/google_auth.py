"""
Google sign-in.

The browser flow ends in a redirect back to the frontend, so failures on
the callback become `?error=` query parameters instead of JSON errors.
"""

from urllib.parse import urlencode
from uuid import UUID

import requests
import structlog
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import RedirectResponse
from starlette.concurrency import run_in_threadpool

from expense_tracker.api.deps import get_components, get_correlation_id
from expense_tracker.api.schemas import GoogleTokenIn, public_user
from expense_tracker.auth import AuthenticationError, GoogleOAuthClient, GoogleOAuthError
from expense_tracker.orchestrator import AppComponents

logger = structlog.get_logger("expense_tracker.api.google_auth")

router = APIRouter(prefix="/auth/google", tags=["Google Auth"])


def _frontend_redirect(components: AppComponents, **params) -> RedirectResponse:
    base = components.app_settings.frontend_url.rstrip("/")
    return RedirectResponse(f"{base}/?{urlencode(params)}", status_code=302)


def _require_client(components: AppComponents) -> GoogleOAuthClient:
    if components.google_oauth is None:
        raise HTTPException(status_code=503, detail="Google sign-in is not configured")
    return components.google_oauth


@router.get("")
def google_login(components: AppComponents = Depends(get_components)):
    client = _require_client(components)
    return {"auth_url": client.authorization_url()}


@router.get("/callback")
async def google_callback(
    code: str = "",
    components: AppComponents = Depends(get_components),
    correlation_id: UUID = Depends(get_correlation_id),
):
    if not code:
        return _frontend_redirect(components, error="no_code")
    if components.google_oauth is None:
        return _frontend_redirect(components, error="oauth_failed")

    try:
        profile = await run_in_threadpool(components.google_oauth.fetch_profile, code)
    except (GoogleOAuthError, requests.RequestException) as e:
        logger.warning("google_callback_failed", error=str(e))
        await components.audit_logger.log_external_service_error(
            "google_oauth", str(e), correlation_id
        )
        return _frontend_redirect(components, error="oauth_failed")

    if not profile.email:
        return _frontend_redirect(components, error="no_email")

    try:
        _, token = await components.accounts.sign_in_with_google(profile, correlation_id)
    except AuthenticationError:
        return _frontend_redirect(components, error="no_email")

    return _frontend_redirect(components, token=token, google_auth="true")


@router.post("/verify")
async def google_verify(
    body: GoogleTokenIn,
    components: AppComponents = Depends(get_components),
    correlation_id: UUID = Depends(get_correlation_id),
):
    """Sign in with an ID token obtained by the client itself."""
    if not body.id_token:
        raise HTTPException(status_code=400, detail="ID token is required")
    client = _require_client(components)

    try:
        profile = await run_in_threadpool(client.verify_id_token, body.id_token)
    except GoogleOAuthError:
        raise AuthenticationError("Invalid Google token")

    user, token = await components.accounts.sign_in_with_google(profile, correlation_id)
    return {
        "message": "Google authentication successful",
        "token": token,
        "user": public_user(user),
    }
