"""
Google Sign-In (OAuth 2.0 authorization code flow)

Flow:
1. The client asks for the consent URL and sends the browser there
2. Google redirects back to our callback with a one-time `code`
3. We exchange the code for tokens
4. We read the Google profile from the userinfo endpoint, falling
   back to the verified ID token if that call fails

Account matching (find-or-create, linking) is not done here; this
module only talks to Google. See AccountService.sign_in_with_google.
"""

from typing import Optional
from urllib.parse import urlencode

import requests
import structlog
from google.auth.transport import requests as google_requests
from google.oauth2 import id_token as google_id_token
from pydantic import BaseModel, Field
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from expense_tracker.config import GoogleOAuthSettings


logger = structlog.get_logger("expense_tracker.auth.google")


AUTH_ENDPOINT = "https://accounts.google.com/o/oauth2/v2/auth"
TOKEN_ENDPOINT = "https://oauth2.googleapis.com/token"
USERINFO_ENDPOINT = "https://www.googleapis.com/oauth2/v2/userinfo"

SCOPES = [
    "https://www.googleapis.com/auth/userinfo.email",
    "https://www.googleapis.com/auth/userinfo.profile",
]

REQUEST_TIMEOUT_SECONDS = 10


class GoogleOAuthError(Exception):
    """Google rejected the request or returned something unusable."""
    pass


class GoogleProfile(BaseModel):
    """The subset of the Google profile we use."""

    google_id: str = Field(..., description="Google account subject ID")
    email: Optional[str] = None
    name: Optional[str] = None
    picture: Optional[str] = None
    verified_email: bool = False


class GoogleOAuthClient:
    """Thin client for the three Google endpoints we need."""

    def __init__(self, settings: GoogleOAuthSettings):
        self._settings = settings

    def authorization_url(self, state: Optional[str] = None) -> str:
        """Consent-screen URL for the authorization code flow."""
        params = {
            "client_id": self._settings.client_id,
            "redirect_uri": self._settings.redirect_uri,
            "response_type": "code",
            "scope": " ".join(SCOPES),
            "access_type": "offline",
            "prompt": "consent",
        }
        if state:
            params["state"] = state
        return f"{AUTH_ENDPOINT}?{urlencode(params)}"

    @retry(
        retry=retry_if_exception_type(requests.ConnectionError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def exchange_code(self, code: str) -> dict:
        """
        Exchange an authorization code for tokens.

        Returns:
            Google's token response (access_token, id_token, ...)

        Raises:
            GoogleOAuthError: If Google rejects the code
        """
        response = requests.post(
            TOKEN_ENDPOINT,
            data={
                "code": code,
                "client_id": self._settings.client_id,
                "client_secret": self._settings.client_secret,
                "redirect_uri": self._settings.redirect_uri,
                "grant_type": "authorization_code",
            },
            timeout=REQUEST_TIMEOUT_SECONDS,
        )
        if response.status_code != 200:
            raise GoogleOAuthError(f"Token exchange failed with status {response.status_code}")
        return response.json()

    def fetch_userinfo(self, access_token: str) -> GoogleProfile:
        response = requests.get(
            USERINFO_ENDPOINT,
            headers={"Authorization": f"Bearer {access_token}"},
            timeout=REQUEST_TIMEOUT_SECONDS,
        )
        response.raise_for_status()
        data = response.json()
        return GoogleProfile(
            google_id=str(data["id"]),
            email=data.get("email"),
            name=data.get("name"),
            picture=data.get("picture"),
            verified_email=bool(data.get("verified_email", False)),
        )

    def verify_id_token(self, token: str) -> GoogleProfile:
        """
        Verify a Google ID token and read the profile from its claims.

        Raises:
            GoogleOAuthError: If the token is invalid or for another client
        """
        try:
            claims = google_id_token.verify_oauth2_token(
                token,
                google_requests.Request(),
                audience=self._settings.client_id,
            )
        except ValueError as e:
            raise GoogleOAuthError(f"Invalid Google token: {e}")

        return GoogleProfile(
            google_id=str(claims["sub"]),
            email=claims.get("email"),
            name=claims.get("name"),
            picture=claims.get("picture"),
            verified_email=bool(claims.get("email_verified", False)),
        )

    def fetch_profile(self, code: str) -> GoogleProfile:
        """Run steps 3 and 4 of the flow for a callback `code`."""
        tokens = self.exchange_code(code)

        try:
            return self.fetch_userinfo(tokens["access_token"])
        except (requests.RequestException, KeyError, ValueError) as e:
            logger.warning("google_userinfo_failed", error=str(e))

        if not tokens.get("id_token"):
            raise GoogleOAuthError("No ID token in Google response")
        return self.verify_id_token(tokens["id_token"])
