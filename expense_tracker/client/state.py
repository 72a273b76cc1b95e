"""
Frontend session state.

One `AppState` per browser session, held in `st.session_state` by the
Streamlit entry point and passed explicitly into every view.
"""

from typing import Optional

import structlog

from expense_tracker.client.data_source import ApiError, DataSource


logger = structlog.get_logger("expense_tracker.client.state")


class AppState:
    """The signed-in user, their token, and the data source they use."""

    def __init__(self, data_source: DataSource):
        self.data_source = data_source
        self.token: Optional[str] = None
        self.user: Optional[dict] = None
        self.flash: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return self.token is not None and self.user is not None

    @property
    def is_admin(self) -> bool:
        return bool(self.user and self.user.get("is_admin"))

    @property
    def display_name(self) -> str:
        return self.user.get("name", "") if self.user else ""

    def sign_in(self, token: str, user: dict) -> None:
        self.token = token
        self.user = user
        self.data_source.set_token(token)

    def sign_out(self) -> None:
        self.token = None
        self.user = None
        self.data_source.set_token(None)

    def restore(self, token: str) -> bool:
        """
        Sign in with a token from elsewhere (the Google redirect).

        Returns False, leaving the state signed out, if the API rejects it.
        """
        self.data_source.set_token(token)
        try:
            user = self.data_source.me()
        except ApiError as e:
            logger.info("token_restore_failed", status_code=e.status_code)
            self.sign_out()
            return False
        self.sign_in(token, user)
        return True

    def show_once(self) -> Optional[str]:
        """Pop the pending one-shot message, if any."""
        message, self.flash = self.flash, None
        return message
