"""
Client-side data access.

DESIGN DECISION: The API is the only source of truth. The frontend talks
to it through the `DataSource` interface, and `ApiDataSource` is the one
implementation. There is no local fallback store: if the API cannot be
reached the UI says so instead of showing data that may be stale.

Responses are returned as the decoded JSON dicts. Amounts arrive as
decimal strings and are converted by the views that display them.
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import Any, Optional

import requests
import structlog
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from expense_tracker.config import get_settings


logger = structlog.get_logger("expense_tracker.client")

DEFAULT_TIMEOUT_SECONDS = 10


class ApiError(Exception):
    """The API rejected a request or could not be reached."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        issues: Optional[list[dict]] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.issues = issues or []

    @property
    def is_auth_error(self) -> bool:
        return self.status_code == 401


class DataSource(ABC):
    """Everything the frontend reads or writes."""

    @abstractmethod
    def set_token(self, token: Optional[str]) -> None:
        """Use `token` for every following request (None to sign out)."""
        pass

    # Auth
    @abstractmethod
    def signup(self, name: str, email: str, password: str) -> dict:
        pass

    @abstractmethod
    def login(self, email: str, password: str) -> dict:
        pass

    @abstractmethod
    def me(self) -> dict:
        pass

    @abstractmethod
    def google_auth_url(self) -> str:
        pass

    # Expenses
    @abstractmethod
    def list_expenses(
        self,
        category: Optional[str] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> list[dict]:
        pass

    @abstractmethod
    def create_expense(self, data: dict) -> dict:
        pass

    @abstractmethod
    def update_expense(self, expense_id: str, data: dict) -> dict:
        pass

    @abstractmethod
    def delete_expense(self, expense_id: str) -> None:
        pass

    # Budget, settings, profile
    @abstractmethod
    def get_budget(self) -> dict:
        pass

    @abstractmethod
    def update_budget(self, monthly_budget: Any) -> dict:
        pass

    @abstractmethod
    def get_settings(self) -> dict:
        pass

    @abstractmethod
    def update_settings(self, data: dict) -> dict:
        pass

    @abstractmethod
    def update_profile(self, data: dict) -> dict:
        pass

    # Reports
    @abstractmethod
    def dashboard(self) -> dict:
        pass

    @abstractmethod
    def summary(self, months: Optional[int] = None, top: Optional[int] = None) -> dict:
        pass

    # Admin
    @abstractmethod
    def admin_users(self) -> list[dict]:
        pass

    @abstractmethod
    def admin_stats(self) -> dict:
        pass

    @abstractmethod
    def admin_user_detail(self, user_id: str) -> dict:
        pass

    @abstractmethod
    def admin_delete_user(self, user_id: str) -> dict:
        pass

    @abstractmethod
    def admin_delete_expense(self, expense_id: str) -> None:
        pass


class ApiDataSource(DataSource):
    """`DataSource` backed by the REST API, using requests."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        session: Optional[requests.Session] = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ):
        base_url = base_url or get_settings().app.api_base_url
        self._base = base_url.rstrip("/") + "/api"
        self._session = session or requests.Session()
        self._timeout = timeout
        self._token: Optional[str] = None

    def set_token(self, token: Optional[str]) -> None:
        self._token = token

    # =========================================================================
    # TRANSPORT
    # =========================================================================

    @retry(
        retry=retry_if_exception_type(requests.ConnectionError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def _send(self, method: str, path: str, **kwargs) -> requests.Response:
        headers = {}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return self._session.request(
            method,
            f"{self._base}{path}",
            headers=headers,
            timeout=self._timeout,
            **kwargs,
        )

    def _request(self, method: str, path: str, **kwargs) -> dict:
        """
        Send a request and return the decoded body.

        Raises:
            ApiError: Non-2xx status, or the API is unreachable
        """
        try:
            response = self._send(method, path, **kwargs)
        except requests.RequestException as e:
            logger.error("api_unreachable", method=method, path=path, error=str(e))
            raise ApiError("Cannot reach the server. Please try again later.")

        try:
            body = response.json()
        except ValueError:
            body = {}

        if response.status_code >= 400:
            message = body.get("error") or f"Request failed ({response.status_code})"
            logger.info("api_error", method=method, path=path, status_code=response.status_code)
            raise ApiError(message, response.status_code, body.get("issues"))
        return body

    @staticmethod
    def _params(**values) -> dict:
        return {
            key: value.isoformat() if isinstance(value, date) else value
            for key, value in values.items()
            if value is not None
        }

    # =========================================================================
    # AUTH
    # =========================================================================

    def signup(self, name: str, email: str, password: str) -> dict:
        return self._request(
            "POST", "/auth/signup", json={"name": name, "email": email, "password": password}
        )

    def login(self, email: str, password: str) -> dict:
        return self._request("POST", "/auth/login", json={"email": email, "password": password})

    def me(self) -> dict:
        return self._request("GET", "/auth/me")["user"]

    def google_auth_url(self) -> str:
        return self._request("GET", "/auth/google")["auth_url"]

    # =========================================================================
    # EXPENSES
    # =========================================================================

    def list_expenses(
        self,
        category: Optional[str] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> list[dict]:
        params = self._params(category=category, start=start, end=end)
        return self._request("GET", "/expenses", params=params)["expenses"]

    def create_expense(self, data: dict) -> dict:
        return self._request("POST", "/expenses", json=data)

    def update_expense(self, expense_id: str, data: dict) -> dict:
        return self._request("PUT", f"/expenses/{expense_id}", json=data)

    def delete_expense(self, expense_id: str) -> None:
        self._request("DELETE", f"/expenses/{expense_id}")

    # =========================================================================
    # BUDGET, SETTINGS, PROFILE
    # =========================================================================

    def get_budget(self) -> dict:
        return self._request("GET", "/budget")["budget"]

    def update_budget(self, monthly_budget: Any) -> dict:
        return self._request("PUT", "/budget", json={"monthly_budget": monthly_budget})["budget"]

    def get_settings(self) -> dict:
        return self._request("GET", "/settings")["settings"]

    def update_settings(self, data: dict) -> dict:
        return self._request("PUT", "/settings", json=data)["settings"]

    def update_profile(self, data: dict) -> dict:
        return self._request("PUT", "/users/profile", json=data)["user"]

    # =========================================================================
    # REPORTS
    # =========================================================================

    def dashboard(self) -> dict:
        return self._request("GET", "/reports/dashboard")["dashboard"]

    def summary(self, months: Optional[int] = None, top: Optional[int] = None) -> dict:
        params = self._params(months=months, top=top)
        return self._request("GET", "/reports/summary", params=params)["summary"]

    # =========================================================================
    # ADMIN
    # =========================================================================

    def admin_users(self) -> list[dict]:
        return self._request("GET", "/admin/users")["users"]

    def admin_stats(self) -> dict:
        return self._request("GET", "/admin/stats")["stats"]

    def admin_user_detail(self, user_id: str) -> dict:
        return self._request("GET", f"/admin/users/{user_id}")

    def admin_delete_user(self, user_id: str) -> dict:
        return self._request("DELETE", f"/admin/users/{user_id}")

    def admin_delete_expense(self, expense_id: str) -> None:
        self._request("DELETE", f"/admin/expenses/{expense_id}")
