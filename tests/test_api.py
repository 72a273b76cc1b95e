"""
End-to-end tests through FastAPI's TestClient.

Each test gets a fresh app over in-memory storage (see conftest).
"""

import asyncio
from decimal import Decimal

import pytest

from expense_tracker.api.app import create_app
from expense_tracker.auth import GoogleOAuthError, GoogleProfile
from expense_tracker.models.audit import AuditEventType
from expense_tracker.orchestrator import AppComponents, create_memory_storages
from expense_tracker.services.storage import InMemoryExpenseStorage, StorageError
from fastapi.testclient import TestClient

from conftest import ADMIN_EMAIL, PASSWORD, auth, signup


def dec(value):
    return Decimal(str(value))


def add_expense(client, token, amount="12.50", category="food", on="2025-03-10", description="Lunch"):
    response = client.post(
        "/api/expenses",
        json={"amount": amount, "description": description, "category": category, "date": on},
        headers=auth(token),
    )
    assert response.status_code == 201, response.text
    return response.json()["expense"]


class TestHealth:
    def test_health(self, client):
        response = client.get("/api/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ok"
        assert body["message"] == "Server is running"


class TestAuthRoutes:
    """Signup, login and token checks."""

    def test_signup(self, client):
        response = client.post(
            "/api/auth/signup",
            json={"name": "Alice", "email": "Alice@Example.com", "password": PASSWORD},
        )
        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "Account created successfully"
        assert body["token"]
        assert body["user"]["email"] == "alice@example.com"
        assert body["user"]["is_admin"] is False
        assert "password_hash" not in body["user"]

    def test_signup_duplicate_email(self, client):
        signup(client)
        response = client.post(
            "/api/auth/signup",
            json={"name": "Other", "email": "alice@example.com", "password": PASSWORD},
        )
        assert response.status_code == 400
        assert response.json()["error"] == "An account with this email already exists"

    def test_signup_validation(self, client):
        """Every problem is reported, the first one as the message."""
        response = client.post(
            "/api/auth/signup",
            json={"name": "A", "email": "nope", "password": "x"},
        )
        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "Name must be at least 2 characters long"
        assert {issue["field"] for issue in body["issues"]} >= {"name", "email"}

    def test_login(self, client):
        signup(client)
        response = client.post(
            "/api/auth/login",
            json={"email": "alice@example.com", "password": PASSWORD},
        )
        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Login successful"
        assert body["user"]["name"] == "Alice"

    @pytest.mark.parametrize("email,password", [
        ("alice@example.com", "wrong-password"),
        ("nobody@example.com", PASSWORD),
    ])
    def test_login_failures_look_the_same(self, client, email, password):
        signup(client)
        response = client.post("/api/auth/login", json={"email": email, "password": password})
        assert response.status_code == 401
        assert response.json() == {"error": "Invalid email or password"}

    def test_me_and_verify(self, client, user_token):
        me = client.get("/api/auth/me", headers=auth(user_token))
        assert me.status_code == 200
        assert me.json()["user"]["email"] == "alice@example.com"

        verify = client.get("/api/auth/verify", headers=auth(user_token))
        assert verify.json()["valid"] is True

    def test_missing_token(self, client):
        response = client.get("/api/auth/me")
        assert response.status_code == 401
        assert response.json() == {"error": "No token provided"}

    def test_bad_token(self, client):
        response = client.get("/api/auth/me", headers=auth("not-a-token"))
        assert response.status_code == 401
        assert "error" in response.json()

    def test_legacy_admin_email_is_admin(self, client):
        _, user = signup(client, name="Admin User", email=ADMIN_EMAIL)
        assert user["is_admin"] is True


class TestExpenseRoutes:
    """Expense CRUD for the signed-in user."""

    def test_create(self, client, user_token):
        response = client.post(
            "/api/expenses",
            json={"amount": "12.50", "description": "Lunch", "category": "food", "date": "2025-03-10"},
            headers=auth(user_token),
        )
        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "Expense added successfully"
        assert dec(body["expense"]["amount"]) == Decimal("12.50")
        assert body["expense"]["category"] == "food"
        assert isinstance(body["warnings"], list)

    def test_create_invalid(self, client, user_token):
        response = client.post(
            "/api/expenses",
            json={"amount": "-5", "description": "", "category": "bogus", "date": "2025-03-10"},
            headers=auth(user_token),
        )
        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "Please enter a valid amount"
        fields = {issue["field"] for issue in body["issues"]}
        assert {"amount", "description", "category"} <= fields

    def test_future_date_is_a_warning(self, client, user_token):
        response = client.post(
            "/api/expenses",
            json={"amount": "5", "description": "Later", "category": "other", "date": "2999-01-01"},
            headers=auth(user_token),
        )
        assert response.status_code == 201
        assert any("future" in w for w in response.json()["warnings"])

    def test_list_and_filters(self, client, user_token):
        add_expense(client, user_token, "10", "food", "2025-01-05")
        add_expense(client, user_token, "20", "transport", "2025-02-05")
        add_expense(client, user_token, "30", "food", "2025-03-05")

        everything = client.get("/api/expenses", headers=auth(user_token)).json()["expenses"]
        assert [dec(e["amount"]) for e in everything] == [Decimal("30"), Decimal("20"), Decimal("10")]

        food = client.get("/api/expenses/category/food", headers=auth(user_token)).json()["expenses"]
        assert len(food) == 2

        ranged = client.get(
            "/api/expenses/date-range/2025-02-01/2025-03-31", headers=auth(user_token)
        ).json()["expenses"]
        assert len(ranged) == 2

        query = client.get(
            "/api/expenses",
            params={"category": "food", "start": "2025-02-01"},
            headers=auth(user_token),
        ).json()["expenses"]
        assert len(query) == 1

    def test_get_update_delete(self, client, user_token):
        expense = add_expense(client, user_token)
        url = f"/api/expenses/{expense['id']}"

        fetched = client.get(url, headers=auth(user_token))
        assert fetched.json()["expense"]["description"] == "Lunch"

        updated = client.put(url, json={"amount": "20"}, headers=auth(user_token))
        assert updated.status_code == 200
        body = updated.json()
        assert body["message"] == "Expense updated successfully"
        assert dec(body["expense"]["amount"]) == Decimal("20")
        assert body["expense"]["description"] == "Lunch"

        deleted = client.delete(url, headers=auth(user_token))
        assert deleted.json() == {"message": "Expense deleted successfully"}
        assert client.get(url, headers=auth(user_token)).status_code == 404

    def test_other_users_expense_is_not_found(self, client, user_token):
        expense = add_expense(client, user_token)
        bob_token, _ = signup(client, name="Bob", email="bob@example.com")
        url = f"/api/expenses/{expense['id']}"

        assert client.get(url, headers=auth(bob_token)).status_code == 404
        assert client.put(url, json={"amount": "1"}, headers=auth(bob_token)).status_code == 404
        assert client.delete(url, headers=auth(bob_token)).status_code == 404
        assert client.get(url, headers=auth(user_token)).status_code == 200

    def test_requires_token(self, client):
        assert client.get("/api/expenses").status_code == 401


class TestAccountRoutes:
    """Budget, settings and profile."""

    def test_budget(self, client, user_token):
        budget = client.get("/api/budget", headers=auth(user_token)).json()["budget"]
        assert dec(budget["monthly_budget"]) == Decimal("3000")

        response = client.put("/api/budget", json={"monthly_budget": 500}, headers=auth(user_token))
        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Budget updated successfully"
        assert dec(body["budget"]["monthly_budget"]) == Decimal("500")

    def test_negative_budget(self, client, user_token):
        response = client.put("/api/budget", json={"monthly_budget": -1}, headers=auth(user_token))
        assert response.status_code == 400
        assert response.json()["error"] == "Monthly budget must be a positive number"

    def test_settings(self, client, user_token):
        settings = client.get("/api/settings", headers=auth(user_token)).json()["settings"]
        assert settings["currency"] == "USD"

        response = client.put(
            "/api/settings",
            json={"theme": "dark", "currency": "EUR"},
            headers=auth(user_token),
        )
        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Settings updated successfully"
        assert body["settings"]["theme"] == "dark"
        assert body["settings"]["currency"] == "EUR"

    def test_invalid_settings(self, client, user_token):
        response = client.put("/api/settings", json={"theme": "neon"}, headers=auth(user_token))
        assert response.status_code == 400
        assert response.json()["error"] == "Invalid theme value"

    def test_profile(self, client, user_token):
        response = client.put(
            "/api/users/profile",
            json={"name": "Alice Smith", "profile_picture": "https://example.com/a.png"},
            headers=auth(user_token),
        )
        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Profile updated successfully"
        assert body["user"]["name"] == "Alice Smith"

        profile = client.get("/api/users/profile", headers=auth(user_token)).json()["user"]
        assert profile["profile_picture"] == "https://example.com/a.png"

    def test_profile_rejects_bad_picture(self, client, user_token):
        response = client.put(
            "/api/users/profile",
            json={"profile_picture": "data:image/png;base64,bm90IGFuIGltYWdl"},
            headers=auth(user_token),
        )
        assert response.status_code == 400
        assert response.json()["error"] == "Profile picture is not a valid image"


class TestReportRoutes:
    def test_dashboard(self, client, user_token):
        client.put("/api/budget", json={"monthly_budget": 100}, headers=auth(user_token))
        add_expense(client, user_token, "12.50", "food", "2025-03-10")
        add_expense(client, user_token, "45.00", "transport", "2025-03-15")

        response = client.get(
            "/api/reports/dashboard", params={"today": "2025-03-20"}, headers=auth(user_token)
        )
        assert response.status_code == 200
        dashboard = response.json()["dashboard"]

        assert dec(dashboard["monthly_spending"]) == Decimal("57.50")
        assert dashboard["expense_count"] == 2
        assert dec(dashboard["budget"]["percentage"]) == Decimal("57.5")
        assert dec(dashboard["budget"]["remaining"]) == Decimal("42.50")
        assert dashboard["budget"]["over_budget"] is False
        assert dashboard["category_breakdown"][0]["category"] == "transport"
        assert len(dashboard["trend"]) == 6
        assert dashboard["currency_symbol"] == "$"

    def test_summary(self, client, user_token):
        add_expense(client, user_token, "10", "food", "2025-03-10")
        response = client.get(
            "/api/reports/summary",
            params={"months": 3, "top": 2, "today": "2025-03-20"},
            headers=auth(user_token),
        )
        assert response.status_code == 200
        summary = response.json()["summary"]
        assert summary["expense_count"] == 1
        assert len(summary["trend"]) == 3

    def test_summary_rejects_bad_window(self, client, user_token):
        response = client.get(
            "/api/reports/summary", params={"months": 99}, headers=auth(user_token)
        )
        assert response.status_code == 400
        assert response.json()["error"] == "Invalid request"


class TestAdminRoutes:
    def test_non_admin_is_forbidden(self, client, user_token):
        for path in ["/api/admin/users", "/api/admin/stats"]:
            response = client.get(path, headers=auth(user_token))
            assert response.status_code == 403
            assert "error" in response.json()

    def test_list_users_and_stats(self, client, admin_token, user_token):
        add_expense(client, user_token, "25")

        users = client.get("/api/admin/users", headers=auth(admin_token)).json()["users"]
        assert {u["email"] for u in users} == {ADMIN_EMAIL, "alice@example.com"}

        stats = client.get("/api/admin/stats", headers=auth(admin_token)).json()["stats"]
        assert stats["total_users"] == 2
        assert stats["admin_users"] == 1
        assert stats["total_expenses"] == 1
        assert dec(stats["total_spending"]) == Decimal("25")

    def test_user_detail(self, client, admin_token):
        alice_token, alice = signup(client, name="Alice", email="alice2@example.com")
        add_expense(client, alice_token, "7")

        response = client.get(f"/api/admin/users/{alice['id']}", headers=auth(admin_token))
        assert response.status_code == 200
        body = response.json()
        assert body["detail"]["expense_count"] == 1
        assert len(body["detail"]["monthly_spending"]) == 12
        assert len(body["expenses"]) == 1

        expenses = client.get(
            f"/api/admin/users/{alice['id']}/expenses", headers=auth(admin_token)
        ).json()["expenses"]
        assert len(expenses) == 1

    def test_unknown_user(self, client, admin_token):
        missing = "00000000-0000-0000-0000-000000000000"
        assert client.get(f"/api/admin/users/{missing}", headers=auth(admin_token)).status_code == 404
        assert client.get(
            f"/api/admin/users/{missing}/expenses", headers=auth(admin_token)
        ).status_code == 404

    def test_delete_user_cascades(self, client, admin_token):
        bob_token, bob = signup(client, name="Bob", email="bob@example.com")
        add_expense(client, bob_token, "1")
        add_expense(client, bob_token, "2")

        response = client.delete(f"/api/admin/users/{bob['id']}", headers=auth(admin_token))
        assert response.status_code == 200
        assert response.json() == {"message": "User deleted successfully", "expenses_deleted": 2}

        # Bob's token no longer resolves to a user
        assert client.get("/api/auth/me", headers=auth(bob_token)).status_code == 401

    def test_admin_cannot_delete_self(self, client, admin_token):
        me = client.get("/api/auth/me", headers=auth(admin_token)).json()["user"]
        response = client.delete(f"/api/admin/users/{me['id']}", headers=auth(admin_token))
        assert response.status_code == 403
        assert response.json()["error"] == "Cannot delete your own account"

    def test_admin_deletes_any_expense(self, client, admin_token, user_token):
        expense = add_expense(client, user_token)
        response = client.delete(f"/api/admin/expenses/{expense['id']}", headers=auth(admin_token))
        assert response.json() == {"message": "Expense deleted successfully"}
        assert client.get(
            f"/api/expenses/{expense['id']}", headers=auth(user_token)
        ).status_code == 404


class FakeGoogle:
    """Stands in for GoogleOAuthClient; no network."""

    def __init__(self, profile=None, fail=False):
        self.profile = profile or GoogleProfile(
            google_id="g-123",
            email="gina@example.com",
            name="Gina",
            picture="https://example.com/gina.png",
            verified_email=True,
        )
        self.fail = fail

    def authorization_url(self, state=None):
        return "https://accounts.google.com/o/oauth2/v2/auth?client_id=test"

    def verify_id_token(self, token):
        if self.fail:
            raise GoogleOAuthError("bad token")
        return self.profile

    def fetch_profile(self, code):
        if self.fail:
            raise GoogleOAuthError("bad code")
        return self.profile


def google_client(fake):
    components = AppComponents(create_memory_storages(), google_oauth=fake)
    return TestClient(create_app(components))


class TestGoogleRoutes:
    def test_not_configured(self, client):
        response = client.get("/api/auth/google")
        assert response.status_code == 503
        assert response.json() == {"error": "Google sign-in is not configured"}

    def test_auth_url(self):
        client = google_client(FakeGoogle())
        response = client.get("/api/auth/google")
        assert response.json()["auth_url"].startswith("https://accounts.google.com/")

    def test_verify_creates_account(self):
        client = google_client(FakeGoogle())
        response = client.post("/api/auth/google/verify", json={"id_token": "abc"})
        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Google authentication successful"
        assert body["user"]["email"] == "gina@example.com"
        assert body["user"]["auth_provider"] == "google"

        me = client.get("/api/auth/me", headers=auth(body["token"]))
        assert me.status_code == 200

    def test_verify_requires_token(self):
        client = google_client(FakeGoogle())
        response = client.post("/api/auth/google/verify", json={})
        assert response.status_code == 400
        assert response.json() == {"error": "ID token is required"}

    def test_verify_rejects_bad_token(self):
        client = google_client(FakeGoogle(fail=True))
        response = client.post("/api/auth/google/verify", json={"id_token": "abc"})
        assert response.status_code == 401
        assert response.json() == {"error": "Invalid Google token"}

    def test_callback_redirects_with_token(self):
        client = google_client(FakeGoogle())
        response = client.get(
            "/api/auth/google/callback", params={"code": "xyz"}, follow_redirects=False
        )
        assert response.status_code == 302
        location = response.headers["location"]
        assert location.startswith("http://localhost:8501/?")
        assert "token=" in location
        assert "google_auth=true" in location

    def test_callback_without_code(self):
        client = google_client(FakeGoogle())
        response = client.get("/api/auth/google/callback", follow_redirects=False)
        assert response.headers["location"].endswith("error=no_code")

    def test_callback_failure(self):
        client = google_client(FakeGoogle(fail=True))
        response = client.get(
            "/api/auth/google/callback", params={"code": "xyz"}, follow_redirects=False
        )
        assert response.headers["location"].endswith("error=oauth_failed")

    def test_callback_without_email(self):
        client = google_client(FakeGoogle(GoogleProfile(google_id="g-9", email=None)))
        response = client.get(
            "/api/auth/google/callback", params={"code": "xyz"}, follow_redirects=False
        )
        assert response.headers["location"].endswith("error=no_email")

    def test_callback_unverified_email_cannot_claim_account(self):
        unverified = GoogleProfile(google_id="g-evil", email="alice@example.com")
        client = google_client(FakeGoogle(unverified))
        signup(client)

        response = client.get(
            "/api/auth/google/callback", params={"code": "xyz"}, follow_redirects=False
        )
        assert response.headers["location"].endswith("error=no_email")

        verify = client.post("/api/auth/google/verify", json={"id_token": "abc"})
        assert verify.status_code == 401
        assert verify.json() == {"error": "Google account email is not verified"}


class BrokenExpenseStorage(InMemoryExpenseStorage):
    async def list_expenses(self, *args, **kwargs):
        raise StorageError("sheet unavailable")


class TestStorageFailures:
    def test_storage_error_is_500_and_audited(self):
        storages = create_memory_storages()
        storages.expenses = BrokenExpenseStorage()
        components = AppComponents(storages)
        client = TestClient(create_app(components))
        token, _ = signup(client)

        response = client.get("/api/expenses", headers=auth(token))
        assert response.status_code == 500
        assert response.json() == {"error": "Internal server error"}

        events = asyncio.run(storages.audit.get_recent_events())
        errors = [e for e in events if e.event_type == AuditEventType.SYSTEM_ERROR]
        assert len(errors) == 1
        assert errors[0].error_message == "sheet unavailable"
        assert errors[0].details["path"] == "/api/expenses"
