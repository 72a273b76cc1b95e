"""
Shared fixtures.

Every test runs against in-memory storage; nothing talks to Google
Sheets, Google sign-in or Cloudinary.
"""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from expense_tracker.api.app import create_app
from expense_tracker.auth import LEGACY_ADMIN_EMAIL
from expense_tracker.models.expense import Expense
from expense_tracker.orchestrator import AppComponents, create_memory_storages


ADMIN_EMAIL = LEGACY_ADMIN_EMAIL
PASSWORD = "secret123"


def make_expense(amount, category="food", on=date(2025, 3, 10), owner_id=None, description="Test"):
    """Build an Expense directly, bypassing validation."""
    return Expense(
        owner_id=owner_id or uuid4(),
        amount=Decimal(str(amount)),
        description=description,
        category=category,
        date=on,
    )


@pytest.fixture
def components():
    return AppComponents(create_memory_storages())


@pytest.fixture
def client(components):
    return TestClient(create_app(components))


def signup(client, name="Alice", email="alice@example.com", password=PASSWORD):
    """Create an account through the API and return (token, user)."""
    response = client.post(
        "/api/auth/signup",
        json={"name": name, "email": email, "password": password},
    )
    assert response.status_code == 201, response.text
    body = response.json()
    return body["token"], body["user"]


def auth(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def user_token(client):
    token, _ = signup(client)
    return token


@pytest.fixture
def admin_token(client):
    token, _ = signup(client, name="Admin User", email=ADMIN_EMAIL)
    return token
