"""
Request bodies for the API.

Fields are deliberately loose (`Any`, all optional): type and range
checks belong to the validators, which report every problem in the
same `{"error", "issues"}` shape the clients already handle.
"""

from typing import Any, Optional

from pydantic import BaseModel

from expense_tracker.auth import is_admin
from expense_tracker.models.expense import User, UserPublic


class SignupIn(BaseModel):
    name: Any = None
    email: Any = None
    password: Any = None


class LoginIn(BaseModel):
    email: Any = None
    password: Any = None


class GoogleTokenIn(BaseModel):
    id_token: Optional[str] = None


class ExpenseIn(BaseModel):
    amount: Any = None
    description: Any = None
    category: Any = None
    date: Any = None


class ProfileUpdate(BaseModel):
    name: Any = None
    profile_picture: Any = None


class BudgetUpdate(BaseModel):
    monthly_budget: Any = None


class SettingsUpdate(BaseModel):
    theme: Any = None
    currency: Any = None
    date_format: Any = None
    notifications: Any = None


def public_user(user: User) -> UserPublic:
    """Wire view of a user, with the effective admin flag."""
    public = user.to_public()
    public.is_admin = is_admin(user)
    return public
