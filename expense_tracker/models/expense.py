"""
Core Data Models for Expense Tracker

These models define the schemas for all records the system stores:
users, their expenses, their monthly budget and their display settings.
They are designed to:
1. Enforce type safety at runtime
2. Provide clear validation error messages
3. Be serializable for storage and logging
4. Support the audit trail

DESIGN DECISION: Stored models describe what is IN storage, not what a
user is allowed to submit. Write-path rules (positive amounts, known
categories) live in the validation package, so a legacy record with an
odd value still loads and the reports degrade gracefully instead of
failing the whole request.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)


DEFAULT_MONTHLY_BUDGET = Decimal("3000")

# Alias so the `date` field below does not shadow the type in the class body.
CalendarDate = date


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class ExpenseCategory(str, Enum):
    """
    Supported expense categories.

    DESIGN DECISION: Using explicit categories rather than free text ensures
    consistent categorization and enables reliable grouping in reports.
    """
    FOOD = "food"
    TRANSPORT = "transport"
    ENTERTAINMENT = "entertainment"
    UTILITIES = "utilities"
    SHOPPING = "shopping"
    HEALTHCARE = "healthcare"
    EDUCATION = "education"
    OTHER = "other"


class Currency(str, Enum):
    """
    Display currencies.

    Amounts are never converted; the currency only picks a symbol.
    """
    USD = "USD"
    EUR = "EUR"
    GBP = "GBP"
    JPY = "JPY"
    CAD = "CAD"
    PHP = "PHP"


class Theme(str, Enum):
    """Client colour theme."""
    LIGHT = "light"
    DARK = "dark"


class AuthProvider(str, Enum):
    """How the account signs in."""
    LOCAL = "local"
    GOOGLE = "google"


# =============================================================================
# CORE RECORDS
# =============================================================================

class Expense(BaseModel):
    """
    A single spending transaction owned by one user.

    `category` is kept as a plain string: the write path only accepts
    ExpenseCategory values, but reports must survive records that carry
    anything else.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique expense ID"
    )
    owner_id: UUID = Field(
        ...,
        description="ID of the user that owns this expense"
    )
    amount: Decimal = Field(
        ...,
        description="Amount spent, in the user's display currency"
    )
    description: str = Field(
        ...,
        max_length=200,
        description="What the money was spent on"
    )
    category: str = Field(
        default=ExpenseCategory.OTHER.value,
        description="Category key (see ExpenseCategory)"
    )
    date: CalendarDate = Field(
        ...,
        description="Calendar date of the expense"
    )

    # Timestamps
    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the expense was recorded"
    )
    updated_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Last update timestamp"
    )

    @field_validator('category', mode='before')
    @classmethod
    def coerce_category(cls, v):
        """Store enum members by their value."""
        if isinstance(v, ExpenseCategory):
            return v.value
        return v


class Budget(BaseModel):
    """A user's self-declared monthly spending ceiling. One per user."""

    owner_id: UUID = Field(
        ...,
        description="ID of the user this budget belongs to"
    )
    monthly_budget: Decimal = Field(
        default=DEFAULT_MONTHLY_BUDGET,
        ge=0,
        description="Monthly spending ceiling"
    )
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class UserSettings(BaseModel):
    """Per-user display preferences. One per user."""

    owner_id: UUID = Field(
        ...,
        description="ID of the user these settings belong to"
    )
    theme: Theme = Field(default=Theme.LIGHT)
    currency: Currency = Field(
        default=Currency.USD,
        description="Display currency (symbol only, no conversion)"
    )
    date_format: str = Field(
        default="MM/DD/YYYY",
        max_length=20,
    )
    notifications: bool = Field(default=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class User(BaseModel):
    """
    A registered account.

    CRITICAL: `password_hash` must never leave the backend.
    Use `to_public()` for anything that goes over the wire.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique user ID"
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Display name"
    )
    email: str = Field(
        ...,
        min_length=3,
        max_length=254,
        description="Login email, stored lowercase"
    )
    password_hash: Optional[str] = Field(
        default=None,
        description="bcrypt hash; None for OAuth-only accounts"
    )
    google_id: Optional[str] = Field(
        default=None,
        description="Google account subject ID, if linked"
    )
    auth_provider: AuthProvider = Field(default=AuthProvider.LOCAL)
    is_admin: bool = Field(
        default=False,
        description="Elevated privileges flag"
    )
    profile_picture: Optional[str] = Field(
        default=None,
        description="URL or data URI of the profile picture"
    )
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @field_validator('email')
    @classmethod
    def normalize_email(cls, v: str) -> str:
        """Emails are unique case-insensitively."""
        return v.strip().lower()

    def to_public(self) -> "UserPublic":
        """Project to the wire-safe representation."""
        return UserPublic(
            id=self.id,
            name=self.name,
            email=self.email,
            auth_provider=self.auth_provider,
            is_admin=self.is_admin,
            profile_picture=self.profile_picture,
            created_at=self.created_at,
        )


class UserPublic(BaseModel):
    """User fields that are safe to return from the API."""

    id: UUID
    name: str
    email: str
    auth_provider: AuthProvider
    is_admin: bool
    profile_picture: Optional[str] = None
    created_at: datetime


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_value', 'too_short')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        default="error",
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )


class ValidationResult(BaseModel):
    """
    Result of validating one write request.

    Only error-level issues block the write; warnings are returned
    to the caller alongside the saved record.
    """

    validated_at: datetime = Field(
        default_factory=datetime.utcnow
    )
    issues: list[ValidationIssue] = Field(
        default_factory=list,
        description="All validation issues found"
    )

    @property
    def is_valid(self) -> bool:
        """True when there are no error-level issues."""
        return not self.has_errors

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")

    @property
    def warnings(self) -> list[str]:
        """Messages of warning-level issues."""
        return [issue.message for issue in self.issues if issue.severity == "warning"]

    @property
    def first_error(self) -> Optional[str]:
        """Message of the first blocking issue, if any."""
        for issue in self.issues:
            if issue.severity == "error":
                return issue.message
        return None
