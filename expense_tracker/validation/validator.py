"""
Two-Stage Validation Pipeline

DESIGN DECISION: Validation happens in two distinct stages:

STAGE 1 - SCHEMA VALIDATION:
- Required field presence
- Type and format checks (amounts parse as numbers, dates as dates)
- Allowed values (categories, themes, currencies)

STAGE 2 - SEMANTIC VALIDATION:
- Business rules that need a well-formed record first
- Future dates, suspiciously old dates
- These only ever produce warnings

WHY TWO STAGES:
1. Separation of concerns (structural vs logical)
2. Better error messages (know exactly what kind of issue)
3. Stage 2 is skipped when stage 1 fails

Validators accept raw request values and return CLEANED values. The
user-facing messages here are the ones the API returns verbatim.
Creates and updates go through the same field checks; an update only
checks the fields it carries.
"""

import re
from datetime import date, timedelta
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from expense_tracker.models.expense import (
    Currency,
    ExpenseCategory,
    Theme,
    ValidationIssue,
    ValidationResult,
)


MIN_NAME_LENGTH = 2
MIN_PASSWORD_LENGTH = 6
MAX_DESCRIPTION_LENGTH = 200

# Deliberately loose: one @, something on each side, a dot in the domain.
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

VALID_CATEGORIES = {c.value for c in ExpenseCategory}
VALID_THEMES = {t.value for t in Theme}
VALID_CURRENCIES = {c.value for c in Currency}

# Field names an update may carry; anything else is ignored.
EXPENSE_FIELDS = ("amount", "description", "category", "date")


def parse_decimal(value: Any) -> Optional[Decimal]:
    """Parse a finite number, or return None."""
    if value is None or isinstance(value, bool):
        return None
    try:
        parsed = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    if not parsed.is_finite():
        return None
    return parsed


def parse_date(value: Any) -> Optional[date]:
    """Parse a date or an ISO date string (a time part is ignored)."""
    if value is None or value == "":
        return None
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip()[:10])
    except ValueError:
        return None


def _error(field: str, issue_type: str, message: str) -> ValidationIssue:
    return ValidationIssue(
        field=field,
        issue_type=issue_type,
        message=message,
        severity="error",
    )


def _warning(field: str, issue_type: str, message: str) -> ValidationIssue:
    return ValidationIssue(
        field=field,
        issue_type=issue_type,
        message=message,
        severity="warning",
    )


class ExpenseValidator:
    """
    Validates expense create and update requests.

    Usage:
        validator = ExpenseValidator()
        cleaned, result = validator.validate(payload)
        if result.has_errors:
            raise ExpenseValidationError(result)
    """

    def __init__(self, old_date_warning_days: int = 365 * 2):
        self._old_date_warning_days = old_date_warning_days

    def _validate_schema(
        self,
        data: dict,
        partial: bool,
    ) -> tuple[dict, list[ValidationIssue]]:
        """
        Stage 1: Schema validation.

        Returns: (cleaned_values, list_of_issues)
        """
        issues = []
        cleaned: dict[str, Any] = {}

        if not partial or "amount" in data:
            amount = parse_decimal(data.get("amount"))
            if amount is None or amount <= 0:
                issues.append(_error("amount", "invalid_value", "Please enter a valid amount"))
            else:
                cleaned["amount"] = amount

        if not partial or "description" in data:
            description = data.get("description")
            description = description.strip() if isinstance(description, str) else ""
            if not description:
                issues.append(_error("description", "missing", "Please enter a description"))
            elif len(description) > MAX_DESCRIPTION_LENGTH:
                issues.append(_error(
                    "description",
                    "too_long",
                    f"Description must be at most {MAX_DESCRIPTION_LENGTH} characters",
                ))
            else:
                cleaned["description"] = description

        if not partial or "category" in data:
            category = data.get("category")
            if isinstance(category, ExpenseCategory):
                category = category.value
            if category not in VALID_CATEGORIES:
                issues.append(_error("category", "invalid_value", "Please select a valid category"))
            else:
                cleaned["category"] = category

        if not partial or "date" in data:
            expense_date = parse_date(data.get("date"))
            if expense_date is None:
                issues.append(_error("date", "missing", "Please select a date"))
            else:
                cleaned["date"] = expense_date

        return cleaned, issues

    def _validate_semantic(
        self,
        cleaned: dict,
        today: date,
    ) -> list[ValidationIssue]:
        """
        Stage 2: Semantic validation. Warnings only.
        """
        issues = []
        expense_date = cleaned.get("date")

        if expense_date and expense_date > today:
            issues.append(_warning(
                "date",
                "future_date",
                f"Expense date ({expense_date}) is in the future",
            ))

        if expense_date and expense_date < today - timedelta(days=self._old_date_warning_days):
            issues.append(_warning(
                "date",
                "suspicious_date",
                f"Expense date ({expense_date}) seems unusually old",
            ))

        return issues

    def validate(
        self,
        data: dict,
        partial: bool = False,
        today: Optional[date] = None,
    ) -> tuple[dict, ValidationResult]:
        """
        Run the two-stage pipeline.

        Args:
            data: Raw request values
            partial: Update mode; only fields present in `data` are checked
            today: Reference date for the semantic checks

        Returns:
            (cleaned_values, ValidationResult)
        """
        cleaned, issues = self._validate_schema(data, partial)

        if not any(issue.severity == "error" for issue in issues):
            issues.extend(self._validate_semantic(cleaned, today or date.today()))

        return cleaned, ValidationResult(issues=issues)

    def clean(self, data: dict, partial: bool = False) -> dict:
        """Validate and return cleaned values, raising on any error."""
        cleaned, result = self.validate(data, partial=partial)
        if result.has_errors:
            raise ExpenseValidationError(result)
        return cleaned


class AccountValidator:
    """
    Validates signup, profile, budget and settings requests.

    Every method returns the cleaned values and raises
    AccountValidationError on the first set of errors.
    """

    def validate_signup(self, name: Any, email: Any, password: Any) -> dict:
        issues = []
        name = name.strip() if isinstance(name, str) else ""
        email = email.strip().lower() if isinstance(email, str) else ""
        password = password if isinstance(password, str) else ""

        if len(name) < MIN_NAME_LENGTH:
            issues.append(_error("name", "too_short", "Name must be at least 2 characters long"))
        if not EMAIL_PATTERN.match(email):
            issues.append(_error("email", "invalid_value", "Please provide a valid email address"))
        if len(password) < MIN_PASSWORD_LENGTH:
            issues.append(_error(
                "password",
                "too_short",
                "Password must be at least 6 characters long",
            ))

        self._raise_on_errors(issues)
        return {"name": name, "email": email, "password": password}

    def validate_login(self, email: Any, password: Any) -> dict:
        email = email.strip().lower() if isinstance(email, str) else ""
        password = password if isinstance(password, str) else ""
        if not email or not password:
            self._raise_on_errors([
                _error("credentials", "missing", "Please provide email and password")
            ])
        return {"email": email, "password": password}

    def validate_profile(self, data: dict) -> dict:
        issues = []
        cleaned: dict[str, Any] = {}

        if "name" in data:
            name = data["name"].strip() if isinstance(data["name"], str) else ""
            if len(name) < MIN_NAME_LENGTH:
                issues.append(_error(
                    "name",
                    "too_short",
                    "Display name must be at least 2 characters long",
                ))
            else:
                cleaned["name"] = name

        if "profile_picture" in data:
            picture = data["profile_picture"]
            if picture is not None and not isinstance(picture, str):
                issues.append(_error(
                    "profile_picture",
                    "invalid_value",
                    "Profile picture must be a URL or data URI",
                ))
            else:
                cleaned["profile_picture"] = picture or None

        self._raise_on_errors(issues)
        return cleaned

    def validate_budget(self, data: dict) -> dict:
        if "monthly_budget" not in data or data["monthly_budget"] is None:
            return {}
        amount = parse_decimal(data["monthly_budget"])
        if amount is None or amount < 0:
            self._raise_on_errors([
                _error(
                    "monthly_budget",
                    "invalid_value",
                    "Monthly budget must be a positive number",
                )
            ])
        return {"monthly_budget": amount}

    def validate_settings(self, data: dict) -> dict:
        issues = []
        cleaned: dict[str, Any] = {}

        if data.get("theme") is not None:
            if data["theme"] not in VALID_THEMES:
                issues.append(_error("theme", "invalid_value", "Invalid theme value"))
            else:
                cleaned["theme"] = Theme(data["theme"])

        if data.get("currency") is not None:
            if data["currency"] not in VALID_CURRENCIES:
                issues.append(_error("currency", "invalid_value", "Invalid currency value"))
            else:
                cleaned["currency"] = Currency(data["currency"])

        if data.get("date_format") is not None:
            if not isinstance(data["date_format"], str) or not data["date_format"].strip():
                issues.append(_error("date_format", "invalid_value", "Invalid date format"))
            else:
                cleaned["date_format"] = data["date_format"].strip()

        if data.get("notifications") is not None:
            cleaned["notifications"] = bool(data["notifications"])

        self._raise_on_errors(issues)
        return cleaned

    def _raise_on_errors(self, issues: list[ValidationIssue]) -> None:
        result = ValidationResult(issues=issues)
        if result.has_errors:
            raise AccountValidationError(result)


class ValidationFailedError(Exception):
    """
    A write request failed validation.

    The first error message is the exception message; the full
    ValidationResult is kept for the response body and the audit log.
    """

    def __init__(self, result: ValidationResult):
        self.result = result
        super().__init__(result.first_error or "Validation failed")

    @property
    def issues(self) -> list[ValidationIssue]:
        return self.result.issues


class ExpenseValidationError(ValidationFailedError):
    """An expense create/update request was rejected."""
    pass


class AccountValidationError(ValidationFailedError):
    """A signup, profile, budget or settings request was rejected."""
    pass
