"""Tests for the two-stage validators."""

import pytest
from datetime import date, timedelta
from decimal import Decimal

from expense_tracker.models.expense import Currency, Theme
from expense_tracker.validation import (
    AccountValidationError,
    AccountValidator,
    ExpenseValidationError,
    ExpenseValidator,
    ValidationFailedError,
    parse_date,
    parse_decimal,
)


TODAY = date(2025, 3, 15)


def _valid_expense(**overrides):
    data = {
        "amount": "12.50",
        "description": "Lunch",
        "category": "food",
        "date": "2025-03-10",
    }
    data.update(overrides)
    return data


class TestParsers:
    def test_parse_decimal(self):
        assert parse_decimal("12.50") == Decimal("12.50")
        assert parse_decimal(3) == Decimal("3")
        assert parse_decimal(" 4.2 ") == Decimal("4.2")

    @pytest.mark.parametrize("value", [None, "", "abc", True, "NaN", "Infinity"])
    def test_parse_decimal_rejects(self, value):
        assert parse_decimal(value) is None

    def test_parse_date(self):
        assert parse_date("2025-03-10") == date(2025, 3, 10)
        assert parse_date("2025-03-10T14:30:00.000Z") == date(2025, 3, 10)
        assert parse_date(date(2025, 1, 1)) == date(2025, 1, 1)
        assert parse_date("10/03/2025") is None
        assert parse_date("") is None


class TestExpenseValidator:
    """Tests for expense create and update validation."""

    def setup_method(self):
        self.validator = ExpenseValidator()

    def test_valid_expense(self):
        cleaned, result = self.validator.validate(_valid_expense(), today=TODAY)
        assert result.is_valid
        assert result.warnings == []
        assert cleaned == {
            "amount": Decimal("12.50"),
            "description": "Lunch",
            "category": "food",
            "date": date(2025, 3, 10),
        }

    @pytest.mark.parametrize("amount", [0, "0", -5, "-0.01", None, "ten"])
    def test_rejects_non_positive_or_invalid_amount(self, amount):
        _, result = self.validator.validate(_valid_expense(amount=amount), today=TODAY)
        assert result.first_error == "Please enter a valid amount"

    def test_rejects_missing_description(self):
        _, result = self.validator.validate(_valid_expense(description="   "), today=TODAY)
        assert result.first_error == "Please enter a description"

    def test_rejects_long_description(self):
        _, result = self.validator.validate(_valid_expense(description="x" * 201), today=TODAY)
        assert result.has_errors
        assert result.issues[0].issue_type == "too_long"

    def test_rejects_unknown_category(self):
        _, result = self.validator.validate(_valid_expense(category="groceries"), today=TODAY)
        assert result.first_error == "Please select a valid category"

    def test_rejects_missing_date(self):
        _, result = self.validator.validate(_valid_expense(date=None), today=TODAY)
        assert result.first_error == "Please select a date"

    def test_reports_every_error(self):
        _, result = self.validator.validate({}, today=TODAY)
        assert result.error_count == 4

    def test_future_date_is_a_warning(self):
        future = (TODAY + timedelta(days=3)).isoformat()
        cleaned, result = self.validator.validate(_valid_expense(date=future), today=TODAY)
        assert result.is_valid
        assert len(result.warnings) == 1
        assert "future" in result.warnings[0]
        assert cleaned["date"] == TODAY + timedelta(days=3)

    def test_old_date_is_a_warning(self):
        _, result = self.validator.validate(_valid_expense(date="2020-01-01"), today=TODAY)
        assert result.is_valid
        assert "unusually old" in result.warnings[0]

    def test_semantic_stage_skipped_on_errors(self):
        _, result = self.validator.validate(
            _valid_expense(amount=0, date="2030-01-01"), today=TODAY
        )
        assert result.warnings == []

    def test_partial_only_checks_present_fields(self):
        cleaned, result = self.validator.validate({"description": "Dinner"}, partial=True)
        assert result.is_valid
        assert cleaned == {"description": "Dinner"}

    def test_partial_update_rejects_zero_amount(self):
        _, result = self.validator.validate({"amount": 0}, partial=True)
        assert result.first_error == "Please enter a valid amount"

    def test_clean_raises(self):
        with pytest.raises(ExpenseValidationError) as exc_info:
            self.validator.clean(_valid_expense(amount=-1))
        assert str(exc_info.value) == "Please enter a valid amount"
        assert isinstance(exc_info.value, ValidationFailedError)


class TestAccountValidator:
    """Tests for signup, profile, budget and settings validation."""

    def setup_method(self):
        self.validator = AccountValidator()

    def test_valid_signup_is_cleaned(self):
        cleaned = self.validator.validate_signup(" Alice ", " Alice@Example.com ", "secret1")
        assert cleaned == {"name": "Alice", "email": "alice@example.com", "password": "secret1"}

    @pytest.mark.parametrize("name,email,password,message", [
        ("A", "a@example.com", "secret1", "Name must be at least 2 characters long"),
        ("Alice", "not-an-email", "secret1", "Please provide a valid email address"),
        ("Alice", "a@example.com", "12345", "Password must be at least 6 characters long"),
        (None, "a@example.com", "secret1", "Name must be at least 2 characters long"),
    ])
    def test_invalid_signup(self, name, email, password, message):
        with pytest.raises(AccountValidationError) as exc_info:
            self.validator.validate_signup(name, email, password)
        assert str(exc_info.value) == message

    def test_login_requires_both_fields(self):
        with pytest.raises(AccountValidationError, match="Please provide email and password"):
            self.validator.validate_login("a@example.com", "")

    def test_profile_name_too_short(self):
        with pytest.raises(AccountValidationError, match="Display name must be at least 2"):
            self.validator.validate_profile({"name": "x"})

    def test_profile_clears_picture(self):
        assert self.validator.validate_profile({"profile_picture": ""}) == {"profile_picture": None}

    def test_profile_ignores_absent_fields(self):
        assert self.validator.validate_profile({}) == {}

    def test_budget(self):
        assert self.validator.validate_budget({"monthly_budget": "500"}) == {
            "monthly_budget": Decimal("500")
        }
        assert self.validator.validate_budget({"monthly_budget": 0}) == {
            "monthly_budget": Decimal("0")
        }
        assert self.validator.validate_budget({}) == {}

    @pytest.mark.parametrize("value", [-1, "abc", "NaN"])
    def test_invalid_budget(self, value):
        with pytest.raises(AccountValidationError, match="Monthly budget must be a positive number"):
            self.validator.validate_budget({"monthly_budget": value})

    def test_settings(self):
        cleaned = self.validator.validate_settings({
            "theme": "dark",
            "currency": "EUR",
            "date_format": "DD/MM/YYYY",
            "notifications": False,
        })
        assert cleaned == {
            "theme": Theme.DARK,
            "currency": Currency.EUR,
            "date_format": "DD/MM/YYYY",
            "notifications": False,
        }

    @pytest.mark.parametrize("data,message", [
        ({"theme": "blue"}, "Invalid theme value"),
        ({"currency": "BTC"}, "Invalid currency value"),
        ({"date_format": "  "}, "Invalid date format"),
    ])
    def test_invalid_settings(self, data, message):
        with pytest.raises(AccountValidationError) as exc_info:
            self.validator.validate_settings(data)
        assert str(exc_info.value) == message
