"""
Validation Package

Checks every write request before it reaches storage.
"""

from expense_tracker.validation.validator import (
    AccountValidationError,
    AccountValidator,
    ExpenseValidationError,
    ExpenseValidator,
    ValidationFailedError,
    parse_date,
    parse_decimal,
)

__all__ = [
    "AccountValidationError",
    "AccountValidator",
    "ExpenseValidationError",
    "ExpenseValidator",
    "ValidationFailedError",
    "parse_date",
    "parse_decimal",
]
