"""
Data Models Package

This package contains all Pydantic models used in the Expense Tracker system.
All data flowing through the system must conform to these schemas.
"""

from expense_tracker.models.expense import (
    DEFAULT_MONTHLY_BUDGET,
    AuthProvider,
    Budget,
    Currency,
    Expense,
    ExpenseCategory,
    Theme,
    User,
    UserPublic,
    UserSettings,
    ValidationIssue,
    ValidationResult,
)
from expense_tracker.models.report import (
    AdminStats,
    BudgetStatus,
    CategoryBreakdownEntry,
    CategorySummary,
    DashboardReport,
    MonthlyTotal,
    SpendingSummary,
    TrendDirection,
    TrendEntry,
    UserDetailReport,
    UserSpending,
)
from expense_tracker.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Core records
    "DEFAULT_MONTHLY_BUDGET",
    "AuthProvider",
    "Budget",
    "Currency",
    "Expense",
    "ExpenseCategory",
    "Theme",
    "User",
    "UserPublic",
    "UserSettings",
    "ValidationIssue",
    "ValidationResult",
    # Report models
    "AdminStats",
    "BudgetStatus",
    "CategoryBreakdownEntry",
    "CategorySummary",
    "DashboardReport",
    "MonthlyTotal",
    "SpendingSummary",
    "TrendDirection",
    "TrendEntry",
    "UserDetailReport",
    "UserSpending",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
