"""
Report Models for Expense Tracker

These are the display-ready structures produced by the reporting layer.
Everything here is derived data: nothing in this module is ever persisted.

DESIGN DECISION: Amounts stay Decimal all the way to the response,
where they are serialized as decimal strings ("57.50"). No float
rounding creeps into totals that are later compared against the budget.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from expense_tracker.models.expense import Expense, UserPublic


class TrendDirection(str, Enum):
    """Month-over-month movement."""
    UP = "up"
    DOWN = "down"
    FLAT = "flat"


class MonthlyTotal(BaseModel):
    """Total spending for one calendar month."""

    year: int = Field(..., ge=1)
    month: int = Field(..., ge=1, le=12)
    label: str = Field(
        ...,
        description="Short display label, e.g. 'Jan 2025'"
    )
    total: Decimal = Field(default=Decimal("0"))
    count: int = Field(default=0, ge=0)


class BudgetStatus(BaseModel):
    """
    Monthly spending compared against the budget ceiling.

    `percentage` is uncapped so overage can be reported;
    `display_percentage` is clamped to 0..100 for progress bars.
    """

    monthly_spending: Decimal
    monthly_budget: Decimal
    percentage: Decimal = Field(
        ...,
        description="Spending as a percentage of budget (uncapped)"
    )
    display_percentage: Decimal = Field(
        ...,
        description="Percentage clamped to 0..100 for visual display"
    )
    remaining: Decimal = Field(
        ...,
        description="Budget minus spending; negative when over budget"
    )
    over_budget: bool
    overage_amount: Decimal = Field(
        ...,
        description="How far over budget, never negative"
    )
    near_limit: bool = Field(
        default=False,
        description="Within the warning threshold but not yet over"
    )


class CategoryBreakdownEntry(BaseModel):
    """One category's share of spending."""

    category: str
    name: str
    icon: str
    color: str
    amount: Decimal
    percentage: Decimal = Field(
        ...,
        description="Share of total spending, rounded to 2 places"
    )
    formatted_amount: str


class TrendEntry(BaseModel):
    """A month in a trend series, with its change against the previous month."""

    label: str
    year: int
    month: int
    total: Decimal
    delta: Optional[Decimal] = Field(
        default=None,
        description="Signed change vs. the previous entry; None for the first"
    )
    direction: Optional[TrendDirection] = None


class CategorySummary(BaseModel):
    """Count and total for one category (admin views)."""

    category: str
    name: str
    count: int
    total: Decimal


class DashboardReport(BaseModel):
    """Everything the dashboard page renders for one user."""

    generated_for: date
    currency: str
    currency_symbol: str
    total_spending: Decimal
    monthly_spending: Decimal
    average_daily: Decimal
    average_per_transaction: Decimal
    expense_count: int
    budget: BudgetStatus
    category_breakdown: list[CategoryBreakdownEntry] = Field(default_factory=list)
    top_categories: list[CategoryBreakdownEntry] = Field(default_factory=list)
    trend: list[TrendEntry] = Field(default_factory=list)
    top_category: Optional[str] = None
    largest_expense: Optional[Expense] = None
    recent_expenses: list[Expense] = Field(default_factory=list)


class SpendingSummary(BaseModel):
    """All-time spending report for the reports page."""

    currency_symbol: str
    total_spending: Decimal
    expense_count: int
    average_per_transaction: Decimal
    category_breakdown: list[CategoryBreakdownEntry] = Field(default_factory=list)
    top_categories: list[CategoryBreakdownEntry] = Field(default_factory=list)
    trend: list[TrendEntry] = Field(default_factory=list)


class UserDetailReport(BaseModel):
    """Admin view of one user's spending."""

    user: UserPublic
    expense_count: int
    total_spending: Decimal
    by_category: list[CategorySummary] = Field(default_factory=list)
    monthly_spending: list[MonthlyTotal] = Field(default_factory=list)


class UserSpending(BaseModel):
    """Per-user totals in the admin statistics."""

    user_id: UUID
    count: int
    total: Decimal


class AdminStats(BaseModel):
    """Global statistics for the admin panel."""

    total_users: int
    admin_users: int
    total_expenses: int
    total_spending: Decimal
    expenses_by_user: list[UserSpending] = Field(default_factory=list)
