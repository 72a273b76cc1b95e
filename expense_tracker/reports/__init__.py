"""
Reporting Package

Pure aggregation, budget evaluation and formatting functions, plus the
ReportService that runs them over stored data.
"""

from expense_tracker.reports.aggregator import (
    aggregate_by_category,
    aggregate_by_month,
    average_per_transaction,
    count_by_category,
    expenses_in_month,
    largest_expense,
    monthly_spending,
    top_category,
    total_spending,
)
from expense_tracker.reports.budget import average_daily, evaluate
from expense_tracker.reports.formatter import (
    category_breakdown,
    format_amount,
    month_trend,
    top_categories,
)
from expense_tracker.reports.lookups import get_category_info, get_currency_symbol

__all__ = [
    "aggregate_by_category",
    "aggregate_by_month",
    "average_daily",
    "average_per_transaction",
    "category_breakdown",
    "count_by_category",
    "evaluate",
    "expenses_in_month",
    "format_amount",
    "get_category_info",
    "get_currency_symbol",
    "largest_expense",
    "month_trend",
    "monthly_spending",
    "top_categories",
    "top_category",
    "total_spending",
]
