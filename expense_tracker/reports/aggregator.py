"""
Expense Aggregator

Pure functions that group and sum a list of expenses.

DESIGN DECISION: Aggregation is DEFENSIVE, not validating.
Validation belongs to the write path. Here we only guarantee that no
input - empty lists, zero or negative amounts, unknown categories -
ever raises. Degenerate input degrades to zero values.

MONTH BUCKETING: an expense belongs to the (year, month) of its stored
calendar `date`. Dates carry no time or timezone, so bucketing is the
same on every host. The "current month" that trailing windows end on
is taken from an explicit reference date, defaulting to today in UTC.

ORDERING: every monthly series is returned OLDEST FIRST, most recent
month last, matching the left-to-right order of a trend chart.
"""

from collections import defaultdict
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Iterable, Optional

from expense_tracker.models.expense import Expense, ExpenseCategory
from expense_tracker.models.report import MonthlyTotal


ZERO = Decimal("0")

DEFAULT_MONTHS_BACK = 6


def _amount(expense: Expense) -> Decimal:
    """Read an expense amount as Decimal, treating unreadable values as zero."""
    value = getattr(expense, "amount", None)
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return ZERO


def _category_key(expense: Expense) -> str:
    category = getattr(expense, "category", None)
    if isinstance(category, ExpenseCategory):
        return category.value
    return category or ExpenseCategory.OTHER.value


def _shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    """Move (year, month) by `delta` months."""
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def utc_today() -> date:
    return datetime.utcnow().date()


def month_label(year: int, month: int) -> str:
    """Short display label, e.g. 'Jan 2025'."""
    return date(year, month, 1).strftime("%b %Y")


# =============================================================================
# TOTALS
# =============================================================================

def total_spending(expenses: Iterable[Expense]) -> Decimal:
    """Plain sum of all amounts."""
    return sum((_amount(e) for e in expenses), ZERO)


def average_per_transaction(expenses: Iterable[Expense]) -> Decimal:
    """Total divided by count; zero when there are no expenses."""
    expenses = list(expenses)
    if not expenses:
        return ZERO
    return total_spending(expenses) / len(expenses)


def largest_expense(expenses: Iterable[Expense]) -> Optional[Expense]:
    """The single biggest expense, or None for an empty list."""
    expenses = list(expenses)
    if not expenses:
        return None
    return max(expenses, key=_amount)


# =============================================================================
# GROUPING BY CATEGORY
# =============================================================================

def aggregate_by_category(expenses: Iterable[Expense]) -> dict[str, Decimal]:
    """
    Sum amounts per stored category key.

    Unknown keys are kept as they are, so every amount is counted
    exactly once and the group totals always add up to the overall total.
    Display code maps unknown keys to "Other".
    """
    totals: dict[str, Decimal] = defaultdict(lambda: ZERO)
    for expense in expenses:
        totals[_category_key(expense)] += _amount(expense)
    return dict(totals)


def count_by_category(expenses: Iterable[Expense]) -> dict[str, int]:
    """Number of expenses per stored category key."""
    counts: dict[str, int] = defaultdict(int)
    for expense in expenses:
        counts[_category_key(expense)] += 1
    return dict(counts)


def top_category(expenses: Iterable[Expense]) -> Optional[str]:
    """
    Category with the largest total.

    Ties go to the alphabetically first key. None for empty input.
    """
    totals = aggregate_by_category(expenses)
    if not totals:
        return None
    return min(totals.items(), key=lambda item: (-item[1], item[0]))[0]


# =============================================================================
# GROUPING BY MONTH
# =============================================================================

def expenses_in_month(
    expenses: Iterable[Expense],
    year: int,
    month: int,
) -> list[Expense]:
    """Expenses whose date falls in the given calendar month."""
    matched = []
    for expense in expenses:
        expense_date = getattr(expense, "date", None)
        if expense_date is not None and expense_date.year == year and expense_date.month == month:
            matched.append(expense)
    return matched


def monthly_spending(expenses: Iterable[Expense], year: int, month: int) -> Decimal:
    """Total spent in the given calendar month."""
    return total_spending(expenses_in_month(expenses, year, month))


def aggregate_by_month(
    expenses: Iterable[Expense],
    months_back: int = DEFAULT_MONTHS_BACK,
    reference_date: Optional[date] = None,
) -> list[MonthlyTotal]:
    """
    Totals for the trailing `months_back` months, oldest first.

    Always returns exactly `months_back` entries ending with the month of
    `reference_date` (default: today, UTC). Months without expenses are
    zero-filled. Expenses outside the window are ignored.
    """
    if months_back <= 0:
        return []

    reference = reference_date or utc_today()

    buckets: dict[tuple[int, int], MonthlyTotal] = {}
    for offset in range(months_back - 1, -1, -1):
        year, month = _shift_month(reference.year, reference.month, -offset)
        buckets[(year, month)] = MonthlyTotal(
            year=year,
            month=month,
            label=month_label(year, month),
        )

    for expense in expenses:
        expense_date = getattr(expense, "date", None)
        if expense_date is None:
            continue
        bucket = buckets.get((expense_date.year, expense_date.month))
        if bucket is None:
            continue
        bucket.total += _amount(expense)
        bucket.count += 1

    # dicts keep insertion order, which was built oldest first
    return list(buckets.values())
