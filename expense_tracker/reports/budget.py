"""
Budget Evaluator

Compares a month's spending against the user's budget ceiling.

DESIGN DECISION: The evaluator derives every budget figure callers need
(capped and uncapped percentage, remaining, overage, flags) in one place.
Callers must not re-compute them ad hoc, because the capped progress-bar
value and the uncapped overage value are easy to mix up.
"""

from decimal import Decimal

from expense_tracker.models.report import BudgetStatus


ZERO = Decimal("0")
HUNDRED = Decimal("100")

DEFAULT_WARNING_THRESHOLD = Decimal("80")


def _as_decimal(value) -> Decimal:
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def budget_percentage(monthly_spending, monthly_budget) -> Decimal:
    """Spending as a percentage of budget, uncapped. Zero when the budget is zero."""
    spending = _as_decimal(monthly_spending)
    budget = _as_decimal(monthly_budget)
    if budget <= 0:
        return ZERO
    return spending / budget * HUNDRED


def evaluate(
    monthly_spending,
    monthly_budget,
    warning_threshold=DEFAULT_WARNING_THRESHOLD,
) -> BudgetStatus:
    """
    Evaluate one month of spending against the budget.

    Args:
        monthly_spending: Total spent this month
        monthly_budget: The user's monthly ceiling
        warning_threshold: Percentage at which `near_limit` turns on

    Returns:
        BudgetStatus. `percentage` is uncapped, `display_percentage` is
        clamped to 0..100, `remaining` goes negative when over budget and
        `overage_amount` is never negative.
    """
    spending = _as_decimal(monthly_spending)
    budget = _as_decimal(monthly_budget)
    threshold = _as_decimal(warning_threshold)

    percentage = budget_percentage(spending, budget)
    remaining = budget - spending
    over_budget = remaining < 0

    return BudgetStatus(
        monthly_spending=spending,
        monthly_budget=budget,
        percentage=percentage,
        display_percentage=max(ZERO, min(percentage, HUNDRED)),
        remaining=remaining,
        over_budget=over_budget,
        overage_amount=max(ZERO, -remaining),
        near_limit=not over_budget and budget > 0 and percentage >= threshold,
    )


def average_daily(monthly_spending, day_of_month: int) -> Decimal:
    """Average spend per elapsed day of the month; day 0 is treated as day 1."""
    return _as_decimal(monthly_spending) / max(int(day_of_month), 1)
