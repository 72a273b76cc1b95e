"""
Report Formatter

Shapes aggregator and evaluator output into display-ready structures:
sorted category breakdowns with percentages, month-over-month trends,
and the "top N" slice shown on the dashboard.

DESIGN DECISION: Percentages are rounded to 2 places only here, at the
display edge. Raw totals stay unrounded so that the breakdown still adds
up to the overall total.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Mapping, Optional

from expense_tracker.models.report import (
    CategoryBreakdownEntry,
    MonthlyTotal,
    TrendDirection,
    TrendEntry,
)
from expense_tracker.reports.lookups import (
    DEFAULT_CURRENCY_SYMBOL,
    get_category_info,
    get_decimal_places,
)


ZERO = Decimal("0")
HUNDRED = Decimal("100")
CENTS = Decimal("0.01")

DEFAULT_TOP_N = 5


def format_amount(amount, currency_symbol: str = DEFAULT_CURRENCY_SYMBOL) -> str:
    """
    Format an amount for display, e.g. ``format_amount(1234.5, "$") == "$1,234.50"``.

    Negative amounts put the sign before the symbol: "-$50.00". Currencies
    without minor units drop the decimals: "¥1,235".
    """
    places = get_decimal_places(currency_symbol)
    step = Decimal(1).scaleb(-places)
    value = Decimal(str(amount)).quantize(step, rounding=ROUND_HALF_UP)
    sign = "-" if value < 0 else ""
    return f"{sign}{currency_symbol}{abs(value):,.{places}f}"


def _percentage_of(part: Decimal, total: Decimal) -> Decimal:
    if total == 0:
        return ZERO.quantize(CENTS)
    return (part / total * HUNDRED).quantize(CENTS, rounding=ROUND_HALF_UP)


def category_breakdown(
    category_totals: Mapping[str, Decimal],
    currency_symbol: str = DEFAULT_CURRENCY_SYMBOL,
) -> list[CategoryBreakdownEntry]:
    """
    Build the category breakdown, largest amount first.

    Args:
        category_totals: Output of `aggregate_by_category`
        currency_symbol: Symbol used for `formatted_amount`

    Returns:
        One entry per category key. Ties are ordered by key so the output
        is stable. When the total is zero every percentage is 0.
    """
    amounts = {key: Decimal(str(value)) for key, value in category_totals.items()}
    total = sum(amounts.values(), ZERO)

    ordered = sorted(amounts.items(), key=lambda item: (-item[1], item[0]))

    entries = []
    for key, amount in ordered:
        info = get_category_info(key)
        entries.append(CategoryBreakdownEntry(
            category=key,
            name=info.name,
            icon=info.icon,
            color=info.color,
            amount=amount,
            percentage=_percentage_of(amount, total),
            formatted_amount=format_amount(amount, currency_symbol),
        ))
    return entries


def top_categories(
    breakdown: list[CategoryBreakdownEntry],
    n: int = DEFAULT_TOP_N,
) -> list[CategoryBreakdownEntry]:
    """First `n` entries of an already sorted breakdown."""
    if n <= 0:
        return []
    return breakdown[:n]


def _direction(delta: Decimal) -> TrendDirection:
    if delta > 0:
        return TrendDirection.UP
    if delta < 0:
        return TrendDirection.DOWN
    return TrendDirection.FLAT


def month_trend(monthly_totals: Iterable[MonthlyTotal]) -> list[TrendEntry]:
    """
    Month-over-month trend, in the order given (oldest first).

    The first entry has no delta or direction. Each later entry carries
    the signed change against the entry before it.
    """
    trend = []
    previous: Optional[Decimal] = None
    for bucket in monthly_totals:
        delta = None if previous is None else bucket.total - previous
        trend.append(TrendEntry(
            label=bucket.label,
            year=bucket.year,
            month=bucket.month,
            total=bucket.total,
            delta=delta,
            direction=None if delta is None else _direction(delta),
        ))
        previous = bucket.total
    return trend
