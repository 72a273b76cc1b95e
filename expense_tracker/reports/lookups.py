"""
Static display lookups: category labels/icons/colors and currency symbols.

Lookups never fail. An unknown category displays as "Other" and an
unknown currency displays with "$".
"""

from typing import NamedTuple, Optional, Union

from expense_tracker.models.expense import Currency, ExpenseCategory


class CategoryInfo(NamedTuple):
    name: str
    icon: str
    color: str


CATEGORY_INFO: dict[str, CategoryInfo] = {
    ExpenseCategory.FOOD.value: CategoryInfo("Food & Dining", "🍔", "#FF6B6B"),
    ExpenseCategory.TRANSPORT.value: CategoryInfo("Transportation", "🚗", "#4ECDC4"),
    ExpenseCategory.ENTERTAINMENT.value: CategoryInfo("Entertainment", "🎬", "#45B7D1"),
    ExpenseCategory.UTILITIES.value: CategoryInfo("Utilities", "⚡", "#FFA07A"),
    ExpenseCategory.SHOPPING.value: CategoryInfo("Shopping", "🛍️", "#98D8C8"),
    ExpenseCategory.HEALTHCARE.value: CategoryInfo("Healthcare", "🏥", "#F7DC6F"),
    ExpenseCategory.EDUCATION.value: CategoryInfo("Education", "📚", "#BB8FCE"),
    ExpenseCategory.OTHER.value: CategoryInfo("Other", "📋", "#85C1E2"),
}

FALLBACK_CATEGORY = CATEGORY_INFO[ExpenseCategory.OTHER.value]

CURRENCY_SYMBOLS: dict[str, str] = {
    Currency.USD.value: "$",
    Currency.EUR.value: "€",
    Currency.GBP.value: "£",
    Currency.JPY.value: "¥",
    Currency.CAD.value: "C$",
    Currency.PHP.value: "₱",
}

DEFAULT_CURRENCY_SYMBOL = "$"

# Keyed by symbol, since that is what the formatter is handed. Unlisted
# symbols show two decimal places.
CURRENCY_DECIMAL_PLACES: dict[str, int] = {
    CURRENCY_SYMBOLS[Currency.JPY.value]: 0,
}
DEFAULT_DECIMAL_PLACES = 2


def get_category_info(category: Optional[Union[str, ExpenseCategory]]) -> CategoryInfo:
    """Display info for a category key; unknown keys get the "Other" entry."""
    if isinstance(category, ExpenseCategory):
        category = category.value
    if not category:
        return FALLBACK_CATEGORY
    return CATEGORY_INFO.get(str(category).lower(), FALLBACK_CATEGORY)


def get_category_name(category: Optional[Union[str, ExpenseCategory]]) -> str:
    return get_category_info(category).name


def get_currency_symbol(currency: Optional[Union[str, Currency]]) -> str:
    """Symbol for a currency code; unknown or missing codes get "$"."""
    if isinstance(currency, Currency):
        currency = currency.value
    if not currency:
        return DEFAULT_CURRENCY_SYMBOL
    return CURRENCY_SYMBOLS.get(str(currency).upper(), DEFAULT_CURRENCY_SYMBOL)


def get_decimal_places(currency_symbol: Optional[str]) -> int:
    return CURRENCY_DECIMAL_PLACES.get(currency_symbol or "", DEFAULT_DECIMAL_PLACES)
