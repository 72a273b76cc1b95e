"""Tests for the pure aggregation functions."""

from datetime import date
from decimal import Decimal
from uuid import uuid4

from expense_tracker.reports import aggregator
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

from conftest import make_expense


class TestTotals:
    """Tests for total, average and largest."""

    def test_total_spending(self):
        expenses = [make_expense("12.50"), make_expense("45.00")]
        assert total_spending(expenses) == Decimal("57.50")

    def test_empty_input_is_zero(self):
        """Empty input never raises."""
        assert total_spending([]) == Decimal("0")
        assert average_per_transaction([]) == Decimal("0")
        assert largest_expense([]) is None
        assert top_category([]) is None
        assert aggregate_by_category([]) == {}

    def test_average_per_transaction(self):
        expenses = [make_expense("10"), make_expense("20"), make_expense("30")]
        assert average_per_transaction(expenses) == Decimal("20")

    def test_largest_expense(self):
        big = make_expense("99.99")
        assert largest_expense([make_expense("5"), big, make_expense("50")]) is big

    def test_negative_amounts_are_summed_not_rejected(self):
        """Bad stored data degrades instead of failing the report."""
        assert total_spending([make_expense("10"), make_expense("-4")]) == Decimal("6")


class TestGroupByCategory:
    """Tests for category grouping."""

    def test_aggregate_by_category(self):
        expenses = [
            make_expense("12.50", "food"),
            make_expense("7.50", "food"),
            make_expense("30", "transport"),
        ]
        assert aggregate_by_category(expenses) == {
            "food": Decimal("20.00"),
            "transport": Decimal("30"),
        }

    def test_group_totals_add_up_with_unknown_categories(self):
        """Unknown category keys are kept, so every amount is counted once."""
        expenses = [
            make_expense("10", "food"),
            make_expense("5", "groceries"),
            make_expense("1", "other"),
        ]
        totals = aggregate_by_category(expenses)
        assert totals["groceries"] == Decimal("5")
        assert sum(totals.values()) == total_spending(expenses)

    def test_count_by_category(self):
        expenses = [make_expense("1", "food"), make_expense("2", "food"), make_expense("3", "other")]
        assert count_by_category(expenses) == {"food": 2, "other": 1}

    def test_top_category(self):
        expenses = [make_expense("10", "food"), make_expense("25", "shopping")]
        assert top_category(expenses) == "shopping"

    def test_top_category_tie_goes_to_first_key(self):
        expenses = [make_expense("10", "transport"), make_expense("10", "food")]
        assert top_category(expenses) == "food"


class TestGroupByMonth:
    """Tests for month bucketing and trailing windows."""

    def test_expenses_in_month(self):
        march = make_expense("10", on=date(2025, 3, 31))
        april = make_expense("20", on=date(2025, 4, 1))
        assert expenses_in_month([march, april], 2025, 3) == [march]
        assert monthly_spending([march, april], 2025, 4) == Decimal("20")

    def test_window_is_zero_filled_oldest_first(self):
        expenses = [
            make_expense("100", on=date(2025, 1, 15)),
            make_expense("50", on=date(2025, 3, 2)),
            make_expense("25", on=date(2025, 3, 20)),
        ]
        months = aggregate_by_month(expenses, months_back=3, reference_date=date(2025, 3, 25))

        assert [(m.year, m.month) for m in months] == [(2025, 1), (2025, 2), (2025, 3)]
        assert [m.total for m in months] == [Decimal("100"), Decimal("0"), Decimal("75")]
        assert [m.count for m in months] == [1, 0, 2]
        assert months[0].label == "Jan 2025"

    def test_window_crosses_year_boundary(self):
        months = aggregate_by_month([], months_back=3, reference_date=date(2025, 2, 1))
        assert [(m.year, m.month) for m in months] == [(2024, 12), (2025, 1), (2025, 2)]

    def test_expenses_outside_window_are_ignored(self):
        old = make_expense("500", on=date(2024, 1, 1))
        months = aggregate_by_month([old], months_back=6, reference_date=date(2025, 3, 1))
        assert len(months) == 6
        assert all(m.total == Decimal("0") for m in months)

    def test_default_window_is_six_months(self):
        assert len(aggregate_by_month([])) == 6

    def test_non_positive_window_is_empty(self):
        assert aggregate_by_month([make_expense("1")], months_back=0) == []

    def test_default_reference_is_utc_today(self, monkeypatch):
        monkeypatch.setattr(aggregator, "utc_today", lambda: date(2025, 6, 15))
        months = aggregate_by_month([], months_back=1)
        assert (months[0].year, months[0].month) == (2025, 6)

    def test_owner_is_irrelevant_to_grouping(self):
        expenses = [make_expense("1", owner_id=uuid4()), make_expense("2", owner_id=uuid4())]
        assert total_spending(expenses) == Decimal("3")
