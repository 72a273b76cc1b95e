"""Tests for the budget evaluator."""

from decimal import Decimal

from expense_tracker.reports.budget import average_daily, budget_percentage, evaluate


class TestEvaluate:
    """Tests for evaluate()."""

    def test_over_budget(self):
        status = evaluate(Decimal("150"), Decimal("100"))
        assert status.percentage == Decimal("150")
        assert status.display_percentage == Decimal("100")
        assert status.remaining == Decimal("-50")
        assert status.over_budget is True
        assert status.overage_amount == Decimal("50")
        assert status.near_limit is False

    def test_at_warning_threshold(self):
        status = evaluate(Decimal("80"), Decimal("100"))
        assert status.percentage == Decimal("80")
        assert status.remaining == Decimal("20")
        assert status.over_budget is False
        assert status.overage_amount == Decimal("0")
        assert status.near_limit is True

    def test_below_threshold(self):
        status = evaluate(Decimal("57.50"), Decimal("100"))
        assert status.percentage == Decimal("57.5")
        assert status.remaining == Decimal("42.50")
        assert status.near_limit is False

    def test_zero_budget_never_divides(self):
        """A zero budget yields 0%, never a division error."""
        status = evaluate(Decimal("0"), Decimal("0"))
        assert status.percentage == Decimal("0")
        assert status.over_budget is False
        assert status.near_limit is False

    def test_spending_with_zero_budget_is_over(self):
        status = evaluate(Decimal("10"), Decimal("0"))
        assert status.percentage == Decimal("0")
        assert status.over_budget is True
        assert status.overage_amount == Decimal("10")

    def test_exactly_on_budget_is_not_over(self):
        status = evaluate(Decimal("100"), Decimal("100"))
        assert status.over_budget is False
        assert status.remaining == Decimal("0")
        assert status.near_limit is True

    def test_custom_threshold(self):
        assert evaluate(Decimal("60"), Decimal("100"), warning_threshold=50).near_limit is True
        assert evaluate(Decimal("60"), Decimal("100"), warning_threshold=90).near_limit is False

    def test_accepts_plain_numbers(self):
        status = evaluate(25, "50")
        assert status.percentage == Decimal("50")

    def test_negative_spending_keeps_display_in_range(self):
        """Refund-heavy months must not push the progress bar below zero."""
        status = evaluate(Decimal("-10"), Decimal("100"))
        assert status.percentage == Decimal("-10")
        assert status.display_percentage == Decimal("0")
        assert status.over_budget is False


class TestHelpers:
    def test_budget_percentage(self):
        assert budget_percentage(Decimal("25"), Decimal("200")) == Decimal("12.5")
        assert budget_percentage(Decimal("25"), Decimal("0")) == Decimal("0")

    def test_average_daily(self):
        assert average_daily(Decimal("300"), 10) == Decimal("30")

    def test_average_daily_day_zero(self):
        assert average_daily(Decimal("30"), 0) == Decimal("30")
