"""
Report Service

DESIGN DECISION: Report generation is DETERMINISTIC and READ-ONLY.
Each report runs the same fixed pipeline:

    fetch from storage -> aggregate -> evaluate budget -> format

strictly in that order, inside one call. Nothing is cached and nothing
is written back (apart from an audit event), so a report can be
regenerated at any time and always reflects what is in storage.

The arithmetic lives in the pure modules (aggregator, budget,
formatter). This class only fetches and wires.
"""

from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Optional
from uuid import UUID

from expense_tracker.audit import AuditLogger
from expense_tracker.auth.admin import is_admin
from expense_tracker.config import AppSettings, get_settings
from expense_tracker.models.report import (
    AdminStats,
    CategorySummary,
    DashboardReport,
    SpendingSummary,
    UserDetailReport,
    UserSpending,
)
from expense_tracker.reports import aggregator, budget, formatter
from expense_tracker.reports.lookups import get_category_name, get_currency_symbol
from expense_tracker.services.storage import (
    BudgetStorageInterface,
    ExpenseStorageInterface,
    NotFoundError,
    SettingsStorageInterface,
    UserStorageInterface,
)


RECENT_EXPENSES = 5
USER_DETAIL_MONTHS = 12


class ReportService:
    """
    Builds the dashboard, reports page and admin reports.

    GUARANTEES:
    - Only returns figures computed from stored data
    - Empty histories produce zero-valued reports, never errors
    """

    def __init__(
        self,
        user_storage: UserStorageInterface,
        expense_storage: ExpenseStorageInterface,
        budget_storage: BudgetStorageInterface,
        settings_storage: SettingsStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
        app_settings: Optional[AppSettings] = None,
    ):
        self._users = user_storage
        self._expenses = expense_storage
        self._budgets = budget_storage
        self._settings = settings_storage
        self._audit = audit_logger or AuditLogger()
        self._app = app_settings or get_settings().app

    async def _currency(self, user_id: UUID) -> tuple[str, str]:
        settings = await self._settings.get_settings(user_id)
        if settings is None:
            raise NotFoundError(f"Settings not found for user {user_id}")
        return settings.currency.value, get_currency_symbol(settings.currency)

    async def dashboard(
        self,
        user_id: UUID,
        today: Optional[date] = None,
        correlation_id: Optional[UUID] = None,
    ) -> DashboardReport:
        """
        Everything the dashboard shows for one user.

        "This month" is the calendar month of `today` (default: today, UTC).
        The category breakdown covers this month only; the trend covers
        the configured number of trailing months.
        """
        today = today or aggregator.utc_today()

        currency, symbol = await self._currency(user_id)
        user_budget = await self._budgets.get_budget(user_id)
        if user_budget is None:
            raise NotFoundError(f"Budget not found for user {user_id}")

        expenses = await self._expenses.list_expenses(owner_id=user_id)
        this_month = aggregator.expenses_in_month(expenses, today.year, today.month)
        monthly_spending = aggregator.total_spending(this_month)

        breakdown = formatter.category_breakdown(
            aggregator.aggregate_by_category(this_month),
            symbol,
        )
        trend = formatter.month_trend(
            aggregator.aggregate_by_month(
                expenses,
                months_back=self._app.report_months,
                reference_date=today,
            )
        )

        report = DashboardReport(
            generated_for=today,
            currency=currency,
            currency_symbol=symbol,
            total_spending=aggregator.total_spending(expenses),
            monthly_spending=monthly_spending,
            average_daily=budget.average_daily(monthly_spending, today.day),
            average_per_transaction=aggregator.average_per_transaction(expenses),
            expense_count=len(expenses),
            budget=budget.evaluate(
                monthly_spending,
                user_budget.monthly_budget,
                warning_threshold=self._app.budget_warning_threshold,
            ),
            category_breakdown=breakdown,
            top_categories=formatter.top_categories(breakdown, self._app.top_categories),
            trend=trend,
            top_category=aggregator.top_category(expenses),
            largest_expense=aggregator.largest_expense(expenses),
            recent_expenses=expenses[:RECENT_EXPENSES],
        )

        await self._audit.log_report_generated("dashboard", user_id, len(expenses), correlation_id)
        return report

    async def summary(
        self,
        user_id: UUID,
        months_back: Optional[int] = None,
        top_n: Optional[int] = None,
        today: Optional[date] = None,
        correlation_id: Optional[UUID] = None,
    ) -> SpendingSummary:
        """All-time breakdown plus the trailing-month trend."""
        _, symbol = await self._currency(user_id)
        expenses = await self._expenses.list_expenses(owner_id=user_id)

        breakdown = formatter.category_breakdown(
            aggregator.aggregate_by_category(expenses),
            symbol,
        )
        trend = formatter.month_trend(
            aggregator.aggregate_by_month(
                expenses,
                months_back=months_back or self._app.report_months,
                reference_date=today,
            )
        )

        report = SpendingSummary(
            currency_symbol=symbol,
            total_spending=aggregator.total_spending(expenses),
            expense_count=len(expenses),
            average_per_transaction=aggregator.average_per_transaction(expenses),
            category_breakdown=breakdown,
            top_categories=formatter.top_categories(breakdown, top_n or self._app.top_categories),
            trend=trend,
        )

        await self._audit.log_report_generated("summary", user_id, len(expenses), correlation_id)
        return report

    async def user_detail(
        self,
        user_id: UUID,
        today: Optional[date] = None,
    ) -> UserDetailReport:
        """Admin view: one user's totals per category and per month."""
        user = await self._users.get_user(user_id)
        if user is None:
            raise NotFoundError(f"User {user_id} not found")

        expenses = await self._expenses.list_expenses(owner_id=user_id)
        totals = aggregator.aggregate_by_category(expenses)
        counts = aggregator.count_by_category(expenses)

        by_category = [
            CategorySummary(
                category=key,
                name=get_category_name(key),
                count=counts.get(key, 0),
                total=total,
            )
            for key, total in sorted(totals.items(), key=lambda item: (-item[1], item[0]))
        ]

        public = user.to_public()
        public.is_admin = is_admin(user)

        return UserDetailReport(
            user=public,
            expense_count=len(expenses),
            total_spending=aggregator.total_spending(expenses),
            by_category=by_category,
            monthly_spending=aggregator.aggregate_by_month(
                expenses,
                months_back=USER_DETAIL_MONTHS,
                reference_date=today,
            ),
        )

    async def admin_stats(self) -> AdminStats:
        """Global counts and per-user spending, biggest spender first."""
        users = await self._users.list_users()
        expenses = await self._expenses.list_expenses()

        per_user: dict[UUID, list] = defaultdict(list)
        for expense in expenses:
            per_user[expense.owner_id].append(expense)

        expenses_by_user = [
            UserSpending(
                user_id=owner_id,
                count=len(owned),
                total=aggregator.total_spending(owned),
            )
            for owner_id, owned in per_user.items()
        ]
        expenses_by_user.sort(key=lambda s: (-s.total, str(s.user_id)))

        return AdminStats(
            total_users=len(users),
            admin_users=sum(1 for u in users if is_admin(u)),
            total_expenses=len(expenses),
            total_spending=aggregator.total_spending(expenses),
            expenses_by_user=expenses_by_user,
        )
