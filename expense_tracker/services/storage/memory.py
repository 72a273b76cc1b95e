"""
In-Memory Storage Implementation

Default backend for local development and the backend every test runs on.

DESIGN DECISION: Records are copied on the way in and on the way out.
Callers mutate the models they get back (e.g. to apply an update) and
those edits must not leak into storage until they are saved explicitly,
the same as with a remote backend.
"""

from datetime import date
from typing import Optional
from uuid import UUID

from expense_tracker.models.audit import AuditEvent
from expense_tracker.models.expense import Budget, Expense, User, UserSettings
from expense_tracker.services.storage.interface import (
    AuditStorageInterface,
    BudgetStorageInterface,
    DuplicateError,
    ExpenseStorageInterface,
    NotFoundError,
    SettingsStorageInterface,
    UserStorageInterface,
)


def _newest_first(expense: Expense):
    return (expense.date, expense.created_at)


class InMemoryUserStorage(UserStorageInterface):
    """Users keyed by ID."""

    def __init__(self):
        self._users: dict[UUID, User] = {}

    def _email_taken(self, email: str, exclude_id: Optional[UUID] = None) -> bool:
        email = email.lower()
        return any(
            u.email == email and u.id != exclude_id
            for u in self._users.values()
        )

    async def create_user(self, user: User) -> User:
        if self._email_taken(user.email):
            raise DuplicateError(f"Email already registered: {user.email}")
        self._users[user.id] = user.model_copy(deep=True)
        return user

    async def get_user(self, user_id: UUID) -> Optional[User]:
        user = self._users.get(user_id)
        return user.model_copy(deep=True) if user else None

    async def get_user_by_email(self, email: str) -> Optional[User]:
        email = email.strip().lower()
        for user in self._users.values():
            if user.email == email:
                return user.model_copy(deep=True)
        return None

    async def get_user_by_google_id(self, google_id: str) -> Optional[User]:
        for user in self._users.values():
            if user.google_id and user.google_id == google_id:
                return user.model_copy(deep=True)
        return None

    async def update_user(self, user: User) -> User:
        if user.id not in self._users:
            raise NotFoundError(f"User {user.id} not found")
        if self._email_taken(user.email, exclude_id=user.id):
            raise DuplicateError(f"Email already registered: {user.email}")
        self._users[user.id] = user.model_copy(deep=True)
        return user

    async def delete_user(self, user_id: UUID) -> bool:
        return self._users.pop(user_id, None) is not None

    async def list_users(self) -> list[User]:
        users = sorted(self._users.values(), key=lambda u: u.created_at)
        return [u.model_copy(deep=True) for u in users]


class InMemoryExpenseStorage(ExpenseStorageInterface):
    """Expenses keyed by ID."""

    def __init__(self):
        self._expenses: dict[UUID, Expense] = {}

    async def save_expense(self, expense: Expense) -> Expense:
        self._expenses[expense.id] = expense.model_copy(deep=True)
        return expense

    async def get_expense(self, expense_id: UUID) -> Optional[Expense]:
        expense = self._expenses.get(expense_id)
        return expense.model_copy(deep=True) if expense else None

    async def update_expense(self, expense: Expense) -> Expense:
        if expense.id not in self._expenses:
            raise NotFoundError(f"Expense {expense.id} not found")
        self._expenses[expense.id] = expense.model_copy(deep=True)
        return expense

    async def delete_expense(self, expense_id: UUID) -> bool:
        return self._expenses.pop(expense_id, None) is not None

    async def list_expenses(
        self,
        owner_id: Optional[UUID] = None,
        category: Optional[str] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        limit: Optional[int] = None,
    ) -> list[Expense]:
        results = []
        for expense in self._expenses.values():
            if owner_id and expense.owner_id != owner_id:
                continue
            if category and expense.category != category:
                continue
            if date_from and expense.date < date_from:
                continue
            if date_to and expense.date > date_to:
                continue
            results.append(expense.model_copy(deep=True))

        results.sort(key=_newest_first, reverse=True)
        if limit is not None:
            results = results[:limit]
        return results

    async def delete_expenses_for_owner(self, owner_id: UUID) -> int:
        doomed = [eid for eid, e in self._expenses.items() if e.owner_id == owner_id]
        for expense_id in doomed:
            del self._expenses[expense_id]
        return len(doomed)


class InMemoryBudgetStorage(BudgetStorageInterface):
    """Budgets keyed by owner."""

    def __init__(self):
        self._budgets: dict[UUID, Budget] = {}

    async def get_budget(self, owner_id: UUID) -> Optional[Budget]:
        budget = self._budgets.get(owner_id)
        return budget.model_copy(deep=True) if budget else None

    async def save_budget(self, budget: Budget) -> Budget:
        self._budgets[budget.owner_id] = budget.model_copy(deep=True)
        return budget

    async def delete_budget(self, owner_id: UUID) -> bool:
        return self._budgets.pop(owner_id, None) is not None


class InMemorySettingsStorage(SettingsStorageInterface):
    """Settings keyed by owner."""

    def __init__(self):
        self._settings: dict[UUID, UserSettings] = {}

    async def get_settings(self, owner_id: UUID) -> Optional[UserSettings]:
        settings = self._settings.get(owner_id)
        return settings.model_copy(deep=True) if settings else None

    async def save_settings(self, settings: UserSettings) -> UserSettings:
        self._settings[settings.owner_id] = settings.model_copy(deep=True)
        return settings

    async def delete_settings(self, owner_id: UUID) -> bool:
        return self._settings.pop(owner_id, None) is not None


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only list of events."""

    def __init__(self):
        self._events: list[AuditEvent] = []

    async def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        return [e for e in self._events if e.correlation_id == correlation_id]

    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: UUID,
    ) -> list[AuditEvent]:
        return [
            e for e in self._events
            if e.entity_type == entity_type and e.entity_id == entity_id
        ]

    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        return list(reversed(self._events))[:limit]
