"""Tests for the in-memory storage backend and the audit logger."""

import asyncio

import pytest
from datetime import date
from decimal import Decimal
from uuid import uuid4

from expense_tracker.audit import AuditLogger, create_correlation_id
from expense_tracker.models.audit import AuditEventBuilder, AuditEventType
from expense_tracker.models.expense import Budget, User
from expense_tracker.services.storage import (
    DuplicateError,
    InMemoryAuditStorage,
    InMemoryBudgetStorage,
    InMemoryExpenseStorage,
    InMemoryUserStorage,
    NotFoundError,
)

from conftest import make_expense


def run(coro):
    return asyncio.run(coro)


class TestInMemoryUserStorage:
    def test_email_is_unique(self):
        storage = InMemoryUserStorage()
        run(storage.create_user(User(name="A", email="a@example.com")))
        with pytest.raises(DuplicateError):
            run(storage.create_user(User(name="B", email="A@example.com")))

    def test_lookup(self):
        storage = InMemoryUserStorage()
        user = User(name="A", email="a@example.com", google_id="g-1")
        run(storage.create_user(user))
        assert run(storage.get_user(user.id)).id == user.id
        assert run(storage.get_user_by_email(" A@Example.com ")).id == user.id
        assert run(storage.get_user_by_google_id("g-1")).id == user.id
        assert run(storage.get_user_by_google_id("g-2")) is None

    def test_returned_records_are_copies(self):
        """Editing a returned model does not change storage until saved."""
        storage = InMemoryUserStorage()
        user = User(name="Alice", email="a@example.com")
        run(storage.create_user(user))

        fetched = run(storage.get_user(user.id))
        fetched.name = "Changed"
        assert run(storage.get_user(user.id)).name == "Alice"

        run(storage.update_user(fetched))
        assert run(storage.get_user(user.id)).name == "Changed"

    def test_update_missing(self):
        with pytest.raises(NotFoundError):
            run(InMemoryUserStorage().update_user(User(name="A", email="a@example.com")))

    def test_delete(self):
        storage = InMemoryUserStorage()
        user = User(name="A", email="a@example.com")
        run(storage.create_user(user))
        assert run(storage.delete_user(user.id)) is True
        assert run(storage.delete_user(user.id)) is False


class TestInMemoryExpenseStorage:
    def test_list_filters_and_order(self):
        storage = InMemoryExpenseStorage()
        owner = uuid4()
        for amount, category, on in [
            ("1", "food", date(2025, 1, 1)),
            ("2", "food", date(2025, 2, 1)),
            ("3", "transport", date(2025, 3, 1)),
        ]:
            run(storage.save_expense(make_expense(amount, category, on, owner_id=owner)))
        run(storage.save_expense(make_expense("99", owner_id=uuid4())))

        owned = run(storage.list_expenses(owner_id=owner))
        assert [e.amount for e in owned] == [Decimal("3"), Decimal("2"), Decimal("1")]
        assert len(run(storage.list_expenses())) == 4
        assert len(run(storage.list_expenses(owner_id=owner, category="food"))) == 2
        assert len(run(storage.list_expenses(owner_id=owner, date_from=date(2025, 2, 1)))) == 2
        assert len(run(storage.list_expenses(owner_id=owner, date_to=date(2025, 1, 31)))) == 1
        assert len(run(storage.list_expenses(owner_id=owner, limit=1))) == 1

    def test_delete_for_owner(self):
        storage = InMemoryExpenseStorage()
        owner = uuid4()
        run(storage.save_expense(make_expense("1", owner_id=owner)))
        run(storage.save_expense(make_expense("2", owner_id=owner)))
        run(storage.save_expense(make_expense("3")))
        assert run(storage.delete_expenses_for_owner(owner)) == 2
        assert len(run(storage.list_expenses())) == 1


class TestInMemoryBudgetStorage:
    def test_save_is_upsert(self):
        storage = InMemoryBudgetStorage()
        owner = uuid4()
        run(storage.save_budget(Budget(owner_id=owner)))
        run(storage.save_budget(Budget(owner_id=owner, monthly_budget=Decimal("10"))))
        assert run(storage.get_budget(owner)).monthly_budget == Decimal("10")


class FailingAuditStorage(InMemoryAuditStorage):
    async def append_event(self, event):
        raise RuntimeError("sheet unavailable")


class TestAuditLogger:
    def test_persists_events(self):
        storage = InMemoryAuditStorage()
        logger = AuditLogger(storage)
        correlation_id = create_correlation_id()

        run(logger.log_budget_updated(uuid4(), "500", correlation_id))

        events = run(storage.get_events_by_correlation_id(correlation_id))
        assert [e.event_type for e in events] == [AuditEventType.BUDGET_UPDATED]

    def test_storage_failure_is_swallowed(self):
        """A broken audit store never breaks the request."""
        logger = AuditLogger(FailingAuditStorage())
        event = AuditEventBuilder.login_failed("a@example.com", "wrong_password")
        assert run(logger.log(event)) is False

    def test_without_storage(self):
        assert run(AuditLogger().log(AuditEventBuilder.admin_flag_migrated(uuid4(), "x"))) is True
