"""
Expense Service

Create, read, update and delete expenses, always scoped to one owner.

CRITICAL: An expense that belongs to someone else is reported as NOT
FOUND, never as forbidden, so expense IDs cannot be probed across
accounts. Only the admin delete path crosses owners.
"""

from datetime import date, datetime
from typing import Optional
from uuid import UUID

from expense_tracker.audit import AuditLogger
from expense_tracker.auth import require_admin
from expense_tracker.models.expense import Expense, User
from expense_tracker.services.storage import ExpenseStorageInterface, NotFoundError
from expense_tracker.validation import ExpenseValidationError, ExpenseValidator


class ExpenseService:
    """Owner-scoped expense operations with validation and auditing."""

    def __init__(
        self,
        expense_storage: ExpenseStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
        validator: Optional[ExpenseValidator] = None,
    ):
        self._expenses = expense_storage
        self._audit = audit_logger or AuditLogger()
        self._validator = validator or ExpenseValidator()

    async def _validated(
        self,
        data: dict,
        partial: bool,
        owner_id: UUID,
        correlation_id: Optional[UUID],
    ) -> tuple[dict, list[str]]:
        cleaned, result = self._validator.validate(data, partial=partial)
        if result.has_errors:
            await self._audit.log_validation_failed(
                "expense", result.issues, owner_id, correlation_id
            )
            raise ExpenseValidationError(result)
        return cleaned, result.warnings

    async def list_expenses(
        self,
        owner_id: UUID,
        category: Optional[str] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> list[Expense]:
        """The owner's expenses, newest first, optionally filtered."""
        return await self._expenses.list_expenses(
            owner_id=owner_id,
            category=category,
            date_from=start,
            date_to=end,
        )

    async def get_expense(self, owner_id: UUID, expense_id: UUID) -> Expense:
        expense = await self._expenses.get_expense(expense_id)
        if expense is None or expense.owner_id != owner_id:
            raise NotFoundError("Expense not found")
        return expense

    async def create_expense(
        self,
        owner_id: UUID,
        data: dict,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[Expense, list[str]]:
        """
        Validate and store a new expense.

        Returns:
            (expense, warnings). Warnings do not block the write.

        Raises:
            ExpenseValidationError: If any field is invalid
        """
        cleaned, warnings = await self._validated(data, False, owner_id, correlation_id)

        expense = Expense(owner_id=owner_id, **cleaned)
        await self._expenses.save_expense(expense)

        await self._audit.log_expense_created(
            expense.id, owner_id, str(expense.amount), expense.category, correlation_id
        )
        return expense, warnings

    async def update_expense(
        self,
        owner_id: UUID,
        expense_id: UUID,
        data: dict,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[Expense, list[str]]:
        """
        Apply a partial update.

        The fields present in `data` get the same checks as on create,
        so an update cannot set a zero or negative amount.
        """
        expense = await self.get_expense(owner_id, expense_id)
        cleaned, warnings = await self._validated(data, True, owner_id, correlation_id)

        for field, value in cleaned.items():
            setattr(expense, field, value)
        if cleaned:
            expense.updated_at = datetime.utcnow()
            await self._expenses.update_expense(expense)

        await self._audit.log_expense_updated(
            expense.id, owner_id, sorted(cleaned), correlation_id
        )
        return expense, warnings

    async def delete_expense(
        self,
        owner_id: UUID,
        expense_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        expense = await self.get_expense(owner_id, expense_id)
        await self._expenses.delete_expense(expense.id)
        await self._audit.log_expense_deleted(expense.id, owner_id, owner_id, correlation_id)

    async def admin_delete_expense(
        self,
        expense_id: UUID,
        actor: User,
        correlation_id: Optional[UUID] = None,
    ) -> Expense:
        """Delete any user's expense. Admins only."""
        require_admin(actor)
        expense = await self._expenses.get_expense(expense_id)
        if expense is None:
            raise NotFoundError("Expense not found")
        await self._expenses.delete_expense(expense.id)
        await self._audit.log_expense_deleted(
            expense.id, expense.owner_id, actor.id, correlation_id
        )
        return expense
