"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Swap Google Sheets for a real database later
2. Use in-memory storage for testing and local development
3. Keep business logic decoupled from storage implementation

The interface is intentionally simple - we're not building a full ORM.
Every write touches a single record; there are no multi-record
transactions. Callers that need several writes to succeed together
(signup, cascade delete) compensate on failure themselves.
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import Optional
from uuid import UUID

from expense_tracker.models.audit import AuditEvent
from expense_tracker.models.expense import Budget, Expense, User, UserSettings


class UserStorageInterface(ABC):
    """
    Abstract interface for user accounts.

    Emails are unique. Implementations compare them lowercase.
    """

    @abstractmethod
    async def create_user(self, user: User) -> User:
        """
        Insert a new user.

        Raises:
            DuplicateError: If the email is already registered
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def get_user(self, user_id: UUID) -> Optional[User]:
        """Retrieve a user by ID, or None."""
        pass

    @abstractmethod
    async def get_user_by_email(self, email: str) -> Optional[User]:
        """Retrieve a user by email (case-insensitive), or None."""
        pass

    @abstractmethod
    async def get_user_by_google_id(self, google_id: str) -> Optional[User]:
        """Retrieve a user by linked Google account, or None."""
        pass

    @abstractmethod
    async def update_user(self, user: User) -> User:
        """
        Replace a stored user.

        Raises:
            NotFoundError: If the user doesn't exist
            DuplicateError: If the new email belongs to another user
        """
        pass

    @abstractmethod
    async def delete_user(self, user_id: UUID) -> bool:
        """Delete a user. Returns False if there was nothing to delete."""
        pass

    @abstractmethod
    async def list_users(self) -> list[User]:
        """All users, oldest account first."""
        pass


class ExpenseStorageInterface(ABC):
    """
    Abstract interface for expense storage operations.

    Listing is always newest first: by expense date, then by
    creation time.
    """

    @abstractmethod
    async def save_expense(self, expense: Expense) -> Expense:
        """
        Insert a new expense.

        Raises:
            StorageError: If save fails
        """
        pass

    @abstractmethod
    async def get_expense(self, expense_id: UUID) -> Optional[Expense]:
        """Retrieve an expense by ID, or None."""
        pass

    @abstractmethod
    async def update_expense(self, expense: Expense) -> Expense:
        """
        Replace a stored expense.

        Raises:
            NotFoundError: If the expense doesn't exist
        """
        pass

    @abstractmethod
    async def delete_expense(self, expense_id: UUID) -> bool:
        """Delete an expense. Returns False if there was nothing to delete."""
        pass

    @abstractmethod
    async def list_expenses(
        self,
        owner_id: Optional[UUID] = None,
        category: Optional[str] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        limit: Optional[int] = None,
    ) -> list[Expense]:
        """
        List expenses with optional filters.

        Args:
            owner_id: Only this user's expenses (None = every user)
            category: Exact category key
            date_from: Expenses on or after this date
            date_to: Expenses on or before this date
            limit: Maximum number of results

        Returns:
            Matching expenses, newest first
        """
        pass

    @abstractmethod
    async def delete_expenses_for_owner(self, owner_id: UUID) -> int:
        """Delete every expense of one user. Returns how many were removed."""
        pass


class BudgetStorageInterface(ABC):
    """One budget record per user, keyed by owner."""

    @abstractmethod
    async def get_budget(self, owner_id: UUID) -> Optional[Budget]:
        pass

    @abstractmethod
    async def save_budget(self, budget: Budget) -> Budget:
        """Insert or replace the owner's budget."""
        pass

    @abstractmethod
    async def delete_budget(self, owner_id: UUID) -> bool:
        pass


class SettingsStorageInterface(ABC):
    """One settings record per user, keyed by owner."""

    @abstractmethod
    async def get_settings(self, owner_id: UUID) -> Optional[UserSettings]:
        pass

    @abstractmethod
    async def save_settings(self, settings: UserSettings) -> UserSettings:
        """Insert or replace the owner's settings."""
        pass

    @abstractmethod
    async def delete_settings(self, owner_id: UUID) -> bool:
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """Get all events for a correlation ID (one request), oldest first."""
        pass

    @abstractmethod
    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: UUID,
    ) -> list[AuditEvent]:
        """
        Get all events for a specific entity.

        Args:
            entity_type: Type of entity (e.g., 'user', 'expense')
            entity_id: The entity's ID

        Returns:
            List of events in chronological order
        """
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Get the most recent audit events, newest first."""
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
