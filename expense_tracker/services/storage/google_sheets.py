"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is kept as an optional storage backend because:
1. Non-technical users can view their data directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)

TRADEOFFS:
- Not suitable for high-volume data (fine for a personal/family tracker)
- No transactions (callers compensate on failure)
- Limited query capabilities (we filter in Python)

Each record type lives in its own worksheet, one record per row, with a
header row. Users, budgets and settings are looked up by the ID in the
first column.
"""

import json
from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

import gspread
import structlog
from google.oauth2.service_account import Credentials
from tenacity import retry, stop_after_attempt, wait_exponential

from expense_tracker.config import get_settings
from expense_tracker.models.audit import AuditEvent, AuditEventType, AuditSeverity
from expense_tracker.models.expense import (
    AuthProvider,
    Budget,
    Currency,
    Expense,
    Theme,
    User,
    UserSettings,
)
from expense_tracker.services.storage.interface import (
    AuditStorageInterface,
    BudgetStorageInterface,
    ConnectionError,
    DuplicateError,
    ExpenseStorageInterface,
    NotFoundError,
    SettingsStorageInterface,
    StorageError,
    UserStorageInterface,
)


logger = structlog.get_logger("expense_tracker.storage.google_sheets")


USER_COLUMNS = [
    "id",
    "name",
    "email",
    "password_hash",
    "google_id",
    "auth_provider",
    "is_admin",
    "profile_picture",
    "created_at",
    "updated_at",
]

EXPENSE_COLUMNS = [
    "id",
    "owner_id",
    "amount",
    "description",
    "category",
    "date",
    "created_at",
    "updated_at",
]

BUDGET_COLUMNS = [
    "owner_id",
    "monthly_budget",
    "created_at",
    "updated_at",
]

SETTINGS_COLUMNS = [
    "owner_id",
    "theme",
    "currency",
    "date_format",
    "notifications",
    "created_at",
    "updated_at",
]

AUDIT_COLUMNS = [
    "event_id",
    "timestamp",
    "event_type",
    "severity",
    "entity_type",
    "entity_id",
    "actor_id",
    "correlation_id",
    "description",
    "details_json",
    "error_message",
    "is_user_action",
]

sheets_retry = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=2, max=10),
    reraise=True,
)


def _safe_getter(row: list):
    """Return a getter that tolerates short rows."""
    def safe_get(index: int, default: str = "") -> str:
        try:
            return row[index] if row[index] else default
        except IndexError:
            return default
    return safe_get


def _find_row(sheet: gspread.Worksheet, key: str) -> Optional[int]:
    """1-based row number whose first column equals `key`, or None."""
    for idx, row in enumerate(sheet.get_all_values()[1:], start=2):  # row 1 is header
        if row and row[0] == key:
            return idx
    return None


def _replace_row(sheet: gspread.Worksheet, idx: int, row: list) -> None:
    sheet.update(range_name=f"A{idx}", values=[row], value_input_option="RAW")


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = get_settings().google_sheets

    @sheets_retry
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def _get_or_create(self, title: str, columns: list[str], rows: int = 1000) -> gspread.Worksheet:
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=rows,
                cols=len(columns),
            )
            sheet.append_row(columns)
        return sheet

    def get_users_sheet(self) -> gspread.Worksheet:
        return self._get_or_create(self._settings.users_sheet_name, USER_COLUMNS)

    def get_expenses_sheet(self) -> gspread.Worksheet:
        return self._get_or_create(self._settings.expenses_sheet_name, EXPENSE_COLUMNS)

    def get_budgets_sheet(self) -> gspread.Worksheet:
        return self._get_or_create(self._settings.budgets_sheet_name, BUDGET_COLUMNS)

    def get_settings_sheet(self) -> gspread.Worksheet:
        return self._get_or_create(self._settings.settings_sheet_name, SETTINGS_COLUMNS)

    def get_audit_sheet(self) -> gspread.Worksheet:
        # More rows for audit log
        return self._get_or_create(self._settings.audit_sheet_name, AUDIT_COLUMNS, rows=5000)


# =============================================================================
# USERS
# =============================================================================

class GoogleSheetsUserStorage(UserStorageInterface):
    """Users worksheet, one account per row."""

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _user_to_row(self, user: User) -> list:
        return [
            str(user.id),
            user.name,
            user.email,
            user.password_hash or "",
            user.google_id or "",
            user.auth_provider.value,
            str(user.is_admin),
            user.profile_picture or "",
            user.created_at.isoformat(),
            user.updated_at.isoformat(),
        ]

    def _row_to_user(self, row: list) -> User:
        safe_get = _safe_getter(row)
        return User(
            id=UUID(safe_get(0)),
            name=safe_get(1),
            email=safe_get(2),
            password_hash=safe_get(3) or None,
            google_id=safe_get(4) or None,
            auth_provider=AuthProvider(safe_get(5, AuthProvider.LOCAL.value)),
            is_admin=safe_get(6).lower() == "true",
            profile_picture=safe_get(7) or None,
            created_at=datetime.fromisoformat(safe_get(8)),
            updated_at=datetime.fromisoformat(safe_get(9)),
        )

    def _all_users(self) -> list[User]:
        users = []
        for row in self._client.get_users_sheet().get_all_values()[1:]:
            if not row or not row[0]:
                continue
            try:
                users.append(self._row_to_user(row))
            except Exception:
                logger.warning("skipping_malformed_row", sheet="users", row_id=row[0])
        return users

    async def create_user(self, user: User) -> User:
        if await self.get_user_by_email(user.email):
            raise DuplicateError(f"Email already registered: {user.email}")
        try:
            await self._append(user)
            return user
        except Exception as e:
            raise StorageError(f"Failed to save user: {e}")

    @sheets_retry
    async def _append(self, user: User) -> None:
        sheet = self._client.get_users_sheet()
        sheet.append_row(self._user_to_row(user), value_input_option="RAW")

    async def get_user(self, user_id: UUID) -> Optional[User]:
        try:
            for user in self._all_users():
                if user.id == user_id:
                    return user
            return None
        except Exception as e:
            raise StorageError(f"Failed to get user: {e}")

    async def get_user_by_email(self, email: str) -> Optional[User]:
        email = email.strip().lower()
        try:
            for user in self._all_users():
                if user.email == email:
                    return user
            return None
        except Exception as e:
            raise StorageError(f"Failed to get user: {e}")

    async def get_user_by_google_id(self, google_id: str) -> Optional[User]:
        try:
            for user in self._all_users():
                if user.google_id == google_id:
                    return user
            return None
        except Exception as e:
            raise StorageError(f"Failed to get user: {e}")

    async def update_user(self, user: User) -> User:
        existing = await self.get_user_by_email(user.email)
        if existing and existing.id != user.id:
            raise DuplicateError(f"Email already registered: {user.email}")
        try:
            sheet = self._client.get_users_sheet()
            idx = _find_row(sheet, str(user.id))
            if idx is None:
                raise NotFoundError(f"User not found: {user.id}")
            _replace_row(sheet, idx, self._user_to_row(user))
            return user
        except NotFoundError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to update user: {e}")

    async def delete_user(self, user_id: UUID) -> bool:
        try:
            sheet = self._client.get_users_sheet()
            idx = _find_row(sheet, str(user_id))
            if idx is None:
                return False
            sheet.delete_rows(idx)
            return True
        except Exception as e:
            raise StorageError(f"Failed to delete user: {e}")

    async def list_users(self) -> list[User]:
        try:
            return sorted(self._all_users(), key=lambda u: u.created_at)
        except Exception as e:
            raise StorageError(f"Failed to list users: {e}")


# =============================================================================
# EXPENSES
# =============================================================================

class GoogleSheetsExpenseStorage(ExpenseStorageInterface):
    """
    Expenses worksheet, one expense per row.

    Unknown category values are read back as stored.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _expense_to_row(self, expense: Expense) -> list:
        return [
            str(expense.id),
            str(expense.owner_id),
            str(expense.amount),
            expense.description,
            expense.category,
            expense.date.isoformat(),
            expense.created_at.isoformat(),
            expense.updated_at.isoformat(),
        ]

    def _row_to_expense(self, row: list) -> Expense:
        safe_get = _safe_getter(row)
        return Expense(
            id=UUID(safe_get(0)),
            owner_id=UUID(safe_get(1)),
            amount=Decimal(safe_get(2, "0")),
            description=safe_get(3),
            category=safe_get(4, "other"),
            date=date.fromisoformat(safe_get(5)),
            created_at=datetime.fromisoformat(safe_get(6)),
            updated_at=datetime.fromisoformat(safe_get(7)),
        )

    @sheets_retry
    async def save_expense(self, expense: Expense) -> Expense:
        try:
            sheet = self._client.get_expenses_sheet()
            sheet.append_row(self._expense_to_row(expense), value_input_option="RAW")
            return expense
        except Exception as e:
            raise StorageError(f"Failed to save expense: {e}")

    async def get_expense(self, expense_id: UUID) -> Optional[Expense]:
        try:
            sheet = self._client.get_expenses_sheet()
            for row in sheet.get_all_values()[1:]:
                if row and row[0] == str(expense_id):
                    return self._row_to_expense(row)
            return None
        except Exception as e:
            raise StorageError(f"Failed to get expense: {e}")

    async def update_expense(self, expense: Expense) -> Expense:
        try:
            sheet = self._client.get_expenses_sheet()
            idx = _find_row(sheet, str(expense.id))
            if idx is None:
                raise NotFoundError(f"Expense not found: {expense.id}")
            _replace_row(sheet, idx, self._expense_to_row(expense))
            return expense
        except NotFoundError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to update expense: {e}")

    async def delete_expense(self, expense_id: UUID) -> bool:
        try:
            sheet = self._client.get_expenses_sheet()
            idx = _find_row(sheet, str(expense_id))
            if idx is None:
                return False
            sheet.delete_rows(idx)
            return True
        except Exception as e:
            raise StorageError(f"Failed to delete expense: {e}")

    async def list_expenses(
        self,
        owner_id: Optional[UUID] = None,
        category: Optional[str] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        limit: Optional[int] = None,
    ) -> list[Expense]:
        try:
            sheet = self._client.get_expenses_sheet()
            all_rows = sheet.get_all_values()[1:]  # Skip header

            expenses = []
            for row in all_rows:
                if not row or not row[0]:  # Skip empty rows
                    continue
                if owner_id and (len(row) < 2 or row[1] != str(owner_id)):
                    continue

                try:
                    expense = self._row_to_expense(row)
                except Exception:
                    logger.warning("skipping_malformed_row", sheet="expenses", row_id=row[0])
                    continue

                if category and expense.category != category:
                    continue
                if date_from and expense.date < date_from:
                    continue
                if date_to and expense.date > date_to:
                    continue

                expenses.append(expense)

            # Newest first
            expenses.sort(key=lambda e: (e.date, e.created_at), reverse=True)
            if limit is not None:
                expenses = expenses[:limit]
            return expenses
        except Exception as e:
            raise StorageError(f"Failed to list expenses: {e}")

    async def delete_expenses_for_owner(self, owner_id: UUID) -> int:
        try:
            sheet = self._client.get_expenses_sheet()
            doomed = [
                idx
                for idx, row in enumerate(sheet.get_all_values()[1:], start=2)
                if len(row) > 1 and row[1] == str(owner_id)
            ]
            # Bottom-up so earlier row numbers stay valid
            for idx in reversed(doomed):
                sheet.delete_rows(idx)
            return len(doomed)
        except Exception as e:
            raise StorageError(f"Failed to delete expenses: {e}")


# =============================================================================
# BUDGETS AND SETTINGS
# =============================================================================

class GoogleSheetsBudgetStorage(BudgetStorageInterface):
    """Budgets worksheet, keyed by owner ID."""

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _budget_to_row(self, budget: Budget) -> list:
        return [
            str(budget.owner_id),
            str(budget.monthly_budget),
            budget.created_at.isoformat(),
            budget.updated_at.isoformat(),
        ]

    def _row_to_budget(self, row: list) -> Budget:
        safe_get = _safe_getter(row)
        return Budget(
            owner_id=UUID(safe_get(0)),
            monthly_budget=Decimal(safe_get(1, "0")),
            created_at=datetime.fromisoformat(safe_get(2)),
            updated_at=datetime.fromisoformat(safe_get(3)),
        )

    async def get_budget(self, owner_id: UUID) -> Optional[Budget]:
        try:
            sheet = self._client.get_budgets_sheet()
            for row in sheet.get_all_values()[1:]:
                if row and row[0] == str(owner_id):
                    return self._row_to_budget(row)
            return None
        except Exception as e:
            raise StorageError(f"Failed to get budget: {e}")

    @sheets_retry
    async def save_budget(self, budget: Budget) -> Budget:
        try:
            sheet = self._client.get_budgets_sheet()
            row = self._budget_to_row(budget)
            idx = _find_row(sheet, str(budget.owner_id))
            if idx is None:
                sheet.append_row(row, value_input_option="RAW")
            else:
                _replace_row(sheet, idx, row)
            return budget
        except Exception as e:
            raise StorageError(f"Failed to save budget: {e}")

    async def delete_budget(self, owner_id: UUID) -> bool:
        try:
            sheet = self._client.get_budgets_sheet()
            idx = _find_row(sheet, str(owner_id))
            if idx is None:
                return False
            sheet.delete_rows(idx)
            return True
        except Exception as e:
            raise StorageError(f"Failed to delete budget: {e}")


class GoogleSheetsSettingsStorage(SettingsStorageInterface):
    """Settings worksheet, keyed by owner ID."""

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _settings_to_row(self, settings: UserSettings) -> list:
        return [
            str(settings.owner_id),
            settings.theme.value,
            settings.currency.value,
            settings.date_format,
            str(settings.notifications),
            settings.created_at.isoformat(),
            settings.updated_at.isoformat(),
        ]

    def _row_to_settings(self, row: list) -> UserSettings:
        safe_get = _safe_getter(row)
        return UserSettings(
            owner_id=UUID(safe_get(0)),
            theme=Theme(safe_get(1, Theme.LIGHT.value)),
            currency=Currency(safe_get(2, Currency.USD.value)),
            date_format=safe_get(3, "MM/DD/YYYY"),
            notifications=safe_get(4, "True").lower() == "true",
            created_at=datetime.fromisoformat(safe_get(5)),
            updated_at=datetime.fromisoformat(safe_get(6)),
        )

    async def get_settings(self, owner_id: UUID) -> Optional[UserSettings]:
        try:
            sheet = self._client.get_settings_sheet()
            for row in sheet.get_all_values()[1:]:
                if row and row[0] == str(owner_id):
                    return self._row_to_settings(row)
            return None
        except Exception as e:
            raise StorageError(f"Failed to get settings: {e}")

    @sheets_retry
    async def save_settings(self, settings: UserSettings) -> UserSettings:
        try:
            sheet = self._client.get_settings_sheet()
            row = self._settings_to_row(settings)
            idx = _find_row(sheet, str(settings.owner_id))
            if idx is None:
                sheet.append_row(row, value_input_option="RAW")
            else:
                _replace_row(sheet, idx, row)
            return settings
        except Exception as e:
            raise StorageError(f"Failed to save settings: {e}")

    async def delete_settings(self, owner_id: UUID) -> bool:
        try:
            sheet = self._client.get_settings_sheet()
            idx = _find_row(sheet, str(owner_id))
            if idx is None:
                return False
            sheet.delete_rows(idx)
            return True
        except Exception as e:
            raise StorageError(f"Failed to delete settings: {e}")


# =============================================================================
# AUDIT LOG
# =============================================================================

class GoogleSheetsAuditStorage(AuditStorageInterface):
    """
    Google Sheets implementation of audit log storage.

    Audit events are append-only.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _row_to_event(self, row: list) -> AuditEvent:
        """Convert a spreadsheet row to an AuditEvent."""
        safe_get = _safe_getter(row)
        return AuditEvent(
            event_id=UUID(safe_get(0)),
            timestamp=datetime.fromisoformat(safe_get(1)),
            event_type=AuditEventType(safe_get(2)),
            severity=AuditSeverity(safe_get(3)),
            entity_type=safe_get(4) or None,
            entity_id=UUID(safe_get(5)) if safe_get(5) else None,
            actor_id=UUID(safe_get(6)) if safe_get(6) else None,
            correlation_id=UUID(safe_get(7)) if safe_get(7) else None,
            description=safe_get(8),
            details=json.loads(safe_get(9)) if safe_get(9) else {},
            error_message=safe_get(10) or None,
            is_user_action=safe_get(11).lower() == "true",
        )

    def _all_events(self) -> list[AuditEvent]:
        events = []
        for row in self._client.get_audit_sheet().get_all_values()[1:]:
            if not row or not row[0]:
                continue
            try:
                events.append(self._row_to_event(row))
            except Exception:
                continue
        return events

    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event. Failures are logged, not raised."""
        try:
            await self._append(event)
            return True
        except Exception as e:
            logger.warning("audit_write_failed", event_id=str(event.event_id), error=str(e))
            return False

    @sheets_retry
    async def _append(self, event: AuditEvent) -> None:
        sheet = self._client.get_audit_sheet()
        sheet.append_row(event.to_sheets_row(), value_input_option="RAW")

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        try:
            events = [e for e in self._all_events() if e.correlation_id == correlation_id]
            events.sort(key=lambda e: e.timestamp)
            return events
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")

    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: UUID,
    ) -> list[AuditEvent]:
        try:
            events = [
                e for e in self._all_events()
                if e.entity_type == entity_type and e.entity_id == entity_id
            ]
            events.sort(key=lambda e: e.timestamp)
            return events
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        try:
            events = self._all_events()
            # Sort newest first
            events.sort(key=lambda e: e.timestamp, reverse=True)
            return events[:limit]
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")
