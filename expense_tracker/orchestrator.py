"""
Application Wiring for Expense Tracker

This module ties together all the components: storage backends, the
audit logger, and the services the HTTP layer calls.

DESIGN DECISION: Components are built once, by one factory, and passed
in explicitly. Nothing below the API layer reads global state except
configuration, so tests can build a fully in-memory set of components
and hand it to the app.

Optional integrations (Google sign-in, Cloudinary) are switched off,
not failed, when their configuration is missing.
"""

from typing import Optional

import structlog
from pydantic import ValidationError

from expense_tracker.audit import AuditLogger
from expense_tracker.auth import GoogleOAuthClient, TokenService
from expense_tracker.config import Settings, get_settings
from expense_tracker.reports.service import ReportService
from expense_tracker.services.accounts import AccountService
from expense_tracker.services.expenses import ExpenseService
from expense_tracker.services.image import ProfilePictureService
from expense_tracker.services.storage import (
    AuditStorageInterface,
    BudgetStorageInterface,
    ExpenseStorageInterface,
    InMemoryAuditStorage,
    InMemoryBudgetStorage,
    InMemoryExpenseStorage,
    InMemorySettingsStorage,
    InMemoryUserStorage,
    SettingsStorageInterface,
    UserStorageInterface,
)


logger = structlog.get_logger("expense_tracker.orchestrator")


class Storages:
    """The five storage backends, always built together."""

    def __init__(
        self,
        users: UserStorageInterface,
        expenses: ExpenseStorageInterface,
        budgets: BudgetStorageInterface,
        settings: SettingsStorageInterface,
        audit: AuditStorageInterface,
    ):
        self.users = users
        self.expenses = expenses
        self.budgets = budgets
        self.settings = settings
        self.audit = audit


def create_memory_storages() -> Storages:
    return Storages(
        users=InMemoryUserStorage(),
        expenses=InMemoryExpenseStorage(),
        budgets=InMemoryBudgetStorage(),
        settings=InMemorySettingsStorage(),
        audit=InMemoryAuditStorage(),
    )


def create_google_sheets_storages() -> Storages:
    # Imported here so gspread is only loaded when the backend is used
    from expense_tracker.services.storage.google_sheets import (
        GoogleSheetsAuditStorage,
        GoogleSheetsBudgetStorage,
        GoogleSheetsClient,
        GoogleSheetsExpenseStorage,
        GoogleSheetsSettingsStorage,
        GoogleSheetsUserStorage,
    )

    client = GoogleSheetsClient()
    client.get_spreadsheet()  # fail fast on bad credentials
    return Storages(
        users=GoogleSheetsUserStorage(client),
        expenses=GoogleSheetsExpenseStorage(client),
        budgets=GoogleSheetsBudgetStorage(client),
        settings=GoogleSheetsSettingsStorage(client),
        audit=GoogleSheetsAuditStorage(client),
    )


class AppComponents:
    """Everything the API needs, built from one set of storages."""

    def __init__(
        self,
        storages: Storages,
        settings: Optional[Settings] = None,
        google_oauth: Optional[GoogleOAuthClient] = None,
        picture_service: Optional[ProfilePictureService] = None,
    ):
        settings = settings or get_settings()
        app_settings = settings.app

        self.storages = storages
        self.app_settings = app_settings
        self.audit_logger = AuditLogger(storages.audit)
        self.tokens = TokenService(settings.auth)
        self.google_oauth = google_oauth
        self.pictures = picture_service or ProfilePictureService(app_settings)

        self.accounts = AccountService(
            user_storage=storages.users,
            expense_storage=storages.expenses,
            budget_storage=storages.budgets,
            settings_storage=storages.settings,
            token_service=self.tokens,
            audit_logger=self.audit_logger,
            picture_service=self.pictures,
            app_settings=app_settings,
        )
        self.expenses = ExpenseService(
            expense_storage=storages.expenses,
            audit_logger=self.audit_logger,
        )
        self.reports = ReportService(
            user_storage=storages.users,
            expense_storage=storages.expenses,
            budget_storage=storages.budgets,
            settings_storage=storages.settings,
            audit_logger=self.audit_logger,
            app_settings=app_settings,
        )


def _optional_google_oauth(settings: Settings) -> Optional[GoogleOAuthClient]:
    try:
        return GoogleOAuthClient(settings.google_oauth)
    except ValidationError:
        logger.info("google_oauth_disabled", reason="GOOGLE_CLIENT_ID/SECRET not set")
        return None


def _picture_service(settings: Settings) -> ProfilePictureService:
    try:
        cloudinary_settings = settings.cloudinary
    except ValidationError:
        logger.info("cloudinary_disabled", reason="CLOUDINARY_* not set")
        cloudinary_settings = None
    return ProfilePictureService(settings.app, cloudinary_settings)


def create_app_components(
    backend: Optional[str] = None,
) -> AppComponents:
    """
    Factory function to create all application components.

    Args:
        backend: "memory" or "google_sheets". Defaults to the
                 STORAGE_BACKEND setting.

    If Google Sheets is requested but cannot be reached, the app falls
    back to in-memory storage and logs a warning.
    """
    settings = get_settings()
    backend = backend or settings.app.storage_backend

    if backend == "google_sheets":
        try:
            storages = create_google_sheets_storages()
        except Exception as e:
            # Storage not configured - continue without it
            logger.warning("storage_fallback_to_memory", backend=backend, error=str(e))
            storages = create_memory_storages()
    else:
        storages = create_memory_storages()

    return AppComponents(
        storages=storages,
        settings=settings,
        google_oauth=_optional_google_oauth(settings),
        picture_service=_picture_service(settings),
    )
