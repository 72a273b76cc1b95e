"""
Services package.

Storage and profile-picture services are re-exported here. The account
and expense services import the audit logger, which itself depends on
storage, so import those from their modules directly.
"""

from expense_tracker.services.image import (
    ImageUploadError,
    InvalidImageError,
    ProfilePictureError,
    ProfilePictureService,
)
from expense_tracker.services.storage import (
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

__all__ = [
    # Profile pictures
    "ImageUploadError",
    "InvalidImageError",
    "ProfilePictureError",
    "ProfilePictureService",
    # Storage services
    "AuditStorageInterface",
    "BudgetStorageInterface",
    "ConnectionError",
    "DuplicateError",
    "ExpenseStorageInterface",
    "NotFoundError",
    "SettingsStorageInterface",
    "StorageError",
    "UserStorageInterface",
]
