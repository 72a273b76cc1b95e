"""Configuration package."""

from expense_tracker.config.settings import (
    AppSettings,
    AuthSettings,
    CloudinarySettings,
    GoogleOAuthSettings,
    GoogleSheetsSettings,
    Settings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "AuthSettings",
    "CloudinarySettings",
    "GoogleOAuthSettings",
    "GoogleSheetsSettings",
    "Settings",
    "get_settings",
    "validate_all_settings",
]
