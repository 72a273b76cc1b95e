"""
Configuration Management for Expense Tracker

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
This makes it easy to see what external dependencies exist and
ensures all required configuration is validated at startup.
"""

from decimal import Decimal
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class CloudinarySettings(BaseSettings):
    """Cloudinary profile picture hosting configuration."""

    model_config = SettingsConfigDict(
        env_prefix="CLOUDINARY_",
        extra="ignore"
    )

    cloud_name: str = Field(
        ...,
        description="Cloudinary cloud name"
    )
    api_key: str = Field(
        ...,
        description="Cloudinary API key"
    )
    api_secret: str = Field(
        ...,
        description="Cloudinary API secret"
    )
    folder: str = Field(
        default="expense_tracker/avatars",
        description="Folder that profile pictures are uploaded into"
    )


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_SHEETS_",
        extra="ignore"
    )

    credentials_path: str = Field(
        ...,
        description="Path to Google service account credentials JSON"
    )
    spreadsheet_id: str = Field(
        ...,
        description="ID of the Google Sheets spreadsheet to use"
    )

    # Worksheet names within the spreadsheet
    users_sheet_name: str = Field(default="Users")
    expenses_sheet_name: str = Field(default="Expenses")
    budgets_sheet_name: str = Field(default="Budgets")
    settings_sheet_name: str = Field(default="Settings")
    audit_sheet_name: str = Field(
        default="AuditLog",
        description="Name of the sheet for audit logs"
    )

    @field_validator('credentials_path')
    @classmethod
    def validate_credentials_path(cls, v: str) -> str:
        """Warn if credentials file doesn't exist (but don't fail - might be mounted later)."""
        if not Path(v).exists():
            import warnings
            warnings.warn(
                f"Google credentials file not found at {v}. "
                "Make sure it exists before running the application."
            )
        return v


class GoogleOAuthSettings(BaseSettings):
    """Google sign-in (OAuth 2.0) configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_",
        extra="ignore"
    )

    client_id: str = Field(
        ...,
        description="OAuth client ID from the Google Cloud console"
    )
    client_secret: str = Field(
        ...,
        description="OAuth client secret"
    )
    redirect_uri: str = Field(
        default="http://localhost:8000/api/auth/google/callback",
        description="Callback URL registered with Google"
    )


class AuthSettings(BaseSettings):
    """Password and token configuration."""

    model_config = SettingsConfigDict(
        env_prefix="AUTH_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    jwt_secret: str = Field(
        default="change-me-in-production",
        min_length=8,
        description="Secret used to sign access tokens"
    )
    jwt_algorithm: str = Field(
        default="HS256",
        description="JWT signing algorithm"
    )
    token_expire_minutes: int = Field(
        default=60 * 24 * 7,
        ge=1,
        description="Access token lifetime in minutes"
    )


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    storage_backend: str = Field(
        default="memory",
        pattern="^(memory|google_sheets)$",
        description="Which storage implementation to use"
    )

    # Budget and report defaults
    default_monthly_budget: Decimal = Field(
        default=Decimal("3000"),
        ge=0,
        description="Monthly budget given to every new account"
    )
    budget_warning_threshold: Decimal = Field(
        default=Decimal("80"),
        ge=0,
        le=100,
        description="Percentage of budget at which a near-limit warning is raised"
    )
    report_months: int = Field(
        default=6,
        ge=1,
        le=24,
        description="Number of trailing months in trend reports"
    )
    top_categories: int = Field(
        default=5,
        ge=1,
        le=8,
        description="How many categories the dashboard highlights"
    )

    # Profile pictures
    max_profile_picture_mb: int = Field(
        default=2,
        ge=1,
        le=10,
        description="Maximum profile picture size in MB"
    )

    # HTTP surface
    cors_origins: str = Field(
        default="http://localhost:8501,http://127.0.0.1:8501",
        description="Comma-separated list of allowed CORS origins"
    )
    frontend_url: str = Field(
        default="http://localhost:8501",
        description="Where OAuth callbacks redirect the browser"
    )
    api_base_url: str = Field(
        default="http://localhost:8000",
        description="Base URL the client uses to reach the API"
    )

    @property
    def cors_origins_list(self) -> list[str]:
        """Get CORS origins as a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def max_profile_picture_bytes(self) -> int:
        """Get max profile picture size in bytes."""
        return self.max_profile_picture_mb * 1024 * 1024


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Note: These are loaded lazily to allow partial configuration

    @property
    def cloudinary(self) -> CloudinarySettings:
        return CloudinarySettings()

    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()

    @property
    def google_oauth(self) -> GoogleOAuthSettings:
        return GoogleOAuthSettings()

    @property
    def auth(self) -> AuthSettings:
        return AuthSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}.
    Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    sections = {
        "cloudinary": lambda: settings.cloudinary,
        "google_sheets": lambda: settings.google_sheets,
        "google_oauth": lambda: settings.google_oauth,
        "auth": lambda: settings.auth,
        "app": lambda: settings.app,
    }

    for name, load in sections.items():
        try:
            load()
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
