"""
Account Service

Signup, login, Google sign-in, profile, budget and settings, and the
admin account operations.

DESIGN DECISION: Every account gets its Budget and Settings records at
creation time, never lazily on first read. Reads of a missing record
raise NotFoundError. Since storage has no multi-record transactions,
signup removes whatever it already wrote if a later write fails, so a
user never exists without both records. Accounts created before this
rule can be repaired with `backfill_defaults`.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

import structlog

from expense_tracker.audit import AuditLogger
from expense_tracker.auth import (
    LEGACY_ADMIN_EMAIL,
    AuthenticationError,
    AuthorizationError,
    GoogleProfile,
    TokenService,
    hash_password,
    is_admin,
    require_admin,
    verify_password,
)
from expense_tracker.auth.admin import _matches_legacy_admin_email
from expense_tracker.config import AppSettings, get_settings
from expense_tracker.models.expense import (
    AuthProvider,
    Budget,
    User,
    UserSettings,
)
from expense_tracker.services.image import ProfilePictureService
from expense_tracker.services.storage import (
    BudgetStorageInterface,
    DuplicateError,
    ExpenseStorageInterface,
    NotFoundError,
    SettingsStorageInterface,
    UserStorageInterface,
)
from expense_tracker.validation import AccountValidationError, AccountValidator


logger = structlog.get_logger("expense_tracker.services.accounts")

GENERIC_LOGIN_ERROR = "Invalid email or password"
EMAIL_TAKEN_ERROR = "An account with this email already exists"
DEFAULT_OAUTH_NAME = "User"


class AccountService:
    """
    All operations on user accounts and their per-user records.

    Methods that sign a user in return `(user, token)`.
    """

    def __init__(
        self,
        user_storage: UserStorageInterface,
        expense_storage: ExpenseStorageInterface,
        budget_storage: BudgetStorageInterface,
        settings_storage: SettingsStorageInterface,
        token_service: TokenService,
        audit_logger: Optional[AuditLogger] = None,
        picture_service: Optional[ProfilePictureService] = None,
        app_settings: Optional[AppSettings] = None,
    ):
        self._users = user_storage
        self._expenses = expense_storage
        self._budgets = budget_storage
        self._settings = settings_storage
        self._tokens = token_service
        self._audit = audit_logger or AuditLogger()
        self._pictures = picture_service
        self._app = app_settings or get_settings().app
        self._validator = AccountValidator()

    # =========================================================================
    # ACCOUNT CREATION
    # =========================================================================

    def _default_budget(self, owner_id: UUID) -> Budget:
        return Budget(owner_id=owner_id, monthly_budget=self._app.default_monthly_budget)

    async def _create_account(self, user: User) -> User:
        """
        Insert the user together with their default Budget and Settings.

        If any write fails, the writes already made are removed and the
        original error is re-raised.
        """
        await self._users.create_user(user)
        try:
            await self._budgets.save_budget(self._default_budget(user.id))
            await self._settings.save_settings(UserSettings(owner_id=user.id))
        except Exception:
            logger.error("account_defaults_failed", user_id=str(user.id), exc_info=True)
            await self._budgets.delete_budget(user.id)
            await self._settings.delete_settings(user.id)
            await self._users.delete_user(user.id)
            raise
        return user

    async def register(
        self,
        name,
        email,
        password,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[User, str]:
        """
        Create a local (password) account.

        Raises:
            AccountValidationError: Name, email or password invalid
            DuplicateError: Email already registered
        """
        try:
            cleaned = self._validator.validate_signup(name, email, password)
        except AccountValidationError as e:
            await self._audit.log_validation_failed("user", e.issues, correlation_id=correlation_id)
            raise

        if await self._users.get_user_by_email(cleaned["email"]):
            raise DuplicateError(EMAIL_TAKEN_ERROR)

        user = User(
            name=cleaned["name"],
            email=cleaned["email"],
            password_hash=hash_password(cleaned["password"]),
            auth_provider=AuthProvider.LOCAL,
            is_admin=_matches_legacy_admin_email(cleaned["email"]),
        )
        try:
            await self._create_account(user)
        except DuplicateError:
            # Lost a race with a concurrent signup for the same email
            raise DuplicateError(EMAIL_TAKEN_ERROR)

        await self._audit.log_user_registered(
            user.id, user.email, AuthProvider.LOCAL.value, correlation_id
        )
        return user, self._tokens.create_token(user.id)

    # =========================================================================
    # SIGN-IN
    # =========================================================================

    async def login(
        self,
        email,
        password,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[User, str]:
        """
        Password sign-in.

        Every failure raises the same AuthenticationError message, so a
        caller cannot tell which emails are registered.
        """
        cleaned = self._validator.validate_login(email, password)

        user = await self._users.get_user_by_email(cleaned["email"])
        if user is None:
            reason = "unknown_email"
        elif not user.password_hash:
            reason = "no_password_set"
        elif not verify_password(cleaned["password"], user.password_hash):
            reason = "wrong_password"
        else:
            reason = None

        if reason:
            await self._audit.log_login_failed(cleaned["email"], reason, correlation_id)
            raise AuthenticationError(GENERIC_LOGIN_ERROR)

        await self._audit.log_login_succeeded(user.id, AuthProvider.LOCAL.value, correlation_id)
        return user, self._tokens.create_token(user.id)

    async def sign_in_with_google(
        self,
        profile: GoogleProfile,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[User, str]:
        """
        Find or create the account for a Google profile.

        - Matched by Google ID first, then by email
        - Matching by email, linking and account creation need an
          email Google has verified
        - An existing email account gets the Google ID linked
        - The profile picture is refreshed from Google on every sign-in
        - A new account gets the default Budget and Settings

        Raises:
            AuthenticationError: If the Google profile carries no email,
                or an unverified one for an account not yet linked
        """
        if not profile.email:
            raise AuthenticationError("Google account has no email address")

        email = profile.email.strip().lower()
        user = await self._users.get_user_by_google_id(profile.google_id)
        if user is None:
            if not profile.verified_email:
                logger.warning("google_email_unverified", google_id=profile.google_id)
                raise AuthenticationError("Google account email is not verified")
            user = await self._users.get_user_by_email(email)

        if user is None:
            user = User(
                name=(profile.name or DEFAULT_OAUTH_NAME)[:100],
                email=email,
                google_id=profile.google_id,
                auth_provider=AuthProvider.GOOGLE,
                profile_picture=profile.picture,
                is_admin=_matches_legacy_admin_email(email),
            )
            await self._create_account(user)
            await self._audit.log_user_registered(
                user.id, user.email, AuthProvider.GOOGLE.value, correlation_id
            )
        else:
            if not user.google_id:
                user.google_id = profile.google_id
                user.auth_provider = AuthProvider.GOOGLE
                await self._audit.log_oauth_linked(
                    user.id, AuthProvider.GOOGLE.value, correlation_id
                )
            if profile.picture:
                user.profile_picture = profile.picture
            user.updated_at = datetime.utcnow()
            await self._users.update_user(user)

        await self._audit.log_login_succeeded(user.id, AuthProvider.GOOGLE.value, correlation_id)
        return user, self._tokens.create_token(user.id)

    async def authenticate_token(self, token: str) -> User:
        """
        Resolve a bearer token to its user.

        Raises:
            AuthenticationError: Bad token, or the user no longer exists
        """
        user_id = self._tokens.decode_token(token)
        user = await self._users.get_user(user_id)
        if user is None:
            raise AuthenticationError("User not found")
        return user

    # =========================================================================
    # PROFILE, BUDGET, SETTINGS
    # =========================================================================

    async def get_user(self, user_id: UUID) -> User:
        user = await self._users.get_user(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    async def update_profile(
        self,
        user_id: UUID,
        data: dict,
        correlation_id: Optional[UUID] = None,
    ) -> User:
        """Update display name and/or profile picture."""
        try:
            cleaned = self._validator.validate_profile(data)
        except AccountValidationError as e:
            await self._audit.log_validation_failed("user", e.issues, user_id, correlation_id)
            raise

        user = await self.get_user(user_id)

        if "name" in cleaned:
            user.name = cleaned["name"]
        if "profile_picture" in cleaned:
            picture = cleaned["profile_picture"]
            if self._pictures is not None:
                picture = self._pictures.process(picture, user_id)
            user.profile_picture = picture

        user.updated_at = datetime.utcnow()
        await self._users.update_user(user)
        await self._audit.log_profile_updated(user_id, sorted(cleaned), correlation_id)
        return user

    async def get_budget(self, user_id: UUID) -> Budget:
        budget = await self._budgets.get_budget(user_id)
        if budget is None:
            raise NotFoundError("Budget not found")
        return budget

    async def update_budget(
        self,
        user_id: UUID,
        data: dict,
        correlation_id: Optional[UUID] = None,
    ) -> Budget:
        try:
            cleaned = self._validator.validate_budget(data)
        except AccountValidationError as e:
            await self._audit.log_validation_failed("budget", e.issues, user_id, correlation_id)
            raise

        budget = await self.get_budget(user_id)
        if "monthly_budget" in cleaned:
            budget.monthly_budget = cleaned["monthly_budget"]
            budget.updated_at = datetime.utcnow()
            await self._budgets.save_budget(budget)
            await self._audit.log_budget_updated(
                user_id, str(budget.monthly_budget), correlation_id
            )
        return budget

    async def get_settings(self, user_id: UUID) -> UserSettings:
        settings = await self._settings.get_settings(user_id)
        if settings is None:
            raise NotFoundError("Settings not found")
        return settings

    async def update_settings(
        self,
        user_id: UUID,
        data: dict,
        correlation_id: Optional[UUID] = None,
    ) -> UserSettings:
        try:
            cleaned = self._validator.validate_settings(data)
        except AccountValidationError as e:
            await self._audit.log_validation_failed("settings", e.issues, user_id, correlation_id)
            raise

        settings = await self.get_settings(user_id)
        if cleaned:
            for field, value in cleaned.items():
                setattr(settings, field, value)
            settings.updated_at = datetime.utcnow()
            await self._settings.save_settings(settings)
            await self._audit.log_settings_updated(user_id, sorted(cleaned), correlation_id)
        return settings

    # =========================================================================
    # ADMIN OPERATIONS
    # =========================================================================

    async def list_users(self) -> list[User]:
        """All users, newest account first."""
        users = await self._users.list_users()
        return sorted(users, key=lambda u: u.created_at, reverse=True)

    async def delete_user(
        self,
        user_id: UUID,
        actor: User,
        correlation_id: Optional[UUID] = None,
    ) -> int:
        """
        Delete a user and everything they own.

        Expenses go first, then budget and settings, then the user, so an
        interrupted delete never leaves orphaned expenses behind a
        missing user.

        Returns:
            Number of expenses deleted

        Raises:
            AuthorizationError: Deleting yourself or another admin
            NotFoundError: No such user
        """
        require_admin(actor)
        if user_id == actor.id:
            raise AuthorizationError("Cannot delete your own account")

        target = await self.get_user(user_id)
        if is_admin(target):
            raise AuthorizationError("Cannot delete another admin account")

        deleted = await self._expenses.delete_expenses_for_owner(user_id)
        await self._budgets.delete_budget(user_id)
        await self._settings.delete_settings(user_id)
        await self._users.delete_user(user_id)

        await self._audit.log_user_deleted(user_id, actor.id, deleted, correlation_id)
        return deleted

    # =========================================================================
    # MAINTENANCE (used by scripts.init_admin)
    # =========================================================================

    async def ensure_defaults(self, user_id: UUID) -> list[str]:
        """Create a missing Budget and/or Settings. Returns what was created."""
        created = []
        if await self._budgets.get_budget(user_id) is None:
            await self._budgets.save_budget(self._default_budget(user_id))
            created.append("budget")
        if await self._settings.get_settings(user_id) is None:
            await self._settings.save_settings(UserSettings(owner_id=user_id))
            created.append("settings")
        return created

    async def backfill_defaults(self) -> dict[str, int]:
        """Run `ensure_defaults` for every user."""
        counts = {"users_checked": 0, "budgets_created": 0, "settings_created": 0}
        for user in await self._users.list_users():
            counts["users_checked"] += 1
            created = await self.ensure_defaults(user.id)
            if "budget" in created:
                counts["budgets_created"] += 1
            if "settings" in created:
                counts["settings_created"] += 1
        return counts

    async def migrate_admin_flags(self) -> list[User]:
        """
        Set `is_admin=True` on every account that is admin only through
        the legacy email. Returns the migrated users.
        """
        migrated = []
        for user in await self._users.list_users():
            if _matches_legacy_admin_email(user.email) and not user.is_admin:
                user.is_admin = True
                user.updated_at = datetime.utcnow()
                await self._users.update_user(user)
                await self._audit.log_admin_flag_migrated(user.id, user.email)
                migrated.append(user)
        return migrated

    async def ensure_admin_account(
        self,
        password: str,
        name: str = "Admin User",
        email: str = LEGACY_ADMIN_EMAIL,
    ) -> tuple[User, bool]:
        """
        Create the admin account, or make sure an existing one is flagged.

        Returns:
            (user, created)
        """
        existing = await self._users.get_user_by_email(email)
        if existing is not None:
            if not existing.is_admin:
                existing.is_admin = True
                existing.updated_at = datetime.utcnow()
                await self._users.update_user(existing)
            await self.ensure_defaults(existing.id)
            return existing, False

        cleaned = self._validator.validate_signup(name, email, password)
        user = User(
            name=cleaned["name"],
            email=cleaned["email"],
            password_hash=hash_password(cleaned["password"]),
            is_admin=True,
        )
        await self._create_account(user)
        await self._audit.log_user_registered(user.id, user.email, AuthProvider.LOCAL.value)
        return user, True
