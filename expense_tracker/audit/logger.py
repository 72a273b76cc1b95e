"""
Audit Logger

DESIGN DECISION: Every significant action in the system is logged.
This provides:
1. Complete traceability
2. Debugging capability
3. Accountability for admin actions

The audit logger:
- Is async so it fits the service call chain
- Gracefully handles failures (doesn't crash the app if logging fails)
- Supports correlation IDs to trace related events
"""

import logging
import sys
from typing import Optional
from uuid import UUID, uuid4

import structlog

from expense_tracker.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from expense_tracker.models.expense import ValidationIssue
from expense_tracker.services.storage import AuditStorageInterface


def configure_logging(level: int = logging.INFO) -> None:
    """Configure structlog for JSON logs to stdout."""
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)
    logging.getLogger().setLevel(level)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer()
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


# Configure structlog for local logging
configure_logging()


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. The audit store (for persistence), when one is configured
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("expense_tracker.audit")

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        # Always log locally
        log_dict = event.to_log_dict()

        if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        elif event.severity == AuditSeverity.DEBUG:
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        # Persist to storage if available
        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    # =========================================================================
    # ACCOUNTS
    # =========================================================================

    async def log_user_registered(
        self,
        user_id: UUID,
        email: str,
        provider: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.user_registered(
            user_id=user_id,
            email=email,
            provider=provider,
            correlation_id=correlation_id,
        ))

    async def log_login_succeeded(
        self,
        user_id: UUID,
        provider: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.login_succeeded(
            user_id=user_id,
            provider=provider,
            correlation_id=correlation_id,
        ))

    async def log_login_failed(
        self,
        email: str,
        reason: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """The reason is for the log only; callers show a generic message."""
        await self.log(AuditEventBuilder.login_failed(
            email=email,
            reason=reason,
            correlation_id=correlation_id,
        ))

    async def log_oauth_linked(
        self,
        user_id: UUID,
        provider: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.oauth_linked(
            user_id=user_id,
            provider=provider,
            correlation_id=correlation_id,
        ))

    async def log_profile_updated(
        self,
        user_id: UUID,
        fields: list[str],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.profile_updated(
            user_id=user_id,
            fields=fields,
            correlation_id=correlation_id,
        ))

    # =========================================================================
    # EXPENSES, BUDGET, SETTINGS
    # =========================================================================

    async def log_expense_created(
        self,
        expense_id: UUID,
        owner_id: UUID,
        amount: str,
        category: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.expense_created(
            expense_id=expense_id,
            owner_id=owner_id,
            amount=amount,
            category=category,
            correlation_id=correlation_id,
        ))

    async def log_expense_updated(
        self,
        expense_id: UUID,
        owner_id: UUID,
        fields: list[str],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.expense_updated(
            expense_id=expense_id,
            owner_id=owner_id,
            fields=fields,
            correlation_id=correlation_id,
        ))

    async def log_expense_deleted(
        self,
        expense_id: UUID,
        owner_id: UUID,
        actor_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.expense_deleted(
            expense_id=expense_id,
            owner_id=owner_id,
            actor_id=actor_id,
            correlation_id=correlation_id,
        ))

    async def log_budget_updated(
        self,
        owner_id: UUID,
        monthly_budget: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.budget_updated(
            owner_id=owner_id,
            monthly_budget=monthly_budget,
            correlation_id=correlation_id,
        ))

    async def log_settings_updated(
        self,
        owner_id: UUID,
        fields: list[str],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.settings_updated(
            owner_id=owner_id,
            fields=fields,
            correlation_id=correlation_id,
        ))

    # =========================================================================
    # ADMIN
    # =========================================================================

    async def log_user_deleted(
        self,
        user_id: UUID,
        actor_id: UUID,
        expenses_deleted: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.user_deleted(
            user_id=user_id,
            actor_id=actor_id,
            expenses_deleted=expenses_deleted,
            correlation_id=correlation_id,
        ))

    async def log_admin_flag_migrated(self, user_id: UUID, email: str) -> None:
        await self.log(AuditEventBuilder.admin_flag_migrated(user_id=user_id, email=email))

    # =========================================================================
    # VALIDATION, REPORTS, ERRORS
    # =========================================================================

    async def log_validation_failed(
        self,
        entity_type: str,
        issues: list[ValidationIssue],
        actor_id: Optional[UUID] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.validation_failed(
            entity_type=entity_type,
            issues=[issue.model_dump() for issue in issues],
            actor_id=actor_id,
            correlation_id=correlation_id,
        ))

    async def log_report_generated(
        self,
        report_type: str,
        user_id: Optional[UUID],
        expense_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.report_generated(
            report_type=report_type,
            user_id=user_id,
            expense_count=expense_count,
            correlation_id=correlation_id,
        ))

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        await self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        ))

    async def log_external_service_error(
        self,
        service: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log external service error."""
        await self.log(AuditEventBuilder.external_service_error(
            service=service,
            error_message=error_message,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of each request and pass it through all
    subsequent operations.
    """
    return uuid4()
