"""
Audit Models for Expense Tracker

Every significant action in the system is logged for audit purposes.
This provides:
1. Complete traceability of all operations
2. Debugging information when things go wrong
3. Accountability for admin actions on other users' data
4. Ability to reconstruct history

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
Deleting a user does not delete the audit events about that user.
"""

import json
from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """
    Types of events we audit.
    """
    # Accounts
    USER_REGISTERED = "user_registered"
    LOGIN_SUCCEEDED = "login_succeeded"
    LOGIN_FAILED = "login_failed"
    OAUTH_LINKED = "oauth_linked"
    PROFILE_UPDATED = "profile_updated"

    # Expenses
    EXPENSE_CREATED = "expense_created"
    EXPENSE_UPDATED = "expense_updated"
    EXPENSE_DELETED = "expense_deleted"

    # Budget and settings
    BUDGET_UPDATED = "budget_updated"
    SETTINGS_UPDATED = "settings_updated"

    # Admin operations
    ADMIN_USER_DELETED = "admin_user_deleted"
    ADMIN_EXPENSE_DELETED = "admin_expense_deleted"
    ADMIN_FLAG_MIGRATED = "admin_flag_migrated"

    # Validation
    VALIDATION_FAILED = "validation_failed"

    # Reporting
    REPORT_GENERATED = "report_generated"

    # System events
    SYSTEM_ERROR = "system_error"
    EXTERNAL_SERVICE_ERROR = "external_service_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    Every significant action creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'user', 'expense', 'budget')"
    )
    entity_id: Optional[UUID] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    # Who did it (differs from the entity owner for admin actions)
    actor_id: Optional[UUID] = Field(
        default=None,
        description="ID of the user that triggered the event"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., all events in one request)"
    )

    # Event details
    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )

    # Additional data (event-specific)
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    # Error information (if applicable)
    error_code: Optional[str] = None
    error_message: Optional[str] = None

    # User action tracking
    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": str(self.entity_id) if self.entity_id else None,
            "actor_id": str(self.actor_id) if self.actor_id else None,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_code": self.error_code,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    def to_sheets_row(self) -> list:
        """
        Convert to a row suitable for Google Sheets storage.

        Returns columns in order:
        [event_id, timestamp, event_type, severity, entity_type, entity_id,
         actor_id, correlation_id, description, details_json, error_message,
         is_user_action]
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.entity_type or "",
            str(self.entity_id) if self.entity_id else "",
            str(self.actor_id) if self.actor_id else "",
            str(self.correlation_id) if self.correlation_id else "",
            self.description,
            json.dumps(self.details, default=str) if self.details else "",
            self.error_message or "",
            str(self.is_user_action),
        ]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.expense_created(expense_id, owner_id, "12.50", "food")
        event = AuditEventBuilder.user_deleted(user_id, admin_id, expenses_deleted=4)
    """

    @staticmethod
    def user_registered(
        user_id: UUID,
        email: str,
        provider: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_REGISTERED,
            entity_type="user",
            entity_id=user_id,
            actor_id=user_id,
            correlation_id=correlation_id,
            description=f"Account created via {provider}",
            details={
                "email": email,
                "provider": provider,
            },
            is_user_action=True,
        )

    @staticmethod
    def login_succeeded(
        user_id: UUID,
        provider: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LOGIN_SUCCEEDED,
            entity_type="user",
            entity_id=user_id,
            actor_id=user_id,
            correlation_id=correlation_id,
            description=f"Signed in via {provider}",
            details={"provider": provider},
            is_user_action=True,
        )

    @staticmethod
    def login_failed(
        email: str,
        reason: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LOGIN_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="user",
            correlation_id=correlation_id,
            description="Sign-in attempt rejected",
            details={
                "email": email,
                "reason": reason,
            },
            is_user_action=True,
        )

    @staticmethod
    def oauth_linked(
        user_id: UUID,
        provider: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.OAUTH_LINKED,
            entity_type="user",
            entity_id=user_id,
            actor_id=user_id,
            correlation_id=correlation_id,
            description=f"Existing account linked to {provider}",
            details={"provider": provider},
        )

    @staticmethod
    def profile_updated(
        user_id: UUID,
        fields: list[str],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PROFILE_UPDATED,
            entity_type="user",
            entity_id=user_id,
            actor_id=user_id,
            correlation_id=correlation_id,
            description=f"Profile updated: {', '.join(fields) or 'no changes'}",
            details={"fields": fields},
            is_user_action=True,
        )

    @staticmethod
    def expense_created(
        expense_id: UUID,
        owner_id: UUID,
        amount: str,
        category: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_CREATED,
            entity_type="expense",
            entity_id=expense_id,
            actor_id=owner_id,
            correlation_id=correlation_id,
            description=f"Expense recorded: {amount} in {category}",
            details={
                "amount": amount,
                "category": category,
            },
            is_user_action=True,
        )

    @staticmethod
    def expense_updated(
        expense_id: UUID,
        owner_id: UUID,
        fields: list[str],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_UPDATED,
            entity_type="expense",
            entity_id=expense_id,
            actor_id=owner_id,
            correlation_id=correlation_id,
            description=f"Expense updated: {', '.join(fields) or 'no changes'}",
            details={"fields": fields},
            is_user_action=True,
        )

    @staticmethod
    def expense_deleted(
        expense_id: UUID,
        owner_id: UUID,
        actor_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        by_admin = actor_id != owner_id
        return AuditEvent(
            event_type=(
                AuditEventType.ADMIN_EXPENSE_DELETED
                if by_admin
                else AuditEventType.EXPENSE_DELETED
            ),
            severity=AuditSeverity.WARNING if by_admin else AuditSeverity.INFO,
            entity_type="expense",
            entity_id=expense_id,
            actor_id=actor_id,
            correlation_id=correlation_id,
            description="Expense deleted by admin" if by_admin else "Expense deleted",
            details={"owner_id": str(owner_id)},
            is_user_action=True,
        )

    @staticmethod
    def budget_updated(
        owner_id: UUID,
        monthly_budget: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BUDGET_UPDATED,
            entity_type="budget",
            entity_id=owner_id,
            actor_id=owner_id,
            correlation_id=correlation_id,
            description=f"Monthly budget set to {monthly_budget}",
            details={"monthly_budget": monthly_budget},
            is_user_action=True,
        )

    @staticmethod
    def settings_updated(
        owner_id: UUID,
        fields: list[str],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SETTINGS_UPDATED,
            entity_type="settings",
            entity_id=owner_id,
            actor_id=owner_id,
            correlation_id=correlation_id,
            description=f"Settings updated: {', '.join(fields) or 'no changes'}",
            details={"fields": fields},
            is_user_action=True,
        )

    @staticmethod
    def user_deleted(
        user_id: UUID,
        actor_id: UUID,
        expenses_deleted: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ADMIN_USER_DELETED,
            severity=AuditSeverity.WARNING,
            entity_type="user",
            entity_id=user_id,
            actor_id=actor_id,
            correlation_id=correlation_id,
            description=f"User deleted by admin with {expenses_deleted} expenses",
            details={"expenses_deleted": expenses_deleted},
            is_user_action=True,
        )

    @staticmethod
    def admin_flag_migrated(user_id: UUID, email: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ADMIN_FLAG_MIGRATED,
            entity_type="user",
            entity_id=user_id,
            description="Admin flag set from legacy admin email",
            details={"email": email},
        )

    @staticmethod
    def validation_failed(
        entity_type: str,
        issues: list[dict],
        actor_id: Optional[UUID] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type=entity_type,
            actor_id=actor_id,
            correlation_id=correlation_id,
            description=f"Validation failed with {len(issues)} issues",
            details={"issues": issues},
        )

    @staticmethod
    def report_generated(
        report_type: str,
        user_id: Optional[UUID],
        expense_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.REPORT_GENERATED,
            severity=AuditSeverity.DEBUG,
            entity_type="report",
            entity_id=user_id,
            correlation_id=correlation_id,
            description=f"{report_type} report over {expense_count} expenses",
            details={
                "report_type": report_type,
                "expense_count": expense_count,
            },
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )

    @staticmethod
    def external_service_error(
        service: str,
        error_message: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXTERNAL_SERVICE_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"External service error: {service}",
            error_message=error_message,
            details={
                "service": service,
            },
            correlation_id=correlation_id,
        )
