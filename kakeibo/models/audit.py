"""
Audit Models for the Household Ledger

Every significant step of the receipt pipeline and every ledger write
is recorded as an AuditEvent. This provides:
1. Traceability from a captured receipt to the transactions it produced
2. Debugging information when an engine misbehaves
3. A history the user can inspect

DESIGN DECISION: Audit events are append-only. We never delete or modify them.
The human-readable progress log shown during a capture is a separate thing;
audit events are for the developer and for history.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Capture / extraction
    CAPTURE_STARTED = "capture_started"
    EXTRACTION_COMPLETED = "extraction_completed"
    EXTRACTION_FAILED = "extraction_failed"
    EXTRACTION_DISCARDED = "extraction_discarded"

    # Review and commit
    ITEMS_COMMITTED = "items_committed"
    CAPTURE_DISCARDED = "capture_discarded"

    # Ledger writes
    TRANSACTION_SAVED = "transaction_saved"
    TRANSACTION_UPDATED = "transaction_updated"
    TRANSACTION_DELETED = "transaction_deleted"

    # System events
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class AuditEvent(BaseModel):
    """A single audit event."""

    event_id: UUID = Field(default_factory=uuid4)
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the event occurred (UTC)"
    )

    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'capture', 'transaction')"
    )
    entity_id: Optional[UUID] = None

    # Ties together every event of one capture session
    correlation_id: Optional[UUID] = None

    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)

    error_message: Optional[str] = None

    is_user_action: bool = False

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": str(self.entity_id) if self.entity_id else None,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.capture_started(session_id, "local-ocr", 1, 48213)
        event = AuditEventBuilder.items_committed(session_id, accepted=2, staged=3)
    """

    @staticmethod
    def capture_started(
        session_id: UUID,
        engine: str,
        generation: int,
        image_size: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CAPTURE_STARTED,
            entity_type="capture",
            entity_id=session_id,
            correlation_id=session_id,
            description=f"Receipt captured, extracting with {engine}",
            details={
                "engine": engine,
                "generation": generation,
                "image_size_bytes": image_size,
            },
            is_user_action=True,
        )

    @staticmethod
    def extraction_completed(
        session_id: UUID,
        engine: str,
        item_count: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXTRACTION_COMPLETED,
            entity_type="capture",
            entity_id=session_id,
            correlation_id=session_id,
            description=f"{engine} extracted {item_count} candidate items",
            details={
                "engine": engine,
                "item_count": item_count,
            },
        )

    @staticmethod
    def extraction_failed(
        session_id: UUID,
        engine: str,
        kind: str,
        message: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXTRACTION_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="capture",
            entity_id=session_id,
            correlation_id=session_id,
            description=f"{engine} extraction failed: {kind}",
            error_message=message,
            details={
                "engine": engine,
                "kind": kind,
            },
        )

    @staticmethod
    def extraction_discarded(
        session_id: UUID,
        engine: str,
        generation: int,
        current_generation: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXTRACTION_DISCARDED,
            severity=AuditSeverity.DEBUG,
            entity_type="capture",
            entity_id=session_id,
            correlation_id=session_id,
            description="Stale extraction result discarded",
            details={
                "engine": engine,
                "generation": generation,
                "current_generation": current_generation,
            },
        )

    @staticmethod
    def items_committed(
        session_id: UUID,
        accepted: int,
        staged: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ITEMS_COMMITTED,
            entity_type="capture",
            entity_id=session_id,
            correlation_id=session_id,
            description=f"{accepted} of {staged} staged items committed",
            details={
                "accepted": accepted,
                "staged": staged,
            },
            is_user_action=True,
        )

    @staticmethod
    def capture_discarded(session_id: UUID, staged: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CAPTURE_DISCARDED,
            entity_type="capture",
            entity_id=session_id,
            correlation_id=session_id,
            description="Capture closed without committing",
            details={"staged": staged},
            is_user_action=True,
        )

    @staticmethod
    def transaction_saved(
        transaction_id: UUID,
        amount: str,
        category: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_SAVED,
            entity_type="transaction",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description=f"Transaction saved: {category} {amount}",
            details={
                "amount": amount,
                "category": category,
            },
        )

    @staticmethod
    def transaction_updated(
        transaction_id: UUID,
        changed_fields: list[str],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_UPDATED,
            entity_type="transaction",
            entity_id=transaction_id,
            description="Transaction edited",
            details={"changed_fields": changed_fields},
            is_user_action=True,
        )

    @staticmethod
    def transaction_deleted(transaction_id: UUID) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_DELETED,
            entity_type="transaction",
            entity_id=transaction_id,
            description="Transaction deleted",
            is_user_action=True,
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
