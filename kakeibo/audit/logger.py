"""
Audit Logger

DESIGN DECISION: Every capture, extraction outcome and ledger write is logged.
This provides:
1. Traceability from a receipt photo to the transactions it produced
2. Debugging capability when an engine misbehaves
3. A history the user can inspect

The audit logger:
- Is async so it fits the extraction flow
- Gracefully handles storage failures (logging never breaks the pipeline)
- Uses the capture session id as correlation id
"""

from typing import Optional
from uuid import UUID

import structlog

from kakeibo.models.audit import AuditEvent, AuditEventBuilder
from kakeibo.services.storage import AuditStorageInterface


# Configure structlog for local logging
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
        structlog.processors.JSONRenderer(ensure_ascii=False)
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage, when one is configured
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        self._storage = storage
        self._logger = structlog.get_logger("kakeibo.audit")

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity.value == "error":
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        elif event.severity.value == "debug":
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_capture_started(
        self,
        session_id: UUID,
        engine: str,
        generation: int,
        image_size: int,
    ) -> None:
        await self.log(AuditEventBuilder.capture_started(
            session_id=session_id,
            engine=engine,
            generation=generation,
            image_size=image_size,
        ))

    async def log_extraction_completed(
        self,
        session_id: UUID,
        engine: str,
        item_count: int,
    ) -> None:
        await self.log(AuditEventBuilder.extraction_completed(
            session_id=session_id,
            engine=engine,
            item_count=item_count,
        ))

    async def log_extraction_failed(
        self,
        session_id: UUID,
        engine: str,
        kind: str,
        message: str,
    ) -> None:
        await self.log(AuditEventBuilder.extraction_failed(
            session_id=session_id,
            engine=engine,
            kind=kind,
            message=message,
        ))

    async def log_extraction_discarded(
        self,
        session_id: UUID,
        engine: str,
        generation: int,
        current_generation: int,
    ) -> None:
        await self.log(AuditEventBuilder.extraction_discarded(
            session_id=session_id,
            engine=engine,
            generation=generation,
            current_generation=current_generation,
        ))

    async def log_items_committed(
        self,
        session_id: UUID,
        accepted: int,
        staged: int,
    ) -> None:
        await self.log(AuditEventBuilder.items_committed(
            session_id=session_id,
            accepted=accepted,
            staged=staged,
        ))

    async def log_capture_discarded(self, session_id: UUID, staged: int) -> None:
        await self.log(AuditEventBuilder.capture_discarded(session_id, staged))

    async def log_transaction_saved(
        self,
        transaction_id: UUID,
        amount: str,
        category: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.transaction_saved(
            transaction_id=transaction_id,
            amount=amount,
            category=category,
            correlation_id=correlation_id,
        ))

    async def log_transaction_updated(
        self,
        transaction_id: UUID,
        changed_fields: list[str],
    ) -> None:
        await self.log(AuditEventBuilder.transaction_updated(
            transaction_id, changed_fields
        ))

    async def log_transaction_deleted(self, transaction_id: UUID) -> None:
        await self.log(AuditEventBuilder.transaction_deleted(transaction_id))

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        ))
