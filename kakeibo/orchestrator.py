"""
Main Orchestrator for Kakeibo

This module ties together all the components and defines the
end-to-end flows for:
1. Receipt capture (image → normalize → engine → staging)
2. Commit (staging → ledger transactions)
3. Manual entry (form → ledger transaction)

DESIGN DECISION: The orchestrator enforces the boundaries:
- Extraction never touches the ledger; only an explicit commit does
- Nothing is fatal; every failure ends as a result the user can act on
- Every step is audited

This is the "glue" that ensures the system works correctly
even when individual engines behave unexpectedly.
"""

from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Optional
from uuid import UUID

import structlog

from kakeibo.audit import AuditLogger
from kakeibo.capture import CaptureSession, ProgressLog
from kakeibo.config import Settings, get_settings
from kakeibo.models.ledger import (
    Category,
    EngineId,
    EngineResult,
    FailureKind,
    Transaction,
    TransactionPatch,
    TransactionType,
)
from kakeibo.services.extraction import (
    CloudVisionEngine,
    ExtractionEngine,
    LocalLLMEngine,
    LocalOCREngine,
    hint_for,
)
from kakeibo.services.image import ImageDecodeError, normalize_capture
from kakeibo.services.storage import (
    InMemoryAuditStorage,
    InMemoryLedgerStore,
    LedgerStoreInterface,
)

logger = structlog.get_logger(__name__)


def default_engines() -> dict[EngineId, ExtractionEngine]:
    """The registry of every built-in engine."""
    return {
        EngineId.LOCAL_OCR: LocalOCREngine(),
        EngineId.CLOUD_VISION: CloudVisionEngine(),
        EngineId.LOCAL_LLM: LocalLLMEngine(),
    }


class ExtractionCoordinator:
    """
    Orchestrates one receipt capture.

    Flow:
    1. Begin capture → bump the session generation, fresh log, empty staging
    2. Normalize → decode the raw capture and re-encode as PNG
    3. Extract → dispatch to the selected engine
    4. Stale check → drop the result if another capture started meanwhile
    5. Stage → append candidate items for review

    CRITICAL: The ledger store is never touched here. Staged items only
    become transactions through CommitProcess.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        engines: Optional[dict[EngineId, ExtractionEngine]] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._settings = settings or get_settings()
        self._engines = engines if engines is not None else default_engines()
        self._audit_logger = audit_logger

    @property
    def engines(self) -> list[EngineId]:
        return list(self._engines)

    def default_engine(self) -> EngineId:
        return self._settings.app.extraction_engine

    async def extract(
        self,
        session: CaptureSession,
        raw_image: bytes,
        engine_id: Optional[EngineId] = None,
    ) -> Optional[EngineResult]:
        """
        Run a capture through an engine and stage the items it finds.

        Returns:
            The EngineResult, or None when the result went stale and
            was discarded
        """
        engine_id = EngineId(engine_id or self.default_engine())
        engine = self._engines.get(engine_id)
        if engine is None:
            raise KeyError(f"No extraction engine registered for {engine_id.value}")

        generation = session.begin_capture()
        # Bound to this capture; a newer capture gets its own log
        log = session.progress

        if self._audit_logger:
            await self._audit_logger.log_capture_started(
                session_id=session.session_id,
                engine=engine_id.value,
                generation=generation,
                image_size=len(raw_image),
            )

        result = await self._run_engine(engine, engine_id, raw_image, session, log)

        if not session.is_current(generation):
            logger.info(
                "stale_extraction_discarded",
                engine=engine_id.value,
                generation=generation,
                current_generation=session.generation,
            )
            if self._audit_logger:
                await self._audit_logger.log_extraction_discarded(
                    session_id=session.session_id,
                    engine=engine_id.value,
                    generation=generation,
                    current_generation=session.generation,
                )
            return None

        if result.ok:
            for item in result.items:
                session.staging.append(item)
            log.append(f"Found {len(result.items)} item(s).")
            self._log_receipt(result, session)
            if self._audit_logger:
                await self._audit_logger.log_extraction_completed(
                    session_id=session.session_id,
                    engine=engine_id.value,
                    item_count=len(result.items),
                )
        else:
            failure = result.failure
            log.append(f"Extraction failed: {failure.message}")
            log.append(hint_for(engine_id, failure.kind))
            if self._audit_logger:
                await self._audit_logger.log_extraction_failed(
                    session_id=session.session_id,
                    engine=engine_id.value,
                    kind=failure.kind.value,
                    message=failure.message,
                )

        return result

    async def _run_engine(
        self,
        engine: ExtractionEngine,
        engine_id: EngineId,
        raw_image: bytes,
        session: CaptureSession,
        log: ProgressLog,
    ) -> EngineResult:
        """Normalize the image and call the engine. Never raises."""
        try:
            image = normalize_capture(
                raw_image,
                max_size_bytes=self._settings.app.max_upload_size_bytes,
            )
        except ImageDecodeError as e:
            log.append(str(e))
            return EngineResult.failed(
                engine_id, FailureKind.MALFORMED_RESPONSE, str(e)
            )

        log.append(f"Image ready ({image.width}x{image.height}).")
        for issue in image.quality_issues:
            log.append(f"Warning: {issue}")

        try:
            return await engine.extract(image, self._settings, log)
        except Exception as e:
            # Engines only raise ExtractionError on purpose; anything else is unexpected
            log.append(f"Unexpected error: {e}")
            logger.exception("engine_crashed", engine=engine_id.value)
            if self._audit_logger:
                await self._audit_logger.log_error(
                    error_type=type(e).__name__,
                    error_message=str(e),
                    details={"engine": engine_id.value},
                    correlation_id=session.session_id,
                )
            return EngineResult.failed(
                engine_id, FailureKind.TRANSPORT_FAILURE, str(e)
            )

    def _log_receipt(self, result: EngineResult, session: CaptureSession) -> None:
        """Progress lines for receipt-level fields. Informational only."""
        receipt = result.receipt
        if receipt is None:
            return

        log = session.progress
        if receipt.store_name:
            log.append(f"Store: {receipt.store_name}")
        if receipt.purchase_date:
            log.append(f"Date on receipt: {receipt.purchase_date}")
        if receipt.total_amount is not None:
            item_sum = sum(item.price for item in result.items)
            if Decimal(item_sum) != receipt.total_amount:
                log.append(
                    f"Note: items add up to {item_sum} but the receipt total "
                    f"is {receipt.total_amount}. Check the items below."
                )


class CommitProcess:
    """
    Turns reviewed candidate items into ledger transactions.

    CRITICAL: Only items with a positive price are committed. Zero-priced
    rows are placeholders the user never filled in.
    """

    def __init__(
        self,
        store: LedgerStoreInterface,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._store = store
        self._audit_logger = audit_logger

    async def commit(
        self,
        session: CaptureSession,
        today: Optional[date] = None,
    ) -> int:
        """
        Append one expense per accepted item, then close the session.

        Returns:
            Number of transactions written (0 is not an error)
        """
        today = today or date.today()
        staged = session.staging.items
        accepted = 0

        for item in staged:
            if not item.is_accepted:
                continue
            transaction = self._store.add_transaction(Transaction(
                amount=-Decimal(item.price),
                category=item.category,
                date=today,
                type=TransactionType.EXPENSE,
            ))
            accepted += 1

            if self._audit_logger:
                await self._audit_logger.log_transaction_saved(
                    transaction_id=transaction.id,
                    amount=str(transaction.amount),
                    category=transaction.category.value,
                    correlation_id=session.session_id,
                )

        if self._audit_logger:
            await self._audit_logger.log_items_committed(
                session_id=session.session_id,
                accepted=accepted,
                staged=len(staged),
            )

        session.close()
        return accepted

    async def discard(self, session: CaptureSession) -> None:
        """Close the session without writing anything."""
        staged = len(session.staging)
        session.close()
        if self._audit_logger:
            await self._audit_logger.log_capture_discarded(session.session_id, staged)


class InvalidEntryError(ValueError):
    """A manual entry that can't become a transaction."""
    pass


class ManualEntryFlow:
    """Hand-entered income and expenses, plus edits and deletions."""

    def __init__(
        self,
        store: LedgerStoreInterface,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._store = store
        self._audit_logger = audit_logger

    @staticmethod
    def _parse_amount(amount) -> Decimal:
        try:
            value = Decimal(str(amount).replace(",", "").strip())
        except InvalidOperation:
            raise InvalidEntryError(f"Amount is not a number: {amount!r}")
        if not value.is_finite():
            raise InvalidEntryError(f"Amount is not a number: {amount!r}")
        if value == 0:
            raise InvalidEntryError("Amount cannot be zero")
        return value

    async def record(
        self,
        amount,
        category: Category | str = Category.OTHER,
        on_date: Optional[date] = None,
        type: TransactionType | str = TransactionType.EXPENSE,
    ) -> Transaction:
        """
        Record a manual entry.

        The sign of the amount comes from the type: expenses are stored
        negative and income positive, whatever sign the user typed.

        Raises:
            InvalidEntryError: For a zero, non-numeric or unclassifiable entry
        """
        value = abs(self._parse_amount(amount))
        try:
            category = Category(category)
            type = TransactionType(type)
        except ValueError as e:
            raise InvalidEntryError(str(e))

        signed = -value if type == TransactionType.EXPENSE else value
        transaction = self._store.add_transaction(Transaction(
            amount=signed,
            category=category,
            date=on_date or date.today(),
            type=type,
        ))

        if self._audit_logger:
            await self._audit_logger.log_transaction_saved(
                transaction_id=transaction.id,
                amount=str(transaction.amount),
                category=transaction.category.value,
            )
        return transaction

    async def update(
        self,
        transaction_id: UUID,
        patch: TransactionPatch,
    ) -> Transaction:
        """
        Apply an edit to a stored transaction.

        Raises:
            NotFoundError: If the transaction doesn't exist
        """
        updated = self._store.update_transaction(transaction_id, patch)
        if self._audit_logger:
            await self._audit_logger.log_transaction_updated(
                transaction_id,
                sorted(patch.model_dump(exclude_none=True)),
            )
        return updated

    async def delete(self, transaction_id: UUID) -> bool:
        removed = self._store.remove_transaction(transaction_id)
        if removed and self._audit_logger:
            await self._audit_logger.log_transaction_deleted(transaction_id)
        return removed


def create_app_components(
    settings: Optional[Settings] = None,
    store: Optional[LedgerStoreInterface] = None,
) -> tuple[ExtractionCoordinator, CommitProcess, ManualEntryFlow, LedgerStoreInterface]:
    """
    Factory function to create all application components.

    Args:
        settings: Settings to use; defaults to the cached environment settings
        store: Ledger store to use; defaults to a fresh in-memory store

    Returns:
        (coordinator, commit_process, manual_entry, store)
    """
    store = store or InMemoryLedgerStore()
    audit_logger = AuditLogger(InMemoryAuditStorage())

    coordinator = ExtractionCoordinator(
        settings=settings,
        audit_logger=audit_logger,
    )
    commit_process = CommitProcess(store, audit_logger)
    manual_entry = ManualEntryFlow(store, audit_logger)

    return coordinator, commit_process, manual_entry, store
