"""
Extraction Engine Interface

Every engine turns a captured receipt image into candidate items.
They all share one capability: extract(image, settings, log) -> EngineResult.

Engines signal problems by raising one of the ExtractionError subclasses
below; the base class converts those into failure results so callers only
ever see an EngineResult. Anything else an engine raises is a bug or an
unexpected library error and is left for the coordinator to handle.
"""

from abc import ABC, abstractmethod
from typing import Optional

from kakeibo.capture.session import ProgressLog
from kakeibo.config.settings import Settings
from kakeibo.models.ledger import (
    CandidateItem,
    EngineId,
    EngineResult,
    FailureKind,
    ReceiptSummary,
)
from kakeibo.services.image import CapturedImage


class ExtractionError(Exception):
    """Base exception for extraction errors."""

    kind: FailureKind = FailureKind.TRANSPORT_FAILURE


class MissingCredentialsError(ExtractionError):
    """The engine needs credentials that are not configured."""

    kind = FailureKind.MISSING_CREDENTIALS


class TransportFailureError(ExtractionError):
    """Network error or non-success response from the model service."""

    kind = FailureKind.TRANSPORT_FAILURE

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class MalformedResponseError(ExtractionError):
    """The response body doesn't match the expected wire contract."""

    kind = FailureKind.MALFORMED_RESPONSE


class NoItemsExtractedError(ExtractionError):
    """A well-formed response that contains no line items."""

    kind = FailureKind.NO_ITEMS_EXTRACTED


class ExtractionEngine(ABC):
    """
    One interchangeable strategy for turning an image into candidate items.

    Subclasses implement _run() and raise ExtractionError subclasses for
    expected failures.
    """

    engine_id: EngineId

    async def extract(
        self,
        image: CapturedImage,
        settings: Settings,
        log: ProgressLog,
    ) -> EngineResult:
        """
        Run the engine and normalize the outcome.

        Returns:
            EngineResult with items, or with a failure for expected errors
        """
        try:
            items, receipt = await self._run(image, settings, log)
        except ExtractionError as e:
            return EngineResult.failed(self.engine_id, e.kind, str(e))

        if not items:
            return EngineResult.failed(
                self.engine_id,
                FailureKind.NO_ITEMS_EXTRACTED,
                "No items were found on the receipt",
            )
        return EngineResult.success(self.engine_id, items, receipt)

    @abstractmethod
    async def _run(
        self,
        image: CapturedImage,
        settings: Settings,
        log: ProgressLog,
    ) -> tuple[list[CandidateItem], Optional[ReceiptSummary]]:
        """
        Engine-specific extraction.

        Returns:
            (items, receipt_summary_or_None)

        Raises:
            ExtractionError: For any expected failure
        """
