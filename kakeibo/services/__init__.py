"""Services package."""

from kakeibo.services.image import (
    CapturedImage,
    ImageDecodeError,
    ImageTooLargeError,
    normalize_capture,
)
from kakeibo.services.storage import (
    AuditStorageInterface,
    DuplicateError,
    InMemoryAuditStorage,
    InMemoryLedgerStore,
    LedgerStoreInterface,
    NotFoundError,
    StorageError,
)
from kakeibo.services.extraction import (
    CloudVisionEngine,
    ExtractionEngine,
    ExtractionError,
    LocalLLMEngine,
    LocalOCREngine,
)

__all__ = [
    # Image services
    "CapturedImage",
    "ImageDecodeError",
    "ImageTooLargeError",
    "normalize_capture",
    # Storage services
    "AuditStorageInterface",
    "DuplicateError",
    "InMemoryAuditStorage",
    "InMemoryLedgerStore",
    "LedgerStoreInterface",
    "NotFoundError",
    "StorageError",
    # Extraction engines
    "CloudVisionEngine",
    "ExtractionEngine",
    "ExtractionError",
    "LocalLLMEngine",
    "LocalOCREngine",
]
