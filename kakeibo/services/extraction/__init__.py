"""Receipt extraction engines package."""

from kakeibo.services.extraction.base import (
    ExtractionEngine,
    ExtractionError,
    MalformedResponseError,
    MissingCredentialsError,
    NoItemsExtractedError,
    TransportFailureError,
)
from kakeibo.services.extraction.cloud_vision import CloudVisionEngine
from kakeibo.services.extraction.hints import hint_for
from kakeibo.services.extraction.local_llm import LocalLLMEngine
from kakeibo.services.extraction.local_ocr import LocalOCREngine
from kakeibo.services.extraction.price_parser import (
    UNKNOWN_ITEM_NAME,
    ParsedLine,
    parse_price_line,
    parse_price_lines,
)
from kakeibo.services.extraction.prompts import (
    RECEIPT_EXTRACTION_PROMPT,
    parse_receipt_response,
    strip_code_fences,
)

__all__ = [
    # Interface and errors
    "ExtractionEngine",
    "ExtractionError",
    "MalformedResponseError",
    "MissingCredentialsError",
    "NoItemsExtractedError",
    "TransportFailureError",
    # Engines
    "CloudVisionEngine",
    "LocalLLMEngine",
    "LocalOCREngine",
    # Helpers
    "RECEIPT_EXTRACTION_PROMPT",
    "UNKNOWN_ITEM_NAME",
    "ParsedLine",
    "hint_for",
    "parse_price_line",
    "parse_price_lines",
    "parse_receipt_response",
    "strip_code_fences",
]
