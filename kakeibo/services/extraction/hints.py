"""User-facing hints for failed extractions, keyed by (engine, failure kind)."""

from kakeibo.models.ledger import EngineId, FailureKind

_HINTS = {
    (EngineId.CLOUD_VISION, FailureKind.MISSING_CREDENTIALS): (
        "Add your Gemini API key in settings (GEMINI_API_KEY), "
        "or switch to the local OCR engine."
    ),
    (EngineId.CLOUD_VISION, FailureKind.TRANSPORT_FAILURE): (
        "Could not reach the Gemini API. Check your internet connection "
        "and that the API key is valid."
    ),
    (EngineId.LOCAL_LLM, FailureKind.TRANSPORT_FAILURE): (
        "Could not reach the local model server. Make sure it is running, "
        "that LOCAL_LLM_BASE_URL is correct, and that the server allows "
        "requests from this app (CORS / OLLAMA_ORIGINS)."
    ),
    (EngineId.LOCAL_LLM, FailureKind.MALFORMED_RESPONSE): (
        "The local model did not answer with JSON. Try a vision-capable "
        "model such as llava, or rescan."
    ),
    (EngineId.LOCAL_OCR, FailureKind.TRANSPORT_FAILURE): (
        "Tesseract OCR is not available. Install it with the Japanese "
        "language pack, or switch engines."
    ),
}

_FALLBACK_HINTS = {
    FailureKind.MISSING_CREDENTIALS: "This engine needs credentials. Check settings.",
    FailureKind.TRANSPORT_FAILURE: "The extraction service could not be reached. Try again.",
    FailureKind.MALFORMED_RESPONSE: (
        "The receipt could not be read. Retake the photo with the whole receipt in frame."
    ),
    FailureKind.NO_ITEMS_EXTRACTED: (
        "No items were found. Retake the photo flat and in good light, or add items by hand."
    ),
}


def hint_for(engine: EngineId, kind: FailureKind) -> str:
    """Short, actionable hint to show next to a failed extraction."""
    return _HINTS.get((engine, kind), _FALLBACK_HINTS[kind])
