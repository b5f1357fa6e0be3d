"""
Cloud Vision Engine (Gemini)

Sends the receipt image to a Gemini vision model together with the fixed
receipt-extraction instruction and parses the JSON it answers with.

CRITICAL: Without an API key we fail BEFORE building a model or making any
network call. The user fixes this in settings; retrying won't help.
"""

from typing import Any, Callable, Optional

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions

from kakeibo.capture.session import ProgressLog
from kakeibo.config.settings import CloudVisionSettings, Settings
from kakeibo.models.ledger import CandidateItem, EngineId, ReceiptSummary
from kakeibo.services.extraction.base import (
    ExtractionEngine,
    MalformedResponseError,
    MissingCredentialsError,
    TransportFailureError,
)
from kakeibo.services.extraction.prompts import (
    RECEIPT_EXTRACTION_PROMPT,
    USER_INSTRUCTION,
    parse_receipt_response,
)
from kakeibo.services.image import CapturedImage

# Builds something with an async generate_content_async(contents) method
ModelFactory = Callable[[CloudVisionSettings], Any]


def gemini_model_factory(vision_settings: CloudVisionSettings) -> genai.GenerativeModel:
    """Configure the SDK and build the vision model."""
    genai.configure(api_key=vision_settings.api_key)
    return genai.GenerativeModel(
        model_name=vision_settings.model_name,
        system_instruction=RECEIPT_EXTRACTION_PROMPT,
        generation_config={
            "temperature": vision_settings.temperature,
            "max_output_tokens": vision_settings.max_tokens,
            "response_mime_type": "application/json",
        },
    )


class CloudVisionEngine(ExtractionEngine):
    """Receipt extraction through the Gemini API."""

    engine_id = EngineId.CLOUD_VISION

    def __init__(self, model_factory: Optional[ModelFactory] = None):
        self._model_factory = model_factory or gemini_model_factory

    async def _run(
        self,
        image: CapturedImage,
        settings: Settings,
        log: ProgressLog,
    ) -> tuple[list[CandidateItem], Optional[ReceiptSummary]]:
        vision_settings = settings.cloud_vision

        if not vision_settings.api_key:
            raise MissingCredentialsError("No Gemini API key is configured")

        model = self._model_factory(vision_settings)
        log.append(f"Sending receipt to {vision_settings.model_name}...")

        try:
            response = await model.generate_content_async([
                {"mime_type": "image/png", "data": image.png_bytes},
                USER_INSTRUCTION,
            ])
        except google_exceptions.GoogleAPIError as e:
            raise TransportFailureError(f"Gemini request failed: {e}")

        try:
            text = response.text
        except ValueError as e:
            # Raised by the SDK when the candidate was blocked or empty
            raise MalformedResponseError(f"Gemini returned no text: {e}")

        log.append("Response received, reading items...")
        return parse_receipt_response(text, settings.app.default_category)
