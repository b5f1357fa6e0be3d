"""
Local OCR Engine (Tesseract)

Runs entirely on the device: Tesseract reads the receipt into plain text,
then the price-line parser picks out "name ... price" lines.

DESIGN DECISION: This engine never reports "no items found".
OCR heuristics miss items all the time, so when nothing parses we hand the
user one blank row to fill in instead of an error.
"""

import asyncio
from typing import Callable, Optional

import pytesseract
from PIL import Image

from kakeibo.capture.session import ProgressLog
from kakeibo.config.settings import LocalOCRSettings, Settings
from kakeibo.models.ledger import CandidateItem, EngineId, ReceiptSummary
from kakeibo.services.extraction.base import ExtractionEngine, TransportFailureError
from kakeibo.services.extraction.price_parser import parse_price_lines
from kakeibo.services.image import CapturedImage

# (image, ocr_settings) -> raw text
TextRecognizer = Callable[[Image.Image, LocalOCRSettings], str]


def tesseract_recognizer(img: Image.Image, ocr_settings: LocalOCRSettings) -> str:
    """Default recognizer backed by pytesseract."""
    if ocr_settings.cmd:
        pytesseract.pytesseract.tesseract_cmd = ocr_settings.cmd
    return pytesseract.image_to_string(
        img,
        lang=ocr_settings.languages,
        config=ocr_settings.tesseract_config,
    )


class LocalOCREngine(ExtractionEngine):
    """On-device OCR plus the price-line heuristic."""

    engine_id = EngineId.LOCAL_OCR

    def __init__(self, recognizer: Optional[TextRecognizer] = None):
        self._recognizer = recognizer or tesseract_recognizer

    async def _run(
        self,
        image: CapturedImage,
        settings: Settings,
        log: ProgressLog,
    ) -> tuple[list[CandidateItem], Optional[ReceiptSummary]]:
        ocr_settings = settings.local_ocr
        default_category = settings.app.default_category

        log.append("Reading text from the receipt...")
        try:
            # Tesseract is CPU bound; keep the event loop responsive
            text = await asyncio.to_thread(
                self._recognizer, image.open(), ocr_settings
            )
        except pytesseract.TesseractNotFoundError as e:
            raise TransportFailureError(f"Tesseract is not installed: {e}")
        except pytesseract.TesseractError as e:
            raise TransportFailureError(f"Tesseract failed: {e.message}")

        lines = [line for line in text.splitlines() if line.strip()]
        log.append(f"Recognized {len(lines)} lines of text")

        parsed = parse_price_lines(text)
        if not parsed:
            log.append("No prices found - added a blank row to fill in by hand")
            return [CandidateItem(name="", price=0, category=default_category)], None

        log.append(f"Matched prices on {len(parsed)} lines")
        items = [
            CandidateItem(name=line.name, price=line.price, category=default_category)
            for line in parsed
        ]
        return items, None
