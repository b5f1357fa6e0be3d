"""
Shared test helpers.

No test talks to a real service: engines get fake recognizers, fake model
factories or an httpx.MockTransport, and settings are built from explicit
values instead of the environment.
"""

from io import BytesIO
from types import SimpleNamespace

from PIL import Image, ImageDraw

from kakeibo.config.settings import (
    AppSettings,
    CloudVisionSettings,
    LocalLLMSettings,
    LocalOCRSettings,
)


def make_settings(
    gemini_api_key=None,
    llm_base_url="http://llm.test/v1",
    llm_api_key=None,
    **app_overrides,
):
    """Settings-shaped object with every section built from explicit values."""
    return SimpleNamespace(
        cloud_vision=CloudVisionSettings(_env_file=None, api_key=gemini_api_key),
        local_llm=LocalLLMSettings(
            _env_file=None, base_url=llm_base_url, api_key=llm_api_key
        ),
        local_ocr=LocalOCRSettings(_env_file=None, languages="jpn+eng", cmd=None),
        app=AppSettings(_env_file=None, **app_overrides),
    )


def make_receipt_png(width=400, height=600) -> bytes:
    """A small white image with some dark 'text' so it decodes like a photo."""
    img = Image.new("RGB", (width, height), "white")
    draw = ImageDraw.Draw(img)
    for y in range(40, height - 40, 30):
        draw.rectangle([30, y, width - 30, y + 10], fill="black")
    buffer = BytesIO()
    img.save(buffer, format="PNG")
    return buffer.getvalue()

