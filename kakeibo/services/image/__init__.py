"""Image services package."""

from kakeibo.services.image.normalizer import (
    CapturedImage,
    ImageDecodeError,
    ImageTooLargeError,
    assess_quality,
    normalize_capture,
)

__all__ = [
    "CapturedImage",
    "ImageDecodeError",
    "ImageTooLargeError",
    "assess_quality",
    "normalize_capture",
]
