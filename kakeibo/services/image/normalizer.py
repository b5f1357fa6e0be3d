"""
Captured Image Normalization

Every engine receives the capture as a lossless PNG, whatever the camera
or upload produced. This module:
1. Decodes the raw capture with Pillow
2. Applies EXIF orientation and flattens to RGB/grayscale
3. Re-encodes as PNG
4. Runs a cheap quality assessment for the progress log

DESIGN DECISION: Quality problems are reported, never enforced.
OCR heuristics fail routinely anyway and the user reconciles by editing,
so a dark photo still goes to the engine with a warning attached.
"""

from dataclasses import dataclass, field
from io import BytesIO
from typing import Optional

from PIL import Image, ImageOps, UnidentifiedImageError

from kakeibo.config import get_settings


class ImageDecodeError(Exception):
    """The captured blob is not an image we can read."""
    pass


class ImageTooLargeError(ImageDecodeError):
    """The captured blob exceeds the configured upload size."""
    pass


@dataclass
class CapturedImage:
    """A receipt capture normalized to PNG."""

    png_bytes: bytes
    width: int
    height: int
    source_format: Optional[str] = None
    quality_issues: list[str] = field(default_factory=list)

    @property
    def size_bytes(self) -> int:
        return len(self.png_bytes)

    def open(self) -> Image.Image:
        """Decode the PNG back into a Pillow image."""
        return Image.open(BytesIO(self.png_bytes))


def assess_quality(img: Image.Image) -> list[str]:
    """
    Simple histogram heuristics for obviously bad captures.

    Returns a list of human-readable issues (empty when the image looks fine).
    """
    issues = []
    width, height = img.size

    if min(width, height) < 300:
        issues.append("Image resolution is low, small print may be missed")

    gray = img if img.mode == "L" else img.convert("L")
    histogram = gray.histogram()
    total_pixels = sum(histogram) or 1

    if sum(histogram[:50]) / total_pixels > 0.7:
        issues.append("Image is very dark - try better lighting")
    if sum(histogram[200:]) / total_pixels > 0.7:
        issues.append("Image is overexposed - avoid glare on the receipt")

    # Range holding the middle 90% of pixels
    cumsum = 0
    low, high = 0, 255
    low_found = False
    for value, count in enumerate(histogram):
        cumsum += count
        if not low_found and cumsum >= total_pixels * 0.05:
            low = value
            low_found = True
        if cumsum >= total_pixels * 0.95:
            high = value
            break
    if high - low < 50:
        issues.append("Image has very low contrast - text may be hard to read")

    return issues


def normalize_capture(
    raw: bytes,
    max_size_bytes: Optional[int] = None,
) -> CapturedImage:
    """
    Convert raw capture bytes into a CapturedImage.

    Raises:
        ImageTooLargeError: If the blob exceeds the upload limit
        ImageDecodeError: If Pillow can't read the blob
    """
    if not raw:
        raise ImageDecodeError("No image data was captured")

    limit = max_size_bytes or get_settings().app.max_upload_size_bytes
    if len(raw) > limit:
        raise ImageTooLargeError(
            f"Captured image is {len(raw)} bytes, limit is {limit} bytes"
        )

    try:
        img = Image.open(BytesIO(raw))
        img.load()
    except Image.DecompressionBombError as e:
        raise ImageDecodeError(f"Captured image has too many pixels: {e}")
    except (UnidentifiedImageError, OSError, ValueError) as e:
        raise ImageDecodeError(f"Could not read captured image: {e}")

    source_format = img.format
    img = ImageOps.exif_transpose(img)
    if img.mode not in ("RGB", "L"):
        img = img.convert("RGB")

    buffer = BytesIO()
    img.save(buffer, format="PNG")

    return CapturedImage(
        png_bytes=buffer.getvalue(),
        width=img.width,
        height=img.height,
        source_format=source_format,
        quality_issues=assess_quality(img),
    )
