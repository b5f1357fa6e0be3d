"""Capture session package."""

from kakeibo.capture.session import (
    EDITABLE_FIELDS,
    CaptureSession,
    ProgressLog,
    StagingSession,
)

__all__ = [
    "EDITABLE_FIELDS",
    "CaptureSession",
    "ProgressLog",
    "StagingSession",
]
