"""Configuration package."""

from kakeibo.config.settings import (
    AppSettings,
    CloudVisionSettings,
    LocalLLMSettings,
    LocalOCRSettings,
    Settings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "CloudVisionSettings",
    "LocalLLMSettings",
    "LocalOCRSettings",
    "Settings",
    "get_settings",
    "validate_all_settings",
]
