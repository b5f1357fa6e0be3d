"""
Configuration Management for the Household Ledger

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Extraction engines receive their settings from this module; they never
read the environment themselves. Credentials are optional at load time
because a missing key is a user-fixable condition reported by the
engine, not a startup failure.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from kakeibo.models.ledger import Category, EngineId


class CloudVisionSettings(BaseSettings):
    """Gemini vision model configuration (cloud-vision engine)."""

    model_config = SettingsConfigDict(
        env_prefix="GEMINI_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    api_key: Optional[str] = Field(
        default=None,
        description="Gemini API key (cloud-vision engine refuses to run without it)"
    )
    model_name: str = Field(
        default="gemini-1.5-flash",
        description="Gemini model to use"
    )
    max_tokens: int = Field(
        default=2048,
        ge=100,
        le=8192,
        description="Maximum tokens in response"
    )
    temperature: float = Field(
        default=0.1,
        ge=0.0,
        le=1.0,
        description="Model temperature (lower = more deterministic)"
    )

    @field_validator('api_key')
    @classmethod
    def blank_key_is_missing(cls, v: Optional[str]) -> Optional[str]:
        """Treat an empty or whitespace-only key as not configured."""
        if v is not None and not v.strip():
            return None
        return v

    @property
    def is_configured(self) -> bool:
        return self.api_key is not None


class LocalLLMSettings(BaseSettings):
    """Locally hosted OpenAI-compatible vision model (local-llm engine)."""

    model_config = SettingsConfigDict(
        env_prefix="LOCAL_LLM_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    base_url: str = Field(
        default="http://localhost:11434/v1",
        description="Base URL of the OpenAI-compatible API"
    )
    model_name: str = Field(
        default="llava",
        description="Model name sent with every request"
    )
    api_key: Optional[str] = Field(
        default=None,
        description="Optional bearer token for proxied deployments"
    )
    timeout_seconds: float = Field(
        default=120.0,
        gt=0,
        description="Request timeout; vision models on CPU are slow"
    )
    max_attempts: int = Field(
        default=1,
        ge=1,
        le=5,
        description="Attempts on connection errors (1 = no automatic retry)"
    )
    temperature: float = Field(default=0.1, ge=0.0, le=1.0)

    @field_validator('base_url')
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")


class LocalOCRSettings(BaseSettings):
    """Tesseract OCR configuration (local-ocr engine)."""

    model_config = SettingsConfigDict(
        env_prefix="TESSERACT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    languages: str = Field(
        default="jpn+eng",
        description="Tesseract language codes joined with '+'"
    )
    cmd: Optional[str] = Field(
        default=None,
        description="Path to the tesseract binary if not on PATH"
    )
    page_segmentation_mode: int = Field(
        default=6,
        ge=0,
        le=13,
        description="Tesseract --psm value (6 = single uniform block of text)"
    )

    @property
    def tesseract_config(self) -> str:
        return f"--psm {self.page_segmentation_mode}"


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    extraction_engine: EngineId = Field(
        default=EngineId.LOCAL_OCR,
        description="Engine used for receipt extraction"
    )
    default_category: Category = Field(
        default=Category.OTHER,
        description="Category given to items extracted by an engine"
    )
    currency: str = Field(
        default="JPY",
        description="Display currency"
    )

    # File upload limits
    max_upload_size_mb: int = Field(
        default=10,
        ge=1,
        le=50,
        description="Maximum captured image size in MB"
    )
    supported_image_formats: str = Field(
        default="jpg,jpeg,png,webp",
        description="Comma-separated list of supported image formats"
    )

    @property
    def supported_formats_list(self) -> list[str]:
        """Get supported formats as a list."""
        return [fmt.strip().lower() for fmt in self.supported_image_formats.split(",")]

    @property
    def max_upload_size_bytes(self) -> int:
        """Get max upload size in bytes."""
        return self.max_upload_size_mb * 1024 * 1024


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Loaded lazily so a broken section only fails where it is used

    @property
    def cloud_vision(self) -> CloudVisionSettings:
        return CloudVisionSettings()

    @property
    def local_llm(self) -> LocalLLMSettings:
        return LocalLLMSettings()

    @property
    def local_ocr(self) -> LocalOCRSettings:
        return LocalOCRSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings sections.

    Returns a dict of {section_name: is_valid}, plus "<section>_error"
    entries describing failures. Useful for startup checks.
    """
    results = {}
    settings = get_settings()

    for section in ("cloud_vision", "local_llm", "local_ocr", "app"):
        try:
            getattr(settings, section)
            results[section] = True
        except ValueError as e:
            results[section] = False
            results[f"{section}_error"] = str(e)

    return results
