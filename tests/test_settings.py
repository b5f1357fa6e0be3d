"""Tests for configuration defaults and environment overrides."""

import pytest

from kakeibo.config.settings import (
    AppSettings,
    CloudVisionSettings,
    LocalLLMSettings,
    LocalOCRSettings,
)
from kakeibo.models.ledger import Category, EngineId


@pytest.fixture
def clean_env(monkeypatch):
    for name in (
        "APP_EXTRACTION_ENGINE",
        "APP_DEFAULT_CATEGORY",
        "APP_MAX_UPLOAD_SIZE_MB",
        "GEMINI_API_KEY",
        "GEMINI_MODEL_NAME",
        "LOCAL_LLM_BASE_URL",
        "LOCAL_LLM_MAX_ATTEMPTS",
        "TESSERACT_LANGUAGES",
    ):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestDefaults:
    """Values used when nothing is configured."""

    def test_app_defaults(self, clean_env):
        """Local OCR and the 'other' category out of the box."""
        app = AppSettings(_env_file=None)
        assert app.extraction_engine == EngineId.LOCAL_OCR
        assert app.default_category == Category.OTHER
        assert app.max_upload_size_bytes == 10 * 1024 * 1024

    def test_llm_defaults(self, clean_env):
        """No automatic retry by default."""
        llm = LocalLLMSettings(_env_file=None)
        assert llm.max_attempts == 1
        assert llm.base_url == "http://localhost:11434/v1"

    def test_ocr_defaults(self, clean_env):
        ocr = LocalOCRSettings(_env_file=None)
        assert ocr.languages == "jpn+eng"
        assert ocr.tesseract_config == "--psm 6"

    def test_gemini_key_optional(self, clean_env):
        """A missing key is not a configuration error."""
        vision = CloudVisionSettings(_env_file=None)
        assert vision.api_key is None
        assert not vision.is_configured


class TestEnvironment:
    """Environment variables override defaults."""

    def test_engine_from_env(self, clean_env):
        clean_env.setenv("APP_EXTRACTION_ENGINE", "local-llm")
        assert AppSettings(_env_file=None).extraction_engine == EngineId.LOCAL_LLM

    def test_default_category_from_env(self, clean_env):
        clean_env.setenv("APP_DEFAULT_CATEGORY", "food")
        assert AppSettings(_env_file=None).default_category == Category.FOOD

    def test_base_url_trailing_slash_stripped(self, clean_env):
        clean_env.setenv("LOCAL_LLM_BASE_URL", "http://192.168.1.10:1234/v1/")
        assert LocalLLMSettings(_env_file=None).base_url == "http://192.168.1.10:1234/v1"

    def test_invalid_engine_rejected(self, clean_env):
        """Unknown engine ids fail validation."""
        clean_env.setenv("APP_EXTRACTION_ENGINE", "magic")
        with pytest.raises(ValueError):
            AppSettings(_env_file=None)
