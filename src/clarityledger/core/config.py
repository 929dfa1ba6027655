"""Configuration settings for ClarityLedger."""

import os
from pathlib import Path

from pydantic import BaseModel, Field

DEFAULT_USER_ID = "default_clarityLedger_user"
DEFAULT_OPENROUTER_MODEL = "deepseek/deepseek-chat:free"
DEFAULT_OCR_OPENROUTER_MODEL = "qwen/qwen2.5-vl-72b-instruct:free"
OPENROUTER_CHAT_URL = "https://openrouter.ai/api/v1/chat/completions"


class DatabaseConfig(BaseModel):
    """Database configuration."""

    url: str = Field(default_factory=lambda: os.getenv("CLARITY_DB_URL", "sqlite:///data/clarityledger.db"))
    echo: bool = Field(default_factory=lambda: os.getenv("CLARITY_DB_ECHO", "false").lower() == "true")


class AIConfig(BaseModel):
    """Settings for the external chat-completion service used on receipts."""

    api_key: str | None = Field(default_factory=lambda: os.getenv("CLARITY_OPENROUTER_API_KEY") or None)
    model: str = Field(default_factory=lambda: os.getenv("CLARITY_OPENROUTER_MODEL", ""))
    ocr_model: str = Field(default_factory=lambda: os.getenv("CLARITY_OCR_MODEL", ""))
    base_url: str = Field(default_factory=lambda: os.getenv("CLARITY_OPENROUTER_URL", OPENROUTER_CHAT_URL))
    max_tokens: int = 500
    temperature: float = 0.2
    language: str = Field(default_factory=lambda: os.getenv("CLARITY_LANGUAGE", "en"), pattern="^(en|zh-TW)$")

    def resolve_ocr_model(self) -> str:
        """OCR model first, then the general model, then the built-in default."""
        if self.ocr_model.strip():
            return self.ocr_model
        if self.model.strip():
            return self.model
        return DEFAULT_OCR_OPENROUTER_MODEL


class RecurringConfig(BaseModel):
    """Recurring transaction processing configuration."""

    min_interval_hours: float = Field(default=12.0, ge=0.0)


class AppConfig(BaseModel):
    """Application configuration."""

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    ai: AIConfig = Field(default_factory=AIConfig)
    recurring: RecurringConfig = Field(default_factory=RecurringConfig)

    user_id: str = DEFAULT_USER_ID
    data_dir: Path = Field(default_factory=lambda: Path(os.getenv("CLARITY_DATA_DIR", "data")))
    export_dir: Path = Field(default_factory=lambda: Path(os.getenv("CLARITY_EXPORT_DIR", "data/exports")))

    default_currency: str = "USD"

    def ensure_dirs(self) -> None:
        """Create necessary directories."""
        self.data_dir.mkdir(exist_ok=True)
        self.export_dir.mkdir(parents=True, exist_ok=True)
