"""Pydantic models for API requests and responses."""

from datetime import date

from pydantic import BaseModel, Field

from src.clarityledger.data.backup import Violation


class ActiveToggle(BaseModel):
    """Request model for activating or pausing a recurring template."""

    is_active: bool


class ProcessRequest(BaseModel):
    """Request model for a manual recurring processing run."""

    today: date | None = None


class OCRTextRequest(BaseModel):
    """Request model for running the receipt heuristics on text."""

    text: str
    today: date | None = None


class AIExtractionRequest(BaseModel):
    """Request model for AI receipt extraction."""

    text: str = ""
    image_base64: str | None = None
    image_mime_type: str | None = None
    language: str | None = Field(None, pattern="^(en|zh-TW)$")


class CSVImportResponse(BaseModel):
    """Response model for CSV import."""

    imported: int
    duplicates: int
    errors: list[str] = Field(default_factory=list)


class BackupImportResponse(BaseModel):
    """Response model for backup import."""

    success: bool
    violations: list[Violation] = Field(default_factory=list)
