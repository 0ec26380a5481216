"""Pydantic schemas and helpers for validating suggestion requests and responses."""

from __future__ import annotations

from datetime import date
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

DRESS_CODES = ("casual", "smart casual", "smart")


class PromptSuggestionRequest(BaseModel):
    """Free-text suggestion request."""

    user_id: str = Field(min_length=1)
    prompt: str = ""
    count: Optional[int] = Field(default=None, ge=1, le=10)


class WeatherSuggestionRequest(BaseModel):
    """Suggestion request driven by current conditions."""

    user_id: str = Field(min_length=1)
    raining: bool = False
    temperature_c: Optional[float] = None
    temperature_label: Optional[str] = None
    count: Optional[int] = Field(default=None, ge=1, le=10)


class DressCodeSuggestionRequest(BaseModel):
    user_id: str = Field(min_length=1)
    dress_code: str
    count: int = Field(default=4, ge=1, le=10)

    @field_validator("dress_code")
    @classmethod
    def _validate_dress_code(cls, value: str) -> str:
        normalised = " ".join(value.strip().lower().split())
        if normalised not in DRESS_CODES:
            raise ValueError(f"dress_code must be one of {list(DRESS_CODES)}")
        return normalised


class SaveOutfitRequest(BaseModel):
    """Metadata attached when a card is kept."""

    name: str = Field(min_length=1, max_length=120)
    description: str = ""
    occasion: str = ""
    is_favorite: bool = False
    target_date: Optional[date] = None

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("name cannot be blank")
        return stripped


class SkipRequest(BaseModel):
    candidate_id: str = Field(min_length=1)


class SaveCandidateRequest(SaveOutfitRequest):
    candidate_id: str = Field(min_length=1)


class SuggestionResponse(BaseModel):
    """Envelope returned by every suggestion flow."""

    status: Literal["ok", "error", "needs_review"]
    deck_id: Optional[str] = None
    cards: List[Dict[str, Any]] = []
    message: Optional[str] = None
    debug_summary: Optional[Dict[str, Any]] = None


class ValidationResult(BaseModel):
    """Wrapper returned to callers when validation fails."""

    status: Literal["needs_review"] = "needs_review"
    message: str
    details: List[Dict[str, Any]]


def validation_failure(message: str, exc: ValidationError) -> Dict[str, Any]:
    """Translate Pydantic errors into a consistent review payload."""

    details = [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg", ""), "type": error.get("type", "")}
        for error in exc.errors()
    ]
    return ValidationResult(message=message, details=details).model_dump()


__all__ = [
    "DRESS_CODES",
    "DressCodeSuggestionRequest",
    "PromptSuggestionRequest",
    "SaveCandidateRequest",
    "SaveOutfitRequest",
    "SkipRequest",
    "SuggestionResponse",
    "ValidationResult",
    "WeatherSuggestionRequest",
    "validation_failure",
]
