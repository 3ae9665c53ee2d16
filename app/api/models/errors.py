"""API error payloads."""
from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field


class ErrorCodes(StrEnum):
    """Machine-readable error codes returned under ``detail.error.code``."""

    INVALID_URL = "INVALID_URL"
    NOT_FOUND = "NOT_FOUND"
    LEARNING_DISABLED = "LEARNING_DISABLED"
    URL_NOT_ACCESSIBLE = "URL_NOT_ACCESSIBLE"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class ErrorDetail(BaseModel):
    """One error."""

    code: ErrorCodes
    message: str
    details: dict[str, Any] | None = Field(default=None, description="Offending URL, version id, etc.")


class ErrorResponse(BaseModel):
    """Body of every 4xx/5xx response: ``{"detail": {"error": ...}}``."""

    error: ErrorDetail

    model_config = {
        "json_schema_extra": {
            "example": {
                "error": {
                    "code": "URL_NOT_ACCESSIBLE",
                    "message": "Failed to fetch https://example.com after 3 attempts",
                    "details": {"url": "https://example.com"},
                }
            }
        }
    }


def error_detail(code: ErrorCodes, message: str, **details: Any) -> dict[str, Any]:
    """Build the ``detail`` payload for an HTTPException."""
    error = ErrorResponse(error=ErrorDetail(code=code, message=message, details=details or None))
    return error.model_dump(mode="json")
