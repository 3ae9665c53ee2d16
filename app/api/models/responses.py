"""API response models."""
from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field


class ProfileInfo(BaseModel):
    """Detected content profile."""

    profile: Literal["blog", "general_site"]
    platform: str | None = None
    confidence: float = Field(..., ge=0, le=1)
    reason: str


class Scores(BaseModel):
    """Headline scores."""

    seo: int = Field(..., ge=0, le=100)
    aeo: int = Field(..., ge=0, le=100)
    geo: int = Field(..., ge=0, le=100)
    overall: int = Field(..., ge=0, le=100)
    aio: dict[str, int] = Field(..., description="Per-model AIO scores")
    visibility: int = Field(..., ge=0, le=100)


class AnalysisResponse(BaseModel):
    """Complete analysis result."""

    analysis_id: str
    url: str
    analyzed_at: datetime
    profile: ProfileInfo
    scores: Scores
    rubrics: dict[str, dict[str, Any]]
    aio: dict[str, Any]
    model_analysis: list[dict[str, Any]]
    visibility: dict[str, Any]
    signals: dict[str, Any]
    citations: dict[str, Any]
    domain_statistics: list[dict[str, Any]]
    domain_authorities: list[dict[str, Any]]
    opportunities: list[dict[str, Any]]
    quality_issues: list[dict[str, Any]]
    insights: list[dict[str, Any]]
    improvement_priorities: list[dict[str, Any]]
    writing_guidelines: dict[str, list[str]]
    recommendations: list[str]
    rewards: list[dict[str, Any]]
    weight_warnings: list[str] = Field(default_factory=list)

    model_config = {
        "json_schema_extra": {
            "example": {
                "analysis_id": "3f2b6c0d9e8a4b7c9d1e2f3a4b5c6d7e",
                "url": "https://example.com/article",
                "analyzed_at": "2026-01-15T10:30:00Z",
                "profile": {
                    "profile": "general_site",
                    "platform": None,
                    "confidence": 0.0,
                    "reason": "No blog platform detected",
                },
                "scores": {
                    "seo": 70,
                    "aeo": 55,
                    "geo": 62,
                    "overall": 62,
                    "aio": {"chatgpt": 80, "perplexity": 74, "grok": 61, "gemini": 66, "claude": 70},
                    "visibility": 58,
                },
            }
        }
    }


class AlgorithmVersionResponse(BaseModel):
    """One stored weight version."""

    id: str
    rubric: Literal["seo", "aeo", "geo", "aio"]
    version: int
    weights: dict[str, float]
    metadata: dict[str, Any]
    performance: dict[str, float]
    created_at: datetime
    active: bool


class LearnResponse(BaseModel):
    """Outcome of a weight update."""

    rubric: Literal["seo", "aeo", "geo", "aio"]
    updated: bool
    pending_samples: int
    version: AlgorithmVersionResponse | None = None


class HealthResponse(BaseModel):
    """Health check response."""

    status: Literal["healthy", "degraded", "unhealthy"]
    version: str
    timestamp: datetime
    checks: dict[str, bool] = Field(
        default_factory=dict, description="Individual health check results"
    )
