"""API request models."""
from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field, HttpUrl, model_validator


class AnalyzeRequest(BaseModel):
    """Request body for page analysis.

    Either ``url`` (fetched by the server) or ``html`` must be given. When both
    are present, ``html`` is analyzed and ``url`` is used as its source.
    """

    url: HttpUrl | None = Field(
        default=None,
        description="The URL to analyze",
        examples=["https://example.com/article"],
    )
    html: str | None = Field(
        default=None,
        description="Raw HTML to analyze instead of fetching the URL",
    )
    profile: Literal["auto", "blog", "site"] = Field(
        default="auto",
        description="Content profile; 'auto' detects blog platforms",
    )
    weight_overrides: dict[str, Any] | None = Field(
        default=None,
        description="AIO weight overrides, e.g. {'chatgpt_geo_weight': 0.5}",
        examples=[{"perplexity_geo_weight": 0.5}],
    )
    previous_scores: dict[str, float] | None = Field(
        default=None,
        description="Scores of the previous analysis of this page, keyed by rubric",
        examples=[{"seo": 60, "aeo": 45, "geo": 50, "aio": 55}],
    )

    @model_validator(mode="after")
    def require_source(self) -> AnalyzeRequest:
        """Ensure there is something to analyze."""
        if self.url is None and not self.html:
            raise ValueError("Either 'url' or 'html' is required")
        return self


class LearnRequest(BaseModel):
    """Request body for triggering a weight update."""

    force: bool = Field(
        default=False,
        description="Update even with fewer buffered samples than the minimum",
    )
