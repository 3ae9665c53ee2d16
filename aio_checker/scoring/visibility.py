"""AI visibility aggregation."""
from __future__ import annotations

from dataclasses import dataclass, field

from aio_checker.parser.signal_extractor import SignalSet
from aio_checker.scoring.rubrics import clamp_score

AIO_SHARE = 0.40
STRUCTURED_SHARE = 0.25
QUALITY_SHARE = 0.20
FRESHNESS_SHARE = 0.15


@dataclass
class VisibilityScore:
    """Overall AI visibility and its sub-scores."""
    score: int
    structured_data_score: int
    quality_score: int
    freshness_score: int
    recommendations: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "score": self.score,
            "structured_data_score": self.structured_data_score,
            "quality_score": self.quality_score,
            "freshness_score": self.freshness_score,
            "recommendations": list(self.recommendations),
        }


def _score_structured_data(s: SignalSet) -> int:
    """Reward JSON-LD presence and schema types (max 100)."""
    score = 0
    if s.has_json_ld:
        score += 30
        if s.has_faq_schema:
            score += 20
        if s.has_article_schema:
            score += 15
        if s.has_organization_schema:
            score += 10
        if s.has_person_schema:
            score += 10
    if s.has_og_title:
        score += 5
    return min(100, score)


def _score_quality(s: SignalSet, seo: float, aeo: float, geo: float) -> int:
    """Blend rubric average with depth, E-E-A-T and sourcing (max 100)."""
    score = (seo + aeo + geo) / 3 * 0.5

    if s.word_count >= 2000:
        score += 20
    elif s.word_count >= 1500:
        score += 15
    elif s.word_count >= 1000:
        score += 10
    elif s.word_count >= 500:
        score += 5

    # E-E-A-T: author, credentials, dated content
    eeat = (s.has_author, s.has_credentials, s.has_date_element)
    if all(eeat):
        score += 15
    elif s.has_author and any(eeat[1:]):
        score += 10
    elif any(eeat):
        score += 5

    if s.has_primary_sources:
        score += 10
    elif s.has_citation_terms:
        score += 5

    if s.has_definitions:
        score += 5

    return clamp_score(score)


def _score_freshness(s: SignalSet) -> int:
    """Reward explicit dates and recency language (max 75)."""
    score = 0
    if s.has_date_element:
        score += 30
    if s.has_recent_signal:
        score += 25
    if s.has_update_terms:
        score += 20
    return min(100, score)


def _generate_recommendations(structured: int, quality: int, freshness: int, aio_average: float) -> list[str]:
    recommendations = []
    if structured < 50:
        recommendations.append("Add JSON-LD structured data (FAQPage, Article, Organization) to help AI parse the page")
    if quality < 60:
        recommendations.append("Deepen the content and show author expertise and sources (E-E-A-T)")
    if freshness < 50:
        recommendations.append("Show publish/update dates and keep the content current")
    if aio_average < 60:
        recommendations.append("Improve the weakest AI model scores first; see the per-model recommendations")
    return recommendations


def calculate_visibility(
    signals: SignalSet,
    aio_average: float,
    seo: float,
    aeo: float,
    geo: float,
) -> VisibilityScore:
    """Combine AIO average, structured data, quality and freshness.

    Args:
        signals: Document signals.
        aio_average: Mean of the five AIO model scores.
        seo: SEO rubric score.
        aeo: AEO rubric score.
        geo: GEO rubric score.

    Returns:
        VisibilityScore with the clamped 0-100 total and its sub-scores.
    """
    structured = _score_structured_data(signals)
    quality = _score_quality(signals, seo, aeo, geo)
    freshness = _score_freshness(signals)

    total = (
        AIO_SHARE * aio_average
        + STRUCTURED_SHARE * structured
        + QUALITY_SHARE * quality
        + FRESHNESS_SHARE * freshness
    )
    return VisibilityScore(
        score=clamp_score(total),
        structured_data_score=structured,
        quality_score=quality,
        freshness_score=freshness,
        recommendations=_generate_recommendations(structured, quality, freshness, aio_average),
    )
