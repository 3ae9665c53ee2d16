"""SEO, AEO and GEO rubric scorers.

Each rubric is an ordered checklist of ``(factor, predicate)`` pairs over a
SignalSet. GEO groups its checks into tiers where only the best passing
tier of each family counts. Continuous bonuses are added after the
checklist sum and before the final clamp.
"""
from __future__ import annotations

import math
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field

from aio_checker.parser.signal_extractor import SignalSet
from aio_checker.scoring.weights import DEFAULT_WEIGHTS, RubricType

Predicate = Callable[[SignalSet], bool]


def round_half_up(value: float) -> int:
    """Round halves away from zero for non-negative scores (2.5 -> 3)."""
    return int(math.floor(value + 0.5))


def clamp_score(value: float, low: int = 0, high: int = 100) -> int:
    """Round and clamp a score into [low, high]; NaN becomes ``low``."""
    if math.isnan(value):
        return low
    if math.isinf(value):
        return high if value > 0 else low
    return max(low, min(high, round_half_up(value)))


@dataclass
class RubricResult:
    """Score of one rubric plus the factors that earned points."""
    rubric: RubricType
    score: int
    passed: dict[str, bool] = field(default_factory=dict)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "rubric": self.rubric.value,
            "score": self.score,
            "passed": dict(self.passed),
        }


SEO_CHECKS: tuple[tuple[str, Predicate], ...] = (
    ("h1_tag", lambda s: s.h1_count == 1),
    ("title_tag", lambda s: 0 < s.title_length <= 60),
    ("meta_description", lambda s: 0 < s.meta_description_length <= 160),
    ("alt_text", lambda s: s.alt_ratio >= 0.8),
    ("structured_data", lambda s: s.has_json_ld),
    ("meta_keywords", lambda s: s.has_meta_keywords),
    ("og_tags", lambda s: s.has_og_title),
    ("canonical_url", lambda s: s.has_canonical),
    ("internal_links", lambda s: s.internal_link_count > 0),
    ("heading_structure", lambda s: s.h2_count > 0),
)

AEO_CHECKS: tuple[tuple[str, Predicate], ...] = (
    ("question_format", lambda s: s.has_questions),
    ("faq_section", lambda s: s.has_faq_section or s.has_faq_schema),
    ("clear_answer_structure", lambda s: (
        (s.h2_count > 0 and s.h3_count > 0 and s.list_count > 0)
        or (s.list_count > 0 and s.paragraph_count > 3)
    )),
    ("keyword_density", lambda s: s.word_count >= 300),
    ("structured_answer", lambda s: s.definition_list_count > 0 or s.table_count > 0),
    ("content_freshness", lambda s: s.has_date_element or s.has_recent_signal),
    ("term_explanation", lambda s: s.abbr_count > 0),
)

AEO_BONUSES: tuple[tuple[str, Predicate], ...] = (
    ("statistics_bonus", lambda s: s.has_statistics),
    ("quotations_bonus", lambda s: s.has_quotations),
)

# Each family awards only its first passing tier.
GEO_TIERS: tuple[tuple[tuple[str, Predicate], ...], ...] = (
    (
        ("content_length_2000", lambda s: s.word_count >= 2000),
        ("content_length_1500", lambda s: s.word_count >= 1500),
        ("content_length_1000", lambda s: s.word_count >= 1000),
        ("content_length_500", lambda s: s.word_count >= 500),
    ),
    (
        ("multimedia_optimal", lambda s: s.image_count >= 3 or s.video_count > 0),
        ("multimedia_good", lambda s: s.image_count >= 1),
    ),
    (
        ("section_structure_optimal", lambda s: s.has_h2_h3_list),
        ("section_structure_basic", lambda s: s.section_count > 0 or s.h2_count > 0),
    ),
    (
        ("keyword_diversity", lambda s: s.unique_word_ratio > 0.3),
    ),
    (
        ("update_date_optimal", lambda s: s.has_date_element and s.has_recent_signal),
        ("update_date_partial", lambda s: s.has_date_element or s.has_recent_signal),
    ),
    (
        ("social_meta_optimal", lambda s: s.og_tag_count >= 3 and s.twitter_tag_count >= 2),
        ("social_meta_partial", lambda s: s.og_tag_count > 0 or s.twitter_tag_count > 0),
    ),
    (
        ("structured_data_optimal", lambda s: s.has_json_ld and (
            s.has_faq_schema or s.has_article_schema or s.has_howto_schema
        )),
        ("structured_data_basic", lambda s: s.has_json_ld),
    ),
)

GEO_BONUSES: tuple[tuple[str, Predicate], ...] = (
    ("voice_search_bonus", lambda s: s.has_speakable_schema or s.has_question_headings),
)


def _sum_checks(
    signals: SignalSet,
    weights: Mapping[str, float],
    checks: tuple[tuple[str, Predicate], ...],
    passed: dict[str, bool],
) -> float:
    total = 0.0
    for factor, predicate in checks:
        ok = bool(predicate(signals))
        passed[factor] = ok
        if ok:
            total += weights.get(factor, 0.0)
    return total


def _sum_tiers(
    signals: SignalSet,
    weights: Mapping[str, float],
    families: tuple[tuple[tuple[str, Predicate], ...], ...],
    passed: dict[str, bool],
) -> float:
    total = 0.0
    for tiers in families:
        awarded = False
        for factor, predicate in tiers:
            ok = not awarded and bool(predicate(signals))
            passed[factor] = ok
            if ok:
                total += weights.get(factor, 0.0)
                awarded = True
    return total


def score_seo(signals: SignalSet, weights: Mapping[str, float] | None = None) -> RubricResult:
    """Score traditional search-engine optimization signals."""
    weights = weights if weights is not None else DEFAULT_WEIGHTS[RubricType.SEO]
    passed: dict[str, bool] = {}
    total = _sum_checks(signals, weights, SEO_CHECKS, passed)
    return RubricResult(RubricType.SEO, clamp_score(total), passed)


def score_aeo(signals: SignalSet, weights: Mapping[str, float] | None = None) -> RubricResult:
    """Score answer-engine signals (questions, FAQ, direct answer structure)."""
    weights = weights if weights is not None else DEFAULT_WEIGHTS[RubricType.AEO]
    passed: dict[str, bool] = {}
    total = _sum_checks(signals, weights, AEO_CHECKS, passed)
    total += _sum_checks(signals, weights, AEO_BONUSES, passed)
    return RubricResult(RubricType.AEO, clamp_score(total), passed)


def score_geo(signals: SignalSet, weights: Mapping[str, float] | None = None) -> RubricResult:
    """Score generative-engine signals (depth, media, structure, freshness)."""
    weights = weights if weights is not None else DEFAULT_WEIGHTS[RubricType.GEO]
    passed: dict[str, bool] = {}
    total = _sum_tiers(signals, weights, GEO_TIERS, passed)
    total += _sum_checks(signals, weights, GEO_BONUSES, passed)
    return RubricResult(RubricType.GEO, clamp_score(total), passed)


RUBRIC_SCORERS: Mapping[RubricType, Callable[..., RubricResult]] = {
    RubricType.SEO: score_seo,
    RubricType.AEO: score_aeo,
    RubricType.GEO: score_geo,
}
