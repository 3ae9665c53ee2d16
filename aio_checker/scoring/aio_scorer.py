"""Per-model AI citation probability (AIO) scoring.

Each model's score blends the SEO/AEO/GEO rubric scores through its
normalized weight group and adds a model-specific bonus. Bonuses are capped
inside the bonus functions: 40 points normally, 50 for the enhanced
variants used on general websites.
"""
from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from aio_checker.config.settings import settings
from aio_checker.parser.signal_extractor import SignalSet
from aio_checker.scoring.rubrics import clamp_score
from aio_checker.scoring.weights import (
    AIO_WEIGHT_GROUPS,
    DEFAULT_AIO_WEIGHTS,
    AIModel,
    ContentProfile,
    normalize_aio_weights,
)

BONUS_CAP = settings.scoring.bonus_cap
ENHANCED_BONUS_CAP = settings.scoring.enhanced_bonus_cap

BonusFunction = Callable[[SignalSet], int]


def _chatgpt_bonus(s: SignalSet) -> int:
    """ChatGPT favors structured data, FAQs and step-by-step guides."""
    bonus = 0
    if s.has_faq_schema:
        bonus += 12
    if s.has_json_ld:
        bonus += 10
    if s.has_article_schema and s.has_author_credentials:
        bonus += 8
    if s.has_step_guide:
        bonus += 7
    if s.has_definitions:
        bonus += 5
    return min(BONUS_CAP, bonus)


def _perplexity_bonus(s: SignalSet) -> int:
    """Perplexity favors recent, well-sourced and well-sectioned content."""
    bonus = 0
    if s.has_recent_signal and s.has_date_element:
        bonus += 15
    elif s.has_recent_signal or s.has_date_element:
        bonus += 7
    if s.has_h2_h3_list:
        bonus += 12
    if s.external_link_count >= 5:
        bonus += 8
    elif s.external_link_count >= 2:
        bonus += 4
    if s.meta_keyword_count >= 3:
        bonus += 5
    return min(BONUS_CAP, bonus)


def _grok_bonus(s: SignalSet) -> int:
    """Grok favors real-time, social and conversational content."""
    bonus = 0
    if s.has_recent_signal:
        bonus += 10
    if s.twitter_tag_count >= 2:
        bonus += 10
    elif s.og_tag_count > 0 or s.twitter_tag_count > 0:
        bonus += 5
    if s.has_questions:
        bonus += 8
    if s.external_link_count >= 3:
        bonus += 7
    if s.has_statistics:
        bonus += 5
    return min(BONUS_CAP, bonus)


def _gemini_bonus(s: SignalSet) -> int:
    """Gemini favors multimedia, tabular data and multilingual markup."""
    bonus = 0
    if s.image_count >= 3 or s.video_count > 0:
        bonus += 10
    elif s.image_count >= 1:
        bonus += 5
    if s.table_count > 0 and s.list_count >= 2:
        bonus += 8
    elif s.table_count > 0 or s.list_count >= 2:
        bonus += 4
    if s.has_json_ld:
        bonus += 7
    if s.html_lang:
        bonus += 5
    if s.has_hreflang:
        bonus += 5
    if s.image_count > 0 and s.images_with_alt == s.image_count:
        bonus += 5
    return min(BONUS_CAP, bonus)


def _claude_bonus(s: SignalSet) -> int:
    """Claude favors long, well-sourced and thoroughly sectioned content."""
    bonus = 0
    if s.has_primary_sources:
        bonus += 12
    elif s.has_citation_terms:
        bonus += 5
    if s.word_count >= 2000:
        bonus += 10
    elif s.word_count >= 1000:
        bonus += 6
    elif s.word_count >= 500:
        bonus += 3
    sections = max(s.section_count, s.h2_count)
    if sections >= 5:
        bonus += 8
    elif sections >= 3:
        bonus += 4
    if s.paragraph_count >= 10:
        bonus += 7
    elif s.paragraph_count >= 5:
        bonus += 4
    if s.has_author:
        bonus += 3
    return min(BONUS_CAP, bonus)


def _enhanced_chatgpt_bonus(s: SignalSet) -> int:
    bonus = _chatgpt_bonus(s)
    if s.has_statistics and (s.table_count > 0 or s.has_charts):
        bonus += 5
    if s.has_certification:
        bonus += 4
    if s.has_comparison:
        bonus += 3
    return min(ENHANCED_BONUS_CAP, bonus)


def _enhanced_perplexity_bonus(s: SignalSet) -> int:
    bonus = _perplexity_bonus(s)
    if s.external_link_count >= 10:
        bonus += 5
    if s.has_update_terms:
        bonus += 4
    if s.has_charts or (s.has_statistics and s.table_count > 0):
        bonus += 3
    return min(ENHANCED_BONUS_CAP, bonus)


def _enhanced_claude_bonus(s: SignalSet) -> int:
    bonus = _claude_bonus(s)
    if s.has_methodology:
        bonus += 5
    if s.word_count >= 3000:
        bonus += 5
    if s.has_case_study:
        bonus += 3
    return min(ENHANCED_BONUS_CAP, bonus)


BASE_BONUSES: Mapping[AIModel, BonusFunction] = MappingProxyType({
    AIModel.CHATGPT: _chatgpt_bonus,
    AIModel.PERPLEXITY: _perplexity_bonus,
    AIModel.GROK: _grok_bonus,
    AIModel.GEMINI: _gemini_bonus,
    AIModel.CLAUDE: _claude_bonus,
})

# Grok and Gemini have no enhanced variant.
BONUS_STRATEGIES: Mapping[ContentProfile, Mapping[AIModel, BonusFunction]] = MappingProxyType({
    ContentProfile.BLOG: BASE_BONUSES,
    ContentProfile.GENERAL_SITE: MappingProxyType({
        **BASE_BONUSES,
        AIModel.CHATGPT: _enhanced_chatgpt_bonus,
        AIModel.PERPLEXITY: _enhanced_perplexity_bonus,
        AIModel.CLAUDE: _enhanced_claude_bonus,
    }),
})


def calculate_bonus(model: AIModel, signals: SignalSet, profile: ContentProfile = ContentProfile.BLOG) -> int:
    """Return the capped bonus for one model under the given profile."""
    return BONUS_STRATEGIES[profile][model](signals)


@dataclass
class ModelScore:
    """AIO score of one model with its components."""
    model: AIModel
    score: int
    base: float
    bonus: int

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "model": self.model.value,
            "score": self.score,
            "base": round(self.base, 2),
            "bonus": self.bonus,
        }


@dataclass
class AIOScores:
    """AIO scores for all five models."""
    profile: ContentProfile
    models: dict[AIModel, ModelScore] = field(default_factory=dict)

    def __getitem__(self, model: AIModel) -> int:
        return self.models[model].score

    @property
    def average(self) -> float:
        if not self.models:
            return 0.0
        return sum(m.score for m in self.models.values()) / len(self.models)

    def as_scores(self) -> dict[str, int]:
        return {model.value: entry.score for model, entry in self.models.items()}

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "profile": self.profile.value,
            "scores": self.as_scores(),
            "average": round(self.average, 2),
            "models": [entry.to_dict() for entry in self.models.values()],
        }


def score_aio(
    seo: float,
    aeo: float,
    geo: float,
    signals: SignalSet,
    weights: Mapping[str, float] | None = None,
    profile: ContentProfile = ContentProfile.BLOG,
) -> AIOScores:
    """Score AI citation probability for every model.

    Args:
        seo: SEO rubric score.
        aeo: AEO rubric score.
        geo: GEO rubric score.
        signals: Document signals feeding the bonus heuristics.
        weights: Resolved AIO weights; re-normalized here in case a
            caller passes an un-normalized map.
        profile: Selects the bonus strategy table.

    Returns:
        AIOScores with one clamped 0-100 score per model.
    """
    weights = normalize_aio_weights(weights if weights is not None else DEFAULT_AIO_WEIGHTS)
    rubric_scores = {"seo": seo, "aeo": aeo, "geo": geo}

    result = AIOScores(profile=profile)
    for model, keys in AIO_WEIGHT_GROUPS.items():
        base = sum(rubric_scores[key.split("_")[1]] * weights[key] for key in keys)
        bonus = calculate_bonus(model, signals, profile)
        result.models[model] = ModelScore(
            model=model,
            score=clamp_score(base + bonus),
            base=base,
            bonus=bonus,
        )
    return result


# Model analysis

_MODEL_RECOMMENDATIONS: Mapping[AIModel, tuple[str, str]] = MappingProxyType({
    AIModel.CHATGPT: (
        "Add JSON-LD structured data so AI can understand the content",
        "Add an FAQ section that answers user questions directly",
    ),
    AIModel.PERPLEXITY: (
        "Show an explicit publish or update date to signal fresh information",
        "Link to sources and references to build trust",
    ),
    AIModel.GROK: (
        "Mention recent events and dates to surface in real-time answers",
        "Add Twitter/X and Open Graph meta tags for social discovery",
    ),
    AIModel.GEMINI: (
        "Add images and video to enrich the visual information",
        "Use tables and lists to structure information for readability",
    ),
    AIModel.CLAUDE: (
        "Write more detailed and comprehensive content",
        "Split the content into clear sections so readers can follow it",
    ),
})


def model_level(score: float) -> str:
    if score >= settings.scoring.model_high_threshold:
        return "High"
    if score >= settings.scoring.model_medium_threshold:
        return "Medium"
    return "Low"


def analyze_models(scores: AIOScores) -> list[dict]:
    """Attach a level and recommendations to each model's score."""
    return [
        {
            "model": model.value,
            "score": entry.score,
            "level": model_level(entry.score),
            "recommendations": list(_MODEL_RECOMMENDATIONS[model]),
        }
        for model, entry in scores.models.items()
    ]
