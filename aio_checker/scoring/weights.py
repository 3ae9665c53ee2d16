"""Rubric weight maps and weight resolution.

Default maps are read-only constants. :class:`WeightResolver` always builds a
new dict from them: learned weights from the active algorithm version are
merged first, then caller overrides, and AIO groups are normalized last.
"""
from __future__ import annotations

import logging
import math
import threading
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Protocol

from cachetools import TLRUCache

from aio_checker.config.settings import settings

logger = logging.getLogger(__name__)


class RubricType(str, Enum):
    """Scoring rubrics with their own weight maps."""
    SEO = "seo"
    AEO = "aeo"
    GEO = "geo"
    AIO = "aio"


class ContentProfile(str, Enum):
    """How the analyzed content is classified upstream.

    General websites use the enhanced AIO weights and bonus functions.
    """
    BLOG = "blog"
    GENERAL_SITE = "general_site"


class AIModel(str, Enum):
    """AI assistants scored by the AIO rubric."""
    CHATGPT = "chatgpt"
    PERPLEXITY = "perplexity"
    GROK = "grok"
    GEMINI = "gemini"
    CLAUDE = "claude"


DEFAULT_SEO_WEIGHTS: Mapping[str, float] = MappingProxyType({
    "h1_tag": 20,
    "title_tag": 15,
    "meta_description": 15,
    "alt_text": 10,
    "structured_data": 10,
    "meta_keywords": 5,
    "og_tags": 10,
    "canonical_url": 5,
    "internal_links": 5,
    "heading_structure": 5,
})

DEFAULT_AEO_WEIGHTS: Mapping[str, float] = MappingProxyType({
    "question_format": 20,
    "faq_section": 15,
    "clear_answer_structure": 20,
    "keyword_density": 10,
    "structured_answer": 15,
    "content_freshness": 10,
    "term_explanation": 10,
    "statistics_bonus": 5,
    "quotations_bonus": 3,
})

DEFAULT_GEO_WEIGHTS: Mapping[str, float] = MappingProxyType({
    "content_length_2000": 20,
    "content_length_1500": 18,
    "content_length_1000": 15,
    "content_length_500": 10,
    "multimedia_optimal": 15,
    "multimedia_good": 10,
    "section_structure_optimal": 15,
    "section_structure_basic": 10,
    "keyword_diversity": 15,
    "update_date_optimal": 10,
    "update_date_partial": 7,
    "social_meta_optimal": 10,
    "social_meta_partial": 6,
    "structured_data_optimal": 15,
    "structured_data_basic": 10,
    "voice_search_bonus": 5,
})

DEFAULT_AIO_WEIGHTS: Mapping[str, float] = MappingProxyType({
    "chatgpt_seo_weight": 0.4,
    "chatgpt_aeo_weight": 0.35,
    "chatgpt_geo_weight": 0.25,
    "perplexity_geo_weight": 0.45,
    "perplexity_seo_weight": 0.3,
    "perplexity_aeo_weight": 0.25,
    "grok_geo_weight": 0.45,
    "grok_seo_weight": 0.3,
    "grok_aeo_weight": 0.25,
    "gemini_geo_weight": 0.4,
    "gemini_seo_weight": 0.35,
    "gemini_aeo_weight": 0.25,
    "claude_aeo_weight": 0.4,
    "claude_geo_weight": 0.35,
    "claude_seo_weight": 0.25,
})

# General websites lean harder on direct answers for ChatGPT and Claude
# and on answer structure for Perplexity. Grok and Gemini are unchanged.
ENHANCED_AIO_WEIGHTS: Mapping[str, float] = MappingProxyType({
    "chatgpt_seo_weight": 0.35,
    "chatgpt_aeo_weight": 0.4,
    "chatgpt_geo_weight": 0.25,
    "perplexity_geo_weight": 0.45,
    "perplexity_seo_weight": 0.25,
    "perplexity_aeo_weight": 0.3,
    "grok_geo_weight": 0.45,
    "grok_seo_weight": 0.3,
    "grok_aeo_weight": 0.25,
    "gemini_geo_weight": 0.4,
    "gemini_seo_weight": 0.35,
    "gemini_aeo_weight": 0.25,
    "claude_aeo_weight": 0.45,
    "claude_geo_weight": 0.35,
    "claude_seo_weight": 0.2,
})

DEFAULT_WEIGHTS: Mapping[RubricType, Mapping[str, float]] = MappingProxyType({
    RubricType.SEO: DEFAULT_SEO_WEIGHTS,
    RubricType.AEO: DEFAULT_AEO_WEIGHTS,
    RubricType.GEO: DEFAULT_GEO_WEIGHTS,
    RubricType.AIO: DEFAULT_AIO_WEIGHTS,
})

AIO_WEIGHT_GROUPS: Mapping[AIModel, tuple[str, str, str]] = MappingProxyType({
    model: (f"{model.value}_seo_weight", f"{model.value}_aeo_weight", f"{model.value}_geo_weight")
    for model in AIModel
})


def base_weights(rubric: RubricType, profile: ContentProfile = ContentProfile.BLOG) -> Mapping[str, float]:
    """Return the read-only starting weight map for a rubric and profile."""
    if rubric is RubricType.AIO and profile is ContentProfile.GENERAL_SITE:
        return ENHANCED_AIO_WEIGHTS
    return DEFAULT_WEIGHTS[rubric]


class WeightProvider(Protocol):
    """Source of learned weights for the currently active algorithm version."""

    def get_active_weights(self, rubric: RubricType) -> Mapping[str, float] | None:
        ...


class WeightCache(Protocol):
    """Cache used by :class:`WeightResolver` for learned weight lookups."""

    def get(self, key: str) -> Any | None:
        ...

    def set(self, key: str, value: Any, ttl: float) -> None:
        ...

    def invalidate(self, key: str) -> None:
        ...

    def clear(self) -> None:
        ...


def _time_to_use(_key: str, entry: tuple[Any, float], now: float) -> float:
    return now + entry[1]


class TTLWeightCache:
    """Thread-safe per-entry TTL cache backed by cachetools.

    Concurrent writers race with last-writer-wins semantics; a reader may see
    weights up to one TTL old.
    """

    def __init__(self, maxsize: int = 32, timer: Callable[[], float] = time.monotonic):
        self._cache: TLRUCache = TLRUCache(maxsize=maxsize, ttu=_time_to_use, timer=timer)
        self._lock = threading.Lock()

    def get(self, key: str) -> Any | None:
        with self._lock:
            entry = self._cache.get(key)
        return None if entry is None else entry[0]

    def set(self, key: str, value: Any, ttl: float) -> None:
        with self._lock:
            self._cache[key] = (value, ttl)

    def invalidate(self, key: str) -> None:
        with self._lock:
            self._cache.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()


class NullWeightCache:
    """Cache that never stores anything."""

    def get(self, key: str) -> Any | None:
        return None

    def set(self, key: str, value: Any, ttl: float) -> None:
        pass

    def invalidate(self, key: str) -> None:
        pass

    def clear(self) -> None:
        pass


@dataclass
class ResolvedWeights:
    """A freshly built weight map plus any warnings raised while merging."""
    rubric: RubricType
    weights: dict[str, float]
    warnings: list[str] = field(default_factory=list)
    learned: bool = False

    def __getitem__(self, key: str) -> float:
        return self.weights[key]

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "rubric": self.rubric.value,
            "weights": dict(self.weights),
            "warnings": list(self.warnings),
            "learned": self.learned,
        }


def _is_valid_weight(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value) and value >= 0


def merge_weights(
    base: Mapping[str, float],
    updates: Mapping[str, Any],
    source: str = "override",
) -> tuple[dict[str, float], list[str]]:
    """Merge ``updates`` into a copy of ``base``, key by key.

    A key is accepted only when it exists in ``base`` and its value is a
    finite, non-negative number. Rejected keys keep the base value.

    Returns:
        The merged copy and one warning message per rejected key.
    """
    merged = dict(base)
    warnings = []
    for key, value in updates.items():
        if key not in base:
            warnings.append(f"Ignored {source} weight '{key}': unknown factor")
        elif not _is_valid_weight(value):
            warnings.append(f"Ignored {source} weight '{key}': invalid value {value!r}")
        else:
            merged[key] = float(value)
    for message in warnings:
        logger.warning(message)
    return merged, warnings


def scale_weights(
    base: Mapping[str, float],
    factors: Mapping[str, Any],
    source: str = "learned",
) -> tuple[dict[str, float], list[str]]:
    """Multiply each base weight by its factor in ``factors`` (default 1.0).

    Factors are validated like :func:`merge_weights`; rejected factors leave
    the base weight unchanged.
    """
    accepted, warnings = merge_weights(dict.fromkeys(base, 1.0), factors, source=source)
    return {key: weight * accepted[key] for key, weight in base.items()}, warnings


def normalize_aio_weights(weights: Mapping[str, float]) -> dict[str, float]:
    """Normalize each model's three weights so they sum to 1.0.

    A group whose sum is zero or negative falls back to an equal split.
    """
    normalized = dict(weights)
    for keys in AIO_WEIGHT_GROUPS.values():
        total = sum(normalized.get(key, 0.0) for key in keys)
        for key in keys:
            if total <= 0:
                normalized[key] = 1 / 3
            else:
                normalized[key] = normalized.get(key, 0.0) / total
    return normalized


class WeightResolver:
    """Builds the weight map each scorer uses for one analysis.

    Learned weights come from an injected :class:`WeightProvider` through an
    injected :class:`WeightCache`. Lookup failures fall back to defaults.
    Learned AIO maps are scale factors applied to the profile's base map.
    """

    def __init__(
        self,
        provider: WeightProvider | None = None,
        cache: WeightCache | None = None,
        ttl: float | None = None,
    ):
        self.provider = provider
        self.cache = cache if cache is not None else TTLWeightCache()
        self.ttl = ttl if ttl is not None else settings.weights.cache_ttl

    def _learned_weights(self, rubric: RubricType) -> Mapping[str, float]:
        if self.provider is None:
            return {}

        cached = self.cache.get(rubric.value)
        if cached is not None:
            logger.debug("Weight cache hit for %s", rubric.value)
            return cached

        try:
            learned = self.provider.get_active_weights(rubric)
        except Exception:
            logger.warning("Active weight lookup failed for %s; using defaults", rubric.value, exc_info=True)
            return {}

        learned = dict(learned or {})
        self.cache.set(rubric.value, learned, self.ttl)
        logger.debug("Weight cache miss for %s (%d learned keys)", rubric.value, len(learned))
        return learned

    def resolve(
        self,
        rubric: RubricType,
        overrides: Mapping[str, Any] | None = None,
        profile: ContentProfile = ContentProfile.BLOG,
    ) -> ResolvedWeights:
        """Resolve the weight map for a rubric.

        Args:
            rubric: Which rubric's weights to build.
            overrides: Per-request weight overrides (AIO only).
            profile: Content classification; selects the enhanced AIO base.

        Returns:
            A new ResolvedWeights; AIO groups are always normalized.
        """
        base = base_weights(rubric, profile)
        warnings: list[str] = []

        learned = self._learned_weights(rubric)
        if rubric is RubricType.AIO:
            # AIO versions hold per-key scale factors over the profile's base map
            weights, learned_warnings = scale_weights(base, learned)
        else:
            weights, learned_warnings = merge_weights(base, learned, source="learned")
        warnings.extend(learned_warnings)

        if overrides:
            if rubric is RubricType.AIO:
                weights, override_warnings = merge_weights(weights, overrides)
                warnings.extend(override_warnings)
            else:
                message = f"Ignored weight overrides for {rubric.value}: only AIO accepts overrides"
                logger.warning(message)
                warnings.append(message)

        if rubric is RubricType.AIO:
            weights = normalize_aio_weights(weights)

        return ResolvedWeights(rubric=rubric, weights=weights, warnings=warnings, learned=bool(learned))

    def invalidate(self, rubric: RubricType | None = None) -> None:
        """Drop cached learned weights for one rubric, or all of them."""
        if rubric is None:
            self.cache.clear()
        else:
            self.cache.invalidate(rubric.value)
