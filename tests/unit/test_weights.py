"""Unit tests for weight maps, caching and resolution."""
from __future__ import annotations

import logging
import math
from unittest.mock import MagicMock

import pytest

from aio_checker.learning.loop import LearningLoop
from aio_checker.learning.reward import calculate_reward
from aio_checker.learning.store import InMemoryWeightStore
from aio_checker.scoring.weights import (
    AIO_WEIGHT_GROUPS,
    DEFAULT_AIO_WEIGHTS,
    DEFAULT_SEO_WEIGHTS,
    ENHANCED_AIO_WEIGHTS,
    AIModel,
    ContentProfile,
    NullWeightCache,
    RubricType,
    TTLWeightCache,
    WeightResolver,
    base_weights,
    merge_weights,
    normalize_aio_weights,
    scale_weights,
)


class FakeTimer:
    """Manually advanced clock."""

    def __init__(self):
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class TestDefaultWeights:
    """Tests for the constant weight maps."""

    def test_defaults_are_read_only(self):
        """Default maps cannot be mutated."""
        with pytest.raises(TypeError):
            DEFAULT_SEO_WEIGHTS["h1_tag"] = 99  # type: ignore[index]

    def test_every_model_has_three_weights(self):
        """Each AIO group names keys present in both AIO maps."""
        for keys in AIO_WEIGHT_GROUPS.values():
            assert len(keys) == 3
            for key in keys:
                assert key in DEFAULT_AIO_WEIGHTS
                assert key in ENHANCED_AIO_WEIGHTS

    def test_base_weights_by_profile(self):
        """General sites use the enhanced AIO map; other rubrics ignore profile."""
        assert base_weights(RubricType.AIO, ContentProfile.GENERAL_SITE) is ENHANCED_AIO_WEIGHTS
        assert base_weights(RubricType.AIO, ContentProfile.BLOG) is DEFAULT_AIO_WEIGHTS
        assert base_weights(RubricType.SEO, ContentProfile.GENERAL_SITE) is DEFAULT_SEO_WEIGHTS


class TestMergeWeights:
    """Tests for key-by-key merging."""

    def test_valid_override(self):
        """Known keys with valid numbers are accepted."""
        merged, warnings = merge_weights(DEFAULT_SEO_WEIGHTS, {"h1_tag": 30})
        assert merged["h1_tag"] == 30.0
        assert warnings == []

    @pytest.mark.parametrize("value", [-5, math.nan, math.inf, "10", None, True])
    def test_invalid_values_rejected(self, value):
        """Negative, non-finite, non-numeric and boolean values keep the base."""
        merged, warnings = merge_weights(DEFAULT_SEO_WEIGHTS, {"h1_tag": value})
        assert merged["h1_tag"] == DEFAULT_SEO_WEIGHTS["h1_tag"]
        assert len(warnings) == 1

    def test_unknown_key_rejected(self):
        """Keys not in the base map are ignored."""
        merged, warnings = merge_weights(DEFAULT_SEO_WEIGHTS, {"made_up": 5})
        assert "made_up" not in merged
        assert "unknown factor" in warnings[0]

    def test_base_not_mutated(self):
        """Merging always returns a copy."""
        base = {"a": 1.0}
        merged, _ = merge_weights(base, {"a": 2})
        assert base == {"a": 1.0}
        assert merged == {"a": 2.0}


class TestNormalizeAIOWeights:
    """Tests for AIO group normalization."""

    def test_groups_sum_to_one(self):
        """Every model's weights sum to 1 within tolerance."""
        skewed = dict(DEFAULT_AIO_WEIGHTS, chatgpt_seo_weight=3.0, claude_geo_weight=0.0)
        normalized = normalize_aio_weights(skewed)
        for keys in AIO_WEIGHT_GROUPS.values():
            assert abs(sum(normalized[k] for k in keys) - 1.0) <= 1e-9

    def test_zero_group_splits_equally(self):
        """A group summing to zero becomes an equal split."""
        zeroed = dict(DEFAULT_AIO_WEIGHTS, grok_seo_weight=0, grok_aeo_weight=0, grok_geo_weight=0)
        normalized = normalize_aio_weights(zeroed)
        for key in AIO_WEIGHT_GROUPS[AIModel.GROK]:
            assert normalized[key] == pytest.approx(1 / 3)


class TestTTLWeightCache:
    """Tests for the TTL cache."""

    def test_entry_expires(self):
        """Entries disappear once their TTL has passed."""
        timer = FakeTimer()
        cache = TTLWeightCache(timer=timer)
        cache.set("seo", {"h1_tag": 1.0}, ttl=300)

        timer.now = 299
        assert cache.get("seo") == {"h1_tag": 1.0}
        timer.now = 301
        assert cache.get("seo") is None

    def test_invalidate_and_clear(self):
        """Invalidate drops one key, clear drops all."""
        cache = TTLWeightCache()
        cache.set("seo", {}, ttl=60)
        cache.set("aeo", {}, ttl=60)
        cache.invalidate("seo")
        assert cache.get("seo") is None
        assert cache.get("aeo") == {}
        cache.clear()
        assert cache.get("aeo") is None

    def test_null_cache_never_stores(self):
        """NullWeightCache always misses."""
        cache = NullWeightCache()
        cache.set("seo", {"h1_tag": 1.0}, ttl=60)
        assert cache.get("seo") is None


class TestWeightResolver:
    """Tests for WeightResolver."""

    def test_defaults_without_provider(self):
        """Without a provider the defaults are returned as a new dict."""
        resolved = WeightResolver().resolve(RubricType.SEO)
        assert resolved.weights == dict(DEFAULT_SEO_WEIGHTS)
        assert resolved.weights is not DEFAULT_SEO_WEIGHTS
        assert resolved.learned is False

    def test_negative_override_rejected_and_logged(self, caplog):
        """A negative override keeps the default and records a warning."""
        with caplog.at_level(logging.WARNING, logger="aio_checker.scoring.weights"):
            resolved = WeightResolver().resolve(RubricType.AIO, {"chatgpt_seo_weight": -5})

        expected = normalize_aio_weights(DEFAULT_AIO_WEIGHTS)["chatgpt_seo_weight"]
        assert resolved["chatgpt_seo_weight"] == pytest.approx(expected)
        assert len(resolved.warnings) == 1
        assert "chatgpt_seo_weight" in resolved.warnings[0]
        assert any("chatgpt_seo_weight" in record.message for record in caplog.records)

    def test_aio_override_normalized(self):
        """Accepted overrides are normalized with the rest of the group."""
        resolved = WeightResolver().resolve(
            RubricType.AIO,
            {"chatgpt_seo_weight": 1, "chatgpt_aeo_weight": 1, "chatgpt_geo_weight": 2},
        )
        assert resolved["chatgpt_geo_weight"] == pytest.approx(0.5)
        assert resolved.warnings == []

    def test_overrides_ignored_for_other_rubrics(self):
        """Only AIO accepts per-request overrides."""
        resolved = WeightResolver().resolve(RubricType.SEO, {"h1_tag": 50})
        assert resolved["h1_tag"] == DEFAULT_SEO_WEIGHTS["h1_tag"]
        assert len(resolved.warnings) == 1

    def test_learned_weights_merged(self):
        """Active learned weights replace the defaults key by key."""
        provider = MagicMock()
        provider.get_active_weights.return_value = {"h1_tag": 25.0}
        resolved = WeightResolver(provider=provider).resolve(RubricType.SEO)
        assert resolved["h1_tag"] == 25.0
        assert resolved["title_tag"] == DEFAULT_SEO_WEIGHTS["title_tag"]
        assert resolved.learned is True

    def test_provider_failure_falls_back(self, caplog):
        """Lookup errors are logged and the defaults are used."""
        provider = MagicMock()
        provider.get_active_weights.side_effect = RuntimeError("store down")
        with caplog.at_level(logging.WARNING):
            resolved = WeightResolver(provider=provider).resolve(RubricType.SEO)
        assert resolved.weights == dict(DEFAULT_SEO_WEIGHTS)
        assert "store down" in caplog.text

    def test_lookup_cached_until_invalidated(self):
        """The provider is consulted once per TTL window."""
        provider = MagicMock()
        provider.get_active_weights.return_value = None
        resolver = WeightResolver(provider=provider)

        resolver.resolve(RubricType.SEO)
        resolver.resolve(RubricType.SEO)
        assert provider.get_active_weights.call_count == 1

        resolver.invalidate(RubricType.SEO)
        resolver.resolve(RubricType.SEO)
        assert provider.get_active_weights.call_count == 2

    def test_cache_expiry_refetches(self):
        """An expired entry triggers a new lookup."""
        timer = FakeTimer()
        provider = MagicMock()
        provider.get_active_weights.return_value = {"h1_tag": 21.0}
        resolver = WeightResolver(provider=provider, cache=TTLWeightCache(timer=timer), ttl=300)

        resolver.resolve(RubricType.SEO)
        provider.get_active_weights.return_value = {"h1_tag": 22.0}
        assert resolver.resolve(RubricType.SEO)["h1_tag"] == 21.0

        timer.now = 301
        assert resolver.resolve(RubricType.SEO)["h1_tag"] == 22.0

    def test_null_cache_always_looks_up(self):
        """With caching disabled every resolve hits the provider."""
        provider = MagicMock()
        provider.get_active_weights.return_value = {}
        resolver = WeightResolver(provider=provider, cache=NullWeightCache())
        resolver.resolve(RubricType.AEO)
        resolver.resolve(RubricType.AEO)
        assert provider.get_active_weights.call_count == 2

    def test_invalid_learned_weight_ignored(self):
        """Corrupt learned values fall back to the default."""
        provider = MagicMock()
        provider.get_active_weights.return_value = {"h1_tag": -1}
        resolved = WeightResolver(provider=provider).resolve(RubricType.SEO)
        assert resolved["h1_tag"] == DEFAULT_SEO_WEIGHTS["h1_tag"]
        assert resolved.warnings

    def test_learned_aio_factors_scale_profile_base(self):
        """Learned AIO factors scale whichever base map the profile selects."""
        provider = MagicMock()
        provider.get_active_weights.return_value = {"chatgpt_seo_weight": 2.0}
        resolver = WeightResolver(provider=provider)

        site = resolver.resolve(RubricType.AIO, profile=ContentProfile.GENERAL_SITE)
        enhanced = dict(ENHANCED_AIO_WEIGHTS)
        enhanced["chatgpt_seo_weight"] *= 2.0
        expected = normalize_aio_weights(enhanced)
        assert site["chatgpt_seo_weight"] == pytest.approx(expected["chatgpt_seo_weight"])
        assert site["claude_aeo_weight"] == pytest.approx(normalize_aio_weights(ENHANCED_AIO_WEIGHTS)["claude_aeo_weight"])
        assert site.learned is True

        blog = resolver.resolve(RubricType.AIO, profile=ContentProfile.BLOG)
        assert blog["claude_aeo_weight"] == pytest.approx(normalize_aio_weights(DEFAULT_AIO_WEIGHTS)["claude_aeo_weight"])

    def test_general_site_keeps_enhanced_weights_after_learning(self):
        """An AIO version learned from blog-profile samples leaves the enhanced base intact."""
        loop = LearningLoop(InMemoryWeightStore())
        for _ in range(3):
            loop.record(calculate_reward(90, rubric=RubricType.AIO), {"chatgpt_seo_weight": 1.0})
        assert loop.update(RubricType.AIO, force=True) is not None

        resolver = WeightResolver(provider=loop)
        site = resolver.resolve(RubricType.AIO, profile=ContentProfile.GENERAL_SITE)
        enhanced = normalize_aio_weights(ENHANCED_AIO_WEIGHTS)
        assert site["claude_aeo_weight"] == pytest.approx(enhanced["claude_aeo_weight"])
        assert site["chatgpt_seo_weight"] > enhanced["chatgpt_seo_weight"]

        blog = resolver.resolve(RubricType.AIO, profile=ContentProfile.BLOG)
        assert blog["chatgpt_seo_weight"] > normalize_aio_weights(DEFAULT_AIO_WEIGHTS)["chatgpt_seo_weight"]

    def test_invalid_learned_aio_factor_ignored(self):
        """A negative learned factor leaves the base weight unchanged."""
        provider = MagicMock()
        provider.get_active_weights.return_value = {"grok_geo_weight": -1}
        resolved = WeightResolver(provider=provider).resolve(RubricType.AIO, profile=ContentProfile.GENERAL_SITE)
        assert resolved["grok_geo_weight"] == pytest.approx(normalize_aio_weights(ENHANCED_AIO_WEIGHTS)["grok_geo_weight"])
        assert resolved.warnings


class TestScaleWeights:
    """Tests for scale_weights."""

    def test_missing_factors_default_to_one(self):
        """Keys without a factor keep their base weight."""
        scaled, warnings = scale_weights({"a": 0.5, "b": 0.2}, {"a": 1.5})
        assert scaled == {"a": pytest.approx(0.75), "b": 0.2}
        assert warnings == []

    def test_unknown_factor_rejected(self):
        """Unknown keys are reported and ignored."""
        scaled, warnings = scale_weights({"a": 0.5}, {"zzz": 2.0})
        assert scaled == {"a": 0.5}
        assert len(warnings) == 1
