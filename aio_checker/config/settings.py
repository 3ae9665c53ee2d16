"""Centralized configuration settings."""
from __future__ import annotations

import os
from dataclasses import dataclass, field

VERSION = "1.0.0"


@dataclass
class FetcherSettings:
    """Settings for HTML fetcher."""
    request_timeout: int = 15
    max_response_size: int = 10 * 1024 * 1024  # 10 MB
    max_redirects: int = 5
    user_agent: str = "AIO-Checker/1.0"

    # Retry with exponential backoff (network and timeout errors only)
    retry_attempts: int = 3
    backoff_initial: float = 1.0  # seconds
    backoff_multiplier: float = 2.0
    backoff_max: float = 10.0  # seconds


@dataclass
class WeightSettings:
    """Settings for weight resolution."""
    cache_ttl: int = 300  # seconds


@dataclass
class ScoringSettings:
    """Settings for rubric and AIO scoring thresholds."""
    bonus_cap: int = 40
    enhanced_bonus_cap: int = 50

    # Rubric "good" thresholds used by the insight rules
    rubric_good_threshold: int = 70
    aio_good_threshold: int = 80
    excellent_threshold: int = 80

    # AIO model levels
    model_high_threshold: int = 80
    model_medium_threshold: int = 60

    # Readability
    flesch_low_threshold: int = 30


@dataclass
class CitationSettings:
    """Settings for citation extraction and quality checks."""
    context_window: int = 50  # chars on each side of the anchor text
    citation_keywords: tuple[str, ...] = ("참고", "출처", "reference", "citation", "source", "인용")
    negative_keywords: tuple[str, ...] = ("scam", "fraud", "complaint", "negative", "bad", "worst")

    # Authority
    opportunity_min_authority: int = 50
    opportunity_boost: int = 20


@dataclass
class RewardSettings:
    """Settings for reward calculation."""
    default_benchmark: float = 50.0
    benchmark_window: int = 100  # number of recent scores in the rolling average


@dataclass
class LearningSettings:
    """Settings for the weight-learning loop."""
    learning_rate: float = 0.01
    min_samples: int = 10
    min_weight: float = 0.0
    max_weight: float = 100.0
    max_pending_samples: int = 1000  # per rubric; oldest dropped first


@dataclass
class PersistenceSettings:
    """Settings for the in-memory analysis repository."""
    max_analyses: int = 1000  # citation/reward sets kept, least recently used evicted
    metric_days: int = 90  # daily learning metrics kept per rubric


@dataclass
class APISettings:
    """API-specific settings."""
    # Background persistence
    persistence_max_workers: int = 2

    # CORS
    cors_origins: list[str] = field(default_factory=lambda: ["*"])


@dataclass
class Settings:
    """Main application settings container."""
    fetcher: FetcherSettings = field(default_factory=FetcherSettings)
    weights: WeightSettings = field(default_factory=WeightSettings)
    scoring: ScoringSettings = field(default_factory=ScoringSettings)
    citation: CitationSettings = field(default_factory=CitationSettings)
    reward: RewardSettings = field(default_factory=RewardSettings)
    learning: LearningSettings = field(default_factory=LearningSettings)
    persistence: PersistenceSettings = field(default_factory=PersistenceSettings)
    api: APISettings = field(default_factory=APISettings)

    # Application settings
    debug: bool = False

    def __post_init__(self):
        """Load settings from environment variables."""
        self.debug = os.environ.get("AIO_CHECKER_DEBUG", "").lower() in ("true", "1", "yes")

        # Fetcher overrides
        if timeout := os.environ.get("AIO_CHECKER_REQUEST_TIMEOUT"):
            self.fetcher.request_timeout = int(timeout)
        if attempts := os.environ.get("AIO_CHECKER_RETRY_ATTEMPTS"):
            self.fetcher.retry_attempts = int(attempts)

        # Weight cache
        if ttl := os.environ.get("AIO_CHECKER_WEIGHT_CACHE_TTL"):
            self.weights.cache_ttl = int(ttl)

        # Reward
        if benchmark := os.environ.get("AIO_CHECKER_DEFAULT_BENCHMARK"):
            self.reward.default_benchmark = float(benchmark)

        # Learning
        if rate := os.environ.get("AIO_CHECKER_LEARNING_RATE"):
            self.learning.learning_rate = float(rate)
        if min_samples := os.environ.get("AIO_CHECKER_LEARNING_MIN_SAMPLES"):
            self.learning.min_samples = int(min_samples)

        # Persistence
        if max_analyses := os.environ.get("AIO_CHECKER_MAX_STORED_ANALYSES"):
            self.persistence.max_analyses = int(max_analyses)

        # API overrides
        if workers := os.environ.get("AIO_CHECKER_PERSISTENCE_WORKERS"):
            self.api.persistence_max_workers = int(workers)
        if cors := os.environ.get("AIO_CHECKER_CORS_ORIGINS"):
            self.api.cors_origins = [o.strip() for o in cors.split(",")]


# Global settings instance
settings = Settings()
