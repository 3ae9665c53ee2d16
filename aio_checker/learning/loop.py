"""Reward-driven weight learning.

The loop buffers rewards together with the features that produced them and
periodically asks a :class:`WeightUpdateStrategy` for a new weight map. It
implements the scorer's ``WeightProvider`` contract, so the resolver reads
learned weights without depending on this module.
"""
from __future__ import annotations

import logging
import threading
from collections import defaultdict, deque
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Protocol

from aio_checker.config.settings import settings
from aio_checker.learning.reward import Reward
from aio_checker.learning.store import AlgorithmVersion, WeightStore
from aio_checker.scoring.aio_scorer import AIOScores
from aio_checker.scoring.rubrics import RubricResult
from aio_checker.scoring.weights import AIO_WEIGHT_GROUPS, RubricType, base_weights

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LearningSample:
    """One reward and the per-factor features it is attributed to."""
    rubric: RubricType
    reward: float
    features: Mapping[str, float] = field(default_factory=dict)


class WeightUpdateStrategy(Protocol):
    """Turns buffered samples into a proposed weight map."""

    name: str

    def propose(
        self,
        current: Mapping[str, float],
        samples: Sequence[LearningSample],
    ) -> dict[str, float] | None:
        ...


class RewardWeightedNudge:
    """Scale each weight by the mean reward of samples where its factor fired.

    ``w' = clamp(w * (1 + rate * mean(reward * feature)))``. Factors that never
    fired keep their weight. Returns None when nothing would change.
    """

    name = "reward_weighted_nudge"

    def __init__(
        self,
        learning_rate: float | None = None,
        min_weight: float | None = None,
        max_weight: float | None = None,
    ):
        self.learning_rate = learning_rate if learning_rate is not None else settings.learning.learning_rate
        self.min_weight = min_weight if min_weight is not None else settings.learning.min_weight
        self.max_weight = max_weight if max_weight is not None else settings.learning.max_weight

    def propose(
        self,
        current: Mapping[str, float],
        samples: Sequence[LearningSample],
    ) -> dict[str, float] | None:
        if not samples:
            return None

        proposed = dict(current)
        changed = False
        for key, weight in current.items():
            signal = sum(s.reward * s.features.get(key, 0.0) for s in samples) / len(samples)
            if signal == 0:
                continue
            new_weight = weight * (1 + self.learning_rate * signal)
            proposed[key] = max(self.min_weight, min(self.max_weight, new_weight))
            changed = changed or proposed[key] != weight
        return proposed if changed else None


def rubric_features(result: RubricResult) -> dict[str, float]:
    """One feature per factor: 1.0 when it earned points, else 0.0."""
    return {factor: 1.0 if ok else 0.0 for factor, ok in result.passed.items()}


def aio_features(seo: float, aeo: float, geo: float) -> dict[str, float]:
    """Feature per AIO weight key: the matching rubric score on a 0-1 scale."""
    rubric_scores = {"seo": seo / 100, "aeo": aeo / 100, "geo": geo / 100}
    return {
        key: rubric_scores[key.split("_")[1]]
        for keys in AIO_WEIGHT_GROUPS.values()
        for key in keys
    }


class LearningLoop:
    """Buffers rewards and produces new algorithm versions."""

    def __init__(
        self,
        store: WeightStore,
        strategy: WeightUpdateStrategy | None = None,
        min_samples: int | None = None,
        max_pending: int | None = None,
    ):
        self.store = store
        self.strategy = strategy or RewardWeightedNudge()
        self.min_samples = min_samples if min_samples is not None else settings.learning.min_samples
        self.max_pending = max_pending if max_pending is not None else settings.learning.max_pending_samples
        # oldest samples are dropped once a rubric buffer is full
        self._samples: dict[RubricType, deque[LearningSample]] = defaultdict(lambda: deque(maxlen=self.max_pending))
        self._lock = threading.Lock()

    def get_active_weights(self, rubric: RubricType) -> Mapping[str, float] | None:
        """WeightProvider contract: the active version's weights, or None."""
        return self.store.get_active_weights(rubric)

    def record(self, reward: Reward, features: Mapping[str, float]) -> None:
        """Buffer one reward with its feature attribution."""
        sample = LearningSample(rubric=reward.rubric, reward=reward.reward, features=dict(features))
        with self._lock:
            self._samples[reward.rubric].append(sample)

    def record_analysis(
        self,
        rewards: Sequence[Reward],
        rubric_results: Mapping[RubricType, RubricResult],
        aio: AIOScores,
    ) -> None:
        """Buffer the rewards of one analysis with their features."""
        seo = rubric_results[RubricType.SEO].score
        aeo = rubric_results[RubricType.AEO].score
        geo = rubric_results[RubricType.GEO].score
        for reward in rewards:
            if reward.rubric is RubricType.AIO:
                features = aio_features(seo, aeo, geo)
            else:
                features = rubric_features(rubric_results[reward.rubric])
            self.record(reward, features)

    def pending(self, rubric: RubricType) -> int:
        with self._lock:
            return len(self._samples[rubric])

    def update(self, rubric: RubricType, force: bool = False) -> AlgorithmVersion | None:
        """Apply the strategy to buffered samples and save a new version.

        Args:
            rubric: Rubric whose weights to update.
            force: Run even with fewer than ``min_samples`` samples.

        Returns:
            The newly active version, or None when no update was made.
        """
        with self._lock:
            samples = list(self._samples[rubric])
            if not samples or (len(samples) < self.min_samples and not force):
                return None
            self._samples[rubric].clear()

        if rubric is RubricType.AIO:
            # AIO versions store scale factors; see WeightResolver.resolve
            current = dict.fromkeys(base_weights(rubric), 1.0)
        else:
            current = dict(base_weights(rubric))
        current.update(self.store.get_active_weights(rubric) or {})

        proposed = self.strategy.propose(current, samples)
        if proposed is None:
            logger.debug("Strategy %s proposed no change for %s", self.strategy.name, rubric.value)
            return None

        mean_reward = sum(s.reward for s in samples) / len(samples)
        version = self.store.save_algorithm_version(rubric, proposed, {
            "strategy": self.strategy.name,
            "samples": len(samples),
            "mean_reward": round(mean_reward, 4),
        })
        logger.info("Activated %s weights version %d", rubric.value, version.version)
        return version
