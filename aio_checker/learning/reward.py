"""Reward calculation from observed scores."""
from __future__ import annotations

from dataclasses import dataclass

from aio_checker.config.settings import settings
from aio_checker.scoring.weights import RubricType


@dataclass(frozen=True)
class RewardMetrics:
    """Inputs and intermediate values behind a reward."""
    current_score: float
    previous_score: float | None
    improvement: float  # percent
    benchmark: float
    benchmark_comparison: float  # percent


@dataclass(frozen=True)
class Reward:
    """Bounded learning signal for one rubric of one analysis."""
    rubric: RubricType
    score: float
    reward: float
    metrics: RewardMetrics

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "rubric": self.rubric.value,
            "score": self.score,
            "reward": self.reward,
            "metrics": {
                "current_score": self.metrics.current_score,
                "previous_score": self.metrics.previous_score,
                "improvement": round(self.metrics.improvement, 2),
                "benchmark": round(self.metrics.benchmark, 2),
                "benchmark_comparison": round(self.metrics.benchmark_comparison, 2),
            },
        }


def _level_reward(score: float) -> float:
    if score >= 80:
        return 0.4
    if score >= 60:
        return 0.2
    if score >= 40:
        return 0.0
    return -0.2


def _tiered_reward(percent: float, high: float, mid: float) -> float:
    """0.3 above ``high``, 0.15 above ``mid``, 0.05 above zero; mirrored for drops."""
    magnitude = abs(percent)
    if magnitude > high:
        step = 0.3
    elif magnitude > mid:
        step = 0.15
    elif magnitude > 0:
        step = 0.05
    else:
        return 0.0
    return step if percent > 0 else -step


def _delta_reward(percent: float) -> float:
    """Contribution of the change since the previous analysis."""
    return _tiered_reward(percent, high=10, mid=5)


def _benchmark_reward(percent: float) -> float:
    """Contribution of the distance from the benchmark."""
    return _tiered_reward(percent, high=20, mid=10)


def _percent_change(current: float, reference: float) -> float:
    if reference == 0:
        return 100.0 if current > 0 else 0.0
    return (current - reference) / reference * 100


def calculate_reward(
    current: float,
    previous: float | None = None,
    benchmark: float | None = None,
    rubric: RubricType = RubricType.SEO,
) -> Reward:
    """Turn a score into a reward in [-1, 1].

    Args:
        current: Score just observed (0-100).
        previous: Score of the previous analysis of the same page, if any.
        benchmark: Rolling average score; the configured default when
            missing or non-positive.
        rubric: Rubric the score belongs to.

    Returns:
        Reward summing level, improvement and benchmark contributions.
    """
    if benchmark is None or benchmark <= 0:
        benchmark = settings.reward.default_benchmark

    reward = _level_reward(current)

    improvement = 0.0
    if previous is not None:
        improvement = _percent_change(current, previous)
        reward += _delta_reward(improvement)

    comparison = _percent_change(current, benchmark)
    reward += _benchmark_reward(comparison)

    reward = max(-1.0, min(1.0, reward))
    return Reward(
        rubric=rubric,
        score=current,
        reward=round(reward, 4),
        metrics=RewardMetrics(
            current_score=current,
            previous_score=previous,
            improvement=improvement,
            benchmark=benchmark,
            benchmark_comparison=comparison,
        ),
    )
