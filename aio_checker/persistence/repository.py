"""Analysis persistence contract and fire-and-forget dispatch."""
from __future__ import annotations

import logging
import threading
from collections import defaultdict, deque
from collections.abc import Callable, Sequence
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import UTC, datetime
from typing import Protocol

from cachetools import LRUCache

from aio_checker.citation.extractor import Citation
from aio_checker.config.settings import settings
from aio_checker.learning.reward import Reward
from aio_checker.scoring.weights import RubricType

logger = logging.getLogger(__name__)


class AnalysisRepository(Protocol):
    """Storage the engine writes analysis by-products to."""

    def save_citations(self, analysis_id: str, citations: Sequence[Citation]) -> None:
        ...

    def save_rewards(self, analysis_id: str, rewards: Sequence[Reward]) -> None:
        ...

    def record_learning_metric(self, rubric: RubricType, reward: Reward) -> None:
        ...


class InMemoryAnalysisRepository:
    """Process-local repository, also serving as the benchmark source."""

    def __init__(self, benchmark_window: int | None = None, max_analyses: int | None = None):
        window = benchmark_window or settings.reward.benchmark_window
        max_analyses = max_analyses or settings.persistence.max_analyses
        self.citations: LRUCache[str, list[Citation]] = LRUCache(maxsize=max_analyses)
        self.rewards: LRUCache[str, list[Reward]] = LRUCache(maxsize=max_analyses)
        # (rubric, day) -> [reward sum, count]
        self._metrics: LRUCache[tuple[RubricType, str], list[float]] = LRUCache(
            maxsize=len(RubricType) * settings.persistence.metric_days
        )
        self._scores: dict[RubricType, deque[float]] = defaultdict(lambda: deque(maxlen=window))
        self._lock = threading.Lock()

    def save_citations(self, analysis_id: str, citations: Sequence[Citation]) -> None:
        with self._lock:
            self.citations[analysis_id] = list(citations)

    def save_rewards(self, analysis_id: str, rewards: Sequence[Reward]) -> None:
        with self._lock:
            self.rewards[analysis_id] = list(rewards)
            for reward in rewards:
                self._scores[reward.rubric].append(reward.score)

    def record_learning_metric(self, rubric: RubricType, reward: Reward) -> None:
        day = datetime.now(UTC).date().isoformat()
        with self._lock:
            total = self._metrics.setdefault((rubric, day), [0.0, 0])
            total[0] += reward.reward
            total[1] += 1

    def average_reward(self, rubric: RubricType, day: str | None = None) -> float | None:
        """Rolling average reward of a rubric for one day (today by default)."""
        day = day or datetime.now(UTC).date().isoformat()
        with self._lock:
            total = self._metrics.get((rubric, day))
        if not total or not total[1]:
            return None
        return total[0] / total[1]

    def get_benchmark(self, rubric: RubricType) -> float | None:
        """Average of the most recent scores for a rubric, or None."""
        with self._lock:
            scores = list(self._scores[rubric])
        if not scores:
            return None
        return sum(scores) / len(scores)


class PersistenceDispatcher:
    """Runs repository writes off the request path.

    Every failure is logged and swallowed. Without an executor, writes run
    inline, which keeps tests deterministic.
    """

    def __init__(self, repository: AnalysisRepository, executor: ThreadPoolExecutor | None = None):
        self.repository = repository
        self._executor = executor

    @classmethod
    def with_thread_pool(cls, repository: AnalysisRepository, max_workers: int | None = None) -> PersistenceDispatcher:
        workers = max_workers or settings.api.persistence_max_workers
        return cls(repository, ThreadPoolExecutor(max_workers=workers, thread_name_prefix="persist"))

    def _run(self, label: str, func: Callable[[], None]) -> None:
        try:
            func()
        except Exception:
            logger.exception("Persistence failed: %s", label)

    def submit(self, label: str, func: Callable[[], None]) -> Future | None:
        """Schedule a write; returns the future when running on a pool."""
        if self._executor is None:
            self._run(label, func)
            return None
        try:
            return self._executor.submit(self._run, label, func)
        except RuntimeError:
            logger.exception("Persistence executor rejected task: %s", label)
            return None

    def persist_analysis(self, analysis_id: str, citations: Sequence[Citation], rewards: Sequence[Reward]) -> None:
        """Fire-and-forget every write produced by one analysis."""
        self.submit("citations", lambda: self.repository.save_citations(analysis_id, citations))
        self.submit("rewards", lambda: self.repository.save_rewards(analysis_id, rewards))
        for reward in rewards:
            self.submit(
                f"learning metric {reward.rubric.value}",
                lambda reward=reward: self.repository.record_learning_metric(reward.rubric, reward),
            )

    def shutdown(self, wait: bool = True) -> None:
        """Shutdown the executor."""
        if self._executor is not None:
            self._executor.shutdown(wait=wait)
