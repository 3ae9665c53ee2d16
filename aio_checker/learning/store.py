"""Versioned weight store for the learning loop."""
from __future__ import annotations

import threading
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from typing import Any, Protocol
from uuid import uuid4

from aio_checker.scoring.weights import RubricType


@dataclass(frozen=True)
class AlgorithmPerformance:
    """Rolling accuracy statistics for one algorithm version."""
    avg_accuracy: float = 0.0
    avg_error: float = 0.0
    total_tests: int = 0
    improvement_rate: float = 0.0


@dataclass(frozen=True)
class AlgorithmVersion:
    """Immutable snapshot of one rubric's weight map."""
    id: str
    rubric: RubricType
    version: int
    weights: Mapping[str, float]
    metadata: Mapping[str, Any] = field(default_factory=dict)
    performance: AlgorithmPerformance = field(default_factory=AlgorithmPerformance)
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    active: bool = False

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "rubric": self.rubric.value,
            "version": self.version,
            "weights": dict(self.weights),
            "metadata": dict(self.metadata),
            "performance": {
                "avg_accuracy": self.performance.avg_accuracy,
                "avg_error": self.performance.avg_error,
                "total_tests": self.performance.total_tests,
                "improvement_rate": self.performance.improvement_rate,
            },
            "created_at": self.created_at.isoformat(),
            "active": self.active,
        }


@dataclass(frozen=True)
class ABTestResult:
    """Outcome of comparing two algorithm versions."""
    winner: str  # "a", "b" or "tie"
    reason: str


class WeightStore(Protocol):
    """Persistence contract the learning loop depends on."""

    def get_active_weights(self, rubric: RubricType) -> Mapping[str, float] | None:
        ...

    def save_algorithm_version(
        self,
        rubric: RubricType,
        weights: Mapping[str, float],
        metadata: Mapping[str, Any] | None = None,
    ) -> AlgorithmVersion:
        ...


class InMemoryWeightStore:
    """Thread-safe in-process weight store.

    Versions are never deleted; exactly one version per rubric is active.
    """

    def __init__(self):
        self._versions: dict[str, AlgorithmVersion] = {}
        self._lock = threading.Lock()

    def get_active_weights(self, rubric: RubricType) -> dict[str, float] | None:
        version = self.get_active_version(rubric)
        return dict(version.weights) if version else None

    def get_active_version(self, rubric: RubricType) -> AlgorithmVersion | None:
        with self._lock:
            for version in self._versions.values():
                if version.rubric is rubric and version.active:
                    return version
        return None

    def get_version(self, version_id: str) -> AlgorithmVersion | None:
        with self._lock:
            return self._versions.get(version_id)

    def history(self, rubric: RubricType) -> list[AlgorithmVersion]:
        """All versions of a rubric, oldest first."""
        with self._lock:
            versions = [v for v in self._versions.values() if v.rubric is rubric]
        return sorted(versions, key=lambda v: v.version)

    def _deactivate(self, rubric: RubricType) -> None:
        """Deactivate the rubric's active version (called with lock held)."""
        for version_id, version in self._versions.items():
            if version.rubric is rubric and version.active:
                self._versions[version_id] = replace(version, active=False)

    def save_algorithm_version(
        self,
        rubric: RubricType,
        weights: Mapping[str, float],
        metadata: Mapping[str, Any] | None = None,
    ) -> AlgorithmVersion:
        """Store a new version and make it the active one."""
        with self._lock:
            latest = max(
                (v.version for v in self._versions.values() if v.rubric is rubric),
                default=0,
            )
            self._deactivate(rubric)
            version = AlgorithmVersion(
                id=uuid4().hex,
                rubric=rubric,
                version=latest + 1,
                weights=dict(weights),
                metadata=dict(metadata or {}),
                active=True,
            )
            self._versions[version.id] = version
        return version

    def activate(self, version_id: str) -> AlgorithmVersion:
        """Make an existing version active again (rollback).

        Raises:
            KeyError: If the version does not exist.
        """
        with self._lock:
            version = self._versions[version_id]
            self._deactivate(version.rubric)
            version = replace(version, active=True)
            self._versions[version_id] = version
        return version

    def update_performance(self, version_id: str, accuracy: float, error: float) -> AlgorithmVersion:
        """Fold one test result into the version's rolling averages.

        Raises:
            KeyError: If the version does not exist.
        """
        with self._lock:
            version = self._versions[version_id]
            perf = version.performance
            total = perf.total_tests + 1
            avg_accuracy = (perf.avg_accuracy * perf.total_tests + accuracy) / total
            avg_error = (perf.avg_error * perf.total_tests + error) / total

            previous = [
                v for v in self._versions.values()
                if v.rubric is version.rubric and v.version == version.version - 1
            ]
            baseline = previous[0].performance.avg_accuracy if previous else 0.0
            improvement = (avg_accuracy - baseline) / baseline * 100 if baseline > 0 else 0.0

            version = replace(version, performance=AlgorithmPerformance(
                avg_accuracy=avg_accuracy,
                avg_error=avg_error,
                total_tests=total,
                improvement_rate=improvement,
            ))
            self._versions[version_id] = version
        return version

    def compare_versions(self, version_a: str, version_b: str) -> ABTestResult:
        """A/B comparison: lower error wins, else a >5 point accuracy gap."""
        with self._lock:
            a = self._versions[version_a].performance
            b = self._versions[version_b].performance

        if a.total_tests == 0 or b.total_tests == 0:
            return ABTestResult("tie", "Not enough test results")
        if a.avg_error != b.avg_error:
            winner = "a" if a.avg_error < b.avg_error else "b"
            return ABTestResult(winner, "Lower average error")
        if abs(a.avg_accuracy - b.avg_accuracy) > 5:
            winner = "a" if a.avg_accuracy > b.avg_accuracy else "b"
            return ABTestResult(winner, "Higher average accuracy")
        return ABTestResult("tie", "No significant difference")
