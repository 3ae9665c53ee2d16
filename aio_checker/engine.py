"""Analysis pipeline: signals, rubric scores, AIO, citations, insights, rewards."""
from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Protocol
from uuid import uuid4

from aio_checker.citation.authority import (
    CitationOpportunity,
    DomainAuthority,
    QualityIssue,
    detect_quality_issues,
    evaluate_domain_authority,
    find_citation_opportunities,
)
from aio_checker.citation.extractor import (
    CitationAnalysis,
    DomainStatistics,
    calculate_domain_statistics,
    extract_citations,
)
from aio_checker.insights.generator import (
    ImprovementPriority,
    Insight,
    generate_insights,
    get_content_writing_guidelines,
    get_improvement_priorities,
)
from aio_checker.learning.loop import LearningLoop
from aio_checker.learning.reward import Reward, calculate_reward
from aio_checker.learning.store import InMemoryWeightStore
from aio_checker.parser.signal_extractor import SignalSet, extract_signals, parse_html
from aio_checker.persistence.repository import InMemoryAnalysisRepository, PersistenceDispatcher
from aio_checker.profile.blog_detector import ProfileDetection, detect_content_profile
from aio_checker.scoring.aio_scorer import AIOScores, analyze_models, score_aio
from aio_checker.scoring.rubrics import RUBRIC_SCORERS, RubricResult, round_half_up
from aio_checker.scoring.visibility import VisibilityScore, calculate_visibility
from aio_checker.scoring.weights import ContentProfile, RubricType, WeightResolver

logger = logging.getLogger(__name__)


class BenchmarkProvider(Protocol):
    """Source of rolling benchmark scores for reward calculation."""

    def get_benchmark(self, rubric: RubricType) -> float | None:
        ...


@dataclass
class AnalysisResult:
    """Everything one analysis produces. ``to_dict()`` is JSON-serializable."""
    analysis_id: str
    url: str
    analyzed_at: datetime
    profile: ProfileDetection
    signals: SignalSet
    rubrics: dict[RubricType, RubricResult]
    aio: AIOScores
    model_analysis: list[dict]
    visibility: VisibilityScore
    citations: CitationAnalysis
    domain_statistics: list[DomainStatistics]
    domain_authorities: list[DomainAuthority]
    opportunities: list[CitationOpportunity]
    quality_issues: list[QualityIssue]
    insights: list[Insight]
    improvement_priorities: list[ImprovementPriority]
    writing_guidelines: dict[str, list[str]]
    rewards: list[Reward] = field(default_factory=list)
    weight_warnings: list[str] = field(default_factory=list)

    @property
    def seo_score(self) -> int:
        return self.rubrics[RubricType.SEO].score

    @property
    def aeo_score(self) -> int:
        return self.rubrics[RubricType.AEO].score

    @property
    def geo_score(self) -> int:
        return self.rubrics[RubricType.GEO].score

    @property
    def overall_score(self) -> int:
        return round_half_up((self.seo_score + self.aeo_score + self.geo_score) / 3)

    def scores(self) -> dict[str, float]:
        """Headline scores keyed by rubric name (AIO is the model average)."""
        return {
            RubricType.SEO.value: self.seo_score,
            RubricType.AEO.value: self.aeo_score,
            RubricType.GEO.value: self.geo_score,
            RubricType.AIO.value: round(self.aio.average, 2),
        }

    def recommendations(self) -> list[str]:
        """Flat list of every recommendation string, most urgent first."""
        messages = [insight.message for insight in self.insights]
        messages.extend(self.visibility.recommendations)
        for opportunity in self.opportunities:
            messages.extend(opportunity.recommendations)
        messages.extend(issue.recommendation for issue in self.quality_issues)
        return list(dict.fromkeys(messages))

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "analysis_id": self.analysis_id,
            "url": self.url,
            "analyzed_at": self.analyzed_at.isoformat(),
            "profile": self.profile.to_dict(),
            "scores": {
                "seo": self.seo_score,
                "aeo": self.aeo_score,
                "geo": self.geo_score,
                "overall": self.overall_score,
                "aio": self.aio.as_scores(),
                "visibility": self.visibility.score,
            },
            "rubrics": {rubric.value: result.to_dict() for rubric, result in self.rubrics.items()},
            "aio": self.aio.to_dict(),
            "model_analysis": self.model_analysis,
            "visibility": self.visibility.to_dict(),
            "signals": self.signals.to_dict(),
            "citations": self.citations.to_dict(),
            "domain_statistics": [s.to_dict() for s in self.domain_statistics],
            "domain_authorities": [a.to_dict() for a in self.domain_authorities],
            "opportunities": [o.to_dict() for o in self.opportunities],
            "quality_issues": [i.to_dict() for i in self.quality_issues],
            "insights": [i.to_dict() for i in self.insights],
            "improvement_priorities": [p.to_dict() for p in self.improvement_priorities],
            "writing_guidelines": self.writing_guidelines,
            "recommendations": self.recommendations(),
            "rewards": [r.to_dict() for r in self.rewards],
            "weight_warnings": list(self.weight_warnings),
        }


class AnalysisEngine:
    """Runs the scoring pipeline with injected collaborators.

    Scoring is pure; only persistence and learning touch shared state, and
    both run fire-and-forget through the persistence dispatcher.
    """

    def __init__(
        self,
        resolver: WeightResolver | None = None,
        persistence: PersistenceDispatcher | None = None,
        learning: LearningLoop | None = None,
        benchmarks: BenchmarkProvider | None = None,
    ):
        self.learning = learning
        self.resolver = resolver or WeightResolver(provider=learning)
        self.persistence = persistence
        self.benchmarks = benchmarks

    def _benchmark(self, rubric: RubricType) -> float | None:
        if self.benchmarks is None:
            return None
        try:
            return self.benchmarks.get_benchmark(rubric)
        except Exception:
            logger.warning("Benchmark lookup failed for %s; using default", rubric.value, exc_info=True)
            return None

    def _calculate_rewards(self, scores: Mapping[str, float], previous: Mapping[str, float]) -> list[Reward]:
        return [
            calculate_reward(
                scores[rubric.value],
                previous.get(rubric.value),
                self._benchmark(rubric),
                rubric=rubric,
            )
            for rubric in RubricType
        ]

    def analyze(
        self,
        html: str,
        source_url: str,
        *,
        profile: ContentProfile | None = None,
        aio_overrides: Mapping[str, Any] | None = None,
        previous_scores: Mapping[str, float] | None = None,
        analysis_id: str | None = None,
    ) -> AnalysisResult:
        """Analyze one page.

        Args:
            html: Raw page HTML.
            source_url: URL the HTML was fetched from.
            profile: Force a content profile instead of detecting it.
            aio_overrides: Per-request AIO weight overrides.
            previous_scores: Scores of the previous analysis of this page,
                keyed by rubric name, used for the improvement reward.
            analysis_id: Identifier for persisted records (generated if omitted).

        Returns:
            The complete AnalysisResult.
        """
        analysis_id = analysis_id or uuid4().hex
        soup = parse_html(html)

        detection = detect_content_profile(source_url, html)
        if profile is not None and profile is not detection.profile:
            detection = ProfileDetection(profile, detection.platform, "Profile set by caller")

        signals = extract_signals(html, soup=soup)

        warnings: list[str] = []
        rubrics: dict[RubricType, RubricResult] = {}
        for rubric, scorer in RUBRIC_SCORERS.items():
            resolved = self.resolver.resolve(rubric)
            warnings.extend(resolved.warnings)
            rubrics[rubric] = scorer(signals, resolved.weights)

        seo = rubrics[RubricType.SEO].score
        aeo = rubrics[RubricType.AEO].score
        geo = rubrics[RubricType.GEO].score

        aio_weights = self.resolver.resolve(RubricType.AIO, aio_overrides, detection.profile)
        warnings.extend(aio_weights.warnings)
        aio = score_aio(seo, aeo, geo, signals, aio_weights.weights, detection.profile)
        visibility = calculate_visibility(signals, aio.average, seo, aeo, geo)

        citations = extract_citations(html, source_url, soup=soup)
        domain_stats = calculate_domain_statistics(citations.citations, citations.target_domain)
        authorities = evaluate_domain_authority(domain_stats)
        opportunities = find_citation_opportunities(authorities, citations.target_domain)
        quality_issues = detect_quality_issues(citations.citations)

        category_scores = {"SEO": seo, "AEO": aeo, "GEO": geo, "AIO": round_half_up(aio.average)}

        result = AnalysisResult(
            analysis_id=analysis_id,
            url=source_url,
            analyzed_at=datetime.now(UTC),
            profile=detection,
            signals=signals,
            rubrics=rubrics,
            aio=aio,
            model_analysis=analyze_models(aio),
            visibility=visibility,
            citations=citations,
            domain_statistics=domain_stats,
            domain_authorities=authorities,
            opportunities=opportunities,
            quality_issues=quality_issues,
            insights=generate_insights(signals, seo, aeo, geo),
            improvement_priorities=get_improvement_priorities(category_scores),
            writing_guidelines=get_content_writing_guidelines(category_scores),
            weight_warnings=warnings,
        )
        result.rewards = self._calculate_rewards(result.scores(), previous_scores or {})

        self._dispatch(result)
        return result

    def _dispatch(self, result: AnalysisResult) -> None:
        """Hand persistence and learning off without affecting the result."""
        if self.persistence is not None:
            self.persistence.persist_analysis(result.analysis_id, result.citations.citations, result.rewards)
            if self.learning is not None:
                learning = self.learning
                self.persistence.submit(
                    "learning samples",
                    lambda: learning.record_analysis(result.rewards, result.rubrics, result.aio),
                )
        elif self.learning is not None:
            try:
                self.learning.record_analysis(result.rewards, result.rubrics, result.aio)
            except Exception:
                logger.exception("Recording learning samples failed")


def create_engine(threaded: bool = True) -> AnalysisEngine:
    """Wire an engine with in-memory stores.

    Args:
        threaded: Run persistence on a thread pool instead of inline.
    """
    store = InMemoryWeightStore()
    learning = LearningLoop(store)
    repository = InMemoryAnalysisRepository()
    if threaded:
        persistence = PersistenceDispatcher.with_thread_pool(repository)
    else:
        persistence = PersistenceDispatcher(repository)
    return AnalysisEngine(
        resolver=WeightResolver(provider=learning),
        persistence=persistence,
        learning=learning,
        benchmarks=repository,
    )


# Global engine instance
engine = create_engine()


def analyze(html: str, source_url: str, **kwargs: Any) -> AnalysisResult:
    """Analyze a page with the global engine."""
    return engine.analyze(html, source_url, **kwargs)
