"""Domain authority, citation opportunities and citation quality issues."""
from __future__ import annotations

import re
from dataclasses import asdict, dataclass, field
from enum import Enum

from aio_checker.citation.extractor import Citation, DomainStatistics, LinkType
from aio_checker.config.settings import settings
from aio_checker.scoring.rubrics import clamp_score

# Years before 2021 in a URL usually mean stale material
OUTDATED_URL_PATTERN = re.compile(r"(201[0-9]|2020)")


class IssueSeverity(Enum):
    """Citation quality issue severity levels."""
    HIGH = "high"
    MEDIUM = "medium"


@dataclass
class AuthorityFactors:
    """Inputs behind a domain's authority score."""
    citation_count: int
    average_position: int
    citation_type_ratio: int  # percent
    target_url_citation: bool


@dataclass
class DomainAuthority:
    """Authority of one cited domain, from this page's perspective."""
    domain: str
    authority_score: int
    factors: AuthorityFactors

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return asdict(self)


@dataclass
class CitationOpportunity:
    """A high-authority domain worth earning citations from."""
    domain: str
    authority_score: int
    opportunity_score: int
    reasons: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return asdict(self)


@dataclass
class QualityIssue:
    """A questionable citation found on the page."""
    url: str
    issue_type: str  # "outdated" or "negative"
    severity: IssueSeverity
    description: str
    recommendation: str

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        d = asdict(self)
        d["severity"] = self.severity.value
        return d


def _score_citation_count(count: int) -> float:
    """Up to 40 points, reaching the cap at 10 citations."""
    return min(40.0, count / 10 * 40)


def _score_position(average_position: float) -> int:
    """Citations near the top of the page weigh more."""
    if average_position <= 30:
        return 30
    if average_position <= 60:
        return 20
    return 10


def calculate_authority_score(
    citation_count: int,
    average_position: float,
    citation_ratio: float,
    is_target_url: bool,
) -> int:
    """Score one domain's authority on a 0-100 scale.

    Args:
        citation_count: Number of links to the domain.
        average_position: Mean position of those links (0-100).
        citation_ratio: Share of links classified as citations (0-1).
        is_target_url: Whether the domain is the analyzed page's own.

    Returns:
        Rounded score clamped to [0, 100].
    """
    score = (
        _score_citation_count(citation_count)
        + _score_position(average_position)
        + citation_ratio * 20
        + (10 if is_target_url else 0)
    )
    return clamp_score(score)


def evaluate_domain_authority(stats: list[DomainStatistics]) -> list[DomainAuthority]:
    """Score every cited domain, sorted by authority descending."""
    authorities = []
    for stat in stats:
        citation_links = stat.link_types.get(LinkType.CITATION.value, 0)
        ratio = citation_links / stat.count if stat.count else 0.0
        authorities.append(DomainAuthority(
            domain=stat.domain,
            authority_score=calculate_authority_score(
                stat.count, stat.average_position, ratio, stat.is_target_url
            ),
            factors=AuthorityFactors(
                citation_count=stat.count,
                average_position=stat.average_position,
                citation_type_ratio=clamp_score(ratio * 100),
                target_url_citation=stat.is_target_url,
            ),
        ))
    authorities.sort(key=lambda a: a.authority_score, reverse=True)
    return authorities


def find_citation_opportunities(authorities: list[DomainAuthority], target_domain: str) -> list[CitationOpportunity]:
    """Pick high-authority domains other than the page's own.

    Returns:
        Opportunities sorted by opportunity score, highest first.
    """
    min_authority = settings.citation.opportunity_min_authority
    boost = settings.citation.opportunity_boost
    opportunities = []

    for authority in authorities:
        if authority.domain == target_domain or authority.authority_score < min_authority:
            continue

        factors = authority.factors
        reasons = []
        recommendations = []
        if factors.average_position <= 30:
            reasons.append("Cited near the top of the page")
            recommendations.append("Publish content this domain would cite in a prominent position")
        if factors.citation_type_ratio >= 50:
            reasons.append("High share of citation-style links")
            recommendations.append("Provide reference-grade material such as research or data")
        if factors.citation_count >= 5:
            reasons.append(f"Cited {factors.citation_count} times")
            recommendations.append("Build a relationship with this domain through related content")

        opportunities.append(CitationOpportunity(
            domain=authority.domain,
            authority_score=authority.authority_score,
            opportunity_score=min(100, authority.authority_score + boost),
            reasons=reasons,
            recommendations=recommendations,
        ))

    opportunities.sort(key=lambda o: o.opportunity_score, reverse=True)
    return opportunities


def detect_quality_issues(citations: list[Citation]) -> list[QualityIssue]:
    """Flag outdated or negative citations."""
    negative_keywords = settings.citation.negative_keywords
    issues = []

    for citation in citations:
        if OUTDATED_URL_PATTERN.search(citation.url):
            issues.append(QualityIssue(
                url=citation.url,
                issue_type="outdated",
                severity=IssueSeverity.MEDIUM,
                description="Citation appears to be from before 2021",
                recommendation="Replace it with a more recent source",
            ))

        haystack = f"{citation.url} {citation.anchor_text}".lower()
        if any(keyword in haystack for keyword in negative_keywords):
            issues.append(QualityIssue(
                url=citation.url,
                issue_type="negative",
                severity=IssueSeverity.HIGH,
                description="Citation links to negative content",
                recommendation="Replace it with a positive or neutral source",
            ))

    return issues
