"""Citation graph extraction from page links."""
from __future__ import annotations

import logging
from collections import Counter, defaultdict
from dataclasses import asdict, dataclass, field
from enum import Enum
from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup

from aio_checker.config.settings import settings
from aio_checker.parser.signal_extractor import body_text, clean_text, parse_html
from aio_checker.scoring.rubrics import round_half_up

logger = logging.getLogger(__name__)


class LinkType(str, Enum):
    """How a link relates to the analyzed page."""
    INTERNAL = "internal"
    EXTERNAL = "external"
    CITATION = "citation"
    REFERENCE = "reference"


@dataclass
class Citation:
    """An outbound link with its position and classification."""
    url: str
    domain: str
    anchor_text: str
    position: int
    is_target_url: bool
    link_type: LinkType
    context: str | None = None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        d = asdict(self)
        d["link_type"] = self.link_type.value
        return d


@dataclass
class DomainStatistics:
    """Per-domain aggregate of citations."""
    domain: str
    count: int
    average_position: int
    link_types: dict[str, int]
    is_target_url: bool

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return asdict(self)


@dataclass
class CitationAnalysis:
    """All citations found on a page plus aggregate counts."""
    target_domain: str
    citations: list[Citation] = field(default_factory=list)
    total_links: int = 0
    external_links: int = 0
    internal_links: int = 0
    citation_links: int = 0
    target_url_citations: int = 0

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "target_domain": self.target_domain,
            "citations": [c.to_dict() for c in self.citations],
            "total_links": self.total_links,
            "external_links": self.external_links,
            "internal_links": self.internal_links,
            "citation_links": self.citation_links,
            "target_url_citations": self.target_url_citations,
        }


def extract_domain(url: str) -> str:
    """Return the hostname of ``url`` without a leading ``www.``.

    Malformed URLs yield an empty string and a logged warning.
    """
    try:
        hostname = urlparse(url).hostname or ""
    except ValueError:
        logger.warning("Could not parse domain from URL: %r", url)
        return ""
    if not hostname:
        logger.warning("URL has no hostname: %r", url)
        return ""
    return hostname.removeprefix("www.")


def _resolve_href(href: str, source_url: str) -> str | None:
    """Resolve an href to an absolute http(s) URL, or None to skip it."""
    href = href.strip()
    if not href or href.startswith("#"):
        return None
    try:
        absolute = urljoin(source_url, href)
        scheme = urlparse(absolute).scheme
    except ValueError:
        return None
    if scheme not in {"http", "https"}:
        return None
    return absolute


def _link_context(anchor, anchor_text: str, window: int) -> str:
    """Text of the anchor's parent, trimmed to ``window`` chars on each side."""
    parent = anchor.parent
    text = clean_text(parent.get_text(" ")) if parent is not None else anchor_text
    index = text.find(anchor_text)
    if index < 0:
        return text[: window * 2]
    start = max(0, index - window)
    end = min(len(text), index + len(anchor_text) + window)
    return text[start:end]


def _has_citation_keyword(*texts: str) -> bool:
    keywords = settings.citation.citation_keywords
    return any(keyword in text.lower() for text in texts for keyword in keywords)


def extract_citations(html: str, source_url: str, soup: BeautifulSoup | None = None) -> CitationAnalysis:
    """Extract and classify every outbound link on the page.

    Args:
        html: Raw HTML text.
        source_url: URL of the analyzed page; its domain is the target domain.
        soup: Optional pre-parsed document.

    Returns:
        CitationAnalysis with one Citation per http(s) link.
    """
    soup = soup if soup is not None else parse_html(html)
    target_domain = extract_domain(source_url)
    text = body_text(soup)
    window = settings.citation.context_window

    anchors = soup.find_all("a", href=True)
    analysis = CitationAnalysis(target_domain=target_domain, total_links=len(anchors))

    for index, anchor in enumerate(anchors):
        href = anchor.get("href", "")
        url = _resolve_href(href, source_url)
        if url is None:
            continue

        domain = extract_domain(url)
        is_target = bool(target_domain) and domain == target_domain
        if is_target:
            link_type = LinkType.INTERNAL
            analysis.internal_links += 1
            analysis.target_url_citations += 1
        else:
            link_type = LinkType.EXTERNAL
            analysis.external_links += 1

        anchor_text = clean_text(anchor.get_text(" ")) or href.strip()
        context = _link_context(anchor, anchor_text, window)
        if _has_citation_keyword(anchor_text, context):
            link_type = LinkType.CITATION
            analysis.citation_links += 1

        offset = text.find(anchor_text) if text else -1
        if offset >= 0:
            position = round_half_up(offset / len(text) * 100)
        else:
            position = round_half_up(index / len(anchors) * 100)

        analysis.citations.append(Citation(
            url=url,
            domain=domain,
            anchor_text=anchor_text,
            position=min(100, position),
            is_target_url=is_target,
            link_type=link_type,
            context=context or None,
        ))

    return analysis


def calculate_domain_statistics(citations: list[Citation], target_domain: str) -> list[DomainStatistics]:
    """Group citations by domain, sorted by citation count descending."""
    grouped: dict[str, list[Citation]] = defaultdict(list)
    for citation in citations:
        grouped[citation.domain].append(citation)

    stats = []
    for domain, items in grouped.items():
        histogram = Counter(c.link_type.value for c in items)
        stats.append(DomainStatistics(
            domain=domain,
            count=len(items),
            average_position=round_half_up(sum(c.position for c in items) / len(items)),
            link_types=dict(histogram),
            is_target_url=bool(target_domain) and domain == target_domain,
        ))
    stats.sort(key=lambda s: s.count, reverse=True)
    return stats
