"""Blog platform detection.

Decides the :class:`ContentProfile` for a page once, before scoring. URL
hosts are the strongest evidence; generator meta tags and platform markup
in the HTML come next.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from urllib.parse import urlparse

from aio_checker.parser.signal_extractor import parse_html
from aio_checker.scoring.weights import ContentProfile

logger = logging.getLogger(__name__)

# (platform, host domains, confidence); a domain matches itself and its subdomains
URL_RULES: tuple[tuple[str, tuple[str, ...], float], ...] = (
    ("naver", ("blog.naver.com",), 0.95),
    ("tistory", ("tistory.com",), 0.90),
    ("brunch", ("brunch.co.kr",), 0.90),
    ("wordpress", ("wordpress.com", "wp.com"), 0.85),
    ("medium", ("medium.com",), 0.85),
    ("velog", ("velog.io",), 0.85),
)

GENERATOR_CONFIDENCE = 0.80
MARKUP_CONFIDENCE = 0.70

# platform -> (required marker, any of the companion markers)
MARKUP_RULES: tuple[tuple[str, str, tuple[str, ...]], ...] = (
    ("naver", "naver", ("blog", "postview")),
    ("tistory", "tistory", ("blog", "post")),
    ("brunch", "brunch", ()),
    ("wordpress", "wp-content", ()),
    ("medium", "medium-", ()),
    ("velog", "velog", ()),
)


@dataclass
class BlogPlatform:
    """A detected blog platform."""
    name: str
    confidence: float
    indicators: list[str] = field(default_factory=list)


@dataclass
class ProfileDetection:
    """Outcome of content profile detection."""
    profile: ContentProfile
    platform: BlogPlatform | None
    reason: str

    @property
    def is_blog(self) -> bool:
        return self.profile is ContentProfile.BLOG

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "profile": self.profile.value,
            "platform": self.platform.name if self.platform else None,
            "confidence": round(self.platform.confidence, 2) if self.platform else 0.0,
            "reason": self.reason,
        }


def platform_from_url(url: str) -> BlogPlatform | None:
    """Match the URL host against known blog hosts."""
    try:
        hostname = (urlparse(url).hostname or "").lower()
    except ValueError:
        logger.warning("Could not parse URL for blog detection: %r", url)
        return None

    for name, domains, confidence in URL_RULES:
        if any(hostname == domain or hostname.endswith(f".{domain}") for domain in domains):
            return BlogPlatform(name, confidence, [f"{hostname} host"])
    return None


def platform_from_html(html: str) -> BlogPlatform | None:
    """Look for a blog generator meta tag or platform-specific markup."""
    if not html:
        return None

    platform: BlogPlatform | None = None
    generator_tag = parse_html(html).find("meta", attrs={"name": "generator"})
    generator = (generator_tag.get("content") or "").lower() if generator_tag else ""
    for name in ("wordpress", "tistory"):
        if name in generator:
            platform = BlogPlatform(name, GENERATOR_CONFIDENCE, [f"Generator: {generator}"])
            break

    if platform is not None:
        return platform

    lowered = html.lower()
    for name, marker, companions in MARKUP_RULES:
        if marker in lowered and (not companions or any(c in lowered for c in companions)):
            return BlogPlatform(name, MARKUP_CONFIDENCE, [f"{name} markup"])
    return None


def detect_content_profile(url: str, html: str) -> ProfileDetection:
    """Classify a page as a blog or a general website.

    Args:
        url: Page URL.
        html: Raw page HTML.

    Returns:
        ProfileDetection with the profile and the evidence used.
    """
    url_platform = platform_from_url(url)
    if url_platform and url_platform.confidence >= 0.85:
        return ProfileDetection(ContentProfile.BLOG, url_platform, f"URL matches {url_platform.name}")

    html_platform = platform_from_html(html)
    if html_platform and html_platform.confidence >= MARKUP_CONFIDENCE:
        if url_platform and url_platform.name == html_platform.name:
            html_platform.confidence = min(1.0, html_platform.confidence + 0.1)
        return ProfileDetection(ContentProfile.BLOG, html_platform, f"HTML matches {html_platform.name}")

    if url_platform and url_platform.confidence >= MARKUP_CONFIDENCE:
        return ProfileDetection(ContentProfile.BLOG, url_platform, f"URL matches {url_platform.name}")

    return ProfileDetection(ContentProfile.GENERAL_SITE, None, "No blog platform detected")
