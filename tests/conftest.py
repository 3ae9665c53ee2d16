"""Shared test fixtures and configuration."""
from __future__ import annotations

import pytest

from aio_checker.parser.signal_extractor import SignalSet


@pytest.fixture
def valid_html() -> str:
    """Return a well-optimized article page for testing."""
    return """<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <title>What Is Machine Learning? A 2025 Guide</title>
    <meta name="description" content="Machine learning explained: definitions, statistics and a step-by-step guide to getting started.">
    <meta name="keywords" content="machine learning, ai, guide">
    <meta property="og:title" content="What Is Machine Learning?">
    <meta property="og:description" content="A practical guide">
    <meta property="og:image" content="https://example.com/ml.png">
    <meta name="twitter:card" content="summary">
    <meta name="twitter:title" content="What Is Machine Learning?">
    <link rel="canonical" href="https://example.com/ml-guide">
    <script type="application/ld+json">
    {"@context": "https://schema.org", "@type": "Article", "headline": "What Is Machine Learning?",
     "author": {"@type": "Person", "name": "Dr. Jane Park"}}
    </script>
    <script type="application/ld+json">
    {"@context": "https://schema.org", "@type": "FAQPage", "mainEntity": []}
    </script>
</head>
<body>
    <h1>What Is Machine Learning?</h1>
    <p class="byline">By Dr. Jane Park, PhD, professor of computer science. Updated <time datetime="2025-03-01">March 2025</time>.</p>
    <p>Machine learning is defined as a subset of artificial intelligence that enables systems to learn from data.</p>

    <h2>How does machine learning work?</h2>
    <p>According to a 2024 study, 85% of enterprises now use some form of AI technology.</p>
    <ul>
        <li>Supervised learning</li>
        <li>Unsupervised learning</li>
    </ul>

    <h3>Steps to get started</h3>
    <ol>
        <li>Collect data</li>
        <li>Train a model</li>
    </ol>

    <table>
        <tr><th>Method</th><th>Accuracy</th></tr>
        <tr><td>Baseline</td><td>70%</td></tr>
    </table>

    <section id="faq">
        <h2>Frequently Asked Questions</h2>
        <p>Is machine learning the same as AI? It is a part of it.</p>
    </section>

    <img src="/images/one.jpg" alt="Training pipeline diagram">
    <img src="/images/two.jpg" alt="Accuracy chart">

    <a href="/related">Related article</a>
    <a href="https://arxiv.org/abs/1234">Source paper</a>
</body>
</html>"""


@pytest.fixture
def minimal_html() -> str:
    """Return minimal HTML for edge case testing."""
    return """<!DOCTYPE html>
<html>
<head><title>Minimal</title></head>
<body><p>Content</p></body>
</html>"""


@pytest.fixture
def citation_html() -> str:
    """Return a page with internal, external and citation-style links."""
    return """<!DOCTYPE html>
<html>
<head><title>Citations</title></head>
<body>
    <p>Intro with a <a href="https://www.example.com/about">link to ourselves</a>.</p>
    <p>Reference: <a href="https://journal.org/paper">peer-reviewed paper</a> supports this.</p>
    <p>See <a href="https://news.site/2019/old-story">an old story</a> for background.</p>
    <p>Avoid <a href="https://reviews.site/scam-report">this scam report</a>.</p>
    <p><a href="#top">Back to top</a> <a href="mailto:hi@example.com">Mail us</a></p>
    <p><a href="/contact">Contact</a></p>
</body>
</html>"""


@pytest.fixture
def empty_signals() -> SignalSet:
    """Signals of an empty document."""
    return SignalSet()


@pytest.fixture
def structured_signals() -> SignalSet:
    """Signals with FAQ schema, JSON-LD, recency, a date and 5 external links."""
    return SignalSet(
        json_ld_count=1,
        schema_types=frozenset({"FAQPage"}),
        has_faq_schema=True,
        has_recent_signal=True,
        has_date_element=True,
        external_link_count=5,
    )
