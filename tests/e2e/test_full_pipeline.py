"""
End-to-end tests for the full analysis pipeline.

Tests the complete flow: fetch → extract signals → score → citations → format
Uses a local HTTP server to avoid external network dependencies.
"""
from __future__ import annotations

import json
import socket
import threading
from functools import partial
from http.server import HTTPServer, SimpleHTTPRequestHandler
from pathlib import Path
from unittest.mock import patch

import pytest

from aio_checker.engine import create_engine
from aio_checker.fetcher.html_fetcher import FetchError, fetch_html
from aio_checker.report.formatter import format_report
from aio_checker.scoring.weights import AIModel


class QuietHTTPHandler(SimpleHTTPRequestHandler):
    """HTTP handler that doesn't log to console."""

    def log_message(self, format, *args):
        """Suppress logging."""


def find_free_port():
    """Find a free port on localhost."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        s.listen(1)
        port = s.getsockname()[1]
    return port


class LocalHTTPServer:
    """Context manager for a local HTTP server serving a directory."""

    def __init__(self, directory: Path):
        self.directory = directory
        self.port = find_free_port()
        self.server = None
        self.thread = None

    def __enter__(self):
        handler = partial(QuietHTTPHandler, directory=str(self.directory))
        self.server = HTTPServer(("127.0.0.1", self.port), handler)
        self.thread = threading.Thread(target=self.server.serve_forever)
        self.thread.daemon = True
        self.thread.start()
        return self

    def __exit__(self, *args):
        if self.server:
            self.server.shutdown()
            self.server.server_close()
        if self.thread:
            self.thread.join(timeout=1)

    @property
    def base_url(self):
        return f"http://127.0.0.1:{self.port}"


@pytest.fixture
def local_server(tmp_path, valid_html, minimal_html):
    """Local HTTP server serving the shared HTML fixtures."""
    (tmp_path / "article.html").write_text(valid_html, encoding="utf-8")
    (tmp_path / "minimal.html").write_text(minimal_html, encoding="utf-8")
    with LocalHTTPServer(tmp_path) as server:
        yield server


@pytest.fixture
def allow_localhost():
    """Let the fetcher reach 127.0.0.1, which SSRF protection normally blocks."""
    with patch("aio_checker.fetcher.html_fetcher._resolve_and_validate_url", return_value=""):
        yield


class TestPipelineWithRealFetch:
    """Fetch over HTTP, analyze and format."""

    def test_fetch_and_analyze(self, local_server, allow_localhost):
        """A served article flows through the whole pipeline."""
        url = f"{local_server.base_url}/article.html"
        html = fetch_html(url)
        result = create_engine(threaded=False).analyze(html, url)

        assert result.seo_score >= 80
        assert result.aeo_score > 0
        assert result.geo_score > 0
        assert all(0 <= result.aio[model] <= 100 for model in AIModel)
        assert result.citations.external_links >= 1
        assert result.signals.has_faq_schema is True

    def test_missing_page(self, local_server, allow_localhost):
        """404 responses surface as FetchError without retries."""
        with pytest.raises(FetchError, match="HTTP 404"):
            fetch_html(f"{local_server.base_url}/missing.html", sleep=lambda _: None)

    def test_localhost_blocked_without_patch(self, local_server):
        """SSRF protection rejects the loopback server by default."""
        with pytest.raises(ValueError, match="SSRF protection"):
            fetch_html(f"{local_server.base_url}/article.html")


class TestPipelineFormats:
    """Analysis results render in every output format."""

    @pytest.fixture
    def results(self, valid_html):
        return create_engine(threaded=False).analyze(valid_html, "https://example.com/ml-guide").to_dict()

    def test_format_cli(self, results):
        """CLI output contains scores and model names."""
        output = format_report(results, "cli")
        assert "AI Citation Analysis Report" in output
        assert f"{results['scores']['seo']}/100" in output
        assert "ChatGPT" in output

    def test_format_json(self, results):
        """JSON output round-trips."""
        payload = json.loads(format_report(results, "json"))
        assert payload["scores"] == results["scores"]
        assert payload["analysis_id"] == results["analysis_id"]

    def test_format_markdown(self, results):
        """Markdown output has the report sections."""
        output = format_report(results, "markdown")
        assert output.startswith("# AI Citation Analysis Report")
        assert "## Scores" in output
        assert "## AI Citation Probability" in output
        assert "| Perplexity |" in output


class TestPipelineEdgeCases:
    """Tests for unusual documents."""

    @pytest.mark.parametrize(
        "html",
        [
            "",
            "<html><body><div><p>Unclosed tags<div><span>Nested",
            "<html><body><p>日本語 한국어 Ελληνικά &amp; &lt;tags&gt; 😀</p></body></html>",
        ],
    )
    def test_odd_documents(self, html):
        """Empty, malformed and non-ASCII pages still analyze and format."""
        result = create_engine(threaded=False).analyze(html, "https://example.com")
        for output in ("cli", "json", "markdown"):
            assert format_report(result.to_dict(), output)

    def test_very_large_html(self):
        """Large pages are handled."""
        paragraphs = "".join(f"<p>Paragraph {i} with some text about search engines.</p>" for i in range(2000))
        result = create_engine(threaded=False).analyze(f"<html><body><h1>Big</h1>{paragraphs}</body></html>", "https://example.com")
        assert result.signals.word_count > 10000


class TestPipelineConsistency:
    """Tests for pipeline consistency and determinism."""

    def test_repeated_analysis_same_scores(self, valid_html):
        """Repeated analysis should produce identical scores."""
        engine = create_engine(threaded=False)
        results = [engine.analyze(valid_html, "https://example.com/a").scores() for _ in range(3)]
        assert results[0] == results[1] == results[2]

    def test_url_does_not_affect_rubric_scores(self, valid_html):
        """Rubric scores depend on content, not on the URL."""
        engine = create_engine(threaded=False)
        urls = ["https://example.com/page1", "https://different.com/page"]
        scores = {(r.seo_score, r.aeo_score, r.geo_score) for r in (engine.analyze(valid_html, u) for u in urls)}
        assert len(scores) == 1
