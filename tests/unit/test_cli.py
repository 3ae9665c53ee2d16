"""Unit tests for the command line interface."""
from __future__ import annotations

import json
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from aio_checker.cli.run import app
from aio_checker.fetcher.html_fetcher import FetchError

runner = CliRunner()


@pytest.fixture
def page(tmp_path, valid_html):
    """A local HTML file."""
    path = tmp_path / "page.html"
    path.write_text(valid_html, encoding="utf-8")
    return path


class TestRunCommand:
    """Tests for `aio-checker run`."""

    def test_local_file(self, page):
        """Local files are analyzed without fetching."""
        with patch("aio_checker.cli.run.fetch_html") as mock_fetch:
            result = runner.invoke(app, ["run", str(page)])
        assert result.exit_code == 0
        assert "AI Citation Analysis Report" in result.output
        mock_fetch.assert_not_called()

    def test_save_json(self, page, tmp_path):
        """--save writes the formatted report."""
        target = tmp_path / "report.json"
        result = runner.invoke(app, ["run", str(page), "-o", "json", "-s", str(target)])
        assert result.exit_code == 0
        payload = json.loads(target.read_text(encoding="utf-8"))
        assert payload["url"] == page.resolve().as_uri()
        assert "aio" in payload["scores"]

    def test_invalid_output(self, page):
        """Unknown formats exit with 1."""
        result = runner.invoke(app, ["run", str(page), "-o", "pdf"])
        assert result.exit_code == 1
        assert "Invalid output format" in result.output

    def test_invalid_profile(self, page):
        """Unknown profiles exit with 1."""
        result = runner.invoke(app, ["run", str(page), "-p", "forum"])
        assert result.exit_code == 1

    def test_fetch_error(self):
        """Fetch failures are reported and exit with 1."""
        error = FetchError("https://down.example.com", "connection refused")
        with patch("aio_checker.cli.run.fetch_html", side_effect=error):
            result = runner.invoke(app, ["run", "https://down.example.com"])
        assert result.exit_code == 1
        assert "Fetch error" in result.output


class TestOtherCommands:
    """Tests for `check` and `version`."""

    def test_check(self, page):
        """check prints the headline scores."""
        result = runner.invoke(app, ["check", str(page)])
        assert result.exit_code == 0
        assert "visibility" in result.output
        assert "SEO" in result.output

    def test_check_rejected_url(self):
        """Blocked URLs exit with 1."""
        with patch("aio_checker.cli.run.fetch_html", side_effect=ValueError("SSRF protection: blocked")):
            result = runner.invoke(app, ["check", "http://10.0.0.1"])
        assert result.exit_code == 1

    def test_version(self):
        """version prints the package version."""
        result = runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert "1.0.0" in result.output
