"""CLI commands."""
from __future__ import annotations

import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel

from aio_checker.config.settings import VERSION
from aio_checker.engine import AnalysisResult, create_engine
from aio_checker.fetcher.html_fetcher import FetchError, fetch_html
from aio_checker.report.formatter import OutputFormat, format_report
from aio_checker.scoring.weights import ContentProfile

app = typer.Typer(
    add_completion=False,
    help="AIO Checker - Score web pages for AI search visibility and citations",
)
console = Console()

_PROFILES: dict[str, ContentProfile | None] = {
    "auto": None,
    "blog": ContentProfile.BLOG,
    "site": ContentProfile.GENERAL_SITE,
}


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _load(target: str) -> tuple[str, str]:
    """Return (html, source url) for a URL or a local HTML file."""
    path = Path(target)
    if not target.startswith(("http://", "https://")) and path.is_file():
        return path.read_text(encoding="utf-8", errors="replace"), path.resolve().as_uri()
    return fetch_html(target), target


def _analyze(target: str, profile: ContentProfile | None) -> AnalysisResult:
    engine = create_engine(threaded=False)
    html, source_url = _load(target)
    return engine.analyze(html, source_url, profile=profile)


@app.command()
def run(
    target: str = typer.Argument(..., help="URL or local HTML file to analyze"),
    output: str = typer.Option(
        "cli",
        "--output",
        "-o",
        help="Output format: cli, json, markdown",
    ),
    save: str | None = typer.Option(
        None,
        "--save",
        "-s",
        help="Save report to file",
    ),
    profile: str = typer.Option(
        "auto",
        "--profile",
        "-p",
        help="Content profile: auto, blog, site",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Show debug logging",
    ),
) -> None:
    """Score a page for SEO, AEO, GEO and per-model AI citation probability.

    Examples:
        aio-checker run https://example.com
        aio-checker run ./page.html -o json
        aio-checker run https://example.com -o markdown -s report.md
    """
    if output not in ("cli", "json", "markdown"):
        console.print(f"[red]Error:[/red] Invalid output format '{output}'. Use cli, json, or markdown.")
        raise typer.Exit(1)
    if profile not in _PROFILES:
        console.print(f"[red]Error:[/red] Invalid profile '{profile}'. Use auto, blog, or site.")
        raise typer.Exit(1)

    output_format: OutputFormat = output  # type: ignore
    _configure_logging(verbose)

    console.print(Panel.fit(
        f"[bold cyan]AIO Checker[/bold cyan]\n[dim]Analyzing:[/dim] {target}",
        border_style="cyan",
    ))

    try:
        with console.status("[bold blue]Analyzing page...", spinner="dots"):
            result = _analyze(target, _PROFILES[profile])
    except FetchError as e:
        console.print(f"\n[red]Fetch error:[/red] {e}")
        raise typer.Exit(1)
    except ValueError as e:
        console.print(f"\n[red]Error:[/red] {e}")
        raise typer.Exit(1)

    report = format_report(result.to_dict(), output_format)

    if save:
        save_path = Path(save)
        save_path.write_text(report, encoding="utf-8")
        console.print(f"\n[green]Report saved to:[/green] {save_path}")
    else:
        console.print("")
        if output_format == "cli":
            console.print(report)
        else:
            console.print(report, markup=False)


@app.command()
def version() -> None:
    """Show version information."""
    console.print(f"[bold]AIO Checker[/bold] v{VERSION}")
    console.print("[dim]Content scoring and citation analysis for AI search[/dim]")


@app.command()
def check(
    target: str = typer.Argument(..., help="URL or local HTML file to quick-check"),
) -> None:
    """Quick check - prints rubric scores and the AI visibility score.

    Example:
        aio-checker check https://example.com
    """
    _configure_logging(False)
    try:
        with console.status("[bold blue]Analyzing...", spinner="dots"):
            result = _analyze(target, None)
    except (FetchError, ValueError) as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    visibility = result.visibility.score
    color = "green" if visibility >= 75 else "yellow" if visibility >= 50 else "red"
    console.print(
        f"[{color}]{visibility}[/{color}] visibility | "
        f"SEO {result.seo_score} AEO {result.aeo_score} GEO {result.geo_score} "
        f"AIO {result.aio.average:.1f} - {target}"
    )


if __name__ == "__main__":
    app()
