"""Report formatting utilities."""
from __future__ import annotations

import json
from typing import Literal

OutputFormat = Literal["cli", "json", "markdown"]

_MODEL_NAMES = {
    "chatgpt": "ChatGPT",
    "perplexity": "Perplexity",
    "grok": "Grok",
    "gemini": "Gemini",
    "claude": "Claude",
}

_SEVERITY_COLORS = {"High": "red", "Medium": "yellow", "Low": "blue"}
_SEVERITY_EMOJI = {"High": "❌", "Medium": "⚠️", "Low": "💡"}


def format_report(results: dict, output: OutputFormat = "cli") -> str:
    """Format analysis results for output.

    Args:
        results: ``AnalysisResult.to_dict()`` output.
        output: Output format - 'cli', 'json', or 'markdown'

    Returns:
        Formatted string representation of results
    """
    if output == "json":
        return _format_json(results)
    elif output == "markdown":
        return _format_markdown(results)
    else:
        return _format_cli(results)


def _format_json(results: dict) -> str:
    """Format results as JSON."""
    return json.dumps(results, ensure_ascii=False, indent=2)


def _score_color(score: float) -> str:
    if score >= 75:
        return "green"
    if score >= 50:
        return "yellow"
    return "red"


def _bar(score: float, width: int = 20) -> str:
    filled = int(width * max(0, min(100, score)) / 100)
    return "█" * filled + "░" * (width - filled)


def _format_cli(results: dict) -> str:
    """Format results for terminal display with Rich-compatible markup."""
    lines = []
    scores = results.get("scores", {})
    profile = results.get("profile", {})

    lines.append("[bold cyan]AI Citation Analysis Report[/bold cyan]")
    lines.append(f"[dim]URL:[/dim] {results.get('url', '')}")
    lines.append(f"[dim]Profile:[/dim] {profile.get('profile', 'unknown')} ({profile.get('reason', '')})")
    lines.append("")

    visibility = scores.get("visibility", 0)
    color = _score_color(visibility)
    lines.append(f"[bold]AI Visibility:[/bold] [{color}]{visibility}/100[/{color}]")
    lines.append("")

    lines.append("[bold]Rubric Scores:[/bold]")
    for name in ("seo", "aeo", "geo"):
        value = scores.get(name, 0)
        color = _score_color(value)
        lines.append(f"  {name.upper():15} [{color}]{_bar(value)}[/{color}] {value}/100")
    lines.append("")

    lines.append("[bold]AI Citation Probability:[/bold]")
    for model in results.get("model_analysis", []):
        value = model.get("score", 0)
        color = _score_color(value)
        name = _MODEL_NAMES.get(model.get("model", ""), model.get("model", ""))
        lines.append(f"  {name:15} [{color}]{_bar(value)}[/{color}] {value}/100 ({model.get('level', '')})")
    lines.append("")

    insights = results.get("insights", [])
    if insights:
        lines.append("[bold]Insights:[/bold]")
        for insight in insights:
            severity = insight.get("severity", "Low")
            sev_color = _SEVERITY_COLORS.get(severity, "white")
            lines.append(f"  [{sev_color}][{severity}][/{sev_color}] {insight.get('category')}: {insight.get('message')}")
        lines.append("")

    opportunities = results.get("opportunities", [])
    if opportunities:
        lines.append("[bold green]Citation Opportunities:[/bold green]")
        for opportunity in opportunities[:5]:
            lines.append(f"  [green]✓[/green] {opportunity.get('domain')} (score {opportunity.get('opportunity_score')})")
        lines.append("")

    issues = results.get("quality_issues", [])
    if issues:
        lines.append("[bold red]Citation Quality Issues:[/bold red]")
        for issue in issues:
            lines.append(f"  [red]✗[/red] [{issue.get('severity')}] {issue.get('url')}: {issue.get('description')}")
        lines.append("")

    priorities = results.get("improvement_priorities", [])
    if priorities:
        lines.append("[bold]Improvement Priorities:[/bold]")
        for i, priority in enumerate(priorities, 1):
            lines.append(
                f"  {i}. {priority.get('category')} (priority {priority.get('priority')}, "
                f"+{priority.get('estimated_gain')} possible)"
            )

    return "\n".join(lines)


def _format_markdown(results: dict) -> str:
    """Format results as Markdown."""
    lines = []
    scores = results.get("scores", {})
    profile = results.get("profile", {})

    lines.append("# AI Citation Analysis Report")
    lines.append("")
    lines.append(f"**URL:** {results.get('url', '')}")
    lines.append(f"**Profile:** {profile.get('profile', 'unknown')}")
    lines.append("")

    lines.append("## Scores")
    lines.append("")
    lines.append("| Rubric | Score |")
    lines.append("|--------|-------|")
    for name in ("seo", "aeo", "geo", "overall", "visibility"):
        lines.append(f"| {name.upper() if len(name) == 3 else name.capitalize()} | {scores.get(name, 0)} |")
    lines.append("")

    lines.append("## AI Citation Probability")
    lines.append("")
    lines.append("| Model | Score | Level |")
    lines.append("|-------|-------|-------|")
    for model in results.get("model_analysis", []):
        name = _MODEL_NAMES.get(model.get("model", ""), model.get("model", ""))
        lines.append(f"| {name} | {model.get('score', 0)} | {model.get('level', '')} |")
    lines.append("")

    visibility = results.get("visibility", {})
    if visibility:
        lines.append("### Visibility Breakdown")
        lines.append("")
        lines.append(f"- Structured data: {visibility.get('structured_data_score', 0)}")
        lines.append(f"- Quality: {visibility.get('quality_score', 0)}")
        lines.append(f"- Freshness: {visibility.get('freshness_score', 0)}")
        lines.append("")

    insights = results.get("insights", [])
    if insights:
        lines.append("## Insights")
        lines.append("")
        for insight in insights:
            severity = insight.get("severity", "Low")
            emoji = _SEVERITY_EMOJI.get(severity, "")
            lines.append(f"- {emoji} **[{severity}]** {insight.get('category')}: {insight.get('message')}")
        lines.append("")

    authorities = results.get("domain_authorities", [])
    if authorities:
        lines.append("## Cited Domains")
        lines.append("")
        lines.append("| Domain | Authority | Citations | Avg. Position |")
        lines.append("|--------|-----------|-----------|---------------|")
        for authority in authorities:
            factors = authority.get("factors", {})
            lines.append(
                f"| {authority.get('domain')} | {authority.get('authority_score')} | "
                f"{factors.get('citation_count')} | {factors.get('average_position')} |"
            )
        lines.append("")

    issues = results.get("quality_issues", [])
    if issues:
        lines.append("## Citation Quality Issues")
        lines.append("")
        for issue in issues:
            lines.append(f"- **{issue.get('issue_type')}** ({issue.get('severity')}): {issue.get('url')}. {issue.get('recommendation')}")
        lines.append("")

    recommendations = results.get("recommendations", [])
    if recommendations:
        lines.append("## Recommendations")
        lines.append("")
        for i, recommendation in enumerate(recommendations, 1):
            lines.append(f"{i}. {recommendation}")

    return "\n".join(lines)
