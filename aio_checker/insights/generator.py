"""Threshold-driven insights and improvement guidance."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from aio_checker.config.settings import settings
from aio_checker.parser.signal_extractor import SignalSet


class Severity(Enum):
    """Insight severity levels."""
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


@dataclass(frozen=True)
class Insight:
    """A single recommendation tied to a rubric category."""
    severity: Severity
    category: str
    message: str

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "severity": self.severity.value,
            "category": self.category,
            "message": self.message,
        }


@dataclass
class ImprovementPriority:
    """A rubric to work on, with its expected gain."""
    category: str
    priority: int  # 1 = most urgent
    current_score: int
    estimated_gain: int
    actions: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "category": self.category,
            "priority": self.priority,
            "current_score": self.current_score,
            "estimated_gain": self.estimated_gain,
            "actions": list(self.actions),
        }


def _seo_insights(s: SignalSet) -> list[Insight]:
    insights = []
    if s.h1_count == 0:
        insights.append(Insight(Severity.HIGH, "SEO", "Add an H1 tag that states the main topic of the page"))
    elif s.h1_count > 1:
        insights.append(Insight(Severity.MEDIUM, "SEO", f"Use a single H1 tag (found {s.h1_count})"))
    if s.title_length == 0:
        insights.append(Insight(Severity.HIGH, "SEO", "Add a <title> tag"))
    elif s.title_length > 60:
        insights.append(Insight(Severity.MEDIUM, "SEO", f"Shorten the title to 60 characters or less ({s.title_length} now)"))
    if s.meta_description_length == 0:
        insights.append(Insight(Severity.HIGH, "SEO", "Add a meta description summarizing the page"))
    missing_alt = s.image_count - s.images_with_alt
    if missing_alt > 0:
        severity = Severity.HIGH if missing_alt == s.image_count else Severity.MEDIUM
        insights.append(Insight(severity, "SEO", f"Add alt text to {missing_alt} image(s)"))
    return insights


def _aeo_insights(s: SignalSet) -> list[Insight]:
    insights = []
    if not s.has_questions:
        insights.append(Insight(Severity.MEDIUM, "AEO", "Phrase headings or content as the questions users ask"))
    if not (s.has_faq_section or s.has_faq_schema):
        insights.append(Insight(Severity.LOW, "AEO", "Add an FAQ section"))
    if s.word_count < 300:
        insights.append(Insight(Severity.MEDIUM, "AEO", f"Expand the content to at least 300 words ({s.word_count} now)"))
    return insights


def _geo_insights(s: SignalSet) -> list[Insight]:
    insights = []
    if s.word_count < 500:
        insights.append(Insight(Severity.MEDIUM, "GEO", "Write at least 500 words so generative engines have enough to cite"))
    if s.image_count == 0:
        insights.append(Insight(Severity.LOW, "GEO", "Add relevant images"))
    if not s.has_json_ld:
        insights.append(Insight(Severity.MEDIUM, "GEO", "Add JSON-LD structured data"))
    if s.og_tag_count < 3:
        insights.append(Insight(Severity.MEDIUM, "GEO", "Add Open Graph tags (og:title, og:description, og:image)"))
    if s.flesch_reading_ease is not None and s.flesch_reading_ease < settings.scoring.flesch_low_threshold:
        insights.append(Insight(Severity.LOW, "GEO", "Simplify sentences; the text is hard to read"))
    return insights


def _aio_insights(s: SignalSet, aeo: int, geo: int) -> list[Insight]:
    threshold = settings.scoring.aio_good_threshold
    insights = []
    if not s.has_json_ld:
        insights.append(Insight(Severity.HIGH, "AIO", "Add structured data so AI assistants can understand and cite the page"))
    if not (s.has_faq_section or s.has_faq_schema) and (aeo < threshold or geo < threshold):
        insights.append(Insight(Severity.MEDIUM, "AIO", "Add an FAQ section with FAQPage markup to win direct-answer citations"))
    if not s.has_recent_signal and s.word_count > 500:
        insights.append(Insight(Severity.LOW, "AIO", "Mention when the content was last updated"))
    if s.image_count == 0 and s.video_count == 0 and geo < threshold:
        insights.append(Insight(Severity.MEDIUM, "AIO", "Add images or video; multimodal assistants favor rich media"))
    return insights


def generate_insights(signals: SignalSet, seo: int, aeo: int, geo: int) -> list[Insight]:
    """Produce ordered, severity-tagged insights.

    Rubric checks only run for rubrics below the "good" threshold. A single
    positive insight closes the list when every rubric is excellent.

    Args:
        signals: Document signals.
        seo: SEO score.
        aeo: AEO score.
        geo: GEO score.

    Returns:
        Insights in deterministic rule order.
    """
    good = settings.scoring.rubric_good_threshold
    insights: list[Insight] = []

    if seo < good:
        insights.extend(_seo_insights(signals))
    if aeo < good:
        insights.extend(_aeo_insights(signals))
    if geo < good:
        insights.extend(_geo_insights(signals))
    insights.extend(_aio_insights(signals, aeo, geo))

    excellent = settings.scoring.excellent_threshold
    if seo >= excellent and aeo >= excellent and geo >= excellent:
        insights.append(Insight(
            Severity.LOW,
            "General",
            "Excellent optimization across SEO, AEO and GEO; keep the content current",
        ))
    return insights


TARGET_SCORE = 90

_PRIORITY_ACTIONS: dict[str, list[str]] = {
    "SEO": ["Fix title, meta description and H1", "Add canonical and Open Graph tags"],
    "AEO": ["Answer user questions directly", "Add an FAQ section and definitions"],
    "GEO": ["Expand depth and add media", "Add structured data and update dates"],
    "AIO": ["Tune content for the weakest AI model", "Add primary sources and author credentials"],
}


def get_improvement_priorities(scores: dict[str, int]) -> list[ImprovementPriority]:
    """Rank categories by urgency.

    Scores below 60 are priority 1 and below 80 priority 2. AIO is always
    listed, at priority 3 when it is otherwise fine.

    Args:
        scores: Category name ("SEO", "AEO", "GEO", "AIO") to score.

    Returns:
        Priorities sorted by priority, then by largest estimated gain.
    """
    priorities = []
    for category, score in scores.items():
        if score < 60:
            priority = 1
        elif score < 80:
            priority = 2
        elif category == "AIO":
            priority = 3
        else:
            continue
        priorities.append(ImprovementPriority(
            category=category,
            priority=priority,
            current_score=score,
            estimated_gain=max(0, TARGET_SCORE - score),
            actions=list(_PRIORITY_ACTIONS.get(category, [])),
        ))
    priorities.sort(key=lambda p: (p.priority, -p.estimated_gain))
    return priorities


_GUIDELINES: dict[str, list[str]] = {
    "SEO": [
        "Keep the title between 50 and 60 characters with the main keyword first",
        "Write a 120-160 character meta description",
        "Use one H1 and a logical H2/H3 hierarchy",
    ],
    "AEO": [
        "Open each section with a one or two sentence direct answer",
        "Use question-style headings that match real searches",
        "Define key terms explicitly",
    ],
    "GEO": [
        "Cover the topic in depth (1,500+ words for pillar content)",
        "Support claims with statistics and cited sources",
        "Show publish and update dates",
    ],
}


def get_content_writing_guidelines(scores: dict[str, int]) -> dict[str, list[str]]:
    """Return writing tips for every category scoring below 80."""
    return {
        category: list(tips)
        for category, tips in _GUIDELINES.items()
        if scores.get(category, 0) < 80
    }
