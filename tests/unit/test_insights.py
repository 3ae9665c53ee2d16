"""Unit tests for insights, priorities and writing guidelines."""
from __future__ import annotations

from aio_checker.insights.generator import (
    TARGET_SCORE,
    Severity,
    generate_insights,
    get_content_writing_guidelines,
    get_improvement_priorities,
)
from aio_checker.parser.signal_extractor import SignalSet

COMPLETE_SIGNALS = SignalSet(
    h1_count=1,
    title_length=40,
    meta_description_length=120,
    json_ld_count=1,
    has_faq_schema=True,
    has_recent_signal=True,
    image_count=2,
    images_with_alt=2,
    og_tag_count=3,
    word_count=1500,
    has_questions=True,
)


class TestGenerateInsights:
    """Tests for generate_insights."""

    def test_empty_page_has_high_severity(self, empty_signals):
        """A blank page produces high-severity SEO and AIO insights."""
        insights = generate_insights(empty_signals, 0, 0, 0)
        categories = {i.category for i in insights}
        assert {"SEO", "AEO", "GEO", "AIO"} <= categories
        assert any(i.severity is Severity.HIGH and i.category == "SEO" for i in insights)

    def test_good_rubrics_skip_their_rules(self, empty_signals):
        """Rubrics at or above 70 produce no rubric-specific insights."""
        insights = generate_insights(empty_signals, 70, 70, 70)
        assert {i.category for i in insights} <= {"AIO"}

    def test_multiple_h1(self):
        """More than one H1 is a medium insight."""
        insights = generate_insights(SignalSet(h1_count=3, title_length=10, meta_description_length=10), 50, 90, 90)
        assert any("single H1" in i.message and i.severity is Severity.MEDIUM for i in insights)

    def test_partial_alt_text_medium(self):
        """Some missing alt text is medium; all missing is high."""
        some = generate_insights(SignalSet(image_count=4, images_with_alt=2), 50, 90, 90)
        none = generate_insights(SignalSet(image_count=4), 50, 90, 90)
        assert any("alt text" in i.message and i.severity is Severity.MEDIUM for i in some)
        assert any("alt text" in i.message and i.severity is Severity.HIGH for i in none)

    def test_hard_to_read_text(self):
        """Low Flesch scores produce a readability insight."""
        insights = generate_insights(SignalSet(flesch_reading_ease=20.0), 90, 90, 50)
        assert any("hard to read" in i.message for i in insights)

    def test_excellent_page(self):
        """Everything excellent yields a single positive insight."""
        insights = generate_insights(COMPLETE_SIGNALS, 85, 85, 85)
        assert len(insights) == 1
        assert insights[0].category == "General"
        assert insights[0].severity is Severity.LOW

    def test_deterministic_order(self, empty_signals):
        """The same input gives the same list."""
        assert generate_insights(empty_signals, 10, 20, 30) == generate_insights(empty_signals, 10, 20, 30)


class TestImprovementPriorities:
    """Tests for get_improvement_priorities."""

    def test_tiers(self):
        """Below 60 is priority 1, below 80 priority 2, good scores are dropped."""
        priorities = get_improvement_priorities({"SEO": 40, "AEO": 70, "GEO": 90, "AIO": 55})
        assert [(p.category, p.priority) for p in priorities] == [("SEO", 1), ("AIO", 1), ("AEO", 2)]

    def test_gain_toward_target(self):
        """Estimated gain is the distance to the target score."""
        priority = get_improvement_priorities({"SEO": 40})[0]
        assert priority.estimated_gain == TARGET_SCORE - 40
        assert priority.actions

    def test_aio_always_listed(self):
        """A good AIO score is still listed at priority 3."""
        priorities = get_improvement_priorities({"SEO": 95, "AEO": 95, "GEO": 95, "AIO": 85})
        assert [(p.category, p.priority) for p in priorities] == [("AIO", 3)]


class TestWritingGuidelines:
    """Tests for get_content_writing_guidelines."""

    def test_only_weak_categories(self):
        """Guidelines are returned for categories below 80."""
        guidelines = get_content_writing_guidelines({"SEO": 90, "AEO": 50, "GEO": 79})
        assert set(guidelines) == {"AEO", "GEO"}
        assert all(guidelines.values())
