"""Unit tests for signal extraction."""
from __future__ import annotations

from aio_checker.parser.signal_extractor import (
    SignalSet,
    _extract_schema_types,
    _is_definition_paragraph,
    body_text,
    extract_signals,
    parse_html,
)


class TestDefinitionDetection:
    """Tests for definition-style sentence detection."""

    def test_english_definition(self):
        """'is defined as' should be detected."""
        assert _is_definition_paragraph("GEO is defined as optimizing for AI engines.") is True

    def test_korean_definition(self):
        """Korean '이란' should be detected."""
        assert _is_definition_paragraph("머신러닝이란 데이터로 학습하는 기술입니다.") is True

    def test_japanese_definition(self):
        """Japanese 'とは' should be detected."""
        assert _is_definition_paragraph("機械学習とは、データから学ぶ技術です。") is True

    def test_plain_sentence(self):
        """Ordinary sentences are not definitions."""
        assert _is_definition_paragraph("We went to the park yesterday.") is False

    def test_empty(self):
        """Empty text is not a definition."""
        assert _is_definition_paragraph("") is False


class TestBodyText:
    """Tests for visible text extraction."""

    def test_skips_scripts_and_comments(self):
        """Script, style and comment text is not visible."""
        soup = parse_html(
            "<html><body><p>Hello</p><script>var x = 1;</script>"
            "<style>p{}</style><!-- hidden --><p>world</p></body></html>"
        )
        assert body_text(soup) == "Hello world"

    def test_empty_document(self):
        """Empty input yields empty text."""
        assert body_text(parse_html("")) == ""


class TestSchemaTypes:
    """Tests for schema.org type collection."""

    def test_json_ld_types(self):
        """Nested @type values are collected."""
        block = '{"@type": "Article", "author": {"@type": "Person", "name": "A"}}'
        html = f'<script type="application/ld+json">{block}</script>'
        types = _extract_schema_types(html, [block])
        assert {"Article", "Person"} <= types

    def test_malformed_json_ld_still_scanned(self):
        """Raw @type values survive a block that does not parse."""
        block = '{"@type": "FAQPage", "mainEntity": [}'
        html = f'<script type="application/ld+json">{block}</script>'
        assert "FAQPage" in _extract_schema_types(html, [block])

    def test_no_structured_data(self):
        """Pages without JSON-LD or microdata have no types."""
        assert _extract_schema_types("<p>plain</p>", []) == set()


class TestExtractSignals:
    """Tests for extract_signals."""

    def test_empty_html_is_all_zero(self):
        """Empty markup yields the empty signal set."""
        signals = extract_signals("")
        assert signals.h1_count == 0
        assert signals.word_count == 0
        assert signals.has_json_ld is False
        assert signals.flesch_reading_ease is None

    def test_malformed_html_does_not_raise(self):
        """Broken markup is tolerated."""
        signals = extract_signals("<html><body><h1>Unclosed<p>text<div></span>")
        assert signals.h1_count == 1

    def test_meta_and_headings(self, valid_html):
        """Meta tags and heading counts are read."""
        signals = extract_signals(valid_html)
        assert signals.h1_count == 1
        assert signals.h2_count == 2
        assert signals.h3_count == 1
        assert 0 < signals.title_length <= 60
        assert signals.meta_description_length > 0
        assert signals.has_meta_keywords is True
        assert signals.meta_keyword_count == 3
        assert signals.has_og_title is True
        assert signals.og_tag_count == 3
        assert signals.twitter_tag_count == 2
        assert signals.has_canonical is True
        assert signals.html_lang == "en"

    def test_structured_data(self, valid_html):
        """JSON-LD blocks and schema flags are detected."""
        signals = extract_signals(valid_html)
        assert signals.json_ld_count == 2
        assert signals.has_article_schema is True
        assert signals.has_faq_schema is True
        assert signals.has_person_schema is True
        assert signals.has_howto_schema is False

    def test_content_patterns(self, valid_html):
        """Text pattern flags are detected."""
        signals = extract_signals(valid_html)
        assert signals.has_questions is True
        assert signals.has_question_headings is True
        assert signals.has_faq_section is True
        assert signals.has_step_guide is True
        assert signals.has_definitions is True
        assert signals.has_statistics is True
        assert signals.has_recent_signal is True
        assert signals.has_date_element is True
        assert signals.has_author is True
        assert signals.has_credentials is True
        assert signals.has_author_credentials is True
        assert signals.has_primary_sources is True

    def test_structure_counts(self, valid_html):
        """Lists, tables, sections, images and links are counted."""
        signals = extract_signals(valid_html)
        assert signals.list_count == 2
        assert signals.ordered_list_count == 1
        assert signals.table_count == 1
        assert signals.section_count == 1
        assert signals.has_h2_h3_list is True
        assert signals.image_count == 2
        assert signals.images_with_alt == 2
        assert signals.alt_ratio == 1.0
        assert signals.internal_link_count == 1
        assert signals.external_link_count == 1

    def test_alt_ratio_without_images(self):
        """No images counts as fully described."""
        assert SignalSet().alt_ratio == 1.0

    def test_alt_ratio_partial(self):
        """Alt ratio is images with alt over all images."""
        signals = extract_signals('<img src="a.png" alt="A"><img src="b.png"><img src="c.png" alt=" ">')
        assert signals.image_count == 3
        assert signals.images_with_alt == 1

    def test_video_embeds_counted(self):
        """Video tags and YouTube iframes count as video."""
        signals = extract_signals(
            '<video src="a.mp4"></video><iframe src="https://www.youtube.com/embed/x"></iframe>'
        )
        assert signals.video_count == 2

    def test_flesch_requires_enough_words(self):
        """Readability is only computed for 100+ words."""
        short = extract_signals("<p>" + "word " * 50 + "</p>")
        long = extract_signals("<p>" + "The cat sat on the mat. " * 30 + "</p>")
        assert short.flesch_reading_ease is None
        assert long.flesch_reading_ease is not None

    def test_to_dict_is_serializable(self, valid_html):
        """schema_types becomes a sorted list."""
        d = extract_signals(valid_html).to_dict()
        assert d["schema_types"] == sorted(d["schema_types"])
        assert isinstance(d["schema_types"], list)

    def test_reuses_soup(self, valid_html):
        """A pre-parsed soup gives the same result."""
        assert extract_signals(valid_html, soup=parse_html(valid_html)) == extract_signals(valid_html)
