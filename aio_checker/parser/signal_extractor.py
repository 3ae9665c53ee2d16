"""Signal extraction from HTML documents.

Every analysis parses the page once into a :class:`SignalSet`, a flat and
immutable record of counts, booleans and text statistics. All scorers read
from it and never touch the DOM themselves.
"""
from __future__ import annotations

import json
import logging
import re
from dataclasses import asdict, dataclass, field

import extruct
import textstat
from bs4 import BeautifulSoup, Comment

logger = logging.getLogger(__name__)

_NON_VISIBLE_TAGS = frozenset({"script", "style", "noscript", "template", "head", "title"})

QUESTION_PATTERN = re.compile(
    r"[?？]|\b(what|how|why|when|where|who)\b|무엇|어떻게|왜|언제|어디",
    re.IGNORECASE,
)
QUESTION_HEADING_PATTERN = re.compile(r"[?？]\s*$|^\s*(what|how|why|when|where|who)\b", re.IGNORECASE)
FAQ_TEXT_PATTERN = re.compile(r"\bFAQs?\b|frequently asked questions|자주 묻는 질문", re.IGNORECASE)
STEP_PATTERN = re.compile(r"\bsteps?\b|단계|방법|how to", re.IGNORECASE)
RECENT_PATTERN = re.compile(r"202[4-9]|최근|recent|updated|latest", re.IGNORECASE)
UPDATE_PATTERN = re.compile(r"업데이트|\bupdate[sd]?\b|최신|갱신|refresh|revised|last modified", re.IGNORECASE)
STATISTICS_PATTERN = re.compile(r"\d+(\.\d+)?\s?%|통계|statistics|연구|\bstudy\b|\bsurvey\b", re.IGNORECASE)
QUOTATION_PATTERN = re.compile(r"[“”„]|인용|quotation|출처", re.IGNORECASE)
CREDENTIAL_PATTERN = re.compile(
    r"ph\.?\s?d|\bm\.d\.|professor|certified|credential|expert|박사|교수|전문가",
    re.IGNORECASE,
)
PRIMARY_SOURCE_PATTERN = re.compile(
    r"doi\.org|\bdoi:|\.edu\b|\.gov\b|pubmed|arxiv|scholar\.google|ncbi\.nlm",
    re.IGNORECASE,
)
CITATION_TERM_PATTERN = re.compile(r"참고|출처|reference|citation|\bsource|according to|인용|\bcited\b", re.IGNORECASE)
COMPARISON_PATTERN = re.compile(r"\bvs\.?\b|versus|compared (to|with)|comparison|비교", re.IGNORECASE)
CASE_STUDY_PATTERN = re.compile(r"case stud(y|ies)|success stor(y|ies)|사례", re.IGNORECASE)
METHODOLOGY_PATTERN = re.compile(r"methodology|our process|how we (tested|evaluated|measured)|방법론|transparen", re.IGNORECASE)
CERTIFICATION_PATTERN = re.compile(r"certif|\biso\s?\d{3,5}\b|accredit|licensed|인증", re.IGNORECASE)
CHART_CLASS_PATTERN = re.compile(r"chart|graph|infographic", re.IGNORECASE)
SCHEMA_TYPE_PATTERN = re.compile(r'"@type"\s*:\s*"([^"]+)"')

ARTICLE_TYPES = frozenset({"Article", "BlogPosting", "NewsArticle", "TechArticle"})
ORGANIZATION_TYPES = frozenset({"Organization", "LocalBusiness", "Corporation"})

# Definition patterns in the languages the checker supports
_DEFINITION_PATTERNS = [
    re.compile(r"\bis\s+defined\s+as\b", re.IGNORECASE),
    re.compile(r"\brefers\s+to\b", re.IGNORECASE),
    re.compile(r"\bis\s+known\s+as\b", re.IGNORECASE),
    re.compile(r"\bis\s+a\s+type\s+of\b", re.IGNORECASE),
    re.compile(r"\bis\s+the\s+process\s+of\b", re.IGNORECASE),
]
_DEFINITION_KEYWORDS = ("이란", "를 의미", "을 뜻", "라고 정의", "とは", "と定義される", "指的是", "定義為")


@dataclass(frozen=True)
class SignalSet:
    """Flat, immutable feature set derived from one document.

    Defaults describe an empty document, so ``SignalSet()`` is a valid
    all-false/all-zero input for every scorer.
    """
    # Headings and meta
    h1_count: int = 0
    h2_count: int = 0
    h3_count: int = 0
    title_length: int = 0
    meta_description_length: int = 0
    has_meta_keywords: bool = False
    meta_keyword_count: int = 0
    has_og_title: bool = False
    og_tag_count: int = 0
    twitter_tag_count: int = 0
    has_canonical: bool = False
    html_lang: str = ""
    has_hreflang: bool = False

    # Media
    image_count: int = 0
    images_with_alt: int = 0
    video_count: int = 0
    has_charts: bool = False

    # Structured data
    json_ld_count: int = 0
    schema_types: frozenset[str] = field(default_factory=frozenset)
    has_faq_schema: bool = False
    has_article_schema: bool = False
    has_howto_schema: bool = False
    has_organization_schema: bool = False
    has_person_schema: bool = False
    has_speakable_schema: bool = False

    # Links
    internal_link_count: int = 0
    external_link_count: int = 0

    # Structure
    list_count: int = 0
    ordered_list_count: int = 0
    paragraph_count: int = 0
    table_count: int = 0
    definition_list_count: int = 0
    abbr_count: int = 0
    section_count: int = 0
    has_h2_h3_list: bool = False
    has_question_headings: bool = False
    has_detailed_steps: bool = False

    # Text statistics
    word_count: int = 0
    unique_word_ratio: float = 0.0
    flesch_reading_ease: float | None = None

    # Text patterns
    has_questions: bool = False
    has_faq_section: bool = False
    has_step_guide: bool = False
    has_definitions: bool = False
    has_date_element: bool = False
    has_recent_signal: bool = False
    has_update_terms: bool = False
    has_statistics: bool = False
    has_quotations: bool = False
    has_author: bool = False
    has_credentials: bool = False
    has_primary_sources: bool = False
    has_citation_terms: bool = False
    has_comparison: bool = False
    has_case_study: bool = False
    has_methodology: bool = False
    has_certification: bool = False

    @property
    def alt_ratio(self) -> float:
        """Share of images carrying alt text (1.0 when there are no images)."""
        if self.image_count == 0:
            return 1.0
        return self.images_with_alt / self.image_count

    @property
    def has_json_ld(self) -> bool:
        return self.json_ld_count > 0

    @property
    def has_author_credentials(self) -> bool:
        return self.has_author and self.has_credentials

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        d = asdict(self)
        d["schema_types"] = sorted(self.schema_types)
        return d


def parse_html(html: str) -> BeautifulSoup:
    """Parse raw HTML with the lxml backend."""
    return BeautifulSoup(html or "", "lxml")


def clean_text(text: str) -> str:
    return " ".join(text.split())


def body_text(soup: BeautifulSoup) -> str:
    """Return the whitespace-normalized visible text of the document body."""
    root = soup.body or soup
    parts = []
    for string in root.find_all(string=True):
        if isinstance(string, Comment):
            continue
        if string.parent is not None and string.parent.name in _NON_VISIBLE_TAGS:
            continue
        parts.append(str(string))
    return clean_text(" ".join(parts))


def _is_definition_paragraph(text: str) -> bool:
    """Detect definition-style sentences in English, Korean, Japanese or Chinese."""
    if not text:
        return False
    if any(keyword in text for keyword in _DEFINITION_KEYWORDS):
        return True
    return any(pattern.search(text) for pattern in _DEFINITION_PATTERNS)


def _meta_content(soup: BeautifulSoup, **attrs) -> str:
    tag = soup.find("meta", attrs=attrs)
    if tag is None:
        return ""
    return clean_text(tag.get("content") or "")


def _collect_types(node, types: set[str]) -> None:
    """Walk a JSON-LD/microdata item and collect every @type value."""
    if isinstance(node, dict):
        value = node.get("@type")
        if isinstance(value, str):
            types.add(value.rsplit("/", 1)[-1])
        elif isinstance(value, list):
            types.update(str(v).rsplit("/", 1)[-1] for v in value)
        for child in node.values():
            _collect_types(child, types)
    elif isinstance(node, list):
        for child in node:
            _collect_types(child, types)


def _extract_schema_types(html: str, json_ld_blocks: list[str]) -> set[str]:
    """Collect schema.org types from JSON-LD and microdata.

    extruct drops a whole syntax when one block is malformed, so the raw
    ``"@type"`` values of each script are scanned as well.
    """
    types: set[str] = set()
    for block in json_ld_blocks:
        types.update(SCHEMA_TYPE_PATTERN.findall(block))

    if not json_ld_blocks and "itemtype" not in html:
        return types

    try:
        data = extruct.extract(
            html,
            syntaxes=["json-ld", "microdata"],
            uniform=True,
            errors="ignore",
        )
    except Exception:
        logger.debug("Structured data extraction failed", exc_info=True)
        return types

    for syntax in ("json-ld", "microdata"):
        _collect_types(data.get(syntax, []), types)
    return types


def _has_json_key(blocks: list[str], key: str) -> bool:
    """Check whether any parseable JSON-LD block carries ``key`` at any depth."""
    needle = f'"{key}"'
    for block in blocks:
        if needle not in block:
            continue
        try:
            json.loads(block)
        except ValueError:
            continue
        return True
    return False


def _flesch(text: str, word_count: int) -> float | None:
    if word_count < 100:
        return None
    return round(textstat.flesch_reading_ease(text), 1)


def extract_signals(html: str, soup: BeautifulSoup | None = None) -> SignalSet:
    """Extract the signal set from raw HTML.

    Missing elements yield ``False`` or ``0``; this never raises for
    malformed or empty markup.

    Args:
        html: Raw HTML text.
        soup: Optional pre-parsed document (avoids a second parse).

    Returns:
        The immutable SignalSet for the document.
    """
    soup = soup if soup is not None else parse_html(html)
    text = body_text(soup)
    words = text.split()
    word_count = len(words)
    unique_ratio = len({w.lower() for w in words}) / word_count if word_count else 0.0

    # Meta
    title_tag = soup.find("title")
    title = clean_text(title_tag.get_text()) if title_tag else ""
    description = _meta_content(soup, name="description")
    keywords = _meta_content(soup, name="keywords")
    keyword_list = [k for k in (part.strip() for part in keywords.split(",")) if k]
    og_tags = soup.find_all("meta", attrs={"property": re.compile(r"^og:")})
    twitter_tags = soup.find_all("meta", attrs={"name": re.compile(r"^twitter:")})
    html_tag = soup.find("html")

    # Structured data
    json_ld_blocks = [
        script.string or script.get_text()
        for script in soup.find_all("script", attrs={"type": "application/ld+json"})
    ]
    json_ld_text = " ".join(json_ld_blocks)
    schema_types = _extract_schema_types(html or "", json_ld_blocks)

    # Headings, lists, paragraphs
    h1_count = len(soup.find_all("h1"))
    h2_tags = soup.find_all("h2")
    h3_tags = soup.find_all("h3")
    list_count = len(soup.find_all(["ul", "ol"]))
    ordered_lists = soup.find_all("ol")
    paragraphs = soup.find_all("p")

    detailed_steps = [
        li for ol in ordered_lists for li in ol.find_all("li")
        if len(clean_text(li.get_text())) > 50
    ]

    # Links
    hrefs = [a.get("href", "") for a in soup.find_all("a", href=True)]
    internal_links = [h for h in hrefs if (h.startswith("/") and not h.startswith("//")) or h.startswith("./")]
    external_links = [h for h in hrefs if h.startswith("http")]

    # Images
    images = soup.find_all("img")
    images_with_alt = [img for img in images if (img.get("alt") or "").strip()]

    # Dates: <time>, any datetime attribute, date-ish classes, article meta
    date_tags = soup.find_all(attrs={"datetime": True})
    has_date_element = bool(
        soup.find("time")
        or date_tags
        or soup.select(".date, .published, .updated")
        or soup.find("meta", attrs={"property": re.compile(r"^article:(published|modified)_time$")})
    )
    recency_haystack = " ".join([text] + [str(tag.get("datetime")) for tag in date_tags])

    # Author and credentials
    has_author = bool(
        _has_json_key(json_ld_blocks, "author")
        or soup.find(attrs={"rel": "author"})
        or soup.find("meta", attrs={"name": "author"})
        or soup.find(class_=re.compile(r"author|byline", re.IGNORECASE))
    )
    credential_haystack = f"{text} {json_ld_text}"

    # Charts
    has_charts = bool(
        soup.find(["canvas", "svg"])
        or soup.find(class_=CHART_CLASS_PATTERN)
        or any(CHART_CLASS_PATTERN.search(img.get("alt") or "") for img in images)
    )

    has_faq_section = bool(
        FAQ_TEXT_PATTERN.search(text)
        or soup.find(class_=re.compile(r"faq", re.IGNORECASE))
        or soup.find(id=re.compile(r"faq", re.IGNORECASE))
    )
    has_definitions = bool(
        soup.find("dfn")
        or soup.find("abbr", attrs={"title": True})
        or soup.find(class_=re.compile(r"definition", re.IGNORECASE))
        or any(_is_definition_paragraph(p.get_text()) for p in paragraphs)
    )
    primary_haystack = " ".join([text] + hrefs)

    return SignalSet(
        h1_count=h1_count,
        h2_count=len(h2_tags),
        h3_count=len(h3_tags),
        title_length=len(title),
        meta_description_length=len(description),
        has_meta_keywords=bool(soup.find("meta", attrs={"name": "keywords"})),
        meta_keyword_count=len(keyword_list),
        has_og_title=bool(soup.find("meta", attrs={"property": "og:title"})),
        og_tag_count=len(og_tags),
        twitter_tag_count=len(twitter_tags),
        has_canonical=bool(soup.find("link", attrs={"rel": "canonical"})),
        html_lang=(html_tag.get("lang") or "").strip() if html_tag else "",
        has_hreflang=bool(soup.find("link", attrs={"hreflang": True})),
        image_count=len(images),
        images_with_alt=len(images_with_alt),
        video_count=len(soup.find_all("video")) + len(
            soup.find_all("iframe", src=re.compile(r"youtube|vimeo", re.IGNORECASE))
        ),
        has_charts=has_charts,
        json_ld_count=len(json_ld_blocks),
        schema_types=frozenset(schema_types),
        has_faq_schema="FAQPage" in schema_types,
        has_article_schema=bool(schema_types & ARTICLE_TYPES),
        has_howto_schema="HowTo" in schema_types,
        has_organization_schema=bool(schema_types & ORGANIZATION_TYPES),
        has_person_schema="Person" in schema_types or '"author"' in json_ld_text,
        has_speakable_schema="SpeakableSpecification" in schema_types or "speakable" in json_ld_text.lower(),
        internal_link_count=len(internal_links),
        external_link_count=len(external_links),
        list_count=list_count,
        ordered_list_count=len(ordered_lists),
        paragraph_count=len(paragraphs),
        table_count=len(soup.find_all("table")),
        definition_list_count=len(soup.find_all("dl")),
        abbr_count=len(soup.find_all(["abbr", "dfn"])),
        section_count=len(soup.find_all("section")),
        has_h2_h3_list=bool(h2_tags and h3_tags and list_count),
        has_question_headings=any(
            QUESTION_HEADING_PATTERN.search(clean_text(h.get_text())) for h in h2_tags + h3_tags
        ),
        has_detailed_steps=len(detailed_steps) >= 5,
        word_count=word_count,
        unique_word_ratio=unique_ratio,
        flesch_reading_ease=_flesch(text, word_count),
        has_questions=bool(QUESTION_PATTERN.search(text)),
        has_faq_section=has_faq_section,
        has_step_guide=bool(ordered_lists) and bool(STEP_PATTERN.search(text)),
        has_definitions=has_definitions,
        has_date_element=has_date_element,
        has_recent_signal=bool(RECENT_PATTERN.search(recency_haystack)),
        has_update_terms=bool(UPDATE_PATTERN.search(text)),
        has_statistics=bool(STATISTICS_PATTERN.search(text)),
        has_quotations=bool(QUOTATION_PATTERN.search(text) or soup.find(["blockquote", "q"])),
        has_author=has_author,
        has_credentials=bool(CREDENTIAL_PATTERN.search(credential_haystack)),
        has_primary_sources=bool(PRIMARY_SOURCE_PATTERN.search(primary_haystack)),
        has_citation_terms=bool(CITATION_TERM_PATTERN.search(text)),
        has_comparison=bool(COMPARISON_PATTERN.search(text)),
        has_case_study=bool(CASE_STUDY_PATTERN.search(text)),
        has_methodology=bool(METHODOLOGY_PATTERN.search(text)),
        has_certification=bool(CERTIFICATION_PATTERN.search(text)),
    )
