"""
Decision tables for section content.

Two classifications drive the editor:

- ContentShape: what kind of raw input a section arrived with, which decides
  how ContentNormalizer turns it into canonical HTML.
- SectionKind: what a section is about, which decides whether it gets a
  structured sub-editor (technical skills, languages) or the rich-text surface.

Both are plain enums plus pure classifier functions so they can be tested
without any editor state.
"""

import re
from enum import Enum
from typing import Optional

BULLET = "•"

# A tag-like token such as <p>, <ul class="x"> or <br/>
HTML_TAG_PATTERN = re.compile(r"<\w+[^>]*>")

# A paired **Category** marker (no asterisks inside)
CATEGORY_MARKER_PATTERN = re.compile(r"\*\*([^*]+)\*\*")


class ContentShape(str, Enum):
    """Shape of raw section content, in normalization priority order."""
    EMPTY = "empty"
    ALREADY_HTML = "already-html"
    CATEGORY_BULLETED = "category-bulleted"
    BULLETED = "bulleted"
    PROSE = "prose"


class SectionKind(str, Enum):
    """Semantic section types the editor treats specially."""
    TECHNICAL_SKILLS = "technical-skills"
    LANGUAGES = "languages"
    EXPERIENCE = "experience"
    GENERIC = "generic"

    @property
    def is_structured(self) -> bool:
        """True for kinds edited through a structured sub-editor."""
        return self in (SectionKind.TECHNICAL_SKILLS, SectionKind.LANGUAGES)


# Title keywords checked in order; first hit wins
TITLE_KEYWORDS = (
    ("TECHNICAL", SectionKind.TECHNICAL_SKILLS),
    ("LANGUAGE", SectionKind.LANGUAGES),
    ("EXPERIENCE", SectionKind.EXPERIENCE),
)


def looks_like_html(content: str) -> bool:
    """Check whether content contains at least one tag-like token."""
    return bool(content) and HTML_TAG_PATTERN.search(content) is not None


def has_bullet_items(text: str) -> bool:
    """Check whether splitting on the bullet character yields any items."""
    if BULLET not in text:
        return False
    return any(part.strip() for part in text.split(BULLET))


def detect_content_shape(content: Optional[str]) -> ContentShape:
    """
    Classify raw section content.

    Args:
        content: Raw section content (HTML, bold-marked text, bullets or prose)

    Returns:
        The ContentShape the normalizer should apply
    """
    if not content or not content.strip():
        return ContentShape.EMPTY
    if looks_like_html(content):
        return ContentShape.ALREADY_HTML

    text = content.replace("\r\n", "\n").replace("\r", "\n").strip()
    if CATEGORY_MARKER_PATTERN.search(text):
        return ContentShape.CATEGORY_BULLETED
    if has_bullet_items(text):
        return ContentShape.BULLETED
    return ContentShape.PROSE


def classify_section(kind: Optional[str], title: Optional[str]) -> SectionKind:
    """
    Classify a section by its kind tag, falling back to its title.

    A kind matching one of the SectionKind values (case-insensitive) is
    authoritative. Otherwise the title is matched case-insensitively against
    "TECHNICAL", "LANGUAGE" and "EXPERIENCE" as substrings.

    Examples:
        >>> classify_section("languages", "Idiomas")
        <SectionKind.LANGUAGES: 'languages'>
        >>> classify_section("custom", "Technical Skills")
        <SectionKind.TECHNICAL_SKILLS: 'technical-skills'>
        >>> classify_section(None, "Summary")
        <SectionKind.GENERIC: 'generic'>
    """
    if kind:
        normalized = kind.strip().lower()
        for candidate in SectionKind:
            if candidate is not SectionKind.GENERIC and candidate.value == normalized:
                return candidate

    upper_title = (title or "").upper()
    for keyword, section_kind in TITLE_KEYWORDS:
        if keyword in upper_title:
            return section_kind
    return SectionKind.GENERIC
