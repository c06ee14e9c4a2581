"""
Content normalizer: raw section content -> canonical sanitized HTML.

Sections arrive from AI generation, manual paste and earlier exports with
inconsistent markup. normalize_section_html() turns any of them into one
canonical representation, trying the shapes in priority order:

1. already HTML          -> sanitized as-is
2. **Category** markers  -> <p><strong>Category</strong></p><ul>...</ul> per category
3. • bullets             -> a single <ul>
4. prose                 -> one <p> per blank-line separated paragraph

Usage:
    from src.competence_file.normalizer import normalize_section_html

    html = normalize_section_html("Alpha • Beta • Gamma", "Skills")
    # "<ul><li>Alpha</li><li>Beta</li><li>Gamma</li></ul>"
"""

import re
from typing import Callable, List, Optional

from src.competence_file.classification import (
    BULLET,
    CATEGORY_MARKER_PATTERN,
    ContentShape,
    detect_content_shape,
)
from src.competence_file.sanitizer import sanitize_html

# Bold runs inside already-sliced text
BOLD_RUN_PATTERN = re.compile(r"\*\*(.+?)\*\*")
PARAGRAPH_BREAK_PATTERN = re.compile(r"\n{2,}")


def to_strong_html(text: str) -> str:
    """Convert **bold** runs to <strong>; unmatched ** stays literal."""
    return BOLD_RUN_PATTERN.sub(r"<strong>\1</strong>", text)


def split_bullets(text: str) -> List[str]:
    """Split on the bullet character, trimming and dropping empty items."""
    return [item.strip() for item in text.split(BULLET) if item.strip()]


def _list_html(items: List[str]) -> str:
    return "<ul>" + "".join(f"<li>{to_strong_html(item)}</li>" for item in items) + "</ul>"


def build_html_from_bold_categories(text: str) -> Optional[str]:
    """
    Build category blocks from **Category** markers.

    Each marker's body is the text up to the next marker (or the end),
    split on bullets. Text before the first marker is not part of any
    category and is dropped.

    Returns:
        HTML string, or None if no marker is present
    """
    matches = list(CATEGORY_MARKER_PATTERN.finditer(text))
    if not matches:
        return None

    blocks = []
    for index, match in enumerate(matches):
        end = matches[index + 1].start() if index + 1 < len(matches) else len(text)
        category = match.group(1).strip()
        items = split_bullets(text[match.end():end])
        blocks.append(f"<p><strong>{category}</strong></p>")
        if items:
            blocks.append(_list_html(items))
    return "".join(blocks)


def build_html_from_bullets(text: str) -> Optional[str]:
    """Build a single list from bullet-delimited text; None if no items."""
    if BULLET not in text:
        return None
    items = split_bullets(text)
    if not items:
        return None
    return _list_html(items)


def build_html_from_paragraphs(text: str) -> str:
    """Wrap blank-line separated paragraphs in <p>, single newlines become <br/>."""
    blocks = []
    for paragraph in PARAGRAPH_BREAK_PATTERN.split(text):
        with_breaks = paragraph.replace("\n", "<br/>")
        blocks.append(f"<p>{to_strong_html(with_breaks)}</p>")
    return "".join(blocks)


def normalize_section_html(
    raw_content: Optional[str],
    section_title: str = "",
    sanitize: Callable[[str], str] = sanitize_html,
) -> str:
    """
    Convert raw section content into canonical sanitized HTML.

    Total over all string inputs; malformed input degrades to the next more
    generic shape (category bullets -> bullets -> paragraphs).

    Args:
        raw_content: Raw content (HTML, bold-marked text, bullets, or prose)
        section_title: Section title (accepted for parity with the classifier;
                       shape detection is content-driven)
        sanitize: Sanitizer applied to the final HTML

    Returns:
        Sanitized HTML, or "" for empty/blank input
    """
    shape = detect_content_shape(raw_content)

    if shape is ContentShape.EMPTY:
        return ""
    if shape is ContentShape.ALREADY_HTML:
        return sanitize(raw_content)

    text = raw_content.replace("\r\n", "\n").replace("\r", "\n").strip()

    html = None
    if shape is ContentShape.CATEGORY_BULLETED:
        html = build_html_from_bold_categories(text)
    if html is None and shape in (ContentShape.CATEGORY_BULLETED, ContentShape.BULLETED):
        html = build_html_from_bullets(text)
    if html is None:
        html = build_html_from_paragraphs(text)

    return sanitize(html)


class ContentNormalizer:
    """Injectable wrapper around normalize_section_html()."""

    def __init__(self, sanitize: Callable[[str], str] = sanitize_html):
        self._sanitize = sanitize

    def normalize(self, raw_content: Optional[str], section_title: str = "") -> str:
        return normalize_section_html(raw_content, section_title, sanitize=self._sanitize)
