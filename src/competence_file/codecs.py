"""
Structured field codecs: canonical HTML <-> skill tags / language levels.

Encoders produce the canonical HTML the structured sub-editors write back;
decoders are best-effort over arbitrary HTML and lossy by design. For output
the encoders produced themselves, decode(encode(x)) == x.

Also extracts date range / location metadata from experience sections for
the read view.
"""

import re
from dataclasses import dataclass
from typing import Callable, List, Optional

from bs4 import BeautifulSoup

from src.competence_file.sanitizer import sanitize_html
from src.competence_file.types import DEFAULT_LANGUAGE_LEVEL, LanguageItem

# Separators for plain-text fallback parsing
SEGMENT_SEPARATORS = re.compile(r"[•,;\n]")
# Separators between a language name and its level description
LANGUAGE_PART_SEPARATORS = re.compile(r"[-–()]")

LEVEL_LABELS = {
    5: "Native",
    4: "Advanced",
    3: "Intermediate",
    2: "Elementary",
    1: "Beginner",
    0: "None",
}

# Checked top to bottom; first keyword found wins.
# "basic" resolves to Elementary (2) because that tier is checked first.
LEVEL_LEXICON = (
    (5, re.compile(r"native|mother tongue")),
    (4, re.compile(r"advanced|professional|fluent")),
    (3, re.compile(r"intermediate|professional working|conversational")),
    (2, re.compile(r"elementary|basic")),
    (1, re.compile(r"beginner")),
    (0, re.compile(r"\bnone\b")),
)


def label_from_level(level: int) -> str:
    """Map a 0-5 level to its label; values above 5 read as Native, below 1 as None."""
    if level >= 5:
        return LEVEL_LABELS[5]
    if level <= 0:
        return LEVEL_LABELS[0]
    return LEVEL_LABELS[level]


def level_from_text(text: str) -> int:
    """Derive a level from a free-text description, defaulting to Intermediate."""
    lowered = text.lower()
    for level, pattern in LEVEL_LEXICON:
        if pattern.search(lowered):
            return level
    return DEFAULT_LANGUAGE_LEVEL


def _list_item_texts(html: str) -> List[str]:
    soup = BeautifulSoup(html, "html.parser")
    return [li.get_text().strip() for li in soup.find_all("li")]


def _plain_text_segments(html: str) -> List[str]:
    text = BeautifulSoup(html, "html.parser").get_text(" ")
    return [segment.strip() for segment in SEGMENT_SEPARATORS.split(text) if segment.strip()]


# ===== Skills =====

def decode_skills(html: Optional[str]) -> List[str]:
    """
    Extract skill tags from section HTML.

    List items win when present; otherwise the tag-stripped text is split on
    bullets, commas, semicolons and newlines.
    """
    if not html:
        return []
    items = [text for text in _list_item_texts(html) if text]
    if items:
        return items
    return _plain_text_segments(html)


def encode_skills(skills: List[str], sanitize: Callable[[str], str] = sanitize_html) -> str:
    """Render skills as a bullet list, sanitizing each skill individually."""
    return "<ul>" + "".join(f"<li>{sanitize(skill)}</li>" for skill in skills) + "</ul>"


# ===== Languages =====

def parse_language_segment(text: str) -> Optional[LanguageItem]:
    """
    Parse "English - Native" / "German (fluent)" style text.

    The first non-empty part is the name; the remaining parts are matched
    against the level lexicon.
    """
    text = text.strip()
    if not text:
        return None
    parts = [part.strip() for part in LANGUAGE_PART_SEPARATORS.split(text) if part.strip()]
    if not parts:
        return None
    return LanguageItem(name=parts[0], level=level_from_text(" ".join(parts[1:])))


def decode_languages(html: Optional[str]) -> List[LanguageItem]:
    """Extract language items from section HTML (list items first, then plain text)."""
    if not html:
        return []

    list_items = _list_item_texts(html)
    segments = list_items if list_items else _plain_text_segments(html)

    items = []
    for segment in segments:
        item = parse_language_segment(segment)
        if item is not None:
            items.append(item)
    return items


def encode_languages(
    items: List[LanguageItem],
    sanitize: Callable[[str], str] = sanitize_html,
) -> str:
    """Render languages as <li><strong>name</strong> - Label</li> items."""
    return "<ul>" + "".join(
        f"<li><strong>{sanitize(item.name)}</strong> - {label_from_level(item.level)}</li>"
        for item in items
    ) + "</ul>"


# ===== Experience metadata =====

_MONTH = r"(?:Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)\.?\s?\d{4}"
DATE_RANGE_PATTERN = re.compile(
    r"(\b\d{2}/\d{4}\b|\b" + _MONTH + r"\b|\b\d{4}\b)"
    r"\s*[-–]\s*"
    r"(\b\d{2}/\d{4}\b|\b(?:Present|Now|Today|\d{4}|" + _MONTH + r")\b)",
    re.IGNORECASE,
)
LOCATION_PATTERN = re.compile(r"\b([A-Za-zÀ-ÖØ-öø-ÿ.'\-\s]+,\s*[A-Za-zÀ-ÖØ-öø-ÿ.'\-\s]+)\b")


@dataclass
class ExperienceMeta:
    """Date range and location found in an experience section."""
    date: Optional[str] = None
    location: Optional[str] = None


def extract_date_location(html: Optional[str]) -> ExperienceMeta:
    """
    Find a date range and a "City, Country" location in section text.

    The location is searched after the date range when one is found.

    Examples:
        "Acme 01/2021 - 10/2022 Zurich, Switzerland" -> ("01/2021 - 10/2022", "Zurich, Switzerland")
        "Jan 2020 - Present" -> ("Jan 2020 - Present", None)
    """
    if not html:
        return ExperienceMeta()

    text = " ".join(BeautifulSoup(html, "html.parser").get_text(" ").split())
    date_match = DATE_RANGE_PATTERN.search(text)
    after = text[date_match.end():] if date_match else text
    location_match = LOCATION_PATTERN.search(after)

    return ExperienceMeta(
        date=date_match.group(0) if date_match else None,
        location=location_match.group(1).strip() if location_match else None,
    )
