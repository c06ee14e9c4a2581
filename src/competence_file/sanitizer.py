"""
HTML sanitizer for competence-file sections.

Allowlist-based cleaning on top of BeautifulSoup:
- Executable or embedding elements are dropped together with their content
- Unknown elements are unwrapped (their text is kept)
- Attributes are filtered per tag; event handlers are always removed
- Links may only use http(s), mailto, tel or relative URLs
- Comments, doctypes and processing instructions are removed

Output is safe to render directly and sanitizing it again yields the same string.
"""

import re
from html import escape
from typing import Dict, FrozenSet

from bs4 import BeautifulSoup
from bs4.element import CData, Comment, Declaration, Doctype, ProcessingInstruction, Tag

# Elements removed together with everything inside them
DROP_WITH_CONTENT: FrozenSet[str] = frozenset({
    "script", "style", "iframe", "frame", "frameset", "object", "embed",
    "applet", "template", "noscript", "svg", "math", "form", "input",
    "button", "select", "textarea", "link", "meta", "base", "head", "title",
})

ALLOWED_TAGS: FrozenSet[str] = frozenset({
    "p", "br", "strong", "b", "em", "i", "u", "s", "strike", "mark", "span",
    "ul", "ol", "li", "h1", "h2", "h3", "h4", "h5", "h6", "blockquote",
    "code", "pre", "hr", "a", "sub", "sup", "small", "div",
    "table", "thead", "tbody", "tr", "th", "td",
})

GLOBAL_ATTRIBUTES: FrozenSet[str] = frozenset({"class", "style"})

ALLOWED_ATTRIBUTES: Dict[str, FrozenSet[str]] = {
    "a": frozenset({"href", "title", "target", "rel"}),
    "ol": frozenset({"start"}),
    "td": frozenset({"colspan", "rowspan"}),
    "th": frozenset({"colspan", "rowspan"}),
}

SAFE_URL_SCHEMES: FrozenSet[str] = frozenset({"http", "https", "mailto", "tel"})

# Scheme detection ignores whitespace/control characters browsers would skip
_SCHEME_RE = re.compile(r"^([a-z][a-z0-9+.\-]*):", re.IGNORECASE)
_URL_NOISE_RE = re.compile(r"[\x00-\x20]+")
_UNSAFE_STYLE_RE = re.compile(r"expression\s*\(|url\s*\(|javascript:|behavior\s*:", re.IGNORECASE)


def _is_safe_url(value: str) -> bool:
    compact = _URL_NOISE_RE.sub("", value)
    match = _SCHEME_RE.match(compact)
    if match is None:
        return True  # relative URL or fragment
    return match.group(1).lower() in SAFE_URL_SCHEMES


def _clean_attributes(tag: Tag) -> None:
    allowed = GLOBAL_ATTRIBUTES | ALLOWED_ATTRIBUTES.get(tag.name, frozenset())
    for name in list(tag.attrs):
        value = tag.attrs[name]
        if isinstance(value, list):
            value = " ".join(value)
        lowered = name.lower()
        if lowered.startswith("on") or lowered not in allowed:
            del tag.attrs[name]
        elif lowered == "href" and not _is_safe_url(value):
            del tag.attrs[name]
        elif lowered == "style" and _UNSAFE_STYLE_RE.search(value):
            del tag.attrs[name]

    if tag.name == "a" and tag.get("target") == "_blank":
        tag["rel"] = "noopener noreferrer"


def sanitize_html(html: str) -> str:
    """
    Strip disallowed markup from an HTML fragment.

    Total over all string inputs: never raises, returns "" for empty input.
    Plain text is returned HTML-escaped.

    Args:
        html: Untrusted HTML (or plain text)

    Returns:
        Sanitized HTML fragment
    """
    if not html:
        return ""

    try:
        soup = BeautifulSoup(html, "html.parser")
    except Exception:
        # Markup the parser rejects is rendered as inert text
        return escape(html)

    # Comments, CDATA, doctypes and PIs never render
    for node in soup.find_all(string=lambda s: isinstance(
        s, (Comment, CData, Declaration, Doctype, ProcessingInstruction)
    )):
        node.extract()

    for tag in soup.find_all(True):
        if tag.decomposed:
            continue
        name = (tag.name or "").lower()
        if name in DROP_WITH_CONTENT:
            tag.decompose()
        elif name not in ALLOWED_TAGS:
            tag.unwrap()
        else:
            _clean_attributes(tag)

    return str(soup)


class HtmlSanitizer:
    """Callable wrapper so collaborators can be injected and swapped in tests."""

    def sanitize(self, html: str) -> str:
        return sanitize_html(html)

    def __call__(self, html: str) -> str:
        return sanitize_html(html)


default_sanitizer = HtmlSanitizer()
