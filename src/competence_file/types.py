"""
Data types for the competence-file editor.

- Section: one titled block of the document; canonical HTML is the source of truth
- LanguageItem: a language with a 0-5 proficiency level
- ExportedSection: the ordered, visibility-filtered shape handed to renderers
  and the persistence store
- Protocols for the external collaborators (persistence, AI rewrite, renderer,
  rich-text surface)
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, TypedDict

MIN_LANGUAGE_LEVEL = 0
MAX_LANGUAGE_LEVEL = 5
DEFAULT_LANGUAGE_LEVEL = 3


@dataclass
class Section:
    """
    A titled block of a competence file.

    `order` may be None when the source did not provide one; it then sorts
    as 0 and ties keep insertion order.
    """

    id: str                            # Stable identifier, unique per document
    title: str = ""                    # Display label, also used to classify
    kind: str = "generic"              # Semantic type tag
    html: str = ""                     # Canonical sanitized HTML
    order: Optional[int] = None        # Display/export position
    visible: bool = True               # Hidden sections stay in the model

    @property
    def sort_key(self) -> int:
        return self.order or 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "title": self.title,
            "kind": self.kind,
            "html": self.html,
            "order": self.order,
            "visible": self.visible,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Section":
        """
        Build a Section from loosely shaped input.

        Accepts `html`, `htmlContent` or `content` for the body and `kind` or
        `type` for the tag, matching what earlier exports and API payloads carry.
        Numeric strings for `order` are coerced to int.

        Raises:
            ValueError: `order` is not an integer value
        """
        html = data.get("html")
        if html is None:
            html = data.get("htmlContent") or data.get("content") or ""
        visible = data.get("visible")
        order = data.get("order")
        return cls(
            id=str(data["id"]),
            title=data.get("title") or "",
            kind=data.get("kind") or data.get("type") or "generic",
            html=html,
            order=int(order) if order is not None else None,
            visible=visible is not False,
        )


@dataclass
class LanguageItem:
    """A language and its proficiency level (0 = None ... 5 = Native)."""

    name: str
    level: int = DEFAULT_LANGUAGE_LEVEL

    def __post_init__(self):
        self.name = self.name.strip()
        if not MIN_LANGUAGE_LEVEL <= self.level <= MAX_LANGUAGE_LEVEL:
            raise ValueError(
                f"Language level must be between {MIN_LANGUAGE_LEVEL} and "
                f"{MAX_LANGUAGE_LEVEL}, got {self.level}"
            )

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "level": self.level}


class ExportedSection(TypedDict):
    """Section shape consumed by renderers and the persistence store."""
    id: str
    title: str
    type: str
    content: str
    order: int
    visible: bool
    editable: bool


@dataclass
class RewriteProposal:
    """A sanitized AI rewrite waiting for the user to accept or discard it."""

    section_id: str
    original: str
    proposed: str
    intent: str = ""


@dataclass
class ReadView:
    """Everything the host needs to render a section in read mode."""

    section_id: str
    html: str
    kind: str
    skills: List[str] = field(default_factory=list)
    languages: List[LanguageItem] = field(default_factory=list)
    raw_html_fallback: bool = False    # Structured kind that parsed to zero items
    date: Optional[str] = None         # Experience sections only
    location: Optional[str] = None     # Experience sections only


class PersistenceStore(Protocol):
    """Overwrite-last-writer-wins store for the section list."""

    async def save(self, document_id: str, sections: List[ExportedSection], status: str) -> None:
        ...


class RewriteService(Protocol):
    """AI rewrite collaborator; returns {"html": ...}."""

    async def rewrite(self, intent: str, text: str, section_id: str, kind: str) -> Dict[str, Any]:
        ...


class DocumentRenderer(Protocol):
    """Turns the export view into document bytes."""

    def supports(self, format: str) -> bool:
        ...

    async def render(self, sections: List[ExportedSection], format: str) -> bytes:
        ...


class RichTextSurface(Protocol):
    """The editing widget mounted while a generic section is active."""

    def set_content(self, html: str) -> None:
        ...

    def get_html(self) -> str:
        ...

    def set_editable(self, editable: bool) -> None:
        ...

    def focus_end(self) -> None:
        ...


class BufferSurface:
    """In-memory RichTextSurface for headless use and tests."""

    def __init__(self, html: str = ""):
        self.html = html
        self.editable = False
        self.focused_at_end = False

    def set_content(self, html: str) -> None:
        self.html = html

    def get_html(self) -> str:
        return self.html

    def set_editable(self, editable: bool) -> None:
        self.editable = editable
        if not editable:
            self.focused_at_end = False

    def focus_end(self) -> None:
        self.focused_at_end = True

    def type(self, html: str) -> None:
        """Replace content as if the user edited it."""
        self.html = html
