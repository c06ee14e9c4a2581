"""
Per-section editing state machine.

    INACTIVE --activate()--> ACTIVE --deactivate()--> INACTIVE

- Generic sections mount the rich-text surface while ACTIVE; deactivating
  pushes the surface's sanitized HTML back to the document first.
- Technical-skills and languages sections mount a structured sub-editor
  instead; every mutation there is encoded and written through immediately.

Only one section may be ACTIVE per document; CompetenceFileEditor enforces that.
"""

import logging
from enum import Enum
from typing import Callable, Optional, Union

from src.common.error_handling import safe_execute
from src.competence_file.classification import SectionKind
from src.competence_file.codecs import (
    ExperienceMeta,
    decode_languages,
    decode_skills,
    extract_date_location,
)
from src.competence_file.document import DocumentModel
from src.competence_file.sanitizer import sanitize_html
from src.competence_file.structured_editors import LanguagesEditor, SkillsEditor
from src.competence_file.types import BufferSurface, ReadView, RichTextSurface

logger = logging.getLogger(__name__)


class SectionState(str, Enum):
    INACTIVE = "inactive"
    ACTIVE = "active"


class SectionEditingSession:
    """Activation state and mounted editor for one section."""

    def __init__(
        self,
        document: DocumentModel,
        section_id: str,
        surface: Optional[RichTextSurface] = None,
        sanitize: Callable[[str], str] = sanitize_html,
    ):
        self.document = document
        self.section_id = section_id
        self.surface: RichTextSurface = surface if surface is not None else BufferSurface()
        self._sanitize = sanitize
        self.state = SectionState.INACTIVE
        self.skills_editor: Optional[SkillsEditor] = None
        self.languages_editor: Optional[LanguagesEditor] = None

        self.surface.set_editable(False)
        self.surface.set_content(self._canonical_html())

    @property
    def is_active(self) -> bool:
        return self.state is SectionState.ACTIVE

    @property
    def kind(self) -> SectionKind:
        return self.document.section_kind(self.section_id) or SectionKind.GENERIC

    @property
    def structured_editor(self) -> Optional[Union[SkillsEditor, LanguagesEditor]]:
        if self.skills_editor is not None:
            return self.skills_editor
        return self.languages_editor

    def _canonical_html(self) -> str:
        section = self.document.get_section(self.section_id)
        return section.html if section else ""

    def _write(self, html: str) -> None:
        self.document.update_section_content(self.section_id, html)

    def activate(self) -> None:
        """Mount the editor for this section's kind; no-op if already active or removed."""
        if self.is_active or self.section_id not in self.document:
            return

        self.state = SectionState.ACTIVE
        self._mount()
        logger.debug(f"Section {self.section_id} activated ({self.kind.value})")

    def _mount(self) -> None:
        html = self._canonical_html()
        kind = self.kind
        if kind is SectionKind.TECHNICAL_SKILLS:
            self.skills_editor = SkillsEditor.from_html(html, on_change=self._write)
        elif kind is SectionKind.LANGUAGES:
            self.languages_editor = LanguagesEditor.from_html(html, on_change=self._write)
        else:
            self.surface.set_content(html)
            self.surface.set_editable(True)
            self.surface.focus_end()

    def sync(self) -> None:
        """Push the rich-text surface's current content to the document."""
        if not self.is_active or self.structured_editor is not None:
            return
        self._write(self._sanitize(self.surface.get_html()))

    def reload(self) -> None:
        """Re-read canonical HTML after it changed from outside this session."""
        if self.is_active:
            self.skills_editor = None
            self.languages_editor = None
            self._mount()
        else:
            self.surface.set_content(self._canonical_html())

    def deactivate(self) -> None:
        """Keep the edits, unmount the editor and show the latest canonical HTML."""
        if not self.is_active:
            return

        self.sync()
        self.state = SectionState.INACTIVE
        self.skills_editor = None
        self.languages_editor = None
        self.surface.set_editable(False)
        self.surface.set_content(self._canonical_html())
        logger.debug(f"Section {self.section_id} deactivated")

    def discard(self) -> None:
        """Unmount without pushing edits; the surface is left read-only."""
        self.state = SectionState.INACTIVE
        self.skills_editor = None
        self.languages_editor = None
        self.surface.set_editable(False)

    def read_view(self) -> Optional[ReadView]:
        """Read-mode rendering data; None if the section no longer exists."""
        section = self.document.get_section(self.section_id)
        if section is None:
            return None

        kind = self.kind
        view = ReadView(section_id=section.id, html=self._sanitize(section.html), kind=kind.value)

        if kind is SectionKind.TECHNICAL_SKILLS:
            view.skills = decode_skills(section.html)
            view.raw_html_fallback = not view.skills
        elif kind is SectionKind.LANGUAGES:
            view.languages = decode_languages(section.html)
            view.raw_html_fallback = not view.languages
        elif kind is SectionKind.EXPERIENCE:
            meta = safe_execute(
                extract_date_location,
                section.html,
                operation_name="experience metadata",
                logger=logger,
                fallback=ExperienceMeta(),
            )
            view.date = meta.date
            view.location = meta.location

        return view
