"""
Competence-file editing session.

CompetenceFileEditor is the object a UI shell owns for one open document.
It wires the DocumentModel to the autosave coordinator, keeps one
SectionEditingSession per section, enforces that at most one section is
active, and routes AI rewrite proposals and document rendering.

Usage:
    editor = CompetenceFileEditor("cf_123", store=CompetenceFileStore())
    editor.load(sections_from_api)
    editor.activate_section("skills")
    editor.session("skills").skills_editor.add("Kubernetes")
    editor.deactivate_section("skills")
    pdf_bytes = await editor.render("pdf")
    await editor.close()
"""

import logging
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

from src.common.error_handling import (
    CompetenceFileError,
    RenderError,
    RewriteError,
    log_on_exception,
)
from src.common.logger import get_logger
from src.competence_file.autosave import AutosaveCoordinator
from src.competence_file.document import DocumentModel
from src.competence_file.sanitizer import sanitize_html
from src.competence_file.session import SectionEditingSession, SectionState
from src.competence_file.types import (
    DocumentRenderer,
    ExportedSection,
    PersistenceStore,
    ReadView,
    RewriteProposal,
    RewriteService,
    RichTextSurface,
    Section,
)

SUPPORTED_FORMATS = ("pdf", "docx")


class CompetenceFileEditor:
    """Host-facing interface of the editor core."""

    def __init__(
        self,
        document_id: str,
        store: Optional[PersistenceStore] = None,
        rewriter: Optional[RewriteService] = None,
        renderer: Optional[DocumentRenderer] = None,
        surface_factory: Optional[Callable[[str], RichTextSurface]] = None,
        debounce_seconds: Optional[float] = None,
        autosave_status: Optional[str] = None,
        sanitize: Callable[[str], str] = sanitize_html,
    ):
        """
        Initialize an editing session.

        Args:
            document_id: Competence-file id
            store: Persistence collaborator; autosave is disabled when None
            rewriter: AI rewrite collaborator
            renderer: PDF/DOCX renderer collaborator
            surface_factory: Builds the rich-text surface for a section id
            debounce_seconds: Autosave quiet window override
            autosave_status: Status marker override for autosave payloads
            sanitize: HTML sanitizer
        """
        self.document = DocumentModel(document_id)
        self.rewriter = rewriter
        self.renderer = renderer
        self._surface_factory = surface_factory
        self._sanitize = sanitize
        self._sessions: Dict[str, SectionEditingSession] = {}

        self.active_section_id: Optional[str] = None
        self.pending_rewrite: Optional[RewriteProposal] = None
        self.rewrite_in_progress = False
        self.render_in_progress = False
        self.logger = get_logger(__name__, document_id=document_id, component="editor")

        self.autosave: Optional[AutosaveCoordinator] = None
        if store is not None:
            self.autosave = AutosaveCoordinator(
                store, debounce_seconds=debounce_seconds, status=autosave_status
            )
            self.autosave.attach(self.document)

    @property
    def document_id(self) -> str:
        return self.document.document_id

    @property
    def is_saving(self) -> bool:
        return self.autosave is not None and self.autosave.is_saving

    # ===== Loading =====

    def load(self, initial_sections: Iterable[Union[Section, Dict[str, Any]]]) -> None:
        """Normalize and load the initial sections, resetting all editing state."""
        self.active_section_id = None
        self.pending_rewrite = None
        self._sessions = {}
        self.document.load(initial_sections)
        self.logger.info(f"Loaded {len(self.document)} sections")

    # ===== Activation =====

    def session(self, section_id: str) -> Optional[SectionEditingSession]:
        """The editing session for a section, created on first use; None if unknown."""
        if section_id not in self.document:
            return None
        session = self._sessions.get(section_id)
        if session is None:
            surface = self._surface_factory(section_id) if self._surface_factory else None
            session = SectionEditingSession(
                self.document, section_id, surface=surface, sanitize=self._sanitize
            )
            self._sessions[section_id] = session
        return session

    def activate_section(self, section_id: str) -> None:
        """Activate a section, deactivating the previously active one first."""
        session = self.session(section_id)
        if session is None or self.active_section_id == section_id:
            return
        if self.active_section_id is not None:
            self.deactivate_section(self.active_section_id)
        session.activate()
        self.active_section_id = section_id

    def deactivate_section(self, section_id: str) -> None:
        """Deactivate a section; no-op unless it is the active one."""
        if self.active_section_id != section_id:
            return
        session = self._sessions.get(section_id)
        if session is not None:
            session.deactivate()
        self.active_section_id = None

    def is_active(self, section_id: str) -> bool:
        return self.active_section_id == section_id

    def section_state(self, section_id: str) -> SectionState:
        return SectionState.ACTIVE if self.is_active(section_id) else SectionState.INACTIVE

    def read_view(self, section_id: str) -> Optional[ReadView]:
        session = self.session(section_id)
        return session.read_view() if session else None

    # ===== Document mutations =====

    def update_section_content(self, section_id: str, html: str) -> None:
        """Replace a section's HTML verbatim; an active editor is reloaded from it."""
        self.document.update_section_content(section_id, html)
        session = self._sessions.get(section_id)
        if session is not None:
            session.reload()

    def set_section_visible(self, section_id: str, visible: bool) -> None:
        self.document.set_section_visible(section_id, visible)

    def remove_section(self, section_id: str) -> None:
        """Remove a section; an active editor for it is dropped without pushing edits."""
        if self.active_section_id == section_id:
            self.active_section_id = None
        session = self._sessions.pop(section_id, None)
        if session is not None:
            session.discard()
        if self.pending_rewrite is not None and self.pending_rewrite.section_id == section_id:
            self.pending_rewrite = None
        self.document.remove_section(section_id)

    def move_section(self, section_id: str, to_index: int) -> None:
        self.document.move_section(section_id, to_index)

    def export_visible_ordered(self) -> List[ExportedSection]:
        return self.document.export_visible_ordered()

    # ===== AI rewrite =====

    async def request_rewrite(
        self,
        section_id: str,
        intent: str,
        text: Optional[str] = None,
    ) -> RewriteProposal:
        """
        Ask the rewrite service for a replacement and keep it as a proposal.

        The proposal is sanitized and never applied automatically.

        Raises:
            KeyError: Unknown section id
            RewriteError: No service configured, or the service failed
        """
        if self.rewriter is None:
            raise RewriteError("No rewrite service configured")
        section = self.document.get_section(section_id)
        if section is None:
            raise KeyError(section_id)

        self.pending_rewrite = None
        original = text if text is not None else section.html
        self.rewrite_in_progress = True
        try:
            with log_on_exception(self.logger, f"AI rewrite ({intent})", level=logging.ERROR):
                try:
                    result = await self.rewriter.rewrite(intent, original, section_id, section.kind)
                except CompetenceFileError:
                    raise
                except Exception as e:
                    raise RewriteError(f"AI rewrite failed: {e}") from e
        finally:
            self.rewrite_in_progress = False

        proposed = self._sanitize((result or {}).get("html") or "")
        self.pending_rewrite = RewriteProposal(
            section_id=section_id, original=original, proposed=proposed, intent=intent
        )
        return self.pending_rewrite

    def apply_rewrite(self) -> bool:
        """Write the pending proposal into its section; False if none is pending."""
        proposal = self.pending_rewrite
        if proposal is None:
            return False
        self.pending_rewrite = None
        if proposal.section_id not in self.document:
            return False
        self.update_section_content(proposal.section_id, self._sanitize(proposal.proposed))
        return True

    def discard_rewrite(self) -> None:
        self.pending_rewrite = None

    # ===== Rendering =====

    async def render(self, format: str = "pdf") -> bytes:
        """
        Render the export view to document bytes.

        Raises:
            RenderError: Unsupported format, no renderer configured, or rendering failed
        """
        format = format.lower()
        if format not in SUPPORTED_FORMATS:
            raise RenderError(f"Unsupported format: {format}")
        if self.renderer is None:
            raise RenderError("No renderer configured")

        sections = self.export_visible_ordered()
        self.render_in_progress = True
        try:
            with log_on_exception(self.logger, f"render {format}", level=logging.ERROR):
                try:
                    return await self.renderer.render(sections, format)
                except CompetenceFileError:
                    raise
                except Exception as e:
                    raise RenderError(f"Rendering failed: {e}") from e
        finally:
            self.render_in_progress = False

    # ===== Teardown =====

    async def close(self, flush: bool = False) -> None:
        """
        End the session.

        The active section's edits are pushed to the document. With flush=True
        the pending autosave is written before teardown; otherwise it is dropped
        and any in-flight save is aborted.
        """
        if self.active_section_id is not None:
            self.deactivate_section(self.active_section_id)
        if self.autosave is not None:
            if flush:
                await self.autosave.flush()
            await self.autosave.close()
        self.logger.info("Editing session closed")
