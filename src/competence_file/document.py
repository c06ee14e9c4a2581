"""
In-memory competence-file document.

DocumentModel owns the ordered section list for one editing session. All
mutations are synchronous and notify subscribers (the autosave coordinator,
UI fragments) after the state has changed. A listener that raises is logged
and skipped; the mutation itself still succeeds.

Reference errors are deliberate no-ops: mutate/remove calls for an unknown
section id change nothing and notify nobody, because UI callbacks may race
with a deletion.
"""

import copy
import logging
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

from src.common.error_handling import safe_execute
from src.competence_file.classification import SectionKind, classify_section
from src.competence_file.normalizer import normalize_section_html
from src.competence_file.types import ExportedSection, Section

logger = logging.getLogger(__name__)

ChangeListener = Callable[["DocumentModel"], None]
SectionInput = Union[Section, Dict[str, Any]]


class DocumentModel:
    """
    Ordered, mutable section collection with change notification.

    Usage:
        document = DocumentModel("cf_123")
        document.load([{"id": "s1", "title": "Summary", "html": "Hello"}])
        unsubscribe = document.subscribe(lambda doc: print("changed"))
        document.update_section_content("s1", "<p>Hi</p>")
        document.export_visible_ordered()
    """

    def __init__(
        self,
        document_id: str,
        normalize: Callable[[Optional[str], str], str] = normalize_section_html,
    ):
        self.document_id = document_id
        self._normalize = normalize
        self._sections: List[Section] = []
        self._listeners: List[ChangeListener] = []

    # ===== Read access =====

    @property
    def sections(self) -> List[Section]:
        """Copies of the sections in insertion order."""
        return [copy.copy(section) for section in self._sections]

    def __len__(self) -> int:
        return len(self._sections)

    def __contains__(self, section_id: str) -> bool:
        return self._find(section_id) is not None

    def get_section(self, section_id: str) -> Optional[Section]:
        """Copy of the section with this id, or None."""
        section = self._find(section_id)
        return copy.copy(section) if section else None

    def section_kind(self, section_id: str) -> Optional[SectionKind]:
        section = self._find(section_id)
        if section is None:
            return None
        return classify_section(section.kind, section.title)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the full document state (hidden sections included)."""
        return {
            "id": self.document_id,
            "sections": [section.to_dict() for section in self._sections],
        }

    # ===== Observation =====

    def subscribe(self, listener: ChangeListener) -> Callable[[], None]:
        """
        Register a change listener.

        Returns:
            A callable that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        # The state has already changed; one failing listener must not hide
        # the change from the others or from the caller
        for listener in list(self._listeners):
            safe_execute(
                listener,
                self,
                operation_name=f"change listener for {self.document_id}",
                logger=logger,
                critical=True,
            )

    # ===== Mutations =====

    def load(self, initial_sections: Iterable[SectionInput]) -> None:
        """
        Replace the document content with normalized copies of the input.

        Calling it again with the same input yields the same state.
        """
        loaded = []
        for raw in initial_sections:
            source = raw if isinstance(raw, Section) else Section.from_dict(raw)
            loaded.append(Section(
                id=source.id,
                title=source.title,
                kind=source.kind,
                html=self._normalize(source.html, source.title),
                order=source.order,
                visible=source.visible is not False,
            ))
        self._sections = loaded
        logger.debug(f"Loaded {len(loaded)} sections into document {self.document_id}")
        self._notify()

    def update_section_content(self, section_id: str, html: str) -> None:
        """
        Replace a section's HTML verbatim.

        The caller sanitizes rich-text input and encodes structured input first.
        Unknown ids are a no-op.
        """
        changed = False
        for section in self._sections:
            if section.id == section_id and section.html != html:
                section.html = html
                changed = True
        if changed:
            self._notify()
        elif section_id not in self:
            logger.debug(f"update_section_content: unknown section {section_id}")

    def set_section_visible(self, section_id: str, visible: bool) -> None:
        """Show or hide a section; unknown ids are a no-op."""
        changed = False
        for section in self._sections:
            if section.id == section_id and section.visible != visible:
                section.visible = visible
                changed = True
        if changed:
            self._notify()
        elif section_id not in self:
            logger.debug(f"set_section_visible: unknown section {section_id}")

    def remove_section(self, section_id: str) -> None:
        """Permanently remove a section; unknown ids are a no-op."""
        remaining = [section for section in self._sections if section.id != section_id]
        if len(remaining) == len(self._sections):
            logger.debug(f"remove_section: unknown section {section_id}")
            return
        self._sections = remaining
        self._notify()

    def set_section_order(self, section_id: str, order: int) -> None:
        """Set one section's order value; unknown ids are a no-op."""
        changed = False
        for section in self._sections:
            if section.id == section_id and section.order != order:
                section.order = order
                changed = True
        if changed:
            self._notify()

    def move_section(self, section_id: str, to_index: int) -> None:
        """
        Move a section to a position in export order.

        Every section's `order` is renumbered to its new 0-based position.
        The index is clamped to the valid range; unknown ids are a no-op.
        """
        ordered = self._ordered()
        moving = next((section for section in ordered if section.id == section_id), None)
        if moving is None:
            return

        ordered.remove(moving)
        to_index = max(0, min(to_index, len(ordered)))
        ordered.insert(to_index, moving)

        changed = False
        for position, section in enumerate(ordered):
            if section.order != position:
                section.order = position
                changed = True
        if changed:
            self._notify()

    # ===== Export =====

    def export_visible_ordered(self) -> List[ExportedSection]:
        """
        Visible sections sorted by order (stable), in renderer shape.

        Pure read: never mutates the document.
        """
        return [
            self._export(section)
            for section in self._ordered()
            if section.visible is not False
        ]

    def _ordered(self) -> List[Section]:
        # sorted() is stable, so ties keep insertion order
        return sorted(self._sections, key=lambda section: section.sort_key)

    @staticmethod
    def _export(section: Section) -> ExportedSection:
        return ExportedSection(
            id=section.id,
            title=section.title,
            type=section.kind,
            content=section.html,
            order=section.sort_key,
            visible=True,
            editable=True,
        )

    def _find(self, section_id: str) -> Optional[Section]:
        return next((section for section in self._sections if section.id == section_id), None)
