"""
Competence-file editor core.

Data layer for editing a competence file section by section:

- normalizer: raw section content -> canonical sanitized HTML
- codecs: skills / languages HTML <-> structured values
- document: in-memory section list with change notification
- autosave: debounced persistence of the export view
- session / editor: per-section activation state and the host-facing editor
"""

from src.competence_file.autosave import AutosaveCoordinator
from src.competence_file.classification import (
    ContentShape,
    SectionKind,
    classify_section,
    detect_content_shape,
)
from src.competence_file.codecs import (
    decode_languages,
    decode_skills,
    encode_languages,
    encode_skills,
    label_from_level,
    level_from_text,
)
from src.competence_file.document import DocumentModel
from src.competence_file.editor import CompetenceFileEditor
from src.competence_file.normalizer import ContentNormalizer, normalize_section_html
from src.competence_file.sanitizer import HtmlSanitizer, sanitize_html
from src.competence_file.session import SectionEditingSession, SectionState
from src.competence_file.structured_editors import LanguagesEditor, SkillsEditor
from src.competence_file.types import (
    BufferSurface,
    ExportedSection,
    LanguageItem,
    ReadView,
    RewriteProposal,
    Section,
)

__all__ = [
    # Types
    "Section",
    "LanguageItem",
    "ExportedSection",
    "ReadView",
    "RewriteProposal",
    "BufferSurface",
    # Classification
    "ContentShape",
    "SectionKind",
    "classify_section",
    "detect_content_shape",
    # Normalization and codecs
    "ContentNormalizer",
    "normalize_section_html",
    "HtmlSanitizer",
    "sanitize_html",
    "decode_skills",
    "encode_skills",
    "decode_languages",
    "encode_languages",
    "label_from_level",
    "level_from_text",
    # Editing
    "DocumentModel",
    "AutosaveCoordinator",
    "SectionEditingSession",
    "SectionState",
    "SkillsEditor",
    "LanguagesEditor",
    "CompetenceFileEditor",
]
