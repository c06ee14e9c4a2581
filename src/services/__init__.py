"""
External collaborators for the competence-file editor.

HTTP clients for persistence and AI rewrite, and the PDF/DOCX renderers.
"""

from src.services.competence_file_client import AIRewriteClient, CompetenceFileStore
from src.services.document_renderer import (
    DocxRenderer,
    FallbackRenderer,
    PdfServiceRenderer,
    build_default_renderer,
    build_document_html,
)

__all__ = [
    # Clients
    "CompetenceFileStore",
    "AIRewriteClient",
    # Renderers
    "PdfServiceRenderer",
    "DocxRenderer",
    "FallbackRenderer",
    "build_default_renderer",
    "build_document_html",
]
