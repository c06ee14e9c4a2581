"""
Document rendering for competence files.

Turns the editor's export view into PDF or DOCX bytes:

- build_document_html(): complete HTML document with embedded styles
- PdfServiceRenderer: posts that HTML to the PDF service (/render-pdf),
  retrying transport errors and 5xx responses
- DocxRenderer: writes the sections into a Word document with python-docx
- FallbackRenderer: tries each renderer that supports the format in order

Usage:
    renderer = build_default_renderer()
    pdf_bytes = await renderer.render(editor.export_visible_ordered(), "pdf")
"""

import asyncio
import logging
from html import escape
from io import BytesIO
from typing import List, Optional, Sequence

import httpx
from bs4 import BeautifulSoup
from bs4.element import NavigableString, Tag
from docx import Document
from docx.shared import Inches
from tenacity import (
    AsyncRetrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from src.common.config import Config
from src.common.error_handling import RenderError
from src.competence_file.sanitizer import sanitize_html
from src.competence_file.types import DocumentRenderer, ExportedSection

logger = logging.getLogger(__name__)

DEFAULT_CSS = """
@page { margin: 18mm 16mm; }
body { font-family: 'Inter', Arial, sans-serif; font-size: 10.5pt; line-height: 1.45; color: #1f2a38; }
h1 { font-size: 20pt; margin-bottom: 12pt; }
section { margin-bottom: 14pt; page-break-inside: avoid; }
section h2 { font-size: 11pt; text-transform: uppercase; letter-spacing: 0.04em;
             border-bottom: 1px solid #cbd5e1; padding-bottom: 3pt; margin-bottom: 6pt; }
ul { margin: 0 0 6pt 16pt; padding: 0; }
li { margin-bottom: 2pt; }
p { margin: 0 0 6pt 0; }
"""

BLOCK_TAGS = {"p", "div", "blockquote", "pre"}
HEADING_TAGS = {"h1", "h2", "h3", "h4", "h5", "h6"}
LIST_STYLES = {"ul": "List Bullet", "ol": "List Number"}


def build_document_html(
    sections: Sequence[ExportedSection],
    title: Optional[str] = None,
    css: str = DEFAULT_CSS,
) -> str:
    """
    Build a complete HTML document from the export view.

    Args:
        sections: Ordered, visible sections
        title: Optional document title rendered as <h1>
        css: Embedded stylesheet

    Returns:
        Complete HTML document string
    """
    parts = []
    if title:
        parts.append(f"<h1>{escape(title)}</h1>")
    for section in sections:
        parts.append(
            f'<section data-section-id="{escape(section["id"])}">'
            f"<h2>{escape(section['title'])}</h2>"
            f"{sanitize_html(section['content'])}"
            f"</section>"
        )

    return f"""<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="UTF-8">
<title>{escape(title or 'Competence File')}</title>
<style>{css}</style>
</head>
<body>
{''.join(parts)}
</body>
</html>"""


def _is_retryable(error: BaseException) -> bool:
    if isinstance(error, httpx.TransportError):
        return True
    if isinstance(error, httpx.HTTPStatusError):
        return error.response.status_code >= 500
    return False


class PdfServiceRenderer:
    """HTML -> PDF through the PDF service's /render-pdf endpoint."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        max_attempts: Optional[int] = None,
        page_size: Optional[str] = None,
        title: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        retry_wait_min: float = 1.0,
        retry_wait_max: float = 8.0,
    ):
        self.base_url = (base_url or Config.PDF_SERVICE_URL).rstrip("/")
        self.timeout = timeout or Config.PDF_TIMEOUT_SECONDS
        self.max_attempts = max_attempts or Config.RENDER_MAX_ATTEMPTS
        self.page_size = page_size or Config.PAGE_SIZE
        self.title = title
        self._client = client
        self.retry_wait_min = retry_wait_min
        self.retry_wait_max = retry_wait_max

    def supports(self, format: str) -> bool:
        return format == "pdf"

    async def render(self, sections: List[ExportedSection], format: str = "pdf") -> bytes:
        """
        Render sections to PDF bytes.

        Raises:
            RenderError: Unsupported format, or the service kept failing
        """
        if not self.supports(format):
            raise RenderError(f"PdfServiceRenderer cannot render {format}")

        payload = {
            "html": build_document_html(sections, self.title),
            "css": None,
            "pageSize": self.page_size,
            "printBackground": True,
        }

        client = self._client or httpx.AsyncClient(timeout=self.timeout)
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.max_attempts),
                wait=wait_exponential(multiplier=1, min=self.retry_wait_min, max=self.retry_wait_max),
                retry=retry_if_exception(_is_retryable),
                reraise=True,
            ):
                with attempt:
                    response = await client.post(f"{self.base_url}/render-pdf", json=payload)
                    response.raise_for_status()
        except httpx.TimeoutException as e:
            raise RenderError("PDF generation timed out. Please try again.") from e
        except httpx.HTTPStatusError as e:
            raise RenderError(
                f"PDF service returned {e.response.status_code}",
                status_code=e.response.status_code,
            ) from e
        except httpx.RequestError as e:
            raise RenderError(f"PDF service unavailable: {e}") from e
        finally:
            if self._client is None:
                await client.aclose()

        logger.info(f"Rendered PDF for {len(sections)} sections ({len(response.content)} bytes)")
        return response.content


class DocxRenderer:
    """Sections -> .docx with python-docx (title headings, paragraphs, bullet lists)."""

    def __init__(self, title: Optional[str] = None):
        self.title = title

    def supports(self, format: str) -> bool:
        return format == "docx"

    async def render(self, sections: List[ExportedSection], format: str = "docx") -> bytes:
        if not self.supports(format):
            raise RenderError(f"DocxRenderer cannot render {format}")
        return await asyncio.to_thread(self.render_sync, sections)

    def render_sync(self, sections: Sequence[ExportedSection]) -> bytes:
        document = Document()

        # Set margins
        for page in document.sections:
            page.top_margin = Inches(0.5)
            page.bottom_margin = Inches(0.5)
            page.left_margin = Inches(0.75)
            page.right_margin = Inches(0.75)

        if self.title:
            document.add_heading(self.title, level=0)

        for section in sections:
            document.add_heading(section["title"], level=1)
            soup = BeautifulSoup(sanitize_html(section["content"]), "html.parser")
            self._write_blocks(document, soup)

        buffer = BytesIO()
        document.save(buffer)
        return buffer.getvalue()

    def _write_blocks(self, document, container: Tag) -> None:
        inline_run: List = []

        def flush_inline():
            if any(not isinstance(node, NavigableString) or node.strip() for node in inline_run):
                paragraph = document.add_paragraph()
                for node in inline_run:
                    self._add_runs(paragraph, node)
            inline_run.clear()

        for child in container.children:
            if isinstance(child, Tag) and child.name in LIST_STYLES:
                flush_inline()
                for item in child.find_all("li", recursive=False):
                    paragraph = document.add_paragraph(style=LIST_STYLES[child.name])
                    self._add_runs(paragraph, item)
            elif isinstance(child, Tag) and child.name in HEADING_TAGS:
                flush_inline()
                level = min(int(child.name[1]) + 1, 9)
                document.add_heading(child.get_text(" ", strip=True), level=level)
            elif isinstance(child, Tag) and child.name in BLOCK_TAGS:
                flush_inline()
                if child.find(list(LIST_STYLES)) is not None:
                    self._write_blocks(document, child)
                else:
                    paragraph = document.add_paragraph()
                    self._add_runs(paragraph, child)
            else:
                inline_run.append(child)
        flush_inline()

    def _add_runs(self, paragraph, node, bold=False, italic=False, underline=False) -> None:
        if isinstance(node, NavigableString):
            text = str(node)
            if text:
                run = paragraph.add_run(text)
                run.bold = bold or None
                run.italic = italic or None
                run.underline = underline or None
            return
        if not isinstance(node, Tag):
            return
        if node.name == "br":
            paragraph.add_run().add_break()
            return
        if node.name in LIST_STYLES:
            # Nested list inside a list item: flatten into the same paragraph
            for item in node.find_all("li", recursive=False):
                paragraph.add_run().add_break()
                self._add_runs(paragraph, item, bold, italic, underline)
            return

        bold = bold or node.name in ("strong", "b")
        italic = italic or node.name in ("em", "i")
        underline = underline or node.name == "u"
        for child in node.children:
            self._add_runs(paragraph, child, bold, italic, underline)


class FallbackRenderer:
    """Try each renderer supporting the format, in order, until one succeeds."""

    def __init__(self, renderers: Sequence[DocumentRenderer]):
        self.renderers = list(renderers)

    def supports(self, format: str) -> bool:
        return any(renderer.supports(format) for renderer in self.renderers)

    async def render(self, sections: List[ExportedSection], format: str) -> bytes:
        candidates = [renderer for renderer in self.renderers if renderer.supports(format)]
        if not candidates:
            raise RenderError(f"No renderer configured for {format}")

        failures = []
        for renderer in candidates:
            name = type(renderer).__name__
            try:
                return await renderer.render(sections, format)
            except Exception as e:
                logger.warning(f"{name} failed to render {format}: {e}")
                failures.append(f"{name}: {e}")

        raise RenderError(f"All renderers failed for {format}: {'; '.join(failures)}")


def build_default_renderer(title: Optional[str] = None) -> FallbackRenderer:
    """Renderer chain from configuration: PDF service (if enabled), then DOCX."""
    renderers: List[DocumentRenderer] = []
    if Config.ENABLE_PDF_SERVICE:
        renderers.append(PdfServiceRenderer(title=title))
    renderers.append(DocxRenderer(title=title))
    return FallbackRenderer(renderers)
