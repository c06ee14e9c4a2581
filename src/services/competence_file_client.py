"""
HTTP clients for the competence-file API.

- CompetenceFileStore: persistence collaborator used by autosave
  (PUT /api/competence-files/{id})
- AIRewriteClient: AI rewrite collaborator (POST /api/ai/edit)

Both translate httpx timeouts, status errors and transport errors into the
editor's exception hierarchy so callers only handle CompetenceFileError.
"""

import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx
from pydantic import BaseModel, ConfigDict, Field

from src.common.config import Config
from src.common.error_handling import PersistenceError, RewriteError
from src.competence_file.types import ExportedSection

logger = logging.getLogger(__name__)


# ===== Wire models =====

class SectionPayload(BaseModel):
    """One section as the competence-file API stores it."""
    model_config = ConfigDict(populate_by_name=True)

    id: str
    title: str = ""
    type: str = "generic"
    content: str = ""
    html_content: str = Field("", alias="htmlContent")
    visible: bool = True
    order: int = 0
    editable: bool = True

    @classmethod
    def from_exported(cls, section: ExportedSection) -> "SectionPayload":
        return cls(
            id=section["id"],
            title=section["title"],
            type=section["type"],
            content=section["content"],
            html_content=section["content"],
            visible=section["visible"],
            order=section["order"],
            editable=section["editable"],
        )


class CompetenceFileUpdate(BaseModel):
    """Body of PUT /api/competence-files/{id}."""
    sections: List[SectionPayload]
    status: str


class RewriteRequest(BaseModel):
    """Body of POST /api/ai/edit."""
    model_config = ConfigDict(populate_by_name=True)

    intent: str
    text: str
    section_id: str = Field(..., alias="sectionId")
    kind: str


class RewriteResponse(BaseModel):
    html: str = ""


# ===== Shared HTTP plumbing =====

class _ApiClient:
    """Owns (or borrows) an httpx.AsyncClient configured for the competence-file API."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_token: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = (base_url or Config.COMPETENCE_API_URL).rstrip("/")
        self.api_token = api_token if api_token is not None else Config.COMPETENCE_API_TOKEN
        self.timeout = timeout or Config.REQUEST_TIMEOUT_SECONDS
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=self.timeout)

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_token:
            headers["Authorization"] = f"Bearer {self.api_token}"
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        payload: Dict[str, Any],
        error_cls: type,
        operation: str,
    ) -> httpx.Response:
        try:
            response = await self._client.request(
                method, f"{self.base_url}{path}", json=payload, headers=self._headers()
            )
            response.raise_for_status()
            return response
        except httpx.TimeoutException as e:
            logger.error(f"{operation} timed out")
            raise error_cls(f"{operation} timed out") from e
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            try:
                detail = e.response.json().get("error", str(e))
            except Exception:
                detail = e.response.text or str(e)
            logger.error(f"{operation} returned {status}: {detail}")
            raise error_cls(f"{operation} failed ({status}): {detail}", status_code=status) from e
        except httpx.RequestError as e:
            logger.error(f"{operation} connection failed: {e}")
            raise error_cls(f"{operation} unavailable: {e}") from e

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()
        return False


# ===== Collaborators =====

class CompetenceFileStore(_ApiClient):
    """
    Persistence store for competence-file sections.

    Overwrite semantics: each save replaces the stored section list.
    """

    async def save(
        self,
        document_id: str,
        sections: List[ExportedSection],
        status: str,
    ) -> None:
        """
        Persist the section list.

        Raises:
            PersistenceError: On timeout, transport error or non-2xx response
        """
        body = CompetenceFileUpdate(
            sections=[SectionPayload.from_exported(section) for section in sections],
            status=status,
        )
        await self._request(
            "PUT",
            f"/api/competence-files/{quote(document_id, safe='')}",
            body.model_dump(by_alias=True),
            PersistenceError,
            "Competence-file save",
        )
        logger.debug(f"Saved {len(sections)} sections for {document_id}")


class AIRewriteClient(_ApiClient):
    """AI rewrite collaborator returning a proposed HTML fragment."""

    async def rewrite(self, intent: str, text: str, section_id: str, kind: str) -> Dict[str, Any]:
        """
        Request a rewrite of a section's text.

        Returns:
            {"html": <proposed fragment>} (unsanitized; the editor sanitizes it)

        Raises:
            RewriteError: On timeout, transport error, non-2xx or malformed response
        """
        body = RewriteRequest(intent=intent, text=text, section_id=section_id, kind=kind)
        response = await self._request(
            "POST",
            "/api/ai/edit",
            body.model_dump(by_alias=True),
            RewriteError,
            "AI rewrite",
        )
        try:
            parsed = RewriteResponse.model_validate(response.json())
        except ValueError as e:
            raise RewriteError(f"AI rewrite returned an invalid response: {e}") from e
        return {"html": parsed.html}
