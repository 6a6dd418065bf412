"""AllCodex ETAPI client.

Implements :class:`IDocumentStore` over AllCodex's (Trilium) REST API at
``{ALLCODEX_URL}/etapi``.  Authentication is the raw ETAPI token in the
``Authorization`` header.  The ``httpx.AsyncClient`` is injected so tests
can supply a ``MockTransport`` and the composition root can share one
connection pool.
"""

from __future__ import annotations

from typing import Any, Literal

import httpx
import structlog

from allknower.interfaces.document_store import IDocumentStore
from allknower.models.documents import Attribute, CreateNoteParams, Note
from allknower.models.rag import IndexHealth
from allknower.utils.errors import DocumentStoreError

logger = structlog.get_logger(logger_name=__name__)


class ETAPIClient(IDocumentStore):
    """Async ETAPI client.

    Every non-2xx response raises :class:`DocumentStoreError` with the
    method, path, status and response body, e.g.
    ``ETAPI POST /create-note -> 400: {...}``.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        base_url: str,
        token: str,
    ) -> None:
        self._http = http_client
        self._base_url = f"{base_url.rstrip('/')}/etapi"
        self._headers = {"Authorization": token}

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
        content: str | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        try:
            response = await self._http.request(
                method,
                f"{self._base_url}{path}",
                params=params,
                json=json,
                content=content,
                headers={**self._headers, **(headers or {})},
            )
        except httpx.HTTPError as exc:
            raise DocumentStoreError(
                message=f"ETAPI {method} {path} failed: {exc}",
            ) from exc

        if response.is_error:
            raise DocumentStoreError(
                message=f"ETAPI {method} {path} -> {response.status_code}: {response.text}",
                status_code=response.status_code,
            )
        return response

    # ------------------------------------------------------------------
    # Notes
    # ------------------------------------------------------------------

    async def search(self, query: str) -> list[Note]:
        response = await self._request("GET", "/notes", params={"search": query})
        results = response.json().get("results", [])
        return [Note.model_validate(item) for item in results]

    async def get(self, note_id: str) -> Note:
        response = await self._request("GET", f"/notes/{note_id}")
        return Note.model_validate(response.json())

    async def get_content(self, note_id: str) -> str:
        response = await self._request("GET", f"/notes/{note_id}/content")
        return response.text

    async def create(self, params: CreateNoteParams) -> Note:
        # ETAPI answers with {"note": {...}, "branch": {...}}.
        response = await self._request(
            "POST",
            "/create-note",
            json=params.model_dump(by_alias=True, exclude_none=True),
        )
        note = Note.model_validate(response.json()["note"])
        logger.info("etapi_note_created", note_id=note.note_id, title=note.title)
        return note

    async def update(self, note_id: str, patch: dict[str, Any]) -> Note:
        response = await self._request("PATCH", f"/notes/{note_id}", json=patch)
        return Note.model_validate(response.json())

    async def set_content(self, note_id: str, content: str) -> None:
        await self._request(
            "PUT",
            f"/notes/{note_id}/content",
            content=content,
            headers={"Content-Type": "text/html"},
        )

    # ------------------------------------------------------------------
    # Attributes
    # ------------------------------------------------------------------

    async def create_attribute(
        self,
        note_id: str,
        kind: Literal["label", "relation"],
        name: str,
        value: str = "",
        inheritable: bool = False,
    ) -> Attribute:
        response = await self._request(
            "POST",
            "/attributes",
            json={
                "noteId": note_id,
                "type": kind,
                "name": name,
                "value": value,
                "isInheritable": inheritable,
            },
        )
        return Attribute.model_validate(response.json())

    # ------------------------------------------------------------------
    # Health
    # ------------------------------------------------------------------

    async def health_check(self) -> IndexHealth:
        try:
            response = await self._request("GET", "/app-info")
            version = response.json().get("appVersion")
        except (DocumentStoreError, ValueError) as exc:
            return IndexHealth(ok=False, error=str(exc))
        logger.debug("etapi_health", app_version=version)
        return IndexHealth(ok=True)
