"""Abstract base class for the external note store (AllCodex ETAPI).

Search queries use the store's own grammar (``#lore``, ``#noteId=abc``)
and are passed through as opaque strings.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Literal

from allknower.models.documents import Attribute, CreateNoteParams, Note
from allknower.models.rag import IndexHealth


# Concrete implementation: ETAPIClient
# Located in: allknower/providers/document_store/
class IDocumentStore(ABC):
    """Contract for every note read and write the core performs.

    All methods raise :class:`allknower.utils.errors.DocumentStoreError`
    on failure unless stated otherwise.
    """

    @abstractmethod
    async def search(self, query: str) -> list[Note]:
        """Return notes matching a search-grammar query."""

    @abstractmethod
    async def get(self, note_id: str) -> Note:
        """Return note metadata (title, type, attributes)."""

    @abstractmethod
    async def get_content(self, note_id: str) -> str:
        """Return the note body (HTML for text notes)."""

    @abstractmethod
    async def create(self, params: CreateNoteParams) -> Note:
        """Create a note and return it."""

    @abstractmethod
    async def update(self, note_id: str, patch: dict[str, Any]) -> Note:
        """Patch note metadata, e.g. ``{"title": "New"}``."""

    @abstractmethod
    async def set_content(self, note_id: str, content: str) -> None:
        """Replace the note body."""

    @abstractmethod
    async def create_attribute(
        self,
        note_id: str,
        kind: Literal["label", "relation"],
        name: str,
        value: str = "",
        inheritable: bool = False,
    ) -> Attribute:
        """Attach a label or relation to a note."""

    async def tag(self, note_id: str, name: str, value: str = "") -> Attribute:
        """Attach a label.  Convenience over :meth:`create_attribute`."""
        return await self.create_attribute(note_id, "label", name, value)

    async def set_template(self, note_id: str, template_note_id: str) -> Attribute:
        """Link *note_id* to a template note through a ``template`` relation."""
        return await self.create_attribute(note_id, "relation", "template", template_note_id)

    @abstractmethod
    async def health_check(self) -> IndexHealth:
        """Report store reachability.  Never raises."""
