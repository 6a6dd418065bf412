"""Shared pytest fixtures for the AllKnower test suite."""

from __future__ import annotations

import hashlib
import itertools
import math
import re
from pathlib import Path
from typing import Any, Literal
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio

from allknower.config.settings import Settings
from allknower.interfaces.document_store import IDocumentStore
from allknower.interfaces.embedding_provider import IEmbeddingProvider
from allknower.interfaces.llm_provider import GenerationResult, ILLMProvider
from allknower.models.documents import Attribute, CreateNoteParams, Note
from allknower.models.rag import IndexHealth
from allknower.providers.history.sqlite_history_provider import SQLiteHistoryProvider
from allknower.utils.errors import DocumentStoreError

_EMBEDDING_DIM = 64
_WORD_RE = re.compile(r"[a-z0-9']+")


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


def make_settings(**overrides: Any) -> Settings:
    """Settings isolated from any ``.env`` in the working directory."""
    return Settings(_env_file=None, **overrides)


@pytest.fixture
def settings_factory():
    """Return :func:`make_settings` for tests that need custom overrides."""
    return make_settings


@pytest.fixture
def settings() -> Settings:
    return make_settings(openrouter_api_key="sk-or-test")


# ---------------------------------------------------------------------------
# Embeddings
# ---------------------------------------------------------------------------


def _hash_to_vector(text: str, dim: int = _EMBEDDING_DIM) -> list[float]:
    """Bag-of-words hashing: texts sharing words point the same way."""
    vector = [0.0] * dim
    for word in _WORD_RE.findall(text.lower()):
        bucket = int(hashlib.md5(word.encode()).hexdigest(), 16) % dim
        vector[bucket] += 1.0
    norm = math.sqrt(sum(v * v for v in vector))
    if norm == 0:
        return [1.0 / math.sqrt(dim)] * dim
    return [v / norm for v in vector]


class HashEmbeddingProvider(IEmbeddingProvider):
    """Deterministic offline embedder for vector index tests."""

    def __init__(self, dim: int = _EMBEDDING_DIM) -> None:
        self._dim = dim
        self.calls = 0

    async def embed(self, text: str) -> list[float]:
        self.calls += 1
        return _hash_to_vector(text, self._dim)

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        return [await self.embed(t) for t in texts]

    def get_dimension(self) -> int:
        return self._dim

    def get_provider_name(self) -> str:
        return "hash"

    def get_model_name(self) -> str:
        return "hash-64"


@pytest.fixture
def hash_embedder() -> HashEmbeddingProvider:
    return HashEmbeddingProvider()


# ---------------------------------------------------------------------------
# Generation
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_llm_provider() -> ILLMProvider:
    """LLM provider mock answering with an empty brain dump."""
    mock = MagicMock(spec=ILLMProvider)
    mock.get_provider_name.return_value = "mock-llm"
    mock.generate = AsyncMock(
        return_value=GenerationResult(
            text='{"entities": [], "summary": "Nothing to add."}',
            tokens_used=42,
            serving_model="x-ai/grok-4.1-fast",
        )
    )
    return mock


# ---------------------------------------------------------------------------
# Document store
# ---------------------------------------------------------------------------


class FakeDocumentStore(IDocumentStore):
    """In-memory stand-in for the AllCodex ETAPI.

    ``fail_titles`` makes ``create`` raise for those titles.  Template
    relations to notes that do not exist are rejected, like the real
    server does for dangling relation targets.
    """

    def __init__(self) -> None:
        self.notes: dict[str, Note] = {}
        self.contents: dict[str, str] = {}
        self.attributes: list[Attribute] = []
        self.fail_titles: set[str] = set()
        self.healthy = True
        self._ids = itertools.count(1)

    # -- helpers for assertions --

    def labels_of(self, note_id: str) -> dict[str, str]:
        return {a.name: a.value for a in self.attributes if a.note_id == note_id and a.type == "label"}

    def relations_of(self, note_id: str) -> dict[str, str]:
        return {a.name: a.value for a in self.attributes if a.note_id == note_id and a.type == "relation"}

    def add_note(self, note_id: str, title: str, content: str = "", **labels: str) -> Note:
        note = Note(note_id=note_id, title=title)
        self.notes[note_id] = note
        self.contents[note_id] = content
        for name, value in labels.items():
            self.attributes.append(Attribute(note_id=note_id, type="label", name=name, value=value))
        return note

    def _with_attributes(self, note: Note) -> Note:
        attrs = [a for a in self.attributes if a.note_id == note.note_id]
        return note.model_copy(update={"attributes": attrs})

    # -- IDocumentStore --

    async def search(self, query: str) -> list[Note]:
        ids = re.findall(r"#noteId=(\S+)", query)
        if ids:
            found = [self.notes[i] for i in ids if i in self.notes]
        else:
            label = query.lstrip("#")
            found = [n for n in self.notes.values() if label in self.labels_of(n.note_id)]
        return [self._with_attributes(n) for n in found]

    async def get(self, note_id: str) -> Note:
        if note_id not in self.notes:
            raise DocumentStoreError(f"ETAPI GET /notes/{note_id} -> 404: not found", status_code=404)
        return self._with_attributes(self.notes[note_id])

    async def get_content(self, note_id: str) -> str:
        if note_id not in self.contents:
            raise DocumentStoreError(f"ETAPI GET /notes/{note_id}/content -> 404", status_code=404)
        return self.contents[note_id]

    async def create(self, params: CreateNoteParams) -> Note:
        if params.title in self.fail_titles:
            raise DocumentStoreError("ETAPI POST /create-note -> 500: boom", status_code=500)
        note_id = params.note_id or f"note{next(self._ids)}"
        if note_id in self.notes:
            raise DocumentStoreError(
                f"ETAPI POST /create-note -> 400: Note '{note_id}' already exists",
                status_code=400,
            )
        note = Note(note_id=note_id, title=params.title, parent_note_ids=[params.parent_note_id])
        self.notes[note_id] = note
        self.contents[note_id] = params.content
        return note

    async def update(self, note_id: str, patch: dict[str, Any]) -> Note:
        if note_id not in self.notes:
            raise DocumentStoreError(f"ETAPI PATCH /notes/{note_id} -> 404", status_code=404)
        note = self.notes[note_id].model_copy(update=patch)
        self.notes[note_id] = note
        return note

    async def set_content(self, note_id: str, content: str) -> None:
        if note_id not in self.notes:
            raise DocumentStoreError(f"ETAPI PUT /notes/{note_id}/content -> 404", status_code=404)
        self.contents[note_id] = content

    async def create_attribute(
        self,
        note_id: str,
        kind: Literal["label", "relation"],
        name: str,
        value: str = "",
        inheritable: bool = False,
    ) -> Attribute:
        if note_id not in self.notes:
            raise DocumentStoreError("ETAPI POST /attributes -> 404", status_code=404)
        if kind == "relation" and value not in self.notes:
            raise DocumentStoreError(
                f"ETAPI POST /attributes -> 404: target note '{value}' not found",
                status_code=404,
            )
        attr = Attribute(
            attribute_id=f"attr{len(self.attributes) + 1}",
            note_id=note_id,
            type=kind,
            name=name,
            value=value,
            is_inheritable=inheritable,
        )
        self.attributes.append(attr)
        return attr

    async def health_check(self) -> IndexHealth:
        return IndexHealth(ok=self.healthy, error=None if self.healthy else "unreachable")


@pytest.fixture
def document_store() -> FakeDocumentStore:
    return FakeDocumentStore()


# ---------------------------------------------------------------------------
# History store
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def history(tmp_path: Path) -> SQLiteHistoryProvider:
    """Initialized SQLite history store in a temp directory."""
    provider = SQLiteHistoryProvider(db_path=tmp_path / "allknower.db")
    await provider.initialize()
    return provider
