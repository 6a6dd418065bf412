"""Unit tests for brain-dump prompt assembly."""

from __future__ import annotations

from allknower.models.rag import RagChunk
from allknower.services.prompt_builder import (
    BRAIN_DUMP_SYSTEM_PROMPT,
    NO_CONTEXT,
    build_brain_dump_messages,
    format_context,
)


def _chunk(doc_id: str, title: str, content: str) -> RagChunk:
    return RagChunk(document_id=doc_id, document_title=title, content=content, score=0.8)


class TestFormatContext:
    def test_no_chunks(self) -> None:
        assert format_context([]) == NO_CONTEXT

    def test_chunks_rendered_with_ids(self) -> None:
        rendered = format_context([_chunk("n1", "Port Eldra", "A harbour city.")])
        assert "Port Eldra" in rendered
        assert "n1" in rendered
        assert "A harbour city." in rendered


class TestBuildMessages:
    def test_two_messages_system_first(self) -> None:
        messages = build_brain_dump_messages("Kira is a smuggler.", [])
        assert [m.role for m in messages] == ["system", "user"]
        assert messages[0].content == BRAIN_DUMP_SYSTEM_PROMPT

    def test_system_prompt_is_static(self) -> None:
        a = build_brain_dump_messages("one", [_chunk("n1", "A", "x")])
        b = build_brain_dump_messages("two", [])
        assert a[0].content == b[0].content

    def test_user_message_carries_context_and_raw_text(self) -> None:
        messages = build_brain_dump_messages("Kira is a smuggler.", [_chunk("n1", "Port Eldra", "Harbour.")])
        user = messages[1].content
        assert "Port Eldra" in user
        assert user.rstrip().endswith("Kira is a smuggler.")
