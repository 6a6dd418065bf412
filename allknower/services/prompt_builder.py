"""Prompt construction for the brain-dump pipeline.

The system message is a constant instruction block (schema, constraints
and output contract) that is byte-identical across calls, which lets the
backend cache it.  Everything that varies (retrieved context and the raw
notes) goes in the user message.
"""

from __future__ import annotations

from allknower.interfaces.llm_provider import ChatMessage
from allknower.models.rag import RagChunk

NO_CONTEXT = "No existing lore found. This appears to be new content."

BRAIN_DUMP_SYSTEM_PROMPT = """\
You are the lore architect for a fantasy world called All Reach.
Your job is to parse raw worldbuilding notes and extract structured lore entities.

## Output Format
Return a JSON object with this exact shape:
{
  "entities": [
    {
      "type": "character" | "location" | "faction" | "creature" | "event" | "timeline" | "manuscript" | "statblock",
      "title": "Entity name",
      "content": "<p>HTML content for the note body: narrative description, backstory, etc.</p>",
      "tags": ["tag1", "tag2"],
      "attributes": {
        // Type-specific fields. Only include fields that are explicitly mentioned.
        // character: fullName, aliases[], age, race, gender, affiliation, role, status (alive|dead|unknown), secrets, physicalDescription, personality, backstory, goals
        // location: locationType, region, population, ruler, history, notableLandmarks, secrets, connectedLocations[]
        // faction: factionType, foundingDate, leader, goals, members[], allies[], enemies[], secrets, hierarchy
        // creature: creatureType, habitat, diet, abilities, lore, dangerLevel, ac, hp, speed, str, dex, con, int, wis, cha (integers 1-30), cr
        // event: inWorldDate, participants[], location, outcome, consequences, secrets
        // timeline: startDate, endDate, events[]
        // manuscript: wordCount (integer), status (draft|in-progress|complete)
        // statblock: system, abilities, actions, legendaryActions, ac, hp, speed, str, dex, con, int, wis, cha (integers 1-30), cr
      },
      "action": "create" | "update",
      "existingNoteId": "noteId if updating an existing note, omit if creating"
    }
  ],
  "summary": "One paragraph describing what was extracted and any notable decisions made."
}

## Constraints
- NEVER invent details not present in the raw text
- NEVER contradict existing lore shown in the context
- If the raw text mentions an entity that already exists in the context, set action to "update" and include its existingNoteId
- If you are unsure about a detail, omit that field rather than guessing
- Secrets (sensitive plot info) go in the "secrets" attribute, not in the main content
- Return ONLY valid JSON: no markdown fences, no explanation outside the JSON
"""

_USER_TEMPLATE = """\
## Existing Lore Context
The following lore already exists in the grimoire. Use it to avoid contradictions and identify updates:

{context}

## Raw Notes
Parse the following worldbuilding notes into structured lore entities:

{raw_text}"""


def format_context(chunks: list[RagChunk]) -> str:
    """Render retrieved chunks as ``### title (id)`` sections."""
    if not chunks:
        return NO_CONTEXT
    return "\n\n".join(
        f"### {chunk.document_title} (noteId: {chunk.document_id})\n{chunk.content}"
        for chunk in chunks
    )


def build_brain_dump_messages(raw_text: str, context: list[RagChunk]) -> list[ChatMessage]:
    """Return ``[system, user]`` messages for one brain-dump call."""
    return [
        ChatMessage(role="system", content=BRAIN_DUMP_SYSTEM_PROMPT),
        ChatMessage(
            role="user",
            content=_USER_TEMPLATE.format(context=format_context(context), raw_text=raw_text),
        ),
    ]
