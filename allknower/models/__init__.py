"""AllKnower domain models, re-exported for ``from allknower.models import ...``.

    - lore.py       -- the lore entity tagged union and brain-dump results
    - rag.py        -- retrieved chunks, index health and bookkeeping rows
    - documents.py  -- document-store notes/attributes and history records
    - insights.py   -- consistency, relationship and gap reports
"""

from __future__ import annotations

from allknower.models.documents import Attribute, CreateNoteParams, HistoryRecord, Note
from allknower.models.insights import (
    ConsistencyIssue,
    ConsistencyReport,
    GapReport,
    LoreGap,
    RelationshipSuggestion,
    TemplateSeedResult,
)
from allknower.models.lore import (
    LORE_ENTITY_ADAPTER,
    LORE_TYPES,
    TEMPLATE_ID_MAP,
    BrainDumpResult,
    CharacterAttributes,
    CharacterEntity,
    CreatureAttributes,
    CreatureEntity,
    EntityRef,
    EventAttributes,
    EventEntity,
    FactionAttributes,
    FactionEntity,
    LocationAttributes,
    LocationEntity,
    LoreEntity,
    ManuscriptAttributes,
    ManuscriptEntity,
    ParsedBrainDump,
    SkippedEntity,
    StatblockAttributes,
    StatblockEntity,
    TimelineAttributes,
    TimelineEntity,
)
from allknower.models.rag import (
    HealthReport,
    IndexHealth,
    IndexMetadata,
    IndexStatus,
    RagChunk,
    ReindexSummary,
)

__all__ = [
    "Attribute",
    "BrainDumpResult",
    "CharacterAttributes",
    "CharacterEntity",
    "ConsistencyIssue",
    "ConsistencyReport",
    "CreateNoteParams",
    "CreatureAttributes",
    "CreatureEntity",
    "EntityRef",
    "EventAttributes",
    "EventEntity",
    "FactionAttributes",
    "FactionEntity",
    "GapReport",
    "HealthReport",
    "HistoryRecord",
    "IndexHealth",
    "IndexMetadata",
    "IndexStatus",
    "LORE_ENTITY_ADAPTER",
    "LORE_TYPES",
    "LocationAttributes",
    "LocationEntity",
    "LoreEntity",
    "LoreGap",
    "ManuscriptAttributes",
    "ManuscriptEntity",
    "Note",
    "ParsedBrainDump",
    "RagChunk",
    "ReindexSummary",
    "RelationshipSuggestion",
    "SkippedEntity",
    "StatblockAttributes",
    "StatblockEntity",
    "TEMPLATE_ID_MAP",
    "TemplateSeedResult",
    "TimelineAttributes",
    "TimelineEntity",
]
