"""Results of the lore intelligence tasks (consistency, suggestions, gaps)."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _Insight(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class ConsistencyIssue(_Insight):
    type: Literal["contradiction", "timeline", "orphan", "naming"]
    severity: Literal["high", "medium", "low"]
    description: str
    affected_note_ids: list[str] = Field(default_factory=list)


class ConsistencyReport(_Insight):
    issues: list[ConsistencyIssue] = Field(default_factory=list)
    summary: str = ""


class RelationshipSuggestion(_Insight):
    target_note_id: str
    target_title: str = ""
    relationship_type: str = "other"
    description: str = ""


class LoreGap(_Insight):
    area: str
    severity: Literal["high", "medium", "low"] = "medium"
    description: str = ""
    suggestion: str = ""


class GapReport(_Insight):
    gaps: list[LoreGap] = Field(default_factory=list)
    summary: str = ""
    type_counts: dict[str, int] = Field(default_factory=dict)
    total_notes: int = Field(default=0, ge=0)


class TemplateSeedResult(_Insight):
    type: str
    note_id: str
    status: Literal["created", "already_exists", "error"]
    error: str | None = None
