"""Document-store (AllCodex ETAPI) data models.

ETAPI responds in camelCase; fields are validated through aliases and
unknown keys are ignored so server upgrades do not break parsing.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Attribute(BaseModel):
    """A label or relation attached to a note."""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    attribute_id: str | None = None
    note_id: str | None = None
    type: Literal["label", "relation"]
    name: str
    value: str = ""
    is_inheritable: bool = False


class Note(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    note_id: str
    title: str = ""
    type: str = "text"
    mime: str | None = None
    parent_note_ids: list[str] = Field(default_factory=list)
    attributes: list[Attribute] = Field(default_factory=list)
    date_created: str | None = None
    date_modified: str | None = None

    def label(self, name: str) -> str | None:
        """Return the value of the first label called *name*, if any."""
        for attr in self.attributes:
            if attr.type == "label" and attr.name == name:
                return attr.value
        return None


class CreateNoteParams(BaseModel):
    """Body of ``POST /create-note``."""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    parent_note_id: str
    title: str
    type: str = "text"
    content: str = ""
    note_id: str | None = None


class HistoryRecord(BaseModel):
    """A persisted brain-dump run."""

    model_config = ConfigDict(frozen=True)

    id: int
    raw_text: str
    parsed_json: dict
    notes_created: list[str] = Field(default_factory=list)
    notes_updated: list[str] = Field(default_factory=list)
    model: str
    tokens_used: int = 0
    created_at: str
