"""Lore entity models: the tagged union the brain-dump model must emit.

Each entity kind carries its own attribute model and nothing else.  The
union is discriminated on ``type`` so pydantic selects the variant from the
discriminant alone and reports errors against that variant only.

Attribute and entity fields are snake_case in Python and camelCase on the
wire (``fullName``, ``existingNoteId``) to match the JSON the model is
prompted to produce and the label names written to the document store.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, model_validator
from pydantic.alias_generators import to_camel

LoreType = Literal[
    "character",
    "location",
    "faction",
    "creature",
    "event",
    "timeline",
    "manuscript",
    "statblock",
]

LORE_TYPES: tuple[str, ...] = (
    "character",
    "location",
    "faction",
    "creature",
    "event",
    "timeline",
    "manuscript",
    "statblock",
)

# Template note ids seeded in the document store, one per kind.
TEMPLATE_ID_MAP: dict[str, str] = {kind: f"_template_lore_{kind}" for kind in LORE_TYPES}

_AbilityScore = Annotated[int, Field(ge=1, le=30)]


# ---------------------------------------------------------------------------
# Per-kind attribute models
# ---------------------------------------------------------------------------

class _Attributes(BaseModel):
    """Shared config: camelCase aliases, unknown names rejected."""

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        alias_generator=to_camel,
        populate_by_name=True,
        coerce_numbers_to_str=True,
    )

    def as_labels(self) -> dict[str, str]:
        """Return non-empty attributes keyed by wire name, lists joined with ", "."""
        labels: dict[str, str] = {}
        for name, value in self.model_dump(by_alias=True, exclude_none=True).items():
            if isinstance(value, list):
                value = ", ".join(str(v) for v in value)
            else:
                value = str(value)
            if value.strip():
                labels[name] = value
        return labels


class CharacterAttributes(_Attributes):
    full_name: str | None = None
    aliases: list[str] | None = None
    age: str | None = None
    race: str | None = None
    gender: str | None = None
    affiliation: str | None = None
    role: str | None = None
    status: Literal["alive", "dead", "unknown"] | None = None
    secrets: str | None = None
    physical_description: str | None = None
    personality: str | None = None
    backstory: str | None = None
    goals: str | None = None


class LocationAttributes(_Attributes):
    location_type: str | None = None
    region: str | None = None
    population: str | None = None
    ruler: str | None = None
    history: str | None = None
    notable_landmarks: str | None = None
    secrets: str | None = None
    connected_locations: list[str] | None = None


class FactionAttributes(_Attributes):
    faction_type: str | None = None
    founding_date: str | None = None
    leader: str | None = None
    goals: str | None = None
    members: list[str] | None = None
    allies: list[str] | None = None
    enemies: list[str] | None = None
    secrets: str | None = None
    hierarchy: str | None = None


class _StatblockFields(_Attributes):
    # Python names avoid shadowing builtins; aliases keep the wire names.
    ac: str | None = None
    hp: str | None = None
    speed: str | None = None
    strength: _AbilityScore | None = Field(default=None, alias="str")
    dexterity: _AbilityScore | None = Field(default=None, alias="dex")
    constitution: _AbilityScore | None = Field(default=None, alias="con")
    intelligence: _AbilityScore | None = Field(default=None, alias="int")
    wisdom: _AbilityScore | None = Field(default=None, alias="wis")
    charisma: _AbilityScore | None = Field(default=None, alias="cha")
    cr: str | None = None


class CreatureAttributes(_StatblockFields):
    creature_type: str | None = None
    habitat: str | None = None
    diet: str | None = None
    abilities: str | None = None
    lore: str | None = None
    danger_level: str | None = None


class EventAttributes(_Attributes):
    in_world_date: str | None = None
    participants: list[str] | None = None
    location: str | None = None
    outcome: str | None = None
    consequences: str | None = None
    secrets: str | None = None


class TimelineAttributes(_Attributes):
    start_date: str | None = None
    end_date: str | None = None
    events: list[str] | None = None


class ManuscriptAttributes(_Attributes):
    word_count: int | None = Field(default=None, ge=0)
    status: Literal["draft", "in-progress", "complete"] | None = None


class StatblockAttributes(_StatblockFields):
    system: str | None = None
    abilities: str | None = None
    actions: str | None = None
    legendary_actions: str | None = None


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------

class _LoreEntityBase(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    title: str = Field(min_length=1)
    content: str | None = None
    tags: list[str] | None = None
    parent_note_id: str | None = None
    action: Literal["create", "update"]
    existing_note_id: str | None = None

    @model_validator(mode="after")
    def _update_needs_target(self) -> Any:
        if self.action == "update" and not self.existing_note_id:
            raise ValueError("existingNoteId is required when action is 'update'")
        return self


class CharacterEntity(_LoreEntityBase):
    type: Literal["character"]
    attributes: CharacterAttributes = Field(default_factory=CharacterAttributes)


class LocationEntity(_LoreEntityBase):
    type: Literal["location"]
    attributes: LocationAttributes = Field(default_factory=LocationAttributes)


class FactionEntity(_LoreEntityBase):
    type: Literal["faction"]
    attributes: FactionAttributes = Field(default_factory=FactionAttributes)


class CreatureEntity(_LoreEntityBase):
    type: Literal["creature"]
    attributes: CreatureAttributes = Field(default_factory=CreatureAttributes)


class EventEntity(_LoreEntityBase):
    type: Literal["event"]
    attributes: EventAttributes = Field(default_factory=EventAttributes)


class TimelineEntity(_LoreEntityBase):
    type: Literal["timeline"]
    attributes: TimelineAttributes = Field(default_factory=TimelineAttributes)


class ManuscriptEntity(_LoreEntityBase):
    type: Literal["manuscript"]
    attributes: ManuscriptAttributes = Field(default_factory=ManuscriptAttributes)


class StatblockEntity(_LoreEntityBase):
    type: Literal["statblock"]
    attributes: StatblockAttributes = Field(default_factory=StatblockAttributes)


LoreEntity = Annotated[
    Union[
        CharacterEntity,
        LocationEntity,
        FactionEntity,
        CreatureEntity,
        EventEntity,
        TimelineEntity,
        ManuscriptEntity,
        StatblockEntity,
    ],
    Field(discriminator="type"),
]

LORE_ENTITY_ADAPTER: TypeAdapter[LoreEntity] = TypeAdapter(LoreEntity)


class ParsedBrainDump(BaseModel):
    """The validated model response: entities in emitted order plus a summary."""

    model_config = ConfigDict(frozen=True)

    entities: list[LoreEntity]
    summary: str


# ---------------------------------------------------------------------------
# Pipeline result
# ---------------------------------------------------------------------------

class EntityRef(BaseModel):
    """A document created or updated by the pipeline."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    type: str


class SkippedEntity(BaseModel):
    """An entity whose create/update sequence raised."""

    model_config = ConfigDict(frozen=True)

    title: str
    reason: str


class BrainDumpResult(BaseModel):
    """Outcome of one brain-dump run.

    ``reindex_ids`` lists every created and updated document id, in
    processing order, for the caller to hand to the reindex runner.
    """

    model_config = ConfigDict(frozen=True)

    summary: str
    created: list[EntityRef] = Field(default_factory=list)
    updated: list[EntityRef] = Field(default_factory=list)
    skipped: list[SkippedEntity] = Field(default_factory=list)
    reindex_ids: list[str] = Field(default_factory=list)
    model: str = ""
    tokens_used: int = Field(default=0, ge=0)
