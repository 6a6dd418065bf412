"""Unit tests for lore entity models and result types."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from allknower.models.lore import (
    LORE_ENTITY_ADAPTER,
    LORE_TYPES,
    TEMPLATE_ID_MAP,
    BrainDumpResult,
    CharacterEntity,
    CreatureEntity,
    ManuscriptEntity,
    StatblockAttributes,
)
from allknower.models.rag import RagChunk


class TestTaggedUnion:
    def test_discriminator_selects_variant(self) -> None:
        entity = LORE_ENTITY_ADAPTER.validate_python(
            {
                "type": "character",
                "title": "Kira",
                "action": "create",
                "attributes": {"fullName": "Kira Voss", "race": "human"},
            }
        )
        assert isinstance(entity, CharacterEntity)
        assert entity.attributes.full_name == "Kira Voss"

    def test_unknown_type_rejected(self) -> None:
        with pytest.raises(ValidationError):
            LORE_ENTITY_ADAPTER.validate_python({"type": "spell", "title": "Fireball", "action": "create"})

    def test_empty_title_rejected(self) -> None:
        with pytest.raises(ValidationError):
            LORE_ENTITY_ADAPTER.validate_python({"type": "location", "title": "", "action": "create"})

    def test_unknown_attribute_rejected(self) -> None:
        with pytest.raises(ValidationError):
            LORE_ENTITY_ADAPTER.validate_python(
                {"type": "location", "title": "Port Eldra", "action": "create", "attributes": {"mood": "grim"}}
            )

    def test_attribute_of_other_kind_rejected(self) -> None:
        # fullName belongs to characters only.
        with pytest.raises(ValidationError):
            LORE_ENTITY_ADAPTER.validate_python(
                {"type": "faction", "title": "Tide Guild", "action": "create", "attributes": {"fullName": "x"}}
            )

    def test_update_requires_existing_note_id(self) -> None:
        with pytest.raises(ValidationError):
            LORE_ENTITY_ADAPTER.validate_python({"type": "event", "title": "The Drowning", "action": "update"})

    def test_update_with_existing_note_id(self) -> None:
        entity = LORE_ENTITY_ADAPTER.validate_python(
            {"type": "event", "title": "The Drowning", "action": "update", "existingNoteId": "abc123"}
        )
        assert entity.existing_note_id == "abc123"

    def test_attributes_default_empty(self) -> None:
        entity = LORE_ENTITY_ADAPTER.validate_python({"type": "timeline", "title": "Age of Salt", "action": "create"})
        assert entity.attributes.as_labels() == {}

    def test_entities_are_frozen(self) -> None:
        entity = LORE_ENTITY_ADAPTER.validate_python({"type": "timeline", "title": "Age of Salt", "action": "create"})
        with pytest.raises(ValidationError):
            entity.title = "Age of Ash"  # type: ignore[misc]


class TestAttributes:
    def test_character_status_enum(self) -> None:
        with pytest.raises(ValidationError):
            LORE_ENTITY_ADAPTER.validate_python(
                {"type": "character", "title": "Kira", "action": "create", "attributes": {"status": "missing"}}
            )

    def test_ability_scores_use_short_names(self) -> None:
        attrs = StatblockAttributes.model_validate({"str": 18, "dex": 12, "cha": 8})
        assert attrs.strength == 18
        assert attrs.as_labels() == {"str": "18", "dex": "12", "cha": "8"}

    @pytest.mark.parametrize("score", [0, 31])
    def test_ability_score_bounds(self, score: int) -> None:
        with pytest.raises(ValidationError):
            CreatureEntity.model_validate(
                {"type": "creature", "title": "Reef Wyrm", "action": "create", "attributes": {"str": score}}
            )

    def test_manuscript_word_count_not_negative(self) -> None:
        with pytest.raises(ValidationError):
            ManuscriptEntity.model_validate(
                {"type": "manuscript", "title": "Draft", "action": "create", "attributes": {"wordCount": -1}}
            )

    def test_as_labels_joins_lists_and_drops_empty(self) -> None:
        entity = LORE_ENTITY_ADAPTER.validate_python(
            {
                "type": "faction",
                "title": "Tide Guild",
                "action": "create",
                "attributes": {"members": ["Kira", "Orrin"], "leader": "", "goals": "Control the harbour"},
            }
        )
        assert entity.attributes.as_labels() == {"members": "Kira, Orrin", "goals": "Control the harbour"}

    def test_numbers_coerced_to_text_fields(self) -> None:
        entity = LORE_ENTITY_ADAPTER.validate_python(
            {"type": "character", "title": "Kira", "action": "create", "attributes": {"age": 27}}
        )
        assert entity.attributes.age == "27"


class TestConstants:
    def test_template_map_covers_every_kind(self) -> None:
        assert set(TEMPLATE_ID_MAP) == set(LORE_TYPES)
        assert TEMPLATE_ID_MAP["character"] == "_template_lore_character"


class TestResultModels:
    def test_brain_dump_result_defaults(self) -> None:
        result = BrainDumpResult(summary="ok")
        assert result.created == [] and result.updated == [] and result.skipped == []
        assert result.reindex_ids == []

    @pytest.mark.parametrize("score", [-0.1, 1.1])
    def test_rag_chunk_score_bounds(self, score: float) -> None:
        with pytest.raises(ValidationError):
            RagChunk(document_id="a", document_title="A", content="x", score=score)
