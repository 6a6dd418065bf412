"""Seeds the per-kind lore template notes in the document store.

Templates are created under a fixed container note with the ids from
:data:`~allknower.models.lore.TEMPLATE_ID_MAP`, so the brain-dump pipeline
can link new notes to them with a ``template`` relation.  Each template
carries ``label:<field>`` definitions with ``promoted,<type>`` values,
which makes the document store render those attributes as a form.

Safe to run repeatedly: templates that already exist are reported as
``already_exists``.
"""

from __future__ import annotations

import structlog

from allknower.interfaces.document_store import IDocumentStore
from allknower.models.documents import CreateNoteParams
from allknower.models.insights import TemplateSeedResult
from allknower.models.lore import TEMPLATE_ID_MAP
from allknower.utils.errors import DocumentStoreError

logger = structlog.get_logger(logger_name=__name__)

CONTAINER_NOTE_ID = "_lore_templates_container"

TEMPLATE_FIELDS: dict[str, list[tuple[str, str]]] = {
    "character": [
        ("fullName", "text"),
        ("age", "text"),
        ("race", "text"),
        ("gender", "text"),
        ("affiliation", "text"),
        ("role", "text"),
        ("status", "text"),
    ],
    "location": [
        ("locationType", "text"),
        ("region", "text"),
        ("population", "text"),
        ("ruler", "text"),
    ],
    "faction": [
        ("factionType", "text"),
        ("leader", "text"),
        ("foundingDate", "text"),
    ],
    "creature": [
        ("creatureType", "text"),
        ("habitat", "text"),
        ("dangerLevel", "text"),
        ("ac", "text"),
        ("hp", "text"),
        ("cr", "text"),
    ],
    "event": [
        ("inWorldDate", "text"),
        ("location", "text"),
        ("outcome", "text"),
    ],
    "timeline": [
        ("startDate", "text"),
        ("endDate", "text"),
    ],
    "manuscript": [
        ("wordCount", "number"),
        ("status", "text"),
    ],
    "statblock": [
        ("system", "text"),
        ("ac", "text"),
        ("hp", "text"),
        ("speed", "text"),
        ("cr", "text"),
        ("str", "number"),
        ("dex", "number"),
        ("con", "number"),
        ("int", "number"),
        ("wis", "number"),
        ("cha", "number"),
    ],
}


def _already_exists(exc: DocumentStoreError) -> bool:
    # ETAPI rejects a taken noteId with a 400.
    message = exc.message.lower()
    return exc.status_code == 400 or "already" in message or "exists" in message


async def seed_templates(store: IDocumentStore, root_note_id: str = "root") -> list[TemplateSeedResult]:
    """Create the template container and one template note per lore kind."""
    try:
        await store.create(
            CreateNoteParams(
                note_id=CONTAINER_NOTE_ID,
                parent_note_id=root_note_id,
                title="Lore Templates",
                content="<p>AllKnower-managed lore template notes. Do not delete.</p>",
            )
        )
        await store.tag(CONTAINER_NOTE_ID, "loreTemplates")
    except DocumentStoreError as exc:
        if not _already_exists(exc):
            raise
        logger.debug("template_container_exists", note_id=CONTAINER_NOTE_ID)

    results: list[TemplateSeedResult] = []
    for kind, note_id in TEMPLATE_ID_MAP.items():
        try:
            await store.create(
                CreateNoteParams(
                    note_id=note_id,
                    parent_note_id=CONTAINER_NOTE_ID,
                    title=f"Lore Template: {kind.capitalize()}",
                )
            )
            await store.tag(note_id, "template")
            for field, value_type in TEMPLATE_FIELDS[kind]:
                await store.create_attribute(note_id, "label", f"label:{field}", f"promoted,{value_type}")
            results.append(TemplateSeedResult(type=kind, note_id=note_id, status="created"))
        except DocumentStoreError as exc:
            if _already_exists(exc):
                results.append(TemplateSeedResult(type=kind, note_id=note_id, status="already_exists"))
            else:
                results.append(
                    TemplateSeedResult(type=kind, note_id=note_id, status="error", error=str(exc))
                )

    logger.info(
        "templates_seeded",
        created=sum(r.status == "created" for r in results),
        already_existed=sum(r.status == "already_exists" for r in results),
        failed=sum(r.status == "error" for r in results),
    )
    return results
