"""Strict parsing of brain-dump model output with per-entity salvage.

Two tiers:

1. The whole payload is decoded as JSON (a wrapping markdown fence is
   tolerated) and validated against :class:`ParsedBrainDump`.  Text that
   is not JSON raises :class:`~allknower.utils.errors.ParseError`.
2. If validation fails, the summary and entity list are pulled out
   leniently and every entity is validated on its own.  Valid entities are
   kept in order; each invalid one is dropped and logged with its title
   and the first validation error.
"""

from __future__ import annotations

import json
from typing import Any

import structlog
from pydantic import ValidationError

from allknower.models.lore import LORE_ENTITY_ADAPTER, LoreEntity, ParsedBrainDump
from allknower.utils.errors import ParseError
from allknower.utils.text_normalizer import strip_code_fence

logger = structlog.get_logger(logger_name=__name__)

NO_SUMMARY = "No summary provided."
_EXCERPT_CHARS = 200


def decode_json(raw: str) -> Any:
    """Decode *raw* as JSON, raising :class:`ParseError` with an excerpt on failure."""
    try:
        return json.loads(strip_code_fence(raw))
    except (json.JSONDecodeError, TypeError) as exc:
        excerpt = (raw or "")[:_EXCERPT_CHARS]
        raise ParseError(
            message=f"Model returned invalid JSON: {excerpt}",
            excerpt=excerpt,
        ) from exc


def _first_error(exc: ValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return str(exc)
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    return f"{location}: {first['msg']}" if location else first["msg"]


def parse_brain_dump_response(raw: str) -> ParsedBrainDump:
    """Parse a brain-dump response, salvaging valid entities on schema failure."""
    payload = decode_json(raw)

    try:
        return ParsedBrainDump.model_validate(payload)
    except ValidationError as exc:
        logger.warning(
            "brain_dump_response_invalid",
            error_count=exc.error_count(),
            first_error=_first_error(exc),
        )

    obj = payload if isinstance(payload, dict) else {}
    summary = obj.get("summary")
    if not isinstance(summary, str):
        summary = NO_SUMMARY
    raw_entities = obj.get("entities")
    if not isinstance(raw_entities, list):
        raw_entities = []

    entities: list[LoreEntity] = []
    for candidate in raw_entities:
        try:
            entities.append(LORE_ENTITY_ADAPTER.validate_python(candidate))
        except ValidationError as exc:
            title = candidate.get("title") if isinstance(candidate, dict) else None
            logger.warning(
                "brain_dump_entity_dropped",
                title=title if isinstance(title, str) and title else "unknown",
                reason=_first_error(exc),
            )

    logger.info(
        "brain_dump_response_salvaged",
        kept=len(entities),
        dropped=len(raw_entities) - len(entities),
    )
    return ParsedBrainDump(entities=entities, summary=summary)
