"""Operator CLI for AllKnower.

Usage::

    python -m allknower.cli brain-dump notes.txt
    echo "Kira is a smuggler from Port Eldra" | python -m allknower.cli brain-dump -
    python -m allknower.cli reindex
    python -m allknower.cli index <noteId>
    python -m allknower.cli remove <noteId>
    python -m allknower.cli query "who controls the salt trade" --top-k 5
    python -m allknower.cli seed-templates
    python -m allknower.cli status
    python -m allknower.cli health
    python -m allknower.cli history --limit 5
    python -m allknower.cli consistency [noteId ...]
    python -m allknower.cli suggest notes.txt
    python -m allknower.cli gaps
    python -m allknower.cli autocomplete Kir

Commands that print structured results write JSON to stdout.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from typing import Any

from pydantic import BaseModel

from allknower.main import build_components, shutdown, startup
from allknower.providers.vector_store.chromadb_provider import clamp_top_k
from allknower.services.health import check_health
from allknower.services.template_seeder import seed_templates
from allknower.utils.errors import AllKnowerError


def _read_text(source: str) -> str:
    if source == "-":
        return sys.stdin.read()
    with open(source, encoding="utf-8") as f:
        return f.read()


def _print_json(payload: Any) -> None:
    if isinstance(payload, BaseModel):
        payload = payload.model_dump(mode="json")
    elif isinstance(payload, list):
        payload = [p.model_dump(mode="json") if isinstance(p, BaseModel) else p for p in payload]
    print(json.dumps(payload, indent=2, ensure_ascii=False))


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------


async def _handle_brain_dump(args: argparse.Namespace, components: dict[str, Any]) -> int:
    raw_text = _read_text(args.file)
    if not raw_text.strip():
        print("Error: brain dump is empty.", file=sys.stderr)
        return 1
    result = await components["brain_dump"].run_and_schedule(raw_text)
    _print_json(result)
    return 1 if result.skipped and not (result.created or result.updated) else 0


async def _handle_reindex(args: argparse.Namespace, components: dict[str, Any]) -> int:
    summary = await components["indexer"].full_reindex()
    print(f"Reindex complete: {summary.indexed} indexed, {summary.failed} failed")
    return 0 if summary.failed == 0 else 1


async def _handle_index(args: argparse.Namespace, components: dict[str, Any]) -> int:
    chunks = await components["indexer"].index_document(args.note_id)
    print(f"Indexed {args.note_id}: {chunks} chunks")
    return 0


async def _handle_remove(args: argparse.Namespace, components: dict[str, Any]) -> int:
    await components["indexer"].remove_document(args.note_id)
    print(f"Removed {args.note_id} from the index")
    return 0


async def _handle_query(args: argparse.Namespace, components: dict[str, Any]) -> int:
    _print_json(await components["vector_index"].query(args.text, clamp_top_k(args.top_k)))
    return 0


async def _handle_seed_templates(args: argparse.Namespace, components: dict[str, Any]) -> int:
    results = await seed_templates(components["document_store"], root_note_id=args.root)
    _print_json(results)
    return 0 if all(r.status != "error" for r in results) else 1


async def _handle_status(args: argparse.Namespace, components: dict[str, Any]) -> int:
    _print_json(await components["history"].get_index_status())
    return 0


async def _handle_health(args: argparse.Namespace, components: dict[str, Any]) -> int:
    report = await check_health(
        components["document_store"],
        components["vector_index"],
        components["history"],
    )
    _print_json(report)
    return 0 if report.status == "ok" else 1


async def _handle_history(args: argparse.Namespace, components: dict[str, Any]) -> int:
    _print_json(await components["history"].list_brain_dumps(limit=args.limit))
    return 0


async def _handle_consistency(args: argparse.Namespace, components: dict[str, Any]) -> int:
    _print_json(await components["insights"].check_consistency(args.note_ids or None))
    return 0


async def _handle_suggest(args: argparse.Namespace, components: dict[str, Any]) -> int:
    _print_json(await components["insights"].suggest_relationships(_read_text(args.file)))
    return 0


async def _handle_gaps(args: argparse.Namespace, components: dict[str, Any]) -> int:
    _print_json(await components["insights"].detect_gaps())
    return 0


async def _handle_autocomplete(args: argparse.Namespace, components: dict[str, Any]) -> int:
    _print_json(await components["insights"].autocomplete(args.prefix, limit=args.limit))
    return 0


_HANDLERS = {
    "brain-dump": _handle_brain_dump,
    "reindex": _handle_reindex,
    "index": _handle_index,
    "remove": _handle_remove,
    "query": _handle_query,
    "seed-templates": _handle_seed_templates,
    "status": _handle_status,
    "health": _handle_health,
    "history": _handle_history,
    "consistency": _handle_consistency,
    "suggest": _handle_suggest,
    "gaps": _handle_gaps,
    "autocomplete": _handle_autocomplete,
}


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="allknower",
        description="AllKnower lore intelligence tools.",
    )
    parser.add_argument(
        "--config",
        default="config/config.yaml",
        help="YAML config with per-task generation parameters",
    )
    subparsers = parser.add_subparsers(dest="command")

    p = subparsers.add_parser("brain-dump", help="Turn free-form notes into lore notes")
    p.add_argument("file", help="Text file to read, or - for stdin")

    subparsers.add_parser("reindex", help="Rebuild the vector index from every lore note")

    p = subparsers.add_parser("index", help="Reindex a single note")
    p.add_argument("note_id")

    p = subparsers.add_parser("remove", help="Drop a note from the vector index")
    p.add_argument("note_id")

    p = subparsers.add_parser("query", help="Find the lore chunks most relevant to a passage")
    p.add_argument("text")
    p.add_argument("--top-k", type=int, default=10, help="Number of chunks, clamped to 1..50")

    p = subparsers.add_parser("seed-templates", help="Create the per-kind lore template notes")
    p.add_argument("--root", default="root", help="Parent note for the template container")

    subparsers.add_parser("status", help="Show vector index bookkeeping status")
    subparsers.add_parser("health", help="Check every backing service")

    p = subparsers.add_parser("history", help="List recent brain dumps")
    p.add_argument("--limit", type=int, default=20)

    p = subparsers.add_parser("consistency", help="Check lore for contradictions")
    p.add_argument("note_ids", nargs="*", help="Restrict the check to these notes")

    p = subparsers.add_parser("suggest", help="Suggest relationships for a passage")
    p.add_argument("file", help="Text file to read, or - for stdin")

    subparsers.add_parser("gaps", help="Find underdeveloped areas of the lore")

    p = subparsers.add_parser("autocomplete", help="Complete an indexed note title")
    p.add_argument("prefix")
    p.add_argument("--limit", type=int, default=10)

    return parser


async def _run(args: argparse.Namespace) -> int:
    components = build_components(config_path=args.config)
    await startup(components)
    try:
        return await _HANDLERS[args.command](args, components)
    except AllKnowerError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    finally:
        await shutdown(components)


def main() -> None:
    """CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    sys.exit(asyncio.run(_run(args)))


if __name__ == "__main__":
    main()
