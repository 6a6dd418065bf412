#!/usr/bin/env python3
"""Rebuild the lore vector index from scratch.

Walks every note matching ``LORE_CORPUS_QUERY`` (default ``#lore``) in
AllCodex, re-chunks and re-embeds it.  Individual failures are logged and
counted; the exit status is non-zero when any note failed.

Usage:
    python scripts/reindex_lore.py
    python scripts/reindex_lore.py --config config/config.yaml
"""

from __future__ import annotations

import argparse
import asyncio
import sys
import time

from allknower.main import build_components, shutdown, startup


async def _reindex(config_path: str) -> int:
    components = build_components(config_path=config_path)
    await startup(components)
    start = time.monotonic()
    try:
        summary = await components["indexer"].full_reindex()
    finally:
        await shutdown(components)

    print("Reindex complete:")
    print(f"  Indexed: {summary.indexed}")
    print(f"  Failed:  {summary.failed}")
    print(f"  Time:    {time.monotonic() - start:.2f}s")
    return 0 if summary.failed == 0 else 1


def main() -> None:
    parser = argparse.ArgumentParser(description="Rebuild the AllKnower lore vector index.")
    parser.add_argument("--config", default="config/config.yaml")
    args = parser.parse_args()
    sys.exit(asyncio.run(_reindex(args.config)))


if __name__ == "__main__":
    main()
