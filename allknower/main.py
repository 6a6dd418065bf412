"""AllKnower composition root.

Builds every provider and service from :class:`Settings` and the YAML
config, wires them together through constructor injection, and returns
them as a flat dict of named components.  Nothing below this module
reads settings on its own except the model router, which resolves task
chains from settings on every call.

Typical use::

    components = build_components()
    await startup(components)
    try:
        result = await components["brain_dump"].run_and_schedule(text)
    finally:
        await shutdown(components)
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from allknower.config.loader import load_config
from allknower.config.settings import Settings
from allknower.interfaces.embedding_provider import IEmbeddingProvider
from allknower.pipeline.brain_dump import BrainDumpPipeline
from allknower.providers.document_store.etapi_client import ETAPIClient
from allknower.providers.embedding.fallback_embedding_provider import FallbackEmbeddingProvider
from allknower.providers.embedding.ollama_embedding_provider import OllamaEmbeddingProvider
from allknower.providers.embedding.openrouter_embedding_provider import OpenRouterEmbeddingProvider
from allknower.providers.history.sqlite_history_provider import SQLiteHistoryProvider
from allknower.providers.llm.openrouter_provider import OpenRouterLLMProvider
from allknower.providers.vector_store.chromadb_provider import ChromaDBVectorIndex
from allknower.services.indexing.chunker import TextChunker
from allknower.services.indexing.indexer import LoreIndexer
from allknower.services.lore_insights import LoreInsightService
from allknower.services.model_router import ModelRouter
from allknower.utils.concurrency import BackgroundTaskRunner
from allknower.utils.logging import configure_logging

logger = structlog.get_logger(logger_name=__name__)


# ---------------------------------------------------------------------------
# Provider selection
# ---------------------------------------------------------------------------


def _build_embedding_provider(app_settings: Settings) -> IEmbeddingProvider:
    """Cloud embeddings with local fallback, or local only without an API key."""
    local = OllamaEmbeddingProvider(settings=app_settings)
    if not app_settings.openrouter_api_key:
        logger.warning("embedding_cloud_disabled", reason="OPENROUTER_API_KEY not set")
        return local
    cloud = OpenRouterEmbeddingProvider(settings=app_settings)
    return FallbackEmbeddingProvider(primary=cloud, secondary=local)


def _build_http_client(app_settings: Settings) -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=httpx.Timeout(app_settings.allcodex_timeout_seconds, connect=5.0))


# ---------------------------------------------------------------------------
# Full assembly
# ---------------------------------------------------------------------------


def build_components(
    custom_settings: Settings | None = None,
    config_path: str = "config/config.yaml",
) -> dict[str, Any]:
    """Construct every provider and service instance.

    Parameters
    ----------
    custom_settings:
        Application settings.  Loaded from the environment when omitted.
    config_path:
        YAML file with per-task generation parameters.

    Returns
    -------
    dict
        Components keyed by role name.  ``http_client`` and
        ``task_runner`` hold resources released by :func:`shutdown`.
    """
    s = custom_settings or Settings()
    configure_logging(log_level=s.log_level)
    config = load_config(config_path, settings=s)

    # -- Shared resources --
    http_client = _build_http_client(s)
    task_runner = BackgroundTaskRunner()

    # -- Backends --
    document_store = ETAPIClient(
        http_client=http_client,
        base_url=s.allcodex_url,
        token=s.allcodex_etapi_token,
    )
    history = SQLiteHistoryProvider(db_path=s.history_db_path)
    embedding_provider = _build_embedding_provider(s)
    vector_index = ChromaDBVectorIndex(
        embedding_provider=embedding_provider,
        persist_directory=s.vector_index_dir,
        collection_name=s.vector_collection,
        max_top_k=s.rag_max_top_k,
    )
    llm = OpenRouterLLMProvider(settings=s)
    if not llm.is_available():
        logger.warning("generation_unavailable", reason="OPENROUTER_API_KEY not set")

    # -- Services --
    router = ModelRouter(llm_provider=llm, settings=s, config=config)
    indexer = LoreIndexer(
        document_store=document_store,
        vector_index=vector_index,
        history=history,
        chunker=TextChunker(chunk_size=s.rag_chunk_size, overlap=s.rag_chunk_overlap),
        embedding_model=embedding_provider.get_model_name(),
        corpus_query=s.lore_corpus_query,
    )
    insights = LoreInsightService(
        document_store=document_store,
        vector_index=vector_index,
        router=router,
        history=history,
        corpus_query=s.lore_corpus_query,
    )
    brain_dump = BrainDumpPipeline(
        vector_index=vector_index,
        router=router,
        document_store=document_store,
        history=history,
        indexer=indexer,
        task_runner=task_runner,
        lore_root_note_id=s.lore_root_note_id,
        context_top_k=s.rag_context_top_k,
        entity_concurrency=s.entity_concurrency,
    )

    logger.info(
        "components_built",
        embedding_provider=embedding_provider.get_provider_name(),
        embedding_model=embedding_provider.get_model_name(),
        vector_index=vector_index.get_provider_name(),
        llm=llm.get_provider_name(),
    )

    return {
        "settings": s,
        "config": config,
        "http_client": http_client,
        "task_runner": task_runner,
        "document_store": document_store,
        "history": history,
        "embedding_provider": embedding_provider,
        "vector_index": vector_index,
        "llm": llm,
        "router": router,
        "indexer": indexer,
        "insights": insights,
        "brain_dump": brain_dump,
    }


async def startup(components: dict[str, Any]) -> None:
    """Prepare persistent state.  Call once before serving work."""
    await components["history"].initialize()


async def shutdown(components: dict[str, Any]) -> None:
    """Wait for background reindexing, then release the HTTP client."""
    task_runner: BackgroundTaskRunner = components["task_runner"]
    if task_runner.pending:
        logger.info("draining_background_tasks", pending=task_runner.pending)
    await task_runner.drain()
    await components["http_client"].aclose()
