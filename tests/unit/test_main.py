"""Unit tests for the composition root."""

from __future__ import annotations

from pathlib import Path

import pytest

from allknower.main import build_components, shutdown, startup
from allknower.pipeline.brain_dump import BrainDumpPipeline
from allknower.providers.embedding.fallback_embedding_provider import FallbackEmbeddingProvider
from allknower.providers.embedding.ollama_embedding_provider import OllamaEmbeddingProvider

_CONFIG = str(Path(__file__).resolve().parents[2] / "config" / "config.yaml")


def _settings(settings_factory, tmp_path: Path, **overrides):
    return settings_factory(
        vector_index_dir=str(tmp_path / "chroma"),
        history_db_path=str(tmp_path / "allknower.db"),
        **overrides,
    )


class TestBuildComponents:
    def test_cloud_embeddings_with_local_fallback(self, settings_factory, tmp_path: Path) -> None:
        components = build_components(
            _settings(settings_factory, tmp_path, openrouter_api_key="sk-or-test"),
            config_path=_CONFIG,
        )

        assert isinstance(components["embedding_provider"], FallbackEmbeddingProvider)
        assert isinstance(components["brain_dump"], BrainDumpPipeline)
        assert components["config"]["generation"]["consistency"]["temperature"] == 0.2

    def test_local_only_without_api_key(self, settings_factory, tmp_path: Path) -> None:
        components = build_components(_settings(settings_factory, tmp_path), config_path=_CONFIG)

        assert isinstance(components["embedding_provider"], OllamaEmbeddingProvider)
        assert components["llm"].is_available() is False

    @pytest.mark.asyncio
    async def test_startup_and_shutdown(self, settings_factory, tmp_path: Path) -> None:
        components = build_components(_settings(settings_factory, tmp_path), config_path=_CONFIG)

        await startup(components)
        status = await components["history"].get_index_status()
        await shutdown(components)

        assert status.indexed_documents == 0
        assert (tmp_path / "allknower.db").exists()
        assert components["http_client"].is_closed
