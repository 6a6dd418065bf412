"""Application settings loaded from environment variables via pydantic-settings.

Values come from two sources, environment variables first and then the
``.env`` file in the working directory.  Field ``brain_dump_model`` maps to
``BRAIN_DUMP_MODEL`` and so on.  Defaults apply when neither source sets a
value.

Model chains are resolved from these fields on every router call, so a
``Settings`` instance is the only place a task's models are read from.
"""

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

AUTO_MODEL = "openrouter/auto"

TASKS: tuple[str, ...] = ("brain-dump", "consistency", "suggest", "gap-detect", "autocomplete")


class Settings(BaseSettings):
    """AllKnower settings.

    Environment variables override defaults. Loaded from .env when present.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === OpenRouter (generation + cloud embeddings) ===
    openrouter_api_key: str = ""
    openrouter_base_url: str = "https://openrouter.ai/api/v1"
    openrouter_timeout_seconds: float = 60.0
    # When true every task uses the auto-select sentinel instead of its chain.
    use_openrouter_auto: bool = False

    # === Per-task model chains ===
    # Empty string = "absent"; the router filters these out.
    brain_dump_model: str = "x-ai/grok-4.1-fast"
    brain_dump_fallback_1: str = ""
    brain_dump_fallback_2: str = ""
    consistency_model: str = "moonshotai/kimi-k2.5"
    consistency_fallback_1: str = ""
    consistency_fallback_2: str = ""
    suggest_model: str = "x-ai/grok-4.1-fast"
    suggest_fallback_1: str = ""
    suggest_fallback_2: str = ""
    gap_detect_model: str = "x-ai/grok-4.1-fast"
    gap_detect_fallback_1: str = ""
    gap_detect_fallback_2: str = ""
    autocomplete_model: str = ""
    autocomplete_fallback_1: str = ""
    autocomplete_fallback_2: str = ""

    # === Embeddings ===
    embedding_cloud: str = "google/gemini-embedding-001"
    embedding_local: str = "ollama/nomic-embed-text"
    # Both backends must produce vectors of this length for one index.
    embedding_dimensions: int = Field(default=3072, gt=0)
    ollama_base_url: str = "http://localhost:11434"

    # === Vector index ===
    vector_index_dir: str = "./data/chromadb"
    vector_collection: str = "lore_embeddings"

    # === RAG ===
    rag_chunk_size: int = Field(default=512, gt=0)
    rag_chunk_overlap: int = Field(default=64, ge=0)
    rag_context_top_k: int = Field(default=10, ge=1, le=50)
    rag_max_top_k: int = Field(default=50, ge=1)

    # === AllCodex ETAPI ===
    allcodex_url: str = "http://localhost:8080"
    allcodex_etapi_token: str = ""
    allcodex_timeout_seconds: float = 30.0

    # === Lore ===
    lore_root_note_id: str = "root"
    lore_corpus_query: str = "#lore"
    # 1 = entities are applied strictly one after another.
    entity_concurrency: int = Field(default=1, ge=1)

    # === Bookkeeping ===
    history_db_path: str = "data/allknower.db"

    # === App ===
    app_env: str = "development"
    log_level: str = "INFO"

    @model_validator(mode="after")
    def _check_chunk_window(self) -> "Settings":
        # A window that does not advance would never terminate.
        if self.rag_chunk_overlap >= self.rag_chunk_size:
            raise ValueError(
                f"rag_chunk_overlap ({self.rag_chunk_overlap}) must be smaller "
                f"than rag_chunk_size ({self.rag_chunk_size})"
            )
        return self

    def get_task_models(self, task: str) -> tuple[str, str, str]:
        """Return the raw (primary, fallback_1, fallback_2) triple for *task*.

        Raises ``KeyError`` for an unknown task name.
        """
        if task not in TASKS:
            raise KeyError(task)
        prefix = task.replace("-", "_")
        return (
            getattr(self, f"{prefix}_model"),
            getattr(self, f"{prefix}_fallback_1"),
            getattr(self, f"{prefix}_fallback_2"),
        )
