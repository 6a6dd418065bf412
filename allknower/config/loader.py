"""YAML configuration loader with environment variable overrides.

Configuration is loaded in layers, later layers winning:

  1. config/config.yaml  -- static defaults checked into the repo
                            (per-task generation parameters live here)
  2. .env file           -- local developer overrides
  3. Environment vars    -- set at deploy time

``load_config`` reads the YAML first and deep-merges the values derived
from :class:`Settings` on top.
"""

from pathlib import Path
from typing import Any

import yaml

from allknower.config.settings import TASKS, Settings

_DEFAULT_GENERATION: dict[str, Any] = {"temperature": 0.3, "max_tokens": 4096}


def load_config(path: str = "config/config.yaml", settings: Settings | None = None) -> dict:
    """Load YAML config and merge with environment-based Settings.

    Args:
        path: Path to the YAML configuration file.  A missing file is not
              an error; defaults are used.
        settings: Settings instance to merge.  Built from the environment
                  when omitted.

    Returns:
        Fully resolved configuration dictionary.
    """
    config_path = Path(path)
    if config_path.exists():
        with open(config_path) as f:
            yaml_config = yaml.safe_load(f) or {}
    else:
        yaml_config = {}

    settings = settings or Settings()
    env_overrides = {
        "app": {
            "env": settings.app_env,
        },
        "models": {
            task: {
                "chain": [m for m in settings.get_task_models(task) if m],
            }
            for task in TASKS
        },
        "rag": {
            "chunk_size": settings.rag_chunk_size,
            "chunk_overlap": settings.rag_chunk_overlap,
            "context_top_k": settings.rag_context_top_k,
            "max_top_k": settings.rag_max_top_k,
        },
        "logging": {
            "level": settings.log_level,
        },
    }

    _deep_merge(yaml_config, env_overrides)
    return yaml_config


def generation_params(config: dict, task: str) -> dict[str, Any]:
    """Return ``{"temperature", "max_tokens"}`` for *task* from a loaded config."""
    params = dict(_DEFAULT_GENERATION)
    params.update((config.get("generation") or {}).get("default") or {})
    params.update((config.get("generation") or {}).get(task) or {})
    return {"temperature": float(params["temperature"]), "max_tokens": int(params["max_tokens"])}


def _deep_merge(base: dict, overrides: dict) -> None:
    """Recursively merge overrides into base dict, mutating base in place."""
    for key, value in overrides.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
