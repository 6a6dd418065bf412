"""Configuration module: Settings, load_config and the task table."""

from allknower.config.loader import generation_params, load_config
from allknower.config.settings import AUTO_MODEL, TASKS, Settings

__all__ = ["AUTO_MODEL", "Settings", "TASKS", "generation_params", "load_config"]
