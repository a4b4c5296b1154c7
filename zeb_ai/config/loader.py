"""YAML configuration loader with environment variable overrides.

Configuration is layered (later layers override earlier):

  1. ``config/config.yaml`` -- static defaults checked into the repo
  2. ``.env`` file          -- local developer overrides (not committed)
  3. Environment variables  -- set at deploy time

:func:`load_config` returns the merged dictionary; :func:`build_rag_config`
turns it into the frozen :class:`RAGConfig` handed to the services.
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from zeb_ai.config.rag_config import RAGConfig
from zeb_ai.config.settings import Settings
from zeb_ai.utils.errors import ConfigurationError
from zeb_ai.utils.retry import RetryPolicy


def load_config(path: str = "config/config.yaml", settings: Settings | None = None) -> dict:
    """Load YAML config and merge with environment-based Settings.

    Environment variables (via Settings) override YAML values where keys overlap.

    Args:
        path: Path to the YAML configuration file.
        settings: Pre-built settings; a fresh ``Settings()`` is read when omitted.

    Returns:
        Fully resolved configuration dictionary.
    """
    config_path = Path(path)
    if config_path.exists():
        with open(config_path, encoding="utf-8") as f:
            yaml_config = yaml.safe_load(f) or {}
    else:
        yaml_config = {}

    settings = settings or Settings()
    env_overrides = {
        "app": {
            "host": settings.app_host,
            "port": settings.app_port,
            "env": settings.app_env,
        },
        "llm": {
            "provider": settings.llm_provider,
            "available_providers": settings.get_available_llm_providers(),
        },
        "embedding": {
            "provider": settings.embedding_provider,
            "dimension": settings.embedding_dimension,
            "available_providers": settings.get_available_embedding_providers(),
        },
        "storage": {
            "database_path": settings.database_path,
        },
        "logging": {
            "level": settings.log_level,
        },
    }

    _deep_merge(yaml_config, env_overrides)
    return yaml_config


def build_rag_config(config: dict[str, Any]) -> RAGConfig:
    """Flatten the merged config dictionary into a :class:`RAGConfig`.

    Raises:
        ConfigurationError: If any value fails validation.
    """
    rag = config.get("rag", {}) or {}
    generation = config.get("generation", {}) or {}
    timeouts = config.get("timeouts", {}) or {}
    assistant = config.get("assistant", {}) or {}
    embedding = config.get("embedding", {}) or {}

    values: dict[str, Any] = {
        **rag,
        **generation,
        **{f"{key}_timeout": value for key, value in timeouts.items()},
    }
    if "dimension" in embedding:
        values["embedding_dimension"] = embedding["dimension"]
    if "name" in assistant:
        values["assistant_name"] = assistant["name"]
    if "institution" in assistant:
        values["institution"] = assistant["institution"]
    if assistant.get("emergency_contacts"):
        values["emergency_contacts"] = tuple(assistant["emergency_contacts"])

    try:
        if config.get("retry"):
            values["retry"] = RetryPolicy(**config["retry"])
        return RAGConfig(**values)
    except ValidationError as exc:
        raise ConfigurationError(message=f"Invalid RAG configuration: {exc}") from exc


def _deep_merge(base: dict, overrides: dict) -> None:
    """Recursively merge overrides into base dict, mutating base in place."""
    for key, value in overrides.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
