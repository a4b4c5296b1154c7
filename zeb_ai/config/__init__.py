"""Configuration module -- exports Settings, RAGConfig and the loaders."""

from zeb_ai.config.loader import build_rag_config, load_config
from zeb_ai.config.rag_config import RAGConfig
from zeb_ai.config.settings import Settings

__all__ = ["RAGConfig", "Settings", "build_rag_config", "load_config"]
