"""Application settings loaded from environment variables via pydantic-settings.

Values come from two sources, in priority order:

  1. Environment variables, e.g. ``VOYAGE_API_KEY=pa-...`` (always win)
  2. A ``.env`` file in the working directory (local development)

Field ``voyage_api_key`` maps to env var ``VOYAGE_API_KEY``.  Defaults apply
when neither source defines a field.  An empty API key means "not
configured": provider selection in ``main.py`` skips it.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Zeb AI application settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # === Generative providers ===
    llm_provider: str = "gemini"  # gemini | openai | anthropic
    gemini_api_key: str = ""
    gemini_model: str = "gemini-2.5-flash"
    gemini_base_url: str = "https://generativelanguage.googleapis.com"
    openai_api_key: str = ""
    openai_base_url: str = ""  # OpenAI-compatible endpoints
    openai_text_model: str = ""
    anthropic_api_key: str = ""
    anthropic_model: str = "claude-sonnet-4-20250514"

    # === Embedding providers ===
    embedding_provider: str = "voyage"  # voyage | openai
    voyage_api_key: str = ""
    voyage_model: str = "voyage-3-large"
    voyage_base_url: str = "https://api.voyageai.com/v1"
    openai_embedding_model: str = ""
    # Fixed index contract; every stored vector must have this length.
    embedding_dimension: int = 1024

    # === Storage ===
    database_path: str = "data/zeb_ai.db"

    # === App Config ===
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    app_env: str = "development"
    log_level: str = "INFO"
    cors_origins: str = "*"  # comma-separated

    def get_available_llm_providers(self) -> list[str]:
        """Return the generative providers that have API keys configured."""
        providers: list[str] = []
        if self.gemini_api_key:
            providers.append("gemini")
        if self.openai_api_key:
            providers.append("openai")
        if self.anthropic_api_key:
            providers.append("anthropic")
        return providers

    def get_available_embedding_providers(self) -> list[str]:
        """Return the embedding providers that have API keys configured."""
        providers: list[str] = []
        if self.voyage_api_key:
            providers.append("voyage")
        if self.openai_api_key:
            providers.append("openai")
        return providers

    def get_cors_origins(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]
