"""Application configuration using Pydantic Settings.

All configuration is loaded from environment variables.
See .env.example for available settings.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Values shipped in the example env file; treated as "not configured"
PLACEHOLDER_KEYS = {"your_openai_api_key_here", "your_pinecone_api_key_here", ""}


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    # ============================================
    # Application
    # ============================================
    app_name: str = "HR Assistant"
    app_version: str = "0.1.0"
    environment: str = "development"
    debug: bool = False

    # API Server
    api_host: str = "0.0.0.0"
    api_port: int = Field(default=3001, validation_alias=AliasChoices("api_port", "port"))
    api_prefix: str = "/api"
    frontend_url: str | None = None

    @property
    def allowed_origins(self) -> list[str]:
        """CORS origins: the configured front end, or any origin."""
        if self.frontend_url:
            return [self.frontend_url]
        return ["*"]

    # ============================================
    # OpenAI (embeddings + chat completions)
    # ============================================
    openai_api_key: str = ""
    embedding_model: str = Field(
        default="text-embedding-3-large", description="OpenAI embedding model name"
    )
    embedding_dimensions: int = Field(
        default=2048, description="Embedding vector dimensions (must match the index)"
    )
    chat_model: str = "gpt-3.5-turbo"
    chat_max_tokens: int = 500
    chat_temperature: float = 0.7

    @property
    def openai_configured(self) -> bool:
        return self.openai_api_key.strip() not in PLACEHOLDER_KEYS

    # ============================================
    # Vector index (Qdrant)
    # ============================================
    qdrant_url: str = "http://localhost:6333"
    qdrant_api_key: str | None = Field(
        default=None, validation_alias=AliasChoices("qdrant_api_key", "pinecone_api_key")
    )
    vector_index_name: str = Field(
        default="hrdocs",
        validation_alias=AliasChoices("vector_index_name", "pinecone_index_name"),
    )

    @property
    def vector_store_configured(self) -> bool:
        return bool(self.qdrant_url.strip())

    # ============================================
    # Uploads & chunking
    # ============================================
    upload_dir: Path = Path("uploads")
    max_file_size: int = 10 * 1024 * 1024  # 10MB
    max_files_per_upload: int = 10
    file_batch_size: int = 3
    chunk_size: int = 2000
    chunk_overlap: int = 400

    # ============================================
    # Batching & pacing (heuristic rate-limit avoidance)
    # ============================================
    embedding_batch_size: int = 50
    embedding_batch_delay_ms: int = 100
    embedding_large_batch_delay_ms: int = 200
    embedding_large_input_threshold: int = 100
    upsert_batch_size: int = 100
    upsert_batch_delay_ms: int = 100

    # ============================================
    # Retrieval
    # ============================================
    query_top_k: int = 5
    history_turns: int = 6

    # ============================================
    # Rate Limiting
    # ============================================
    rate_limit_enabled: bool = False
    rate_limit_requests: int = 100  # Requests per window per client
    rate_limit_window_seconds: int = 15 * 60
    redis_url: str = "redis://localhost:6379/0"

    # ============================================
    # Langfuse (optional LLM tracing)
    # ============================================
    langfuse_host: str = "https://cloud.langfuse.com"
    langfuse_public_key: str = ""
    langfuse_secret_key: str = ""

    # ============================================
    # Logging
    # ============================================
    log_level: str = "INFO"
    log_format: str = "console"  # "json" or "console"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
