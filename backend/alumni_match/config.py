from pydantic import Field
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    openai_api_key: str = ""

    # Embedding provider: "openai", "local" or "hash"
    embedding_provider: str = "openai"
    embedding_model: str = "text-embedding-3-small"
    # Local embedding model (when provider=local)
    local_embedding_model: str = "nomic-ai/nomic-embed-text-v1.5"
    # Dimensions of the deterministic fallback when the primary is unknown
    embedding_dimensions: int = 1536
    embedding_timeout_seconds: float = 10.0
    max_concurrency: int = 8

    # Score blending; the rule-based share is 1 - semantic_weight
    semantic_weight: float = Field(default=0.3, ge=0, le=1)
    admission_threshold: float = Field(default=0.3, ge=0, le=1)
    default_limit: int = 10
    max_reasons: int = 4

    # Insight generation: "template" or "openai"
    insight_provider: str = "template"
    insight_model: str = "gpt-4o-mini"
    insight_timeout_seconds: float = 15.0

    # Shared Redis vector store (empty disables it)
    redis_url: str = ""

    class Config:
        env_file = ".env"


@lru_cache
def get_settings() -> Settings:
    return Settings()
