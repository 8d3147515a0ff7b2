import os
from dataclasses import dataclass
from functools import lru_cache

import redis.asyncio as redis
from dotenv import load_dotenv

load_dotenv()


@dataclass(frozen=True)
class Settings:
    """Application settings loaded from environment variables."""

    # Redis
    redis_url: str = os.getenv("REDIS_URL", "redis://localhost:6379")
    redis_password: str | None = os.getenv("REDIS_PASSWORD")

    # Cache
    cache_backend: str = os.getenv("CACHE_BACKEND", "redis")  # or "memory"
    cache_index_name: str = os.getenv("CACHE_INDEX_NAME", "semantic_llm_cache")
    cache_similarity_threshold: float = float(os.getenv("CACHE_SIMILARITY_THRESHOLD", "0.85"))
    cache_candidate_count: int = int(os.getenv("CACHE_CANDIDATE_COUNT", "3"))
    cache_ttl_minutes: int = int(os.getenv("CACHE_TTL_MINUTES", "1440"))  # 24 hours

    # Embedding
    embedding_provider: str = os.getenv("EMBEDDING_PROVIDER", "local")  # or "ollama", "openai"
    embedding_model: str = os.getenv(
        "EMBEDDING_MODEL",
        "paraphrase-multilingual-MiniLM-L12-v2",  # or "embeddinggemma" for Ollama
    )

    # Ollama
    ollama_base_url: str = os.getenv("OLLAMA_BASE_URL", "http://localhost:11434")

    # OpenAI
    openai_api_key: str | None = os.getenv("OPENAI_API_KEY")
    openai_embedding_model: str = os.getenv("OPENAI_EMBEDDING_MODEL", "text-embedding-3-small")
    openai_completion_model: str = os.getenv("OPENAI_COMPLETION_MODEL", "gpt-4o-mini")
    openai_temperature: float = float(os.getenv("OPENAI_TEMPERATURE", "0.7"))
    openai_max_tokens: int = int(os.getenv("OPENAI_MAX_TOKENS", "1024"))
    system_prompt: str = os.getenv(
        "SYSTEM_PROMPT",
        "Return the response in plain text, do not use markdown. "
        "Answer in an informal and casual conversational manner.",
    )

    # API
    api_host: str = os.getenv("API_HOST", "0.0.0.0")
    api_port: int = int(os.getenv("API_PORT", "8000"))
    api_reload: bool = os.getenv("API_RELOAD", "true").lower() == "true"
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    def __post_init__(self) -> None:
        """Validate settings after initialization."""
        if not -1 <= self.cache_similarity_threshold <= 1:
            raise ValueError("CACHE_SIMILARITY_THRESHOLD must be between -1 and 1 for cosine similarity")

        if self.cache_candidate_count < 1:
            raise ValueError(f"CACHE_CANDIDATE_COUNT must be at least 1, got {self.cache_candidate_count}")

        if self.cache_ttl_minutes < 1:
            raise ValueError(f"CACHE_TTL_MINUTES must be at least 1, got {self.cache_ttl_minutes}")

        if self.cache_backend not in ("redis", "memory"):
            raise ValueError(f"CACHE_BACKEND must be 'redis' or 'memory', got {self.cache_backend!r}")

        if self.embedding_provider not in ("local", "ollama", "openai"):
            raise ValueError(
                f"EMBEDDING_PROVIDER must be one of ['local', 'ollama', 'openai'], "
                f"got {self.embedding_provider!r}"
            )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()


@lru_cache
def get_redis_client() -> redis.Redis:
    """Get the process-wide async Redis client.

    The client owns a connection pool and is safe for concurrent use, so it is
    created on first call and reused until `close_redis_client()`.
    """
    return redis.from_url(
        settings.redis_url,
        password=settings.redis_password,
        decode_responses=False,
    )


async def close_redis_client() -> None:
    """Close the shared Redis client, if one was created."""
    if get_redis_client.cache_info().currsize == 0:
        return
    client = get_redis_client()
    get_redis_client.cache_clear()
    await client.aclose()
