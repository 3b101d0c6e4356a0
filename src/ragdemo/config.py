from dataclasses import dataclass
from functools import lru_cache
import os


def _to_bool(value: str | None, *, default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _to_int(value: str | None, *, default: int, minimum: int) -> int:
    if value is None:
        return default
    parsed = int(value)
    return max(minimum, parsed)


def _to_optional_float(value: str | None) -> float | None:
    if value is None or not value.strip():
        return None
    return float(value)


@dataclass(frozen=True)
class Settings:
    llm_provider: str
    ollama_base_url: str
    ollama_model: str
    ollama_fallback_model: str
    ollama_timeout_seconds: float
    embedding_provider: str
    ollama_embed_base_url: str
    ollama_embed_model: str
    rag_embedding_dim: int
    rag_chunk_size: int
    rag_top_k: int
    rag_similarity_threshold: float | None
    rag_store_backend: str
    database_url: str
    db_echo: bool
    log_level: str


@lru_cache
def get_settings() -> Settings:
    ollama_base_url = os.getenv("OLLAMA_BASE_URL", "http://localhost:11434/v1")
    return Settings(
        llm_provider=os.getenv("LLM_PROVIDER", "ollama").strip().lower(),
        ollama_base_url=ollama_base_url,
        ollama_model=os.getenv("OLLAMA_MODEL", "qwen2.5:7b-instruct-q4_K_M"),
        ollama_fallback_model=os.getenv("OLLAMA_FALLBACK_MODEL", "qwen2.5:3b-instruct-q4_K_M"),
        ollama_timeout_seconds=float(os.getenv("OLLAMA_TIMEOUT_SECONDS", "30")),
        embedding_provider=os.getenv("EMBEDDING_PROVIDER", "ollama").strip().lower(),
        ollama_embed_base_url=os.getenv("OLLAMA_EMBED_BASE_URL", ollama_base_url),
        ollama_embed_model=os.getenv("OLLAMA_EMBED_MODEL", "nomic-embed-text"),
        rag_embedding_dim=_to_int(os.getenv("RAG_EMBEDDING_DIM"), default=64, minimum=8),
        rag_chunk_size=_to_int(os.getenv("RAG_CHUNK_SIZE"), default=500, minimum=1),
        rag_top_k=_to_int(os.getenv("RAG_TOP_K"), default=4, minimum=1),
        rag_similarity_threshold=_to_optional_float(os.getenv("RAG_SIMILARITY_THRESHOLD")),
        rag_store_backend=os.getenv("RAG_STORE_BACKEND", "memory").strip().lower(),
        database_url=os.getenv("API_DATABASE_URL", "sqlite+pysqlite:///./data/ragdemo.db"),
        db_echo=_to_bool(os.getenv("API_DB_ECHO"), default=False),
        log_level=os.getenv("LOG_LEVEL", "INFO").strip().upper(),
    )
