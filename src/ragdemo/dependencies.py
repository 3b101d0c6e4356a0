from __future__ import annotations

from collections.abc import Callable

from ragdemo.config import Settings
from ragdemo.db import get_engine
from ragdemo.llm import EchoChatClient, LLMClient, OllamaChatClient
from ragdemo.services.rag.embedder import HashingEmbeddingClient
from ragdemo.services.rag.embedding_client import EmbeddingClient, OllamaEmbeddingClient
from ragdemo.services.rag.index import EmbeddingIndex, InMemoryVectorIndex
from ragdemo.services.rag.service import RagService
from ragdemo.services.rag.store import DocumentStore, InMemoryDocumentStore, SqlDocumentStore


def build_llm_client(settings: Settings) -> LLMClient:
    if settings.llm_provider == "ollama":
        return OllamaChatClient(
            base_url=settings.ollama_base_url,
            default_model=settings.ollama_model,
            fallback_model=settings.ollama_fallback_model,
            timeout_seconds=settings.ollama_timeout_seconds,
        )
    if settings.llm_provider == "fake":
        return EchoChatClient()
    raise ValueError(f"Unknown LLM_PROVIDER: {settings.llm_provider!r}")


def build_embedding_client(settings: Settings) -> EmbeddingClient:
    if settings.embedding_provider == "ollama":
        return OllamaEmbeddingClient(
            base_url=settings.ollama_embed_base_url,
            model=settings.ollama_embed_model,
            timeout_seconds=settings.ollama_timeout_seconds,
        )
    if settings.embedding_provider == "hashing":
        return HashingEmbeddingClient(dimensions=settings.rag_embedding_dim)
    raise ValueError(f"Unknown EMBEDDING_PROVIDER: {settings.embedding_provider!r}")


def build_document_store(settings: Settings) -> DocumentStore:
    if settings.rag_store_backend == "memory":
        return InMemoryDocumentStore()
    if settings.rag_store_backend == "sql":
        return SqlDocumentStore(get_engine())
    raise ValueError(f"Unknown RAG_STORE_BACKEND: {settings.rag_store_backend!r}")


def build_index_factory(
    settings: Settings,
    embedding_client: EmbeddingClient,
) -> Callable[[], EmbeddingIndex]:
    def factory() -> EmbeddingIndex:
        return InMemoryVectorIndex(
            embedding_client,
            top_k=settings.rag_top_k,
            similarity_threshold=settings.rag_similarity_threshold,
        )

    return factory


def build_rag_service(
    settings: Settings,
    *,
    llm_client: LLMClient | None = None,
    embedding_client: EmbeddingClient | None = None,
    store: DocumentStore | None = None,
) -> RagService:
    return RagService(
        store=store if store is not None else build_document_store(settings),
        index_factory=build_index_factory(
            settings,
            embedding_client if embedding_client is not None else build_embedding_client(settings),
        ),
        llm_client=llm_client if llm_client is not None else build_llm_client(settings),
        chunk_size=settings.rag_chunk_size,
    )
