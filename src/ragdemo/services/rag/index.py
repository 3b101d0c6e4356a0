from __future__ import annotations

from collections.abc import Sequence
import math
from threading import Lock
from typing import Protocol

from ragdemo.services.rag.embedding_client import EmbeddingClient, EmbeddingClientError
from ragdemo.services.rag.types import Chunk, ScoredChunk


class EmbeddingIndex(Protocol):
    def add(self, chunks: Sequence[Chunk]) -> None: ...

    def search(self, query: str, k: int | None = None) -> list[Chunk]: ...


def _cosine(a: list[float], b: list[float]) -> float:
    dot = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return dot / (norm_a * norm_b)


class InMemoryVectorIndex:
    """Flat cosine-similarity index over embedded chunks.

    There is no removal; callers that need a clean index build a new one.
    """

    def __init__(
        self,
        embedding_client: EmbeddingClient,
        *,
        top_k: int = 4,
        similarity_threshold: float | None = None,
    ) -> None:
        if top_k <= 0:
            raise ValueError("top_k must be > 0")
        self._embedding_client = embedding_client
        self._top_k = top_k
        self._similarity_threshold = similarity_threshold
        self._entries: list[tuple[Chunk, list[float]]] = []
        self._lock = Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def add(self, chunks: Sequence[Chunk]) -> None:
        if not chunks:
            return

        embeddings = self._embedding_client.embed_texts([chunk.text for chunk in chunks])
        if len(embeddings) != len(chunks):
            raise EmbeddingClientError(
                f"expected {len(chunks)} embeddings, got {len(embeddings)}"
            )

        with self._lock:
            self._entries.extend(zip(chunks, embeddings))

    def search_scored(self, query: str, k: int | None = None) -> list[ScoredChunk]:
        if k is not None and k <= 0:
            raise ValueError("k must be > 0")

        with self._lock:
            entries = list(self._entries)
        if not entries:
            return []

        try:
            query_embedding = self._embedding_client.embed_texts([query])[0]
        except IndexError as exc:
            raise EmbeddingClientError("no embedding returned for query") from exc

        hits = [
            ScoredChunk(chunk=chunk, score=_cosine(query_embedding, embedding))
            for chunk, embedding in entries
        ]
        if self._similarity_threshold is not None:
            hits = [hit for hit in hits if hit.score >= self._similarity_threshold]

        # sort is stable, so equal scores keep insertion order
        hits.sort(key=lambda hit: hit.score, reverse=True)
        return hits[: k if k is not None else self._top_k]

    def search(self, query: str, k: int | None = None) -> list[Chunk]:
        return [hit.chunk for hit in self.search_scored(query, k)]
