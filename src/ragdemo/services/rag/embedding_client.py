from __future__ import annotations

from typing import Any, Protocol

import httpx


class EmbeddingClientError(RuntimeError):
    pass


class EmbeddingClient(Protocol):
    def embed_texts(self, texts: list[str]) -> list[list[float]]: ...


def _parse_vectors(payload: Any, *, expected: int) -> list[list[float]]:
    data = payload.get("data") if isinstance(payload, dict) else None
    if not isinstance(data, list):
        raise EmbeddingClientError("Invalid embeddings payload: missing data")

    # OpenAI-compatible servers may return items out of order; "index" restores it
    if all(isinstance(item, dict) and isinstance(item.get("index"), int) for item in data):
        data = sorted(data, key=lambda item: item["index"])

    vectors: list[list[float]] = []
    for item in data:
        embedding = item.get("embedding") if isinstance(item, dict) else None
        if not isinstance(embedding, list) or not embedding:
            raise EmbeddingClientError("Invalid embeddings payload: missing embedding vector")
        vectors.append([float(value) for value in embedding])

    if len(vectors) != expected:
        raise EmbeddingClientError(
            f"Invalid embeddings payload: expected {expected} vectors, got {len(vectors)}"
        )
    return vectors


class OllamaEmbeddingClient:
    def __init__(self, *, base_url: str, model: str, timeout_seconds: float = 30.0) -> None:
        self._base_url = base_url.rstrip("/")
        self._model = model
        self._timeout_seconds = timeout_seconds

    def embed_texts(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []

        try:
            response = httpx.post(
                f"{self._base_url}/embeddings",
                json={"model": self._model, "input": texts},
                timeout=self._timeout_seconds,
            )
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise EmbeddingClientError(str(exc)) from exc

        return _parse_vectors(payload, expected=len(texts))
