from __future__ import annotations

import hashlib
import math
import re

_TOKEN_PATTERN = re.compile(r"[a-z0-9]+")


def _normalize(vector: list[float]) -> list[float]:
    norm = math.sqrt(sum(value * value for value in vector))
    if norm > 0:
        return [value / norm for value in vector]
    return vector


def _bucket(token: str, *, dimensions: int) -> int:
    digest = hashlib.sha256(token.encode("utf-8")).digest()
    return int.from_bytes(digest[:4], "big") % dimensions


def hashed_embedding(text: str, *, dimensions: int) -> list[float]:
    """Bag-of-words vector with tokens hashed into ``dimensions`` buckets.

    Texts sharing words get a positive cosine similarity, which is enough
    for retrieval tests and offline demos without an embedding server.
    """
    if dimensions <= 0:
        raise ValueError("dimensions must be > 0")

    vector = [0.0] * dimensions
    for token in _TOKEN_PATTERN.findall(text.lower()):
        vector[_bucket(token, dimensions=dimensions)] += 1.0
    return _normalize(vector)


class HashingEmbeddingClient:
    """Deterministic, dependency-free stand-in for an embedding server."""

    def __init__(self, *, dimensions: int = 64) -> None:
        if dimensions <= 0:
            raise ValueError("dimensions must be > 0")
        self._dimensions = dimensions

    @property
    def dimensions(self) -> int:
        return self._dimensions

    def embed_texts(self, texts: list[str]) -> list[list[float]]:
        return [hashed_embedding(text, dimensions=self._dimensions) for text in texts]
