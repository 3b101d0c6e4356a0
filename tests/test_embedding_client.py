import httpx
import pytest

from ragdemo.services.rag.embedder import HashingEmbeddingClient, hashed_embedding
from ragdemo.services.rag.embedding_client import EmbeddingClientError, OllamaEmbeddingClient
from ragdemo.services.rag.index import _cosine


class _FakeResponse:
    def __init__(self, payload: dict[str, object], *, status_code: int = 200) -> None:
        self._payload = payload
        self.status_code = status_code

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            request = httpx.Request("POST", "http://localhost:11434/v1/embeddings")
            response = httpx.Response(self.status_code, request=request)
            raise httpx.HTTPStatusError("request failed", request=request, response=response)

    def json(self) -> dict[str, object]:
        return self._payload


def test_ollama_embedding_client_parses_vectors(monkeypatch: pytest.MonkeyPatch) -> None:
    captured: dict[str, object] = {}

    def fake_post(url: str, *, json: dict[str, object], timeout: float) -> _FakeResponse:
        captured["url"] = url
        captured["json"] = json
        captured["timeout"] = timeout
        return _FakeResponse(
            {
                "data": [
                    {"index": 1, "embedding": [4.5, 5.0, 6.25]},
                    {"index": 0, "embedding": [1, 2, 3]},
                ]
            }
        )

    monkeypatch.setattr("ragdemo.services.rag.embedding_client.httpx.post", fake_post)

    client = OllamaEmbeddingClient(
        base_url="http://localhost:11434/v1/",
        model="nomic-embed-text",
        timeout_seconds=12,
    )
    vectors = client.embed_texts(["first", "second"])

    assert vectors == [[1.0, 2.0, 3.0], [4.5, 5.0, 6.25]]
    assert captured["url"] == "http://localhost:11434/v1/embeddings"
    assert captured["json"] == {"model": "nomic-embed-text", "input": ["first", "second"]}
    assert captured["timeout"] == 12


def test_ollama_embedding_client_rejects_payload_size_mismatch(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    def fake_post(url: str, *, json: dict[str, object], timeout: float) -> _FakeResponse:
        del url, json, timeout
        return _FakeResponse({"data": [{"embedding": [1, 2, 3]}]})

    monkeypatch.setattr("ragdemo.services.rag.embedding_client.httpx.post", fake_post)

    client = OllamaEmbeddingClient(base_url="http://localhost:11434/v1", model="nomic-embed-text")

    with pytest.raises(EmbeddingClientError, match="expected 2 vectors"):
        client.embed_texts(["first", "second"])


def test_ollama_embedding_client_wraps_http_errors(monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_post(url: str, *, json: dict[str, object], timeout: float) -> _FakeResponse:
        del url, json, timeout
        return _FakeResponse({}, status_code=500)

    monkeypatch.setattr("ragdemo.services.rag.embedding_client.httpx.post", fake_post)

    client = OllamaEmbeddingClient(base_url="http://localhost:11434/v1", model="nomic-embed-text")

    with pytest.raises(EmbeddingClientError, match="request failed"):
        client.embed_texts(["first"])


def test_ollama_embedding_client_skips_request_for_empty_input(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    def fake_post(*args: object, **kwargs: object) -> _FakeResponse:
        raise AssertionError("no request expected")

    monkeypatch.setattr("ragdemo.services.rag.embedding_client.httpx.post", fake_post)

    client = OllamaEmbeddingClient(base_url="http://localhost:11434/v1", model="nomic-embed-text")

    assert client.embed_texts([]) == []


def test_hashing_embedding_is_deterministic_unit_vector() -> None:
    first = hashed_embedding("Spring Boot simplifies configuration", dimensions=32)
    second = hashed_embedding("Spring Boot simplifies configuration", dimensions=32)

    assert first == second
    assert len(first) == 32
    assert sum(value * value for value in first) == pytest.approx(1.0)


def test_hashing_embedding_scores_overlapping_text_higher() -> None:
    client = HashingEmbeddingClient(dimensions=256)
    query, related, unrelated = client.embed_texts(
        [
            "spring boot configuration",
            "Spring Boot has auto configuration",
            "penguins live in antarctica",
        ]
    )

    assert _cosine(query, related) > _cosine(query, unrelated)


def test_hashing_embedding_of_blank_text_is_zero_vector() -> None:
    assert hashed_embedding("  ", dimensions=8) == [0.0] * 8


def test_hashing_embedding_rejects_non_positive_dimensions() -> None:
    with pytest.raises(ValueError, match="dimensions"):
        HashingEmbeddingClient(dimensions=0)
