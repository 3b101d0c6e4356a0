from collections.abc import Iterator

import pytest
from fastapi.testclient import TestClient

from ragdemo.config import get_settings
from ragdemo.db import get_engine
from ragdemo.main import app, get_rag_service


@pytest.fixture(autouse=True)
def reset_caches(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    monkeypatch.setenv("LLM_PROVIDER", "fake")
    monkeypatch.setenv("EMBEDDING_PROVIDER", "hashing")
    monkeypatch.setenv("RAG_STORE_BACKEND", "memory")
    get_settings.cache_clear()
    get_engine.cache_clear()
    get_rag_service.cache_clear()
    yield
    get_settings.cache_clear()
    get_engine.cache_clear()
    get_rag_service.cache_clear()
    app.dependency_overrides.clear()


@pytest.fixture
def client() -> Iterator[TestClient]:
    with TestClient(app) as test_client:
        yield test_client
