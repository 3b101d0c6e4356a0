"""Retrieval-augmented question answering over ingested documents.

``RagService`` ties the pieces together:

* ``ingest`` chunks a document, hands the chunks to the embedding index and
  records them in the document store;
* ``query`` retrieves the most similar chunks, builds a grounding prompt and
  returns the chat model's answer unmodified;
* ``clear_all`` empties the store and swaps in a fresh index.

Writers (``ingest``/``clear_all``) are serialized by one lock. Errors from
the embedding client or chat model are not caught here.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from dataclasses import dataclass
from threading import RLock

from ragdemo.llm import LLMClient
from ragdemo.logger import get_logger
from ragdemo.services.rag.chunker import build_chunks
from ragdemo.services.rag.index import EmbeddingIndex
from ragdemo.services.rag.store import DocumentStore
from ragdemo.services.rag.types import Chunk, IngestionSummary

logger = get_logger(__name__)

DEFAULT_CHUNK_SIZE = 500

NO_DOCUMENTS_MESSAGE = "No documents have been indexed yet. Please upload documents first."
NO_RELEVANT_INFORMATION_MESSAGE = "No relevant information found in the knowledge base."

GROUNDING_PROMPT_TEMPLATE = """Answer the following question based on the provided context.
If the answer cannot be found in the context, say so.

Context:
{context}

Question: {question}

Answer:
"""


def build_context(chunks: list[Chunk]) -> str:
    return "\n\n".join(chunk.text for chunk in chunks)


def build_grounding_prompt(*, context: str, question: str) -> str:
    return GROUNDING_PROMPT_TEMPLATE.format(context=context, question=question)


class RagService:
    def __init__(
        self,
        *,
        store: DocumentStore,
        index_factory: Callable[[], EmbeddingIndex],
        llm_client: LLMClient,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> None:
        if chunk_size <= 0:
            raise ValueError("chunk_size must be > 0")

        self._store = store
        self._index_factory = index_factory
        self._llm_client = llm_client
        self._chunk_size = chunk_size
        self._lock = RLock()
        # a persistent store can outlive the in-memory index
        self._index = self._index_from_store()

    @property
    def chunk_size(self) -> int:
        return self._chunk_size

    def ingest(self, title: str, content: str) -> IngestionSummary:
        if not title or not title.strip():
            raise ValueError("title must not be empty")

        chunks = build_chunks(title, content, max_chunk_size=self._chunk_size)

        with self._lock:
            # index first so a failed embedding call leaves the store untouched
            self._index.add(chunks)
            try:
                self._store.add(chunks)
            except Exception:
                logger.warning("store write failed title=%r, rebuilding index", title)
                self._index = self._index_from_store()
                raise

        logger.info("ingested title=%r chunks=%d", title, len(chunks))
        return IngestionSummary(
            title=title,
            chunk_count=len(chunks),
            chunk_ids=tuple(chunk.chunk_id for chunk in chunks),
        )

    def query(self, question: str) -> str:
        prompt = self._prepare_prompt(question)
        if prompt.sentinel is not None:
            return prompt.sentinel
        return self._llm_client.complete(prompt.text).answer

    def stream_query(self, question: str) -> Iterator[str]:
        prompt = self._prepare_prompt(question)
        if prompt.sentinel is not None:
            yield prompt.sentinel
            return
        yield from self._llm_client.stream(prompt.text)

    def clear_all(self) -> None:
        with self._lock:
            self._store.clear()
            self._index = self._index_factory()
        logger.info("cleared knowledge base")

    def list_chunks(self) -> list[Chunk]:
        return self._store.list_chunks()

    def chunk_count(self) -> int:
        return self._store.count()

    def _index_from_store(self) -> EmbeddingIndex:
        index = self._index_factory()
        existing = self._store.list_chunks()
        if existing:
            index.add(existing)
            logger.info("rebuilt index from store chunks=%d", len(existing))
        return index

    def _prepare_prompt(self, question: str) -> _PreparedPrompt:
        with self._lock:
            is_empty = self._store.is_empty()
            index = self._index

        if is_empty:
            logger.info("query skipped: no documents indexed")
            return _PreparedPrompt(sentinel=NO_DOCUMENTS_MESSAGE)

        relevant = index.search(question)
        if not relevant:
            logger.info("query skipped: no relevant chunks")
            return _PreparedPrompt(sentinel=NO_RELEVANT_INFORMATION_MESSAGE)

        context = build_context(relevant)
        return _PreparedPrompt(text=build_grounding_prompt(context=context, question=question))


@dataclass(frozen=True)
class _PreparedPrompt:
    text: str = ""
    sentinel: str | None = None
