from __future__ import annotations

from collections.abc import Sequence
from threading import Lock
from typing import Protocol

from sqlalchemy import delete, func, select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from ragdemo.db import Base
from ragdemo.models import ChunkRow
from ragdemo.services.rag.types import Chunk


class DocumentStore(Protocol):
    def add(self, chunks: Sequence[Chunk]) -> None: ...

    def clear(self) -> None: ...

    def list_chunks(self) -> list[Chunk]: ...

    def count(self) -> int: ...

    def is_empty(self) -> bool: ...


class InMemoryDocumentStore:
    def __init__(self) -> None:
        self._chunks: list[Chunk] = []
        self._lock = Lock()

    def add(self, chunks: Sequence[Chunk]) -> None:
        with self._lock:
            self._chunks.extend(chunks)

    def clear(self) -> None:
        with self._lock:
            self._chunks.clear()

    def list_chunks(self) -> list[Chunk]:
        with self._lock:
            return list(self._chunks)

    def count(self) -> int:
        with self._lock:
            return len(self._chunks)

    def is_empty(self) -> bool:
        return self.count() == 0


def _to_row(chunk: Chunk) -> ChunkRow:
    return ChunkRow(
        chunk_id=chunk.chunk_id,
        source_title=chunk.source_title,
        sequence_index=chunk.sequence_index,
        content=chunk.text,
        metadata_json=dict(chunk.metadata),
    )


def _to_chunk(row: ChunkRow) -> Chunk:
    metadata = row.metadata_json if isinstance(row.metadata_json, dict) else {}
    return Chunk(
        chunk_id=row.chunk_id,
        source_title=row.source_title,
        sequence_index=row.sequence_index,
        text=row.content,
        metadata={str(key): str(value) for key, value in metadata.items()},
    )


class SqlDocumentStore:
    """Chunk store backed by the ``rag_chunks`` table."""

    def __init__(self, engine: Engine, *, create_schema: bool = True) -> None:
        self._engine = engine
        if create_schema:
            Base.metadata.create_all(bind=engine, tables=[ChunkRow.__table__])

    def add(self, chunks: Sequence[Chunk]) -> None:
        if not chunks:
            return
        with Session(self._engine) as session:
            session.add_all([_to_row(chunk) for chunk in chunks])
            session.commit()

    def clear(self) -> None:
        with Session(self._engine) as session:
            session.execute(delete(ChunkRow))
            session.commit()

    def list_chunks(self) -> list[Chunk]:
        with Session(self._engine) as session:
            rows = session.scalars(select(ChunkRow).order_by(ChunkRow.row_id.asc())).all()
            return [_to_chunk(row) for row in rows]

    def count(self) -> int:
        with Session(self._engine) as session:
            return int(session.scalar(select(func.count()).select_from(ChunkRow)) or 0)

    def is_empty(self) -> bool:
        return self.count() == 0
