from __future__ import annotations

from ragdemo.services.rag.types import Chunk

SENTENCE_DELIMITER = ". "


def chunk_text(text: str, *, max_chunk_size: int) -> list[str]:
    """Split ``text`` on the literal ``". "`` and pack sentences into chunks.

    Sentences are never split, so a single sentence longer than
    ``max_chunk_size`` becomes its own oversized chunk.
    """
    if max_chunk_size <= 0:
        raise ValueError("max_chunk_size must be > 0")

    chunks: list[str] = []
    buffer = ""

    pieces = text.split(SENTENCE_DELIMITER)
    last = len(pieces) - 1

    for position, sentence in enumerate(pieces):
        if not sentence.strip():
            continue

        # only the final piece can carry its own terminal period
        if position == last and sentence.rstrip().endswith("."):
            segment = sentence + " "
        else:
            segment = sentence + SENTENCE_DELIMITER
        if buffer and len((buffer + segment).strip()) > max_chunk_size:
            chunks.append(buffer.strip())
            buffer = ""
        buffer += segment

    if buffer.strip():
        chunks.append(buffer.strip())

    return chunks


def chunk_id_for(title: str, index: int) -> str:
    return f"{title}_chunk_{index}"


def build_chunks(title: str, content: str, *, max_chunk_size: int) -> list[Chunk]:
    return [
        Chunk(
            chunk_id=chunk_id_for(title, index),
            source_title=title,
            sequence_index=index,
            text=piece,
            metadata={"title": title, "chunk": str(index)},
        )
        for index, piece in enumerate(chunk_text(content, max_chunk_size=max_chunk_size))
    ]
