from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType


@dataclass(frozen=True)
class Chunk:
    chunk_id: str
    source_title: str
    sequence_index: int
    text: str
    metadata: Mapping[str, str] = field(default_factory=dict, hash=False)

    def __post_init__(self) -> None:
        # read-only copy so a chunk cannot change after it is stored
        object.__setattr__(self, "metadata", MappingProxyType(dict(self.metadata)))


@dataclass(frozen=True)
class SourceDocument:
    title: str
    text: str


@dataclass(frozen=True)
class IngestionSummary:
    title: str
    chunk_count: int
    chunk_ids: tuple[str, ...]


@dataclass(frozen=True)
class ScoredChunk:
    chunk: Chunk
    score: float
