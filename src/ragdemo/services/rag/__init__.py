from ragdemo.services.rag.service import (
    NO_DOCUMENTS_MESSAGE,
    NO_RELEVANT_INFORMATION_MESSAGE,
    RagService,
)
from ragdemo.services.rag.types import Chunk, IngestionSummary

__all__ = [
    "NO_DOCUMENTS_MESSAGE",
    "NO_RELEVANT_INFORMATION_MESSAGE",
    "Chunk",
    "IngestionSummary",
    "RagService",
]
