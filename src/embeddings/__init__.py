"""
Embedding Module

Client for the remote embedding service, the lazy per-item producer, and the
buffered append-only persister.
"""

from src.embeddings.client import EmbeddingClient
from src.embeddings.producer import EmbeddingResult, produce
from src.embeddings.persister import BufferedPersister, PersistSummary, open_sink

__all__ = [
    "EmbeddingClient",
    "EmbeddingResult",
    "produce",
    "BufferedPersister",
    "PersistSummary",
    "open_sink",
]
