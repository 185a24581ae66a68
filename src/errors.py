"""
Error taxonomy for the embedding pipeline.

Per-item errors (EmbeddingError subclasses, ParseError) are captured and
reported per record and never abort a stream or a load. IOFailureError and
ShapeMismatchError are fatal to the enclosing operation.
"""

from typing import Optional


class PipelineError(Exception):
    """Base class for all pipeline errors."""
    pass


class EmbeddingError(PipelineError):
    """Raised when a single text could not be turned into an embedding."""
    pass


class InvalidInputError(EmbeddingError):
    """Raised when the text to embed is empty."""
    pass


class TransportError(EmbeddingError):
    """Raised when the request to the embedding service cannot complete (incl. timeouts)."""
    pass


class RemoteRejectedError(EmbeddingError):
    """Raised when the embedding service answers with a non-success status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code

    @property
    def is_server_error(self) -> bool:
        return self.status_code is not None and self.status_code >= 500


class MalformedResponseError(EmbeddingError):
    """Raised when a success response body is not {"embedding": [float, ...]}."""
    pass


class ParseError(PipelineError):
    """Raised when a persisted embedding record is malformed."""
    pass


class ShapeMismatchError(PipelineError):
    """Raised when embeddings of different dimensionality would be combined."""
    pass


class IOFailureError(PipelineError):
    """Raised when a durable sink or source cannot be opened, read or written."""
    pass


__all__ = [
    "PipelineError",
    "EmbeddingError",
    "InvalidInputError",
    "TransportError",
    "RemoteRejectedError",
    "MalformedResponseError",
    "ParseError",
    "ShapeMismatchError",
    "IOFailureError",
]
