"""
HTTP client for the remote embedding service.

One call sends one text: POST <endpoint> with {"content": <text>} and expects
{"embedding": [float, ...]} back. Texts are truncated client-side to
context_size * CHARS_PER_TOKEN characters before sending. No retries happen
here; retry policy belongs to the caller (see src.embeddings.producer).
"""

import math
from typing import Any, List, Optional

import httpx

from src.config import CHARS_PER_TOKEN, PipelineConfig
from src.errors import (
    InvalidInputError,
    MalformedResponseError,
    RemoteRejectedError,
    TransportError,
)
from src.utils.logging_config import logger


def truncate_text(text: str, context_size: int) -> str:
    """Cut text to at most context_size * CHARS_PER_TOKEN characters."""
    return text[: context_size * CHARS_PER_TOKEN]


def parse_embedding_response(payload: Any) -> List[float]:
    """
    Validate a decoded response body and return the embedding.

    Raises:
        MalformedResponseError: If the body is not {"embedding": [finite numbers]}
    """
    if not isinstance(payload, dict) or "embedding" not in payload:
        raise MalformedResponseError(f"Response has no 'embedding' field: {str(payload)[:200]}")

    values = payload["embedding"]
    if not isinstance(values, list) or not values:
        raise MalformedResponseError("'embedding' must be a non-empty list")

    embedding = []
    for value in values:
        # bool is an int subclass but never a valid component
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise MalformedResponseError(f"Non-numeric embedding component: {value!r}")
        try:
            component = float(value)
        except OverflowError as e:
            raise MalformedResponseError(f"Embedding component out of float range: {str(value)[:40]}") from e
        if not math.isfinite(component):
            raise MalformedResponseError(f"Non-finite embedding component: {value!r}")
        embedding.append(component)

    return embedding


class EmbeddingClient:
    """
    Issues single text -> vector requests against the embedding service.

    The underlying httpx.Client is created from the config unless one is
    injected (tests inject a client backed by httpx.MockTransport). An owned
    client is closed by close() or when used as a context manager.

    Example:
        >>> with EmbeddingClient(config) as client:
        ...     vector = client.embed("Special promotion on our new weightloss")
    """

    def __init__(self, config: PipelineConfig, http_client: Optional[httpx.Client] = None):
        self.config = config
        self.endpoint = config.embedding_endpoint
        self._owns_client = http_client is None
        self._http = http_client or httpx.Client(timeout=config.request_timeout)

    def embed(self, text: str, context_size: Optional[int] = None) -> List[float]:
        """
        Embed one text.

        Args:
            text: Text to embed (must be non-empty)
            context_size: Model context size in tokens (defaults to config)

        Returns:
            Embedding vector

        Raises:
            InvalidInputError: If text is empty
            TransportError: If the request cannot complete or times out
            RemoteRejectedError: If the service returns a non-2xx status
            MalformedResponseError: If the response body is not a valid embedding
        """
        if not text:
            raise InvalidInputError("Invalid text embedding request: empty string")

        if context_size is None:
            context_size = self.config.context_size
        content = truncate_text(text, context_size)

        try:
            response = self._http.post(
                self.endpoint,
                json={"content": content},
                headers={"Content-Type": "application/json"},
                timeout=self.config.request_timeout,
            )
        except httpx.TimeoutException as e:
            raise TransportError(
                f"Embedding request timed out after {self.config.request_timeout}s: {e}"
            ) from e
        except httpx.HTTPError as e:
            raise TransportError(f"Embedding request failed: {e}") from e

        if not response.is_success:
            raise RemoteRejectedError(
                f"Embedding service returned status {response.status_code}: {response.text[:200]}",
                status_code=response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise MalformedResponseError(f"Response body is not valid JSON: {response.text[:200]}") from e

        embedding = parse_embedding_response(payload)
        logger.debug(f"Embedded {len(content)} chars -> {len(embedding)} dims")
        return embedding

    def close(self) -> None:
        if self._owns_client:
            self._http.close()

    def __enter__(self) -> "EmbeddingClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
