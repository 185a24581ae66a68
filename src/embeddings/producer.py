"""
Lazy, ordered embedding production over a labeled corpus.

produce() is a generator: nothing is sent to the embedding service until the
consumer pulls the next result, at most one request is outstanding at a time,
and stopping iteration cancels the run. Every input item yields exactly one
EmbeddingResult, in input order; a failed item is reported in its result and
never ends the stream.
"""

import time
from dataclasses import dataclass
from typing import Iterable, Iterator, List, Optional

from src.config import API_RETRY_INITIAL_BACKOFF
from src.dataset.records import EmbeddingRecord, LabeledText
from src.embeddings.client import EmbeddingClient
from src.errors import EmbeddingError, RemoteRejectedError, TransportError
from src.utils.logging_config import logger


@dataclass
class EmbeddingResult:
    """Outcome for one corpus item: a record on success, an error otherwise."""

    index: int
    item: LabeledText
    record: Optional[EmbeddingRecord] = None
    error: Optional[EmbeddingError] = None

    @property
    def ok(self) -> bool:
        return self.record is not None


def _is_retryable(error: EmbeddingError) -> bool:
    if isinstance(error, TransportError):
        return True
    return isinstance(error, RemoteRejectedError) and error.is_server_error


def _embed_with_retry(
    client: EmbeddingClient,
    text: str,
    max_retries: int,
    initial_backoff: float,
) -> List[float]:
    """
    Embed text, retrying transient failures with exponential backoff.

    Transport failures and 5xx rejections are retried; empty input, 4xx
    rejections and malformed responses fail immediately.
    """
    attempts = max_retries + 1
    for attempt in range(attempts):
        try:
            return client.embed(text)
        except EmbeddingError as e:
            if attempt == attempts - 1 or not _is_retryable(e):
                raise

            backoff_time = initial_backoff ** attempt
            logger.warning(
                f"Embedding request failed (attempt {attempt + 1}/{attempts}), "
                f"retrying in {backoff_time}s: {e}"
            )
            time.sleep(backoff_time)


def produce(
    items: Iterable[LabeledText],
    client: EmbeddingClient,
    max_retries: int = 0,
    initial_backoff: float = API_RETRY_INITIAL_BACKOFF,
) -> Iterator[EmbeddingResult]:
    """
    Yield one EmbeddingResult per labeled text, in order.

    Args:
        items: Labeled corpus entries
        client: Embedding client used for every item
        max_retries: Extra attempts for transient failures (0 = none)
        initial_backoff: Base of the exponential backoff in seconds

    Yields:
        EmbeddingResult for each item; failures carry the EmbeddingError
    """
    for index, item in enumerate(items):
        try:
            embedding = _embed_with_retry(client, item.text, max_retries, initial_backoff)
        except EmbeddingError as e:
            yield EmbeddingResult(index=index, item=item, error=e)
            continue

        yield EmbeddingResult(
            index=index,
            item=item,
            record=EmbeddingRecord(embedding=embedding, label=item.label, text=item.text),
        )
