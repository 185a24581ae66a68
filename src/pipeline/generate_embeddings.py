"""
GENERATE EMBEDDINGS

Embeds every labeled text in the spam corpora and appends the results to the
embeddings file as newline-delimited JSON.

Process:
1. Load labeled corpora (CSV)
2. Open the output file for appending (fatal if it cannot be opened)
3. Stream texts through the embedding service, one request at a time
4. Buffer successful records and append them in batches
5. Log written/failed counts

Input: CSV corpora (config.CSV_DATASET by default)
Output: NDJSON embeddings file (config.embeddings_path by default)
"""

from pathlib import Path
from typing import Iterable, Optional

import httpx

from src.config import CSV_DATASET, PipelineConfig
from src.dataset.corpus import load_labeled_csv
from src.embeddings.client import EmbeddingClient
from src.embeddings.persister import BufferedPersister, PersistSummary, open_sink
from src.embeddings.producer import produce
from src.utils.logging_config import logger


class GenerationError(Exception):
    """Raised when embedding generation cannot start."""
    pass


def run(
    config: PipelineConfig,
    corpus_paths: Optional[Iterable[Path]] = None,
    output_path: Optional[Path] = None,
    http_client: Optional[httpx.Client] = None,
) -> PersistSummary:
    """
    Generate and persist embeddings for a labeled corpus.

    Args:
        config: Pipeline configuration
        corpus_paths: CSV corpora (defaults to CSV_DATASET)
        output_path: NDJSON output (defaults to config.embeddings_path)
        http_client: Optional pre-built httpx client for the embedding service

    Returns:
        PersistSummary with written and failed counts

    Raises:
        GenerationError: If the corpus is empty
        IOFailureError: If the output file cannot be opened or written
    """
    logger.info("=" * 80)
    logger.info("GENERATE EMBEDDINGS")
    logger.info("=" * 80)

    corpus_paths = list(corpus_paths) if corpus_paths else list(CSV_DATASET)
    output_path = Path(output_path) if output_path else config.embeddings_path

    # 1. Load corpora
    items = load_labeled_csv(corpus_paths)
    if not items:
        logger.error("❌ No labeled texts found in the given corpora")
        raise GenerationError("No labeled texts found in the given corpora")
    logger.success(f"✓ {len(items):,} labeled texts to embed")

    # 2-4. Embed and persist
    logger.info(f"Appending embeddings to {output_path} (batch size {config.batch_size})")
    with open_sink(output_path) as sink, EmbeddingClient(config, http_client=http_client) as client:
        persister = BufferedPersister(sink, batch_size=config.batch_size)
        stream = produce(items, client, max_retries=config.max_retries)
        summary = persister.persist(stream, total=len(items))

    # 5. Summary
    logger.info("=" * 80)
    logger.info("GENERATE EMBEDDINGS COMPLETE")
    logger.info("=" * 80)
    logger.success(f"✓ Written: {summary.written:,}")
    if summary.failed:
        logger.warning(f"⚠ Failed: {summary.failed:,}")
    logger.info("")

    return summary
