"""
Buffered, append-only persistence of produced embeddings.

Successful records are buffered in memory and appended to the sink as
newline-delimited JSON once the buffer reaches batch_size; whatever is left
is flushed when the stream ends. Failed items are counted and logged, never
written. A write failure is fatal (IOFailureError).

The buffer and the sink are owned by one BufferedPersister and guarded by a
single lock, so there is exactly one writer at a time.
"""

import json
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Generator, Iterable, List, Optional

from src.dataset.records import EmbeddingRecord
from src.embeddings.producer import EmbeddingResult
from src.errors import IOFailureError
from src.utils.logging_config import logger
from src.utils.progress import ProgressTracker


@dataclass
class PersistSummary:
    """Counts reported at the end of a persist run."""

    written: int = 0
    failed: int = 0

    @property
    def processed(self) -> int:
        return self.written + self.failed


def serialize_record(record: EmbeddingRecord) -> bytes:
    """One NDJSON line (with trailing newline) in the flat schema."""
    return (json.dumps(record.to_json(), ensure_ascii=False, allow_nan=False) + "\n").encode("utf-8")


@contextmanager
def open_sink(path: Path) -> Generator[BinaryIO, None, None]:
    """
    Open an append-only binary sink, creating the file and parents if missing.

    Raises:
        IOFailureError: If the file cannot be opened for appending
    """
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        sink = open(path, "ab")
    except OSError as e:
        logger.error(f"❌ Cannot open output file {path}: {e}")
        raise IOFailureError(f"Cannot open output file {path}: {e}") from e

    try:
        yield sink
    finally:
        sink.close()


class BufferedPersister:
    """
    Writes EmbeddingRecords to an append-only sink in bounded batches.

    Example:
        >>> with open_sink(Path("embeddings_dataset.json")) as sink:
        ...     persister = BufferedPersister(sink, batch_size=100)
        ...     summary = persister.persist(produce(items, client), total=len(items))
    """

    def __init__(self, sink: BinaryIO, batch_size: int):
        if not isinstance(batch_size, int) or batch_size <= 0:
            raise ValueError(f"batch_size must be a positive integer, got {batch_size!r}")

        self.sink = sink
        self.batch_size = batch_size
        self._buffer: List[EmbeddingRecord] = []
        self._lock = threading.Lock()
        self.written = 0

    @property
    def buffered(self) -> int:
        return len(self._buffer)

    def add(self, record: EmbeddingRecord) -> None:
        """Buffer a record, flushing when the buffer is full."""
        with self._lock:
            self._buffer.append(record)
            if len(self._buffer) >= self.batch_size:
                self._flush_locked()

    def flush(self) -> int:
        """Append all buffered records to the sink; returns how many were written."""
        with self._lock:
            return self._flush_locked()

    def _flush_locked(self) -> int:
        if not self._buffer:
            return 0

        payload = b"".join(serialize_record(record) for record in self._buffer)
        try:
            self.sink.write(payload)
            self.sink.flush()
        except OSError as e:
            logger.error(f"❌ Failed to write {len(self._buffer)} records: {e}")
            raise IOFailureError(f"Failed to write embeddings to sink: {e}") from e

        count = len(self._buffer)
        self.written += count
        self._buffer.clear()
        logger.debug(f"Flushed {count} records ({self.written} written so far)")
        return count

    def persist(
        self,
        stream: Iterable[EmbeddingResult],
        total: Optional[int] = None,
    ) -> PersistSummary:
        """
        Consume a result stream and persist every successful record.

        Args:
            stream: EmbeddingResults in production order
            total: Number of items expected (for progress reporting only)

        Returns:
            PersistSummary with written and failed counts

        Raises:
            IOFailureError: If writing to the sink fails
        """
        tracker = ProgressTracker(total)
        summary = PersistSummary()
        start_written = self.written

        try:
            for processed, result in enumerate(stream):
                tracker.report(processed)

                if result.ok:
                    self.add(result.record)
                else:
                    summary.failed += 1
                    logger.warning(f"⚠ Item {result.index} failed: {result.error}")
        finally:
            # Records already embedded survive an interrupted stream
            self.flush()

        summary.written = self.written - start_written
        return summary
