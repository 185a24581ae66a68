"""
Unit Tests for src.embeddings.persister

Tests batching, final flush, failure counting and sink errors.
"""

import io
import json
import threading
from pathlib import Path

import pytest

from src.dataset.records import EmbeddingRecord, LabeledText
from src.embeddings.persister import BufferedPersister, open_sink, serialize_record
from src.embeddings.producer import EmbeddingResult
from src.errors import IOFailureError, TransportError


def _ok(index: int, label: float = 1.0) -> EmbeddingResult:
    item = LabeledText(text=f"text {index}", label=label)
    record = EmbeddingRecord(embedding=[float(index), 0.5], label=label, text=item.text)
    return EmbeddingResult(index=index, item=item, record=record)


def _failed(index: int) -> EmbeddingResult:
    item = LabeledText(text=f"text {index}", label=0.0)
    return EmbeddingResult(index=index, item=item, error=TransportError("down"))


class RecordingSink(io.BytesIO):
    """BytesIO that records the size of each write call."""

    def __init__(self):
        super().__init__()
        self.writes = []

    def write(self, data):
        self.writes.append(data.count(b"\n"))
        return super().write(data)


class FailingSink(io.BytesIO):
    def write(self, data):
        raise OSError("disk full")


class TestBufferedPersister:
    """Tests for BufferedPersister"""

    def test_writes_in_batches_with_final_partial_flush(self):
        """5 records with batch size 2 -> writes of 2, 2, then 1"""
        sink = RecordingSink()
        persister = BufferedPersister(sink, batch_size=2)

        summary = persister.persist(iter([_ok(i) for i in range(5)]), total=5)

        assert summary.written == 5
        assert summary.failed == 0
        assert sink.writes == [2, 2, 1]

    def test_output_is_newline_delimited_json_in_order(self):
        sink = io.BytesIO()
        persister = BufferedPersister(sink, batch_size=10)

        persister.persist([_ok(0), _ok(1), _ok(2)])

        lines = sink.getvalue().decode("utf-8").splitlines()
        assert [json.loads(line)["embedding"][0] for line in lines] == [0.0, 1.0, 2.0]
        assert set(json.loads(lines[0])) == {"text", "label", "embedding"}

    def test_failed_results_counted_not_written(self):
        sink = io.BytesIO()
        persister = BufferedPersister(sink, batch_size=2)

        summary = persister.persist([_ok(0), _failed(1), _ok(2)], total=3)

        assert summary.written == 2
        assert summary.failed == 1
        assert summary.processed == 3
        assert len(sink.getvalue().splitlines()) == 2

    def test_nothing_buffered_after_persist(self):
        persister = BufferedPersister(io.BytesIO(), batch_size=100)

        persister.persist([_ok(0)])

        assert persister.buffered == 0

    @pytest.mark.parametrize("interruption", [KeyboardInterrupt, RuntimeError])
    def test_interrupted_stream_flushes_buffered_records(self, interruption):
        def stream():
            for index in range(5):
                yield _ok(index)
            raise interruption()

        sink = io.BytesIO()
        persister = BufferedPersister(sink, batch_size=100)

        with pytest.raises(interruption):
            persister.persist(stream())

        lines = sink.getvalue().decode("utf-8").splitlines()
        assert [json.loads(line)["text"] for line in lines] == [f"text {i}" for i in range(5)]
        assert persister.buffered == 0

    def test_sink_failure_is_fatal(self):
        persister = BufferedPersister(FailingSink(), batch_size=1)

        with pytest.raises(IOFailureError):
            persister.persist([_ok(0), _ok(1)])

    @pytest.mark.parametrize("batch_size", [0, -1, 1.5])
    def test_invalid_batch_size_rejected(self, batch_size):
        with pytest.raises(ValueError):
            BufferedPersister(io.BytesIO(), batch_size=batch_size)

    def test_concurrent_adds_do_not_interleave_lines(self):
        """Flushes from several threads never split or merge lines"""
        sink = io.BytesIO()
        persister = BufferedPersister(sink, batch_size=3)

        def worker(offset):
            for i in range(50):
                persister.add(_ok(offset + i).record)

        threads = [threading.Thread(target=worker, args=(n * 1000,)) for n in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        persister.flush()

        lines = sink.getvalue().decode("utf-8").splitlines()
        assert len(lines) == 200
        assert all(json.loads(line)["label"] == 1.0 for line in lines)


class TestOpenSink:
    """Tests for open_sink()"""

    def test_creates_missing_file_and_parents(self, tmp_path: Path):
        path = tmp_path / "nested" / "out.json"

        with open_sink(path) as sink:
            sink.write(b"{}\n")

        assert path.read_bytes() == b"{}\n"

    def test_appends_to_existing_file(self, tmp_path: Path):
        path = tmp_path / "out.json"
        path.write_bytes(b"first\n")

        with open_sink(path) as sink:
            sink.write(b"second\n")

        assert path.read_bytes() == b"first\nsecond\n"

    def test_unopenable_path_raises_io_failure(self, tmp_path: Path):
        directory = tmp_path / "is_a_dir"
        directory.mkdir()

        with pytest.raises(IOFailureError):
            with open_sink(directory):
                pass


class TestSerializeRecord:
    """Tests for serialize_record()"""

    def test_single_line_with_newline(self):
        record = EmbeddingRecord(embedding=[0.1, 0.2], label=0.0, text="line\nbreak")

        data = serialize_record(record)

        assert data.endswith(b"\n")
        assert data.count(b"\n") == 1
        assert json.loads(data) == {"text": "line\nbreak", "label": 0.0, "embedding": [0.1, 0.2]}
