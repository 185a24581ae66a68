"""
Pytest configuration and shared fixtures for the Spam Embedding Pipeline tests.

Provides a test configuration, an in-process fake of the embedding service
(httpx.MockTransport) and helpers for writing corpora and embedding files.
"""

import csv
import json
from pathlib import Path
from typing import Callable, Dict, List

import httpx
import pytest

from src.config import PipelineConfig
from src.dataset.records import LabeledText


TEST_ENDPOINT = "http://embedding.test/embedding"


def fake_embedding(content: str, dimension: int = 4) -> List[float]:
    """
    Deterministic embedding for a text.

    Spam-looking texts (containing "promotion", "win" or "prize") land near
    1.0 in the first dimension, everything else near 0.0, so a KNN model
    trained on these vectors can separate them.
    """
    lowered = content.lower()
    spammy = any(word in lowered for word in ("promotion", "win", "prize", "airdrop"))
    base = 1.0 if spammy else 0.0
    return [base] + [round((len(content) % (i + 7)) / 100.0, 4) for i in range(dimension - 1)]


class FakeEmbeddingService:
    """
    Stand-in for the remote embedding service.

    Records every request body; responds with fake_embedding() unless the
    content is listed in `fail_with`, in which case that status is returned.
    """

    def __init__(self, dimension: int = 4):
        self.dimension = dimension
        self.requests: List[Dict] = []
        self.fail_with: Dict[str, int] = {}

    def __call__(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        self.requests.append(body)
        content = body["content"]

        if content in self.fail_with:
            return httpx.Response(self.fail_with[content], text="rejected")

        return httpx.Response(200, json={"embedding": fake_embedding(content, self.dimension)})

    def client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self))


@pytest.fixture
def test_config(tmp_path: Path) -> PipelineConfig:
    """
    PipelineConfig pointing at temp paths.

    Uses a small context size (8 tokens -> 32 chars) and batch size (2)
    so truncation and batching are easy to observe.
    """
    return PipelineConfig(
        embedding_endpoint=TEST_ENDPOINT,
        context_size=8,
        request_timeout=5.0,
        batch_size=2,
        embeddings_path=tmp_path / "embeddings_dataset.json",
        model_path=tmp_path / "models" / "knn.pkl",
        knn_neighbors=3,
        split_seed=42,
    )


@pytest.fixture
def embedding_service() -> FakeEmbeddingService:
    return FakeEmbeddingService()


@pytest.fixture
def make_client() -> Callable[[Callable[[httpx.Request], httpx.Response]], httpx.Client]:
    """Factory for httpx clients backed by a request handler."""
    clients = []

    def _make(handler):
        client = httpx.Client(transport=httpx.MockTransport(handler))
        clients.append(client)
        return client

    yield _make

    for client in clients:
        client.close()


@pytest.fixture
def labeled_items() -> List[LabeledText]:
    return [
        LabeledText(text="Special promotion on our new weightloss", label=1.0),
        LabeledText(text="Hi Bob, see you at the meeting", label=0.0),
        LabeledText(text="Win a prize today", label=1.0),
    ]


@pytest.fixture
def write_csv(tmp_path: Path) -> Callable[..., Path]:
    """Write rows to a CSV file under tmp_path and return its path."""

    def _write(name: str, header: List[str], rows: List[List]) -> Path:
        path = tmp_path / name
        with open(path, "w", newline="", encoding="utf-8") as f:
            writer = csv.writer(f)
            writer.writerow(header)
            writer.writerows(rows)
        return path

    return _write


@pytest.fixture
def write_ndjson(tmp_path: Path) -> Callable[[str, List], Path]:
    """Write one JSON value per line (strings are written verbatim)."""

    def _write(name: str, lines: List) -> Path:
        path = tmp_path / name
        with open(path, "w", encoding="utf-8") as f:
            for line in lines:
                f.write(line if isinstance(line, str) else json.dumps(line))
                f.write("\n")
        return path

    return _write
