"""
Unit Tests for src.embeddings.producer

Tests ordering, per-item failure capture, laziness and retries.
"""

import httpx
import pytest
from unittest.mock import patch

from src.dataset.records import LabeledText
from src.embeddings.client import EmbeddingClient
from src.embeddings.producer import produce
from src.errors import InvalidInputError, MalformedResponseError, RemoteRejectedError, TransportError


class TestProduce:
    """Tests for produce()"""

    def test_one_result_per_item_in_order(self, test_config, embedding_service, labeled_items):
        client = EmbeddingClient(test_config, http_client=embedding_service.client())

        results = list(produce(labeled_items, client))

        assert [r.index for r in results] == [0, 1, 2]
        assert [r.item for r in results] == labeled_items
        assert all(r.ok for r in results)
        assert [r.record.label for r in results] == [1.0, 0.0, 1.0]
        assert [r.record.text for r in results] == [i.text for i in labeled_items]

    def test_middle_failure_does_not_stop_stream(self, test_config, embedding_service, labeled_items):
        """Item 2 rejected with non-2xx: 3 results, item 2 failed, 1 and 3 embedded"""
        embedding_service.fail_with[labeled_items[1].text] = 500
        client = EmbeddingClient(test_config, http_client=embedding_service.client())

        results = list(produce(labeled_items, client))

        assert len(results) == 3
        assert results[0].ok and results[2].ok
        assert not results[1].ok
        assert isinstance(results[1].error, RemoteRejectedError)
        assert results[1].record is None

    def test_empty_text_reported_as_invalid_input(self, test_config, embedding_service):
        client = EmbeddingClient(test_config, http_client=embedding_service.client())
        items = [LabeledText(text="", label=0.0), LabeledText(text="ok", label=0.0)]

        results = list(produce(items, client))

        assert isinstance(results[0].error, InvalidInputError)
        assert results[1].ok
        assert len(embedding_service.requests) == 1

    def test_lazy_no_requests_until_pulled(self, test_config, embedding_service, labeled_items):
        """No network calls happen before the consumer pulls"""
        client = EmbeddingClient(test_config, http_client=embedding_service.client())

        stream = produce(labeled_items, client)
        assert embedding_service.requests == []

        next(stream)
        assert len(embedding_service.requests) == 1

    def test_stopping_iteration_cancels_remaining_items(self, test_config, embedding_service, labeled_items):
        client = EmbeddingClient(test_config, http_client=embedding_service.client())

        stream = produce(labeled_items, client)
        next(stream)
        stream.close()

        assert len(embedding_service.requests) == 1

    def test_unrepresentable_response_is_per_item_failure(self, test_config, make_client, labeled_items):
        def handler(request):
            if b"Hi Bob" in request.content:
                return httpx.Response(200, content=b'{"embedding": [1' + b"0" * 400 + b"]}")
            return httpx.Response(200, json={"embedding": [0.1, 0.2]})

        client = EmbeddingClient(test_config, http_client=make_client(handler))

        results = list(produce(labeled_items, client))

        assert [r.ok for r in results] == [True, False, True]
        assert isinstance(results[1].error, MalformedResponseError)

    def test_unexpected_errors_propagate(self, test_config, labeled_items):
        """Only EmbeddingErrors are captured per item"""
        client = EmbeddingClient(test_config, http_client=httpx.Client())

        with patch.object(client, "embed", side_effect=KeyError("bug")):
            with pytest.raises(KeyError):
                list(produce(labeled_items, client))


class TestRetries:
    """Tests for retry behavior in produce()"""

    @patch("src.embeddings.producer.time.sleep")
    def test_transport_failure_retried(self, mock_sleep, test_config, make_client):
        attempts = []

        def handler(request):
            attempts.append(request)
            if len(attempts) == 1:
                raise httpx.ConnectError("refused", request=request)
            return httpx.Response(200, json={"embedding": [0.5, 0.5]})

        client = EmbeddingClient(test_config, http_client=make_client(handler))

        results = list(produce([LabeledText("hello", 1.0)], client, max_retries=2, initial_backoff=2))

        assert results[0].ok
        assert len(attempts) == 2
        mock_sleep.assert_called_once_with(1)

    @patch("src.embeddings.producer.time.sleep")
    def test_client_error_not_retried(self, mock_sleep, test_config, make_client):
        attempts = []

        def handler(request):
            attempts.append(request)
            return httpx.Response(422, text="bad input")

        client = EmbeddingClient(test_config, http_client=make_client(handler))

        results = list(produce([LabeledText("hello", 1.0)], client, max_retries=3))

        assert not results[0].ok
        assert len(attempts) == 1
        mock_sleep.assert_not_called()

    @patch("src.embeddings.producer.time.sleep")
    def test_retries_exhausted_reports_last_error(self, mock_sleep, test_config, make_client):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        client = EmbeddingClient(test_config, http_client=make_client(handler))

        results = list(produce([LabeledText("hello", 1.0)], client, max_retries=2))

        assert isinstance(results[0].error, TransportError)
        assert mock_sleep.call_count == 2

    def test_no_retries_by_default(self, test_config, make_client):
        attempts = []

        def handler(request):
            attempts.append(request)
            return httpx.Response(503)

        client = EmbeddingClient(test_config, http_client=make_client(handler))

        list(produce([LabeledText("hello", 1.0)], client))

        assert len(attempts) == 1
