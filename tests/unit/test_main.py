"""
Unit Tests for src.main

Tests command dispatch and exit codes with the pipeline steps mocked out.
"""

from pathlib import Path
from unittest.mock import patch

import pytest

from src.config import ConfigurationError, PipelineConfig
from src.errors import IOFailureError
from src.main import main


@pytest.fixture
def cli_config(tmp_path):
    return PipelineConfig(embedding_endpoint="http://embedding.test", context_size=8)


@pytest.fixture(autouse=True)
def quiet_logger(tmp_path):
    with patch("src.main.setup_logger") as mock_setup:
        yield mock_setup


class TestMain:

    def test_no_command_exits_zero(self, capsys):
        assert main([]) == 0
        assert "No command specified." in capsys.readouterr().out

    @patch("src.main.load_config", side_effect=ConfigurationError("EMBEDDING_CONTEXT_SIZE missing"))
    def test_configuration_error_exits_nonzero(self, mock_load, capsys):
        assert main(["generate_embeddings"]) == 1
        assert "EMBEDDING_CONTEXT_SIZE" in capsys.readouterr().err

    @patch("src.main.run_generate")
    @patch("src.main.load_config")
    def test_generate_dispatch(self, mock_load, mock_run, cli_config):
        mock_load.return_value = cli_config

        assert main(["generate_embeddings", "--corpus", "a.csv", "--output", "out.json"]) == 0
        mock_run.assert_called_once_with(
            cli_config, corpus_paths=[Path("a.csv")], output_path=Path("out.json")
        )

    @patch("src.main.run_generate", side_effect=IOFailureError("cannot open"))
    @patch("src.main.load_config")
    def test_fatal_error_exits_nonzero(self, mock_load, mock_run, cli_config):
        mock_load.return_value = cli_config

        assert main(["generate_embeddings"]) == 1

    @pytest.mark.parametrize("argv,evaluate", [
        (["train"], False),
        (["train", "--eval"], True),
        (["train_and_test_text_embedding_knn_regressor"], False),
        (["train_and_test_text_embedding_knn_regressor_eval"], True),
    ])
    @patch("src.main.run_train")
    @patch("src.main.load_config")
    def test_train_dispatch(self, mock_load, mock_run, argv, evaluate, cli_config):
        mock_load.return_value = cli_config

        assert main(argv) == 0
        mock_run.assert_called_once_with(cli_config, dataset_paths=None, evaluate=evaluate)

    @patch("src.main.run_predict")
    @patch("src.main.load_config")
    def test_predict_dispatch(self, mock_load, mock_run, cli_config):
        mock_load.return_value = cli_config

        assert main(["predict", "win a prize", "see you"]) == 0
        mock_run.assert_called_once_with(cli_config, sentences=["win a prize", "see you"])

    @patch("src.main.print_configuration")
    @patch("src.main.run_train")
    @patch("src.main.load_config")
    def test_show_config_prints_before_running(self, mock_load, mock_run, mock_print, cli_config):
        mock_load.return_value = cli_config

        assert main(["--show-config", "train_and_test_text_embedding_knn_regressor_eval"]) == 0
        mock_print.assert_called_once_with(cli_config)
        mock_run.assert_called_once_with(cli_config, dataset_paths=None, evaluate=True)

    @patch("src.main.print_configuration")
    @patch("src.main.run_predict")
    @patch("src.main.load_config")
    def test_config_not_printed_by_default(self, mock_load, mock_run, mock_print, cli_config):
        mock_load.return_value = cli_config

        assert main(["predict"]) == 0
        mock_print.assert_not_called()
