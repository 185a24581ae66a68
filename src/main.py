"""
Spam Embedding Pipeline Main Entry Point

Provides the CLI for the three pipeline commands:
- generate_embeddings: embed labeled corpora and append them to disk
- train: load persisted embeddings and train/test the KNN regressor
- predict: score literal sentences with the trained regressor

Configuration is read once here and passed to every command. Setup errors
(missing configuration, unopenable files, inconsistent data) exit with
status 1; per-item embedding failures do not.
"""

import argparse
import sys
import time
from pathlib import Path
from typing import List, Optional

from src.config import ConfigurationError, load_config, print_configuration
from src.utils.logging_config import get_logger, log_step_complete, log_step_start, setup_logger
from src.pipeline.generate_embeddings import run as run_generate
from src.pipeline.train_model import run as run_train
from src.pipeline.predict import run as run_predict


# Command names used by earlier releases
LEGACY_COMMANDS = {
    "train_and_test_text_embedding_knn_regressor": ("train", False),
    "train_and_test_text_embedding_knn_regressor_eval": ("train", True),
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Spam embedding pipeline")
    parser.add_argument("--show-config", action="store_true", help="Print the loaded configuration first")
    subparsers = parser.add_subparsers(dest="command")

    generate = subparsers.add_parser("generate_embeddings", help="Embed labeled corpora and persist them")
    generate.add_argument("--corpus", type=Path, nargs="+", help="CSV corpora (defaults to built-in list)")
    generate.add_argument("--output", type=Path, help="Embeddings output file")

    train = subparsers.add_parser("train", help="Train and test the KNN regressor")
    train.add_argument("--dataset", type=Path, nargs="+", help="Embedding files to load")
    train.add_argument("--eval", action="store_true", help="Hold out a test split")

    predict = subparsers.add_parser("predict", help="Predict spam probability for sentences")
    predict.add_argument("sentences", nargs="*", help="Sentences to score (defaults to examples)")

    return parser


def _normalize_argv(argv: List[str]) -> List[str]:
    for position, arg in enumerate(argv):
        if arg.startswith("-"):
            continue
        if arg in LEGACY_COMMANDS:
            command, evaluate = LEGACY_COMMANDS[arg]
            return argv[:position] + [command] + (["--eval"] if evaluate else []) + argv[position + 1:]
        break
    return argv


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the pipeline CLI.

    Returns:
        Process exit status (0 on success)
    """
    argv = _normalize_argv(list(sys.argv[1:] if argv is None else argv))
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        print("No command specified.")
        parser.print_help()
        return 0

    try:
        config = load_config()
    except ConfigurationError as e:
        # Logging is configured from the config, so report on stderr directly
        print(f"\n❌ Configuration Error: {e}", file=sys.stderr)
        return 1

    setup_logger(config.log_level)
    logger = get_logger("main")

    if args.show_config:
        print_configuration(config)

    step_name = args.command + (" --eval" if getattr(args, "eval", False) else "")
    log_step_start(step_name)
    start_time = time.time()

    try:
        if args.command == "generate_embeddings":
            run_generate(config, corpus_paths=args.corpus, output_path=args.output)
        elif args.command == "train":
            run_train(config, dataset_paths=args.dataset, evaluate=args.eval)
        elif args.command == "predict":
            run_predict(config, sentences=args.sentences)
    except Exception as e:
        logger.error(f"{step_name} failed: {e}")
        logger.exception("Full traceback:")
        return 1

    log_step_complete(step_name, time.time() - start_time)
    return 0


if __name__ == "__main__":
    sys.exit(main())
