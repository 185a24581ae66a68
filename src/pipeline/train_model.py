"""
TRAIN AND TEST KNN REGRESSOR

Loads persisted embeddings, reports the label balance, and trains the KNN
regressor.

Modes:
- default: train on all data, then test on the same data
- evaluate: shuffle, split at config.train_split_ratio, train on the first
  part, then test on both parts
"""

from pathlib import Path
from typing import Dict, Iterable, Optional

from src.config import PipelineConfig
from src.dataset.assembler import ensure_uniform_dimension, shuffle, split
from src.dataset.loader import load
from src.model.knn import KnnRegressionModel, ModelScores
from src.utils.logging_config import logger


class TrainingError(Exception):
    """Raised when there is no usable training data."""
    pass


def run(
    config: PipelineConfig,
    dataset_paths: Optional[Iterable[Path]] = None,
    evaluate: bool = False,
) -> Dict[str, ModelScores]:
    """
    Train (and optionally evaluate) the KNN regressor.

    Args:
        config: Pipeline configuration
        dataset_paths: Embedding files (defaults to config.embeddings_path)
        evaluate: Hold out a test split instead of testing on training data

    Returns:
        Scores keyed by "train" and, in evaluate mode, "test"

    Raises:
        TrainingError: If no records could be loaded
        ShapeMismatchError: If embeddings have inconsistent dimensions
    """
    logger.info("=" * 80)
    logger.info("TRAIN KNN REGRESSOR" + (" (EVAL)" if evaluate else ""))
    logger.info("=" * 80)

    dataset_paths = list(dataset_paths) if dataset_paths else [config.embeddings_path]
    dataset = load(dataset_paths)

    counts = dataset.label_counts()
    logger.info(f"Number of Spam entries: {counts['spam']:,}")
    logger.info(f"Number of Ham entries: {counts['ham']:,}")
    logger.info(f"Total entries: {counts['total']:,}")

    if not len(dataset):
        logger.error("❌ No embedding records loaded")
        raise TrainingError(f"No embedding records loaded from {[str(p) for p in dataset_paths]}")

    dimension = ensure_uniform_dimension(dataset)
    logger.info(f"Embedding dimension: {dimension}")

    model = KnnRegressionModel(config.model_path, n_neighbors=config.knn_neighbors)
    scores: Dict[str, ModelScores] = {}

    if not evaluate:
        x, y = dataset.to_numpy()
        model.update_model(x, y)
        logger.info("Scoring on training data:")
        scores["train"] = model.test_model(x, y)
    else:
        train_set, test_set = split(shuffle(dataset, seed=config.split_seed), config.train_split_ratio)
        if not len(train_set) or not len(test_set):
            raise TrainingError(
                f"Split of {len(dataset)} records at {config.train_split_ratio} leaves an empty partition"
            )
        logger.info(f"Train/test split: {len(train_set):,} / {len(test_set):,}")

        x_train, y_train = train_set.to_numpy()
        x_test, y_test = test_set.to_numpy()
        model.update_model(x_train, y_train)
        logger.info("Scoring on training data:")
        scores["train"] = model.test_model(x_train, y_train)
        logger.info("Scoring on held-out test data:")
        scores["test"] = model.test_model(x_test, y_test)

    logger.info("=" * 80)
    logger.info("TRAINING COMPLETE")
    logger.info("=" * 80)
    return scores
