"""
Dataset assembly: shuffle, split and merge.

All operations return new Datasets and keep features[i] paired with
labels[i]. Dimensionality is checked before data reaches the model, since
the KNN regressor needs every vector to have the same length.
"""

import math
from typing import Iterable, Optional, Tuple

import numpy as np

from src.dataset.records import Dataset
from src.errors import ShapeMismatchError
from src.utils.logging_config import logger


def ensure_uniform_dimension(dataset: Dataset) -> int:
    """
    Return the embedding dimension shared by every vector.

    Returns 0 for an empty dataset.

    Raises:
        ShapeMismatchError: If vectors of different lengths are present
    """
    dimensions = dataset.dimensions()
    if len(dimensions) > 1:
        raise ShapeMismatchError(
            f"Embeddings have inconsistent dimensions: {sorted(dimensions)}"
        )
    return dimensions.pop() if dimensions else 0


def shuffle(dataset: Dataset, seed: Optional[int] = None) -> Dataset:
    """Uniformly permute the (feature, label) pairs."""
    rng = np.random.default_rng(seed)
    order = rng.permutation(len(dataset))
    return Dataset(
        features=[dataset.features[i] for i in order],
        labels=[dataset.labels[i] for i in order],
    )


def split(dataset: Dataset, ratio: float) -> Tuple[Dataset, Dataset]:
    """
    Split into the first floor(n * ratio) pairs and the rest.

    No shuffling happens here; shuffle first for a random split.

    Raises:
        ValueError: If ratio is not strictly between 0 and 1
    """
    if not 0.0 < ratio < 1.0:
        raise ValueError(f"ratio must be between 0 and 1 (exclusive), got {ratio}")

    cut = math.floor(len(dataset) * ratio)
    first = Dataset(features=dataset.features[:cut], labels=dataset.labels[:cut])
    second = Dataset(features=dataset.features[cut:], labels=dataset.labels[cut:])
    return first, second


def merge(datasets: Iterable[Dataset]) -> Dataset:
    """
    Concatenate datasets in order.

    Raises:
        ShapeMismatchError: If the merged vectors do not share one dimension
    """
    merged = Dataset()
    for dataset in datasets:
        merged.features.extend(dataset.features)
        merged.labels.extend(dataset.labels)

    dimension = ensure_uniform_dimension(merged)
    logger.debug(f"Merged {len(merged):,} pairs of dimension {dimension}")
    return merged
