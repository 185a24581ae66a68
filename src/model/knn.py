"""
KNN regression model adapter.

Wraps scikit-learn's KNeighborsRegressor behind the interface the pipeline
expects from its downstream model:
- update_model(features, labels): fit and persist
- test_model(features, labels): score against known labels
- predict(features): spam probabilities in [0, 1]

The fitted estimator is pickled to model_path so training and prediction can
run in separate processes.
"""

import pickle
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence

import numpy as np
from sklearn.metrics import mean_squared_error
from sklearn.neighbors import KNeighborsRegressor

from src.utils.logging_config import logger


# Probability above which a text counts as spam when scoring
DECISION_THRESHOLD = 0.5


class ModelNotTrainedError(Exception):
    """Raised when predicting or testing before a model has been trained."""
    pass


@dataclass
class ModelScores:
    """Evaluation metrics from test_model()."""

    mse: float
    accuracy: float
    n: int


class KnnRegressionModel:
    """KNeighborsRegressor persisted to disk between commands."""

    def __init__(self, model_path: Path, n_neighbors: int = 5):
        self.model_path = Path(model_path)
        self.n_neighbors = n_neighbors
        self._model: Optional[KNeighborsRegressor] = None

    def _load(self) -> KNeighborsRegressor:
        if self._model is not None:
            return self._model

        if not self.model_path.exists():
            raise ModelNotTrainedError(
                f"No trained model at {self.model_path}. Run the train command first."
            )

        with self.model_path.open("rb") as f:
            self._model = pickle.load(f)
        logger.debug(f"Loaded KNN model from {self.model_path}")
        return self._model

    def update_model(self, features: Sequence[Sequence[float]], labels: Sequence[float]) -> None:
        """Fit on the given data and save the model."""
        x = np.asarray(features, dtype=np.float32)
        y = np.asarray(labels, dtype=np.float32)

        # k cannot exceed the number of training samples
        k = min(self.n_neighbors, len(y))
        model = KNeighborsRegressor(n_neighbors=k)
        model.fit(x, y)

        self.model_path.parent.mkdir(parents=True, exist_ok=True)
        with self.model_path.open("wb") as f:
            pickle.dump(model, f)

        self._model = model
        logger.success(f"✓ KNN model (k={k}) trained on {len(y):,} samples, saved to {self.model_path}")

    def predict(self, features: Sequence[Sequence[float]]) -> List[float]:
        """Spam probabilities for each feature vector, clamped to [0, 1]."""
        model = self._load()
        x = np.asarray(features, dtype=np.float32)
        predictions = np.clip(model.predict(x), 0.0, 1.0)
        return [float(p) for p in predictions]

    def test_model(self, features: Sequence[Sequence[float]], labels: Sequence[float]) -> ModelScores:
        """Mean squared error and thresholded accuracy against known labels."""
        predictions = np.asarray(self.predict(features))
        y = np.asarray(labels, dtype=np.float32)

        mse = float(mean_squared_error(y, predictions))
        accuracy = float(np.mean((predictions >= DECISION_THRESHOLD) == (y >= DECISION_THRESHOLD)))
        scores = ModelScores(mse=mse, accuracy=accuracy, n=len(y))

        logger.info(f"MSE: {scores.mse:.4f}")
        logger.info(f"Accuracy: {scores.accuracy * 100:.2f}% ({scores.n:,} samples)")
        return scores
