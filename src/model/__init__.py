"""Downstream KNN regression model adapter."""

from src.model.knn import KnnRegressionModel, ModelNotTrainedError, ModelScores

__all__ = ["KnnRegressionModel", "ModelNotTrainedError", "ModelScores"]
