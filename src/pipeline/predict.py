"""
PREDICT

Embeds literal sentences and scores them with the trained KNN regressor.
Without arguments, a fixed set of example sentences with known labels is used
so the output can be eyeballed against expectations.
"""

from typing import List, Optional, Sequence

import httpx

from src.config import PipelineConfig
from src.embeddings.client import EmbeddingClient
from src.errors import EmbeddingError
from src.model.knn import KnnRegressionModel
from src.utils.logging_config import logger


SENTENCES = (
    "Lose up to 19% weight. Special promotion on our new weightloss.",
    "Hi Bob, can you send me your machine learning homework?",
    "Don't forget our special promotion: -30% on men shoes, only today!",
    "Hi Bob, don't forget our meeting today at 4pm.",
    "⚠️ FINAL: LAST TERRA PHOENIX AIRDROP 🌎 ✅ CLAIM NOW All participants in this vote will receive a reward..",
    "Social KYC oracle (TYC)  PFC is asking for 20k Luna to build a social KYC protocol..",
)
SENTENCE_LABELS = (1.0, 0.0, 1.0, 0.0, 1.0, 0.0)


class PredictionError(Exception):
    """Raised when a sentence cannot be embedded for prediction."""
    pass


def fraud_probabilities(
    sentences: Sequence[str],
    client: EmbeddingClient,
    model: KnnRegressionModel,
) -> List[float]:
    """
    Spam probability for each sentence.

    Raises:
        PredictionError: If any sentence cannot be embedded
    """
    features = []
    for index, sentence in enumerate(sentences):
        try:
            features.append(client.embed(sentence))
        except EmbeddingError as e:
            raise PredictionError(f"Cannot embed sentence {index}: {e}") from e
    return model.predict(features)


def run(
    config: PipelineConfig,
    sentences: Optional[Sequence[str]] = None,
    http_client: Optional[httpx.Client] = None,
) -> List[float]:
    """
    Predict spam probabilities for sentences (defaults to SENTENCES).

    Raises:
        PredictionError: If a sentence cannot be embedded
        ModelNotTrainedError: If no trained model exists
    """
    use_examples = not sentences
    sentences = list(SENTENCES) if use_examples else list(sentences)

    model = KnnRegressionModel(config.model_path, n_neighbors=config.knn_neighbors)
    with EmbeddingClient(config, http_client=http_client) as client:
        probabilities = fraud_probabilities(sentences, client, model)

    logger.info(f"Predictions:\n{[round(p, 4) for p in probabilities]}")
    if use_examples:
        logger.info(f"Labels:\n{list(SENTENCE_LABELS)}")

    for sentence, probability in zip(sentences, probabilities):
        logger.debug(f"{probability:.3f} | {sentence[:80]}")

    return probabilities
