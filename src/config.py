"""
Configuration Module for the Spam Embedding Pipeline

Loads configuration from environment variables (optionally seeded from a .env
file) into a single immutable PipelineConfig. The config object is built once
at process start by load_config() and passed explicitly to every component;
no other module reads the environment.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional, Tuple

from dotenv import load_dotenv


# Project root directory (parent of src/)
PROJECT_ROOT = Path(__file__).parent.parent

# Default .env location
ENV_PATH = PROJECT_ROOT / ".env"


# ==================================
# Defaults
# ==================================

# Heuristic token-to-character ratio used for client-side truncation
CHARS_PER_TOKEN = 4

# Records buffered in memory before each append to the output file
DEFAULT_BATCH_SIZE = 100

# Per-request timeout for the embedding service (seconds)
DEFAULT_REQUEST_TIMEOUT = 60.0

# Retry settings for embedding calls (0 = no retries)
DEFAULT_MAX_RETRIES = 0
API_RETRY_INITIAL_BACKOFF = 2  # seconds

# Fraction of the dataset used for training in evaluation mode
DEFAULT_TRAIN_SPLIT_RATIO = 0.8

DEFAULT_KNN_NEIGHBORS = 5

# Output / model locations
DEFAULT_EMBEDDINGS_PATH = PROJECT_ROOT / "embeddings_dataset.json"
DEFAULT_MODEL_PATH = PROJECT_ROOT / "models" / "knn_regressor.pkl"

# Labeled spam corpora used by generate_embeddings
DATASET_DIR = PROJECT_ROOT / "dataset"
CSV_DATASET: Tuple[Path, ...] = (
    DATASET_DIR / "youtubeSpamCollection.csv",
    DATASET_DIR / "enronSpamSubset.csv",
    DATASET_DIR / "lingSpam.csv",
    DATASET_DIR / "smsspamcollection.csv",
    DATASET_DIR / "completeSpamAssassin.csv",
    DATASET_DIR / "governance_proposal_spam_likelihood.csv",
)

# Logging directory
LOGS_DIR = PROJECT_ROOT / "logs"


class ConfigurationError(Exception):
    """Raised when required configuration is missing or invalid."""
    pass


def get_env_variable(
    var_name: str,
    environ: Mapping[str, str],
    required: bool = True,
    default: Optional[str] = None,
) -> Optional[str]:
    """
    Get a configuration value with validation.

    Args:
        var_name: Name of environment variable
        environ: Mapping to read from (usually os.environ)
        required: Whether this variable is required
        default: Default value if not required and not found

    Returns:
        Stripped value of the variable, or default

    Raises:
        ConfigurationError: If required variable is missing
    """
    value = environ.get(var_name)

    if value is None or value.strip() == "":
        if required:
            raise ConfigurationError(
                f"Required environment variable '{var_name}' is not set. "
                f"Please add it to your .env file."
            )
        return default

    return value.strip()


def _parse_int(var_name: str, raw: str) -> int:
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigurationError(f"{var_name} must be an integer, got {raw!r}") from e


def _parse_float(var_name: str, raw: str) -> float:
    try:
        return float(raw)
    except ValueError as e:
        raise ConfigurationError(f"{var_name} must be a number, got {raw!r}") from e


@dataclass(frozen=True)
class PipelineConfig:
    """
    Immutable runtime configuration for the embedding pipeline.

    Attributes:
        embedding_endpoint: URL of the embedding service (POST target)
        context_size: Context size of the embedding model in tokens
        request_timeout: Per-request timeout in seconds
        max_retries: Retry attempts for transient embedding failures
        batch_size: Records buffered before each append to disk
        embeddings_path: NDJSON output of generate_embeddings
        model_path: Pickled KNN regressor location
        knn_neighbors: Neighbours used by the KNN regressor
        train_split_ratio: Train fraction used in evaluation mode
        split_seed: Optional seed for the evaluation shuffle
        log_level: Log level for console and file sinks
    """

    embedding_endpoint: str
    context_size: int
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    max_retries: int = DEFAULT_MAX_RETRIES
    batch_size: int = DEFAULT_BATCH_SIZE
    embeddings_path: Path = DEFAULT_EMBEDDINGS_PATH
    model_path: Path = DEFAULT_MODEL_PATH
    knn_neighbors: int = DEFAULT_KNN_NEIGHBORS
    train_split_ratio: float = DEFAULT_TRAIN_SPLIT_RATIO
    split_seed: Optional[int] = None
    log_level: str = "INFO"

    def __post_init__(self):
        """Validate fields after initialization."""
        errors = []

        if not self.embedding_endpoint:
            errors.append("DOCKER_EMBEDDING_ENDPOINT is empty")
        if self.context_size <= 0:
            errors.append(f"EMBEDDING_CONTEXT_SIZE must be positive, got {self.context_size}")
        if self.request_timeout <= 0:
            errors.append(f"EMBEDDING_REQUEST_TIMEOUT must be positive, got {self.request_timeout}")
        if self.max_retries < 0:
            errors.append(f"EMBEDDING_MAX_RETRIES must be >= 0, got {self.max_retries}")
        if self.batch_size <= 0:
            errors.append(f"EMBEDDING_BATCH_SIZE must be positive, got {self.batch_size}")
        if self.knn_neighbors <= 0:
            errors.append(f"KNN_NEIGHBORS must be positive, got {self.knn_neighbors}")
        if not 0.0 < self.train_split_ratio < 1.0:
            errors.append(
                f"TRAIN_SPLIT_RATIO must be between 0 and 1 (exclusive), got {self.train_split_ratio}"
            )

        if errors:
            error_msg = "Configuration validation failed:\n" + "\n".join(f"  - {err}" for err in errors)
            raise ConfigurationError(error_msg)

    @property
    def max_text_chars(self) -> int:
        """Character bound applied to texts before they are sent for embedding."""
        return self.context_size * CHARS_PER_TOKEN


def load_config(
    environ: Optional[Mapping[str, str]] = None,
    env_file: Optional[Path] = ENV_PATH,
) -> PipelineConfig:
    """
    Build the pipeline configuration from the environment.

    Called once at process start. When environ is not given, the .env file
    (if present) is loaded into os.environ first and os.environ is read.

    Args:
        environ: Explicit key/value mapping (tests pass a plain dict)
        env_file: .env file to load when reading os.environ

    Returns:
        Validated PipelineConfig

    Raises:
        ConfigurationError: If a required value is missing or invalid
    """
    if environ is None:
        if env_file is not None and Path(env_file).exists():
            load_dotenv(env_file)
        else:
            load_dotenv()
        environ = os.environ

    endpoint = get_env_variable("DOCKER_EMBEDDING_ENDPOINT", environ)
    context_size = _parse_int(
        "EMBEDDING_CONTEXT_SIZE", get_env_variable("EMBEDDING_CONTEXT_SIZE", environ)
    )

    timeout = get_env_variable("EMBEDDING_REQUEST_TIMEOUT", environ, required=False)
    retries = get_env_variable("EMBEDDING_MAX_RETRIES", environ, required=False)
    batch_size = get_env_variable("EMBEDDING_BATCH_SIZE", environ, required=False)
    embeddings_path = get_env_variable("EMBEDDINGS_OUTPUT_PATH", environ, required=False)
    model_path = get_env_variable("KNN_MODEL_PATH", environ, required=False)
    neighbors = get_env_variable("KNN_NEIGHBORS", environ, required=False)
    ratio = get_env_variable("TRAIN_SPLIT_RATIO", environ, required=False)
    seed = get_env_variable("SPLIT_SEED", environ, required=False)

    return PipelineConfig(
        embedding_endpoint=endpoint,
        context_size=context_size,
        request_timeout=(
            _parse_float("EMBEDDING_REQUEST_TIMEOUT", timeout) if timeout else DEFAULT_REQUEST_TIMEOUT
        ),
        max_retries=_parse_int("EMBEDDING_MAX_RETRIES", retries) if retries else DEFAULT_MAX_RETRIES,
        batch_size=_parse_int("EMBEDDING_BATCH_SIZE", batch_size) if batch_size else DEFAULT_BATCH_SIZE,
        embeddings_path=Path(embeddings_path) if embeddings_path else DEFAULT_EMBEDDINGS_PATH,
        model_path=Path(model_path) if model_path else DEFAULT_MODEL_PATH,
        knn_neighbors=_parse_int("KNN_NEIGHBORS", neighbors) if neighbors else DEFAULT_KNN_NEIGHBORS,
        train_split_ratio=(
            _parse_float("TRAIN_SPLIT_RATIO", ratio) if ratio else DEFAULT_TRAIN_SPLIT_RATIO
        ),
        split_seed=_parse_int("SPLIT_SEED", seed) if seed else None,
        log_level=get_env_variable("LOG_LEVEL", environ, required=False, default="INFO"),
    )


def print_configuration(config: PipelineConfig):
    """Print current configuration (for debugging)."""
    print("\n" + "=" * 80)
    print("Spam Embedding Pipeline Configuration")
    print("=" * 80)
    print(f"\nEmbedding Service:")
    print(f"  Endpoint: {config.embedding_endpoint}")
    print(f"  Context size: {config.context_size} tokens (~{config.max_text_chars} chars)")
    print(f"  Timeout: {config.request_timeout}s, retries: {config.max_retries}")
    print(f"\nPersistence:")
    print(f"  Batch size: {config.batch_size} records")
    print(f"  Embeddings file: {config.embeddings_path}")
    print(f"\nModel:")
    print(f"  KNN model: {config.model_path} (k={config.knn_neighbors})")
    print(f"  Train split ratio: {config.train_split_ratio}")
    print("=" * 80 + "\n")


__all__ = [
    "PROJECT_ROOT",
    "CHARS_PER_TOKEN",
    "API_RETRY_INITIAL_BACKOFF",
    "CSV_DATASET",
    "LOGS_DIR",
    "ConfigurationError",
    "PipelineConfig",
    "get_env_variable",
    "load_config",
    "print_configuration",
]
