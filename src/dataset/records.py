"""
Record and Dataset Data Structures

Defines the value types that flow through the pipeline:
- LabeledText: one corpus entry (text + supervised target)
- EmbeddingRecord: an embedding produced for a LabeledText
- Dataset: index-aligned features/labels handed to the model

Labels are floats: 0.0 = legitimate (ham), 1.0 = fraudulent (spam), values in
between are soft scores.
"""

from __future__ import annotations

import math
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set, Tuple

import numpy as np


EmbeddingVector = List[float]


@dataclass(frozen=True)
class LabeledText:
    """A single labeled corpus entry."""

    text: str
    label: float

    def __post_init__(self):
        if not isinstance(self.text, str):
            raise ValueError(f"text must be a string, got {type(self.text).__name__}")
        if not math.isfinite(self.label):
            raise ValueError(f"label must be finite, got {self.label!r}")


@dataclass
class EmbeddingRecord:
    """
    An embedding together with its label and (optionally) the source text.

    Invariants: embedding is non-empty with finite components, label is finite.
    `text` may be absent for records read back from legacy encodings.

    Example:
        >>> record = EmbeddingRecord(embedding=[0.1, 0.2], label=1.0, text="Win a prize")
        >>> record.to_json()
        {'text': 'Win a prize', 'label': 1.0, 'embedding': [0.1, 0.2]}
    """

    embedding: EmbeddingVector
    label: float
    text: Optional[str] = None

    def __post_init__(self):
        """Validate fields after initialization."""
        if not self.embedding:
            raise ValueError("embedding must be non-empty")
        if not all(math.isfinite(v) for v in self.embedding):
            raise ValueError("embedding must contain only finite values")
        if not math.isfinite(self.label):
            raise ValueError(f"label must be finite, got {self.label!r}")

    @property
    def dimension(self) -> int:
        return len(self.embedding)

    def to_json(self) -> Dict[str, Any]:
        """Flat line-delimited schema used for all newly written files."""
        data: Dict[str, Any] = {}
        if self.text is not None:
            data["text"] = self.text
        data["label"] = self.label
        data["embedding"] = self.embedding
        return data


@dataclass
class Dataset:
    """
    Index-aligned feature vectors and labels.

    features[i] corresponds to labels[i]; the two lists always have the same
    length. Operations in src.dataset.assembler return new Datasets instead of
    mutating this one.
    """

    features: List[EmbeddingVector] = field(default_factory=list)
    labels: List[float] = field(default_factory=list)

    def __post_init__(self):
        if len(self.features) != len(self.labels):
            raise ValueError(
                f"features and labels must be index-aligned: "
                f"{len(self.features)} features vs {len(self.labels)} labels"
            )

    @classmethod
    def from_records(cls, records: List[EmbeddingRecord]) -> "Dataset":
        return cls(
            features=[list(r.embedding) for r in records],
            labels=[r.label for r in records],
        )

    def __len__(self) -> int:
        return len(self.labels)

    def pairs(self) -> List[Tuple[EmbeddingVector, float]]:
        return list(zip(self.features, self.labels))

    def dimensions(self) -> Set[int]:
        """Distinct embedding lengths present in the dataset."""
        return {len(vector) for vector in self.features}

    def label_counts(self) -> Dict[str, int]:
        """Spam / ham / other counts (labels other than exactly 1.0 or 0.0 are 'other')."""
        counts = Counter(
            "spam" if label == 1.0 else "ham" if label == 0.0 else "other"
            for label in self.labels
        )
        return {
            "spam": counts.get("spam", 0),
            "ham": counts.get("ham", 0),
            "other": counts.get("other", 0),
            "total": len(self.labels),
        }

    def to_numpy(self) -> Tuple[np.ndarray, np.ndarray]:
        """
        Convert to (X, y) arrays for the model.

        Requires uniform dimensionality; call
        src.dataset.assembler.ensure_uniform_dimension first.
        """
        x = np.asarray(self.features, dtype=np.float32)
        y = np.asarray(self.labels, dtype=np.float32)
        return x, y
