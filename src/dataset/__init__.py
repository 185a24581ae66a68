"""
Dataset Module

Record types, corpus loading, format-tolerant embedding loading and dataset
assembly (shuffle / split / merge).
"""

from src.dataset.records import Dataset, EmbeddingRecord, LabeledText
from src.dataset.loader import load, load_records
from src.dataset.assembler import ensure_uniform_dimension, merge, shuffle, split

__all__ = [
    "Dataset",
    "EmbeddingRecord",
    "LabeledText",
    "load",
    "load_records",
    "ensure_uniform_dimension",
    "merge",
    "shuffle",
    "split",
]
