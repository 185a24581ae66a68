"""
Embedding File Formats

Named parsers for every on-disk encoding the pipeline has produced over time.
Each parser turns decoded JSON into normalized EmbeddingRecords and raises
ParseError for anything it cannot interpret.

Document formats (whole file is one JSON value):
- aggregate_document: {"embeddings": [[...], ...], "dataset": [[text, label], ...]}
- array_document: [{"embedding": [...], "label": n}, ...]

Line formats (one JSON object per line):
- entry: {"embedding": [...], "entry": [text, label]}
- flat: {"embedding": [...], "label": n, "text": "..."}   (current format)

Selection is structural: each format has a probe that checks for its named
keys, and the first matching probe wins.
"""

import math
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Tuple

from src.dataset.records import EmbeddingRecord
from src.errors import ParseError
from src.utils.logging_config import logger


# Text used by the aggregate format for entries without corpus text
EMPTY_TEXT_SENTINEL = "empty"


@dataclass(frozen=True)
class LineFormat:
    """A per-line encoding: probe(obj) selects it, parse(obj, strict) decodes it."""

    name: str
    probe: Callable[[Any], bool]
    parse: Callable[[Any, bool], EmbeddingRecord]


@dataclass(frozen=True)
class DocumentFormat:
    """A whole-file encoding: probe(doc) selects it, parse(doc, strict, source) decodes it."""

    name: str
    probe: Callable[[Any], bool]
    parse: Callable[[Any, bool, str], List[EmbeddingRecord]]


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _finite_float(value: Any) -> Optional[float]:
    """float(value) for finite numbers, None for anything else."""
    if not _is_number(value):
        return None
    try:
        number = float(value)
    except OverflowError:
        # JSON integers are unbounded
        return None
    return number if math.isfinite(number) else None


def coerce_embedding(values: Any, strict: bool = False) -> Tuple[List[float], int]:
    """
    Convert a decoded JSON array into an embedding vector.

    Non-numeric or non-finite scalars are dropped (the vector loses those
    dimensions) unless strict is set, in which case the record is rejected.

    Returns:
        Tuple of (embedding, number_of_dropped_values)

    Raises:
        ParseError: If values is not a list, ends up empty, or (strict) holds
            a non-numeric scalar
    """
    if not isinstance(values, list):
        raise ParseError(f"embedding must be a list, got {type(values).__name__}")

    converted = (_finite_float(v) for v in values)
    embedding = [v for v in converted if v is not None]
    dropped = len(values) - len(embedding)

    if dropped and strict:
        raise ParseError(f"embedding has {dropped} non-numeric value(s)")
    if not embedding:
        raise ParseError("embedding is empty")

    return embedding, dropped


def coerce_label(value: Any) -> float:
    """Labels must be finite numbers."""
    label = _finite_float(value)
    if label is None:
        raise ParseError(f"label must be a finite number, got {value!r}")
    return label


def _build_record(raw_embedding: Any, label: Any, text: Optional[str], strict: bool) -> EmbeddingRecord:
    embedding, dropped = coerce_embedding(raw_embedding, strict=strict)
    if dropped:
        logger.warning(
            f"⚠ Dropped {dropped} non-numeric value(s) from embedding "
            f"(dimension now {len(embedding)})"
        )
    return EmbeddingRecord(embedding=embedding, label=coerce_label(label), text=text)


# ==================================
# Line formats
# ==================================

def probe_entry(obj: Any) -> bool:
    return isinstance(obj, dict) and "embedding" in obj and "entry" in obj


def parse_entry(obj: Any, strict: bool = False) -> EmbeddingRecord:
    """{"embedding": [...], "entry": [text, label]} -> record."""
    entry = obj["entry"]
    if not isinstance(entry, list) or len(entry) < 2:
        raise ParseError(f"entry must be [text, label], got {entry!r}")

    text = entry[0] if isinstance(entry[0], str) else None
    return _build_record(obj["embedding"], entry[1], text, strict)


def probe_flat(obj: Any) -> bool:
    return isinstance(obj, dict) and "embedding" in obj


def parse_flat(obj: Any, strict: bool = False) -> EmbeddingRecord:
    """{"embedding": [...], "label": n} -> record (text kept when present)."""
    if "label" not in obj:
        raise ParseError("missing 'label' field")

    text = obj.get("text")
    return _build_record(
        obj["embedding"], obj["label"], text if isinstance(text, str) else None, strict
    )


LINE_FORMATS: Tuple[LineFormat, ...] = (
    LineFormat(name="entry", probe=probe_entry, parse=parse_entry),
    LineFormat(name="flat", probe=probe_flat, parse=parse_flat),
)


def parse_line_object(obj: Any, strict: bool = False) -> EmbeddingRecord:
    """Decode one line-level object with the first format whose probe matches."""
    for fmt in LINE_FORMATS:
        if fmt.probe(obj):
            return fmt.parse(obj, strict)
    raise ParseError("object has no 'embedding' field")


# ==================================
# Document formats
# ==================================

def probe_aggregate_document(doc: Any) -> bool:
    return isinstance(doc, dict) and "embeddings" in doc and "dataset" in doc


def parse_aggregate_document(doc: Any, strict: bool = False, source: str = "") -> List[EmbeddingRecord]:
    """
    {"embeddings": [...], "dataset": [[text, label], ...]} -> records.

    The two arrays are index-aligned. Entries whose text is the "empty"
    sentinel are excluded. Bad entries are skipped with a warning.
    """
    embeddings = doc["embeddings"]
    dataset = doc["dataset"]
    if not isinstance(embeddings, list) or not isinstance(dataset, list):
        raise ParseError("'embeddings' and 'dataset' must both be arrays")

    if len(embeddings) != len(dataset):
        logger.warning(
            f"⚠ {source}: {len(embeddings)} embeddings vs {len(dataset)} dataset entries, "
            f"ignoring the unmatched tail"
        )

    records = []
    skipped_sentinel = 0
    for index, (raw_embedding, entry) in enumerate(zip(embeddings, dataset)):
        try:
            if not isinstance(entry, list) or len(entry) < 2:
                raise ParseError(f"dataset entry must be [text, label], got {entry!r}")
            if entry[0] == EMPTY_TEXT_SENTINEL:
                skipped_sentinel += 1
                continue
            text = entry[0] if isinstance(entry[0], str) else None
            records.append(_build_record(raw_embedding, entry[1], text, strict))
        except ParseError as e:
            logger.warning(f"⚠ {source}: skipping entry {index}: {e}")

    if skipped_sentinel:
        logger.debug(f"{source}: excluded {skipped_sentinel} '{EMPTY_TEXT_SENTINEL}' entries")
    return records


def probe_array_document(doc: Any) -> bool:
    return isinstance(doc, list)


def parse_array_document(doc: Any, strict: bool = False, source: str = "") -> List[EmbeddingRecord]:
    """[{"embedding": [...], "label": n}, ...] -> records, skipping bad elements."""
    records = []
    for index, obj in enumerate(doc):
        try:
            records.append(parse_line_object(obj, strict))
        except ParseError as e:
            logger.warning(f"⚠ {source}: skipping element {index}: {e}")
    return records


DOCUMENT_FORMATS: Tuple[DocumentFormat, ...] = (
    DocumentFormat(name="aggregate_document", probe=probe_aggregate_document, parse=parse_aggregate_document),
    DocumentFormat(name="array_document", probe=probe_array_document, parse=parse_array_document),
)


def detect_document_format(doc: Any) -> Optional[DocumentFormat]:
    """Return the document format matching a decoded file, or None for line-delimited files."""
    for fmt in DOCUMENT_FORMATS:
        if fmt.probe(doc):
            return fmt
    return None


__all__ = [
    "EMPTY_TEXT_SENTINEL",
    "LineFormat",
    "DocumentFormat",
    "LINE_FORMATS",
    "DOCUMENT_FORMATS",
    "coerce_embedding",
    "coerce_label",
    "parse_line_object",
    "detect_document_format",
]
