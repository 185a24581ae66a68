"""
Format-tolerant loading of persisted embeddings.

Reads one or more embedding files, whatever encoding they were written in
(see src.dataset.formats), and returns them as a single Dataset. Bad records
are skipped with a warning; a source that cannot be read at all contributes
nothing and the remaining sources still load.
"""

import codecs
import json
from pathlib import Path
from typing import Any, Iterable, List, Union

from src.dataset.formats import detect_document_format, parse_line_object
from src.dataset.records import Dataset, EmbeddingRecord
from src.errors import IOFailureError, ParseError
from src.utils.logging_config import logger


PathLike = Union[str, Path]


def _read_source(path: Path) -> bytes:
    try:
        return path.read_bytes()
    except OSError as e:
        raise IOFailureError(f"Cannot read embeddings file {path}: {e}") from e


def _decode_line(raw: bytes) -> Any:
    try:
        return json.loads(raw.decode("utf-8"))
    except UnicodeDecodeError as e:
        raise ParseError(f"invalid UTF-8: {e}") from e
    except (ValueError, RecursionError) as e:
        raise ParseError(f"invalid JSON: {e}") from e


def _parse_lines(content: bytes, strict: bool, source: str) -> List[EmbeddingRecord]:
    records = []
    skipped = 0

    # Only "\n" separates records; other Unicode line breaks can appear inside text values
    for line_number, line in enumerate(content.split(b"\n"), start=1):
        if not line.strip():
            continue
        try:
            records.append(parse_line_object(_decode_line(line), strict))
        except ParseError as e:
            skipped += 1
            logger.warning(f"⚠ {source}:{line_number}: skipping record: {e}")

    if skipped:
        logger.warning(f"⚠ {source}: skipped {skipped} malformed line(s)")
    return records


def _decode_document(content: bytes) -> Any:
    """The whole file as one JSON value, or None if it is not one."""
    stripped = content.strip()
    if not stripped.startswith((b"[", b"{")):
        return None
    try:
        return json.loads(stripped.decode("utf-8"))
    except (ValueError, RecursionError):
        return None


def load_records(path: PathLike, strict: bool = False) -> List[EmbeddingRecord]:
    """
    Load every valid record from one embeddings file, in file order.

    The encoding is chosen by probing: if the whole file decodes to a JSON
    document of a known shape it is parsed as that document, otherwise it is
    read as one JSON object per line.

    Args:
        path: Embeddings file
        strict: Reject records with non-numeric embedding values instead of
            dropping those values

    Returns:
        Parsed records

    Raises:
        IOFailureError: If the file cannot be opened or read
    """
    path = Path(path)
    source = path.name
    content = _read_source(path)
    if content.startswith(codecs.BOM_UTF8):
        content = content[len(codecs.BOM_UTF8):]

    document = _decode_document(content)
    fmt = detect_document_format(document) if document is not None else None
    if fmt is not None:
        logger.debug(f"{source}: detected {fmt.name}")
        try:
            return fmt.parse(document, strict, source)
        except ParseError as e:
            logger.warning(f"⚠ {source}: unusable {fmt.name}: {e}")
            return []

    logger.debug(f"{source}: reading as line-delimited JSON")
    return _parse_lines(content, strict, source)


def load(paths: Iterable[PathLike], strict: bool = False) -> Dataset:
    """
    Load and concatenate embeddings from several files.

    Sources are concatenated in the order given. A source that cannot be read
    is logged and contributes an empty result.

    Args:
        paths: Embedding files to read
        strict: See load_records

    Returns:
        Dataset with index-aligned features and labels
    """
    records: List[EmbeddingRecord] = []

    for path in paths:
        try:
            source_records = load_records(path, strict=strict)
        except IOFailureError as e:
            logger.error(f"❌ {e}")
            continue

        logger.info(f"Loaded {len(source_records):,} records from {Path(path).name}")
        records.extend(source_records)

    return Dataset.from_records(records)
