"""
Labeled Corpus Loading

Reads labeled spam/fraud corpora from CSV files into LabeledText entries.
The public spam corpora use different column names, so the text and label
columns are picked from a list of known names (case-insensitive).

Label values:
- numbers are parsed as floats (0 = ham, 1 = spam, fractions allowed)
- "spam" / "ham" strings map to 1.0 / 0.0
"""

import csv
import math
import sys
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple, Union

from src.dataset.records import LabeledText
from src.utils.logging_config import logger


# Candidate column names, in order of preference
TEXT_COLUMNS = ("text", "content", "body", "message", "v2", "email", "proposal")
LABEL_COLUMNS = ("label", "class", "spam", "v1", "spam_likelihood")

STRING_LABELS = {"spam": 1.0, "ham": 0.0}

# Some corpora contain whole e-mails in a single field
csv.field_size_limit(min(sys.maxsize, 2**31 - 1))


def _pick_column(fieldnames: Iterable[str], candidates: Tuple[str, ...]) -> Optional[str]:
    lookup: Dict[str, str] = {name.strip().lower(): name for name in fieldnames if name}
    for candidate in candidates:
        if candidate in lookup:
            return lookup[candidate]
    return None


def parse_label(raw: str) -> float:
    """
    Parse a label cell.

    Raises:
        ValueError: If the value is neither a known string label nor a finite number
    """
    value = raw.strip().lower()
    if value in STRING_LABELS:
        return STRING_LABELS[value]

    label = float(value)
    if not math.isfinite(label):
        raise ValueError(f"non-finite label {raw!r}")
    return label


def load_labeled_csv_file(path: Union[str, Path]) -> List[LabeledText]:
    """
    Load one CSV corpus.

    Rows with an empty text or an unparsable label are skipped.

    Raises:
        OSError: If the file cannot be opened
        ValueError: If no text/label column can be identified
    """
    path = Path(path)
    items: List[LabeledText] = []
    skipped = 0

    with open(path, newline="", encoding="utf-8", errors="replace") as f:
        reader = csv.DictReader(f)
        fieldnames = reader.fieldnames or []
        text_column = _pick_column(fieldnames, TEXT_COLUMNS)
        label_column = _pick_column(fieldnames, LABEL_COLUMNS)

        if text_column is None or label_column is None:
            raise ValueError(f"{path.name}: cannot find text/label columns in {fieldnames}")

        for row in reader:
            text = (row.get(text_column) or "").strip()
            try:
                label = parse_label(row.get(label_column) or "")
            except ValueError:
                skipped += 1
                continue
            if not text:
                skipped += 1
                continue
            items.append(LabeledText(text=text, label=label))

    if skipped:
        logger.warning(f"⚠ {path.name}: skipped {skipped} row(s) without text or valid label")
    return items


def load_labeled_csv(paths: Iterable[Union[str, Path]]) -> List[LabeledText]:
    """
    Load and concatenate several CSV corpora, in order.

    Files that are missing or unreadable are logged and skipped.
    """
    items: List[LabeledText] = []

    for path in paths:
        path = Path(path)
        try:
            file_items = load_labeled_csv_file(path)
        except (OSError, ValueError) as e:
            logger.error(f"❌ Skipping corpus {path}: {e}")
            continue

        logger.info(f"Loaded {len(file_items):,} labeled texts from {path.name}")
        items.extend(file_items)

    return items
