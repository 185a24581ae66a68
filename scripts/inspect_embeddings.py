#!/usr/bin/env python3
"""
Embeddings file inspection script.

Quick utility to summarize persisted embedding files: record counts, label
balance, and embedding dimensions, whatever encoding the files use.
"""

import sys
from collections import Counter
from pathlib import Path
from typing import List, Optional

# Add project root to path for proper module resolution
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from src.config import PROJECT_ROOT
from src.dataset.loader import load_records
from src.dataset.records import Dataset
from src.errors import IOFailureError
from src.utils.logging_config import setup_logger, logger


def inspect_file(path: Path) -> Optional[Dataset]:
    """
    Log a summary of one embeddings file.

    Args:
        path: Embeddings file

    Returns:
        Loaded Dataset, or None if the file cannot be read
    """
    try:
        records = load_records(path)
    except IOFailureError as e:
        logger.error(str(e))
        return None

    dataset = Dataset.from_records(records)
    counts = dataset.label_counts()
    dimensions = Counter(len(vector) for vector in dataset.features)
    with_text = sum(1 for record in records if record.text is not None)

    logger.info("=" * 80)
    logger.info(f"File: {path}")
    logger.info(f"Size: {path.stat().st_size / (1024*1024):.2f} MB")
    logger.info(f"Records: {len(dataset):,} ({with_text:,} with text)")
    logger.info(f"  Spam: {counts['spam']:,}")
    logger.info(f"  Ham: {counts['ham']:,}")
    if counts["other"]:
        logger.info(f"  Other (soft labels): {counts['other']:,}")

    if dimensions:
        logger.info("Dimensions:")
        for dimension, count in dimensions.most_common():
            logger.info(f"  {dimension}: {count:,}")
        if len(dimensions) > 1:
            logger.warning("⚠ Inconsistent embedding dimensions; training will refuse this file")
    else:
        logger.info("  (No records)")

    return dataset


def main(argv: Optional[List[str]] = None):
    """Run embeddings inspection."""
    import argparse

    setup_logger()

    parser = argparse.ArgumentParser(description="Inspect persisted embedding files")
    parser.add_argument(
        "paths",
        type=Path,
        nargs="*",
        default=[PROJECT_ROOT / "embeddings_dataset.json"],
        help="Embedding files (defaults to embeddings_dataset.json)",
    )
    args = parser.parse_args(argv)

    for path in args.paths:
        inspect_file(path)
    logger.info("=" * 80)


if __name__ == "__main__":
    main()
