"""
Progress reporting for long-running embedding runs.

The reported figures are a pure function of (items processed, total items)
plus elapsed wall time; reporting is advisory and never affects persistence.
"""

import time
from typing import Callable, Optional

from src.utils.logging_config import logger


class ProgressTracker:
    """
    Tracks position in a run of known (or unknown) length and logs ETA lines.

    Example:
        >>> tracker = ProgressTracker(total=250)
        >>> tracker.report(10)
        # 10/250 (4.00% complete, estimated time remaining: 48.00 seconds)
    """

    def __init__(self, total: Optional[int], clock: Callable[[], float] = time.monotonic):
        self.total = total
        self._clock = clock
        self._start = clock()

    def percent(self, index: int) -> float:
        """Percentage complete when `index` items have been processed."""
        if not self.total:
            return 0.0
        return (index / self.total) * 100

    def remaining_seconds(self, index: int) -> float:
        """Estimated seconds left, extrapolated from the rate so far."""
        if not self.total:
            return 0.0
        elapsed = self._clock() - self._start
        estimated_total = elapsed * (self.total / (index + 1.0))
        return max(estimated_total - elapsed, 0.0)

    def format(self, index: int) -> str:
        if not self.total:
            return f"{index} processed"
        return (
            f"{index}/{self.total} ({self.percent(index):.2f}% complete, "
            f"estimated time remaining: {self.remaining_seconds(index):.2f} seconds)"
        )

    def report(self, index: int) -> str:
        message = self.format(index)
        logger.info(message)
        return message
