"""Pool sizing heuristic.

Kept free of pool state so it can be tested on its own: the pool samples
its throughput on a timer and asks ``compute_target_size`` what to do.
"""

from __future__ import annotations

import math
from typing import Iterable

from chunkwise.core.scheduler.models import SizeBounds

DEFAULT_RESIZE_THRESHOLD = 0.25


def measure_throughput(completion_times: Iterable[float], now: float, window_seconds: float) -> float:
    """Completed tasks per minute over the trailing ``window_seconds``."""
    if window_seconds <= 0:
        raise ValueError("window_seconds must be positive")
    recent = sum(1 for t in completion_times if now - t <= window_seconds)
    return recent * 60.0 / window_seconds


def compute_target_size(
    throughput_per_minute: float,
    current_size: int,
    bounds: SizeBounds,
    threshold: float = DEFAULT_RESIZE_THRESHOLD,
) -> int:
    """Worker count the pool should move to.

    The proposal is the throughput estimate clamped to ``bounds``. It is
    only adopted when it differs from ``current_size`` by more than
    ``threshold`` (relative), so small fluctuations do not cause churn. A
    current size outside the bounds is always corrected.

    Examples:
        >>> compute_target_size(2.0, 4, SizeBounds(1, 8))
        2
        >>> compute_target_size(3.5, 4, SizeBounds(1, 8))
        4
    """
    proposed = max(bounds.min_workers, min(math.ceil(throughput_per_minute), bounds.max_workers))

    if current_size < bounds.min_workers or current_size > bounds.max_workers:
        return proposed
    if current_size <= 0:
        return proposed
    if abs(proposed - current_size) / current_size > threshold:
        return proposed
    return current_size
