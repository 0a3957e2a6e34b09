"""Baseline statistics over trailing acceleration windows."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np


@dataclass(frozen=True)
class BaselineStats:
    mean: float
    std: float

    def effective_std(self, cap: float) -> float:
        """Std clamped to ``cap``; used by the peak, range and recovery gates."""
        return min(self.std, cap)


def window_stats(values: np.ndarray) -> BaselineStats:
    """Population mean/std of a non-empty window."""
    return BaselineStats(mean=float(np.mean(values)), std=float(np.std(values)))


def trailing_baseline(
    a_mag: np.ndarray, end: int, window: int, min_samples: int
) -> Optional[BaselineStats]:
    """Statistics over ``a_mag[end - window:end]``.

    Returns None when fewer than ``min_samples`` values are available; callers
    treat that as a non-candidate rather than an error.
    """
    start = max(0, end - window)
    end = max(0, end)
    if end - start < min_samples:
        return None
    return window_stats(a_mag[start:end])


def argmin_in(values: np.ndarray, start: int, end: int) -> Optional[int]:
    """Index of the first minimum within ``values[start:end]`` or None if empty."""
    end = min(end, len(values))
    if start >= end:
        return None
    return start + int(np.argmin(values[start:end]))


def argmax_in(values: np.ndarray, start: int, end: int) -> Optional[int]:
    """Index of the first maximum within ``values[start:end]`` or None if empty."""
    end = min(end, len(values))
    if start >= end:
        return None
    return start + int(np.argmax(values[start:end]))
