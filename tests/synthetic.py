"""Deterministic synthetic acceleration signals shared by the test modules."""

import math
from typing import Iterable, List, Optional, Sequence

from shotsense.samples import IMUSample

INTERVAL_MS = 10.0


def quiet_baseline(n: int, mean: float = 9.8, std: float = 0.2, period: int = 10) -> List[float]:
    """Sinusoid whose population std over whole periods equals ``std``."""
    amplitude = std * math.sqrt(2.0)
    return [mean + amplitude * math.sin(2 * math.pi * k / period) for k in range(n)]


def noisy_baseline(n: int, mean: float = 12.0, std: float = 2.5) -> List[float]:
    """Alternating mean +/- std, i.e. exactly ``std`` over an even window."""
    return [mean + std if k % 2 == 0 else mean - std for k in range(n)]


def add_shot(
    values: List[float],
    peak_at: int,
    *,
    peak: float = 20.0,
    dip: float = 2.0,
    dip_after: int = 12,
    recovery: float = 15.0,
    rec_after: int = 20,
) -> List[float]:
    values[peak_at] = peak
    values[peak_at + dip_after] = dip
    values[peak_at + dip_after + rec_after] = recovery
    return values


def shot_signal(n: int = 400, peaks: Iterable[int] = (200,), **shape) -> List[float]:
    """Quiet 9.8 m/s^2 baseline with one jump-shot signature per peak index."""
    values = quiet_baseline(n)
    for peak_at in peaks:
        add_shot(values, peak_at, **shape)
    return values


def to_samples(
    values: Sequence[float], gyro: Optional[Sequence[float]] = None, start_ms: float = 0.0
) -> List[IMUSample]:
    samples = []
    for k, value in enumerate(values):
        g = gyro[k] if gyro is not None else 0.0
        samples.append(
            IMUSample(t=start_ms + k * INTERVAL_MS, ax=0.0, ay=0.0, az=value, a_mag=value, gx=g)
        )
    return samples
