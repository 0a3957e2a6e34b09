"""IMU sample value type and read-only numpy views over sample sequences."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence

import numpy as np


@dataclass(frozen=True)
class IMUSample:
    """Single timestamped accelerometer/gyroscope reading.

    Attributes:
        t: Monotonic timestamp in milliseconds.
        ax, ay, az: Acceleration including gravity (m/s^2).
        a_mag: Magnitude of the acceleration vector.
        gx, gy, gz: Angular velocity (rad/s).
        moving: Movement tracker state when the sample was recorded.
    """

    t: float
    ax: float
    ay: float
    az: float
    a_mag: float
    gx: float = 0.0
    gy: float = 0.0
    gz: float = 0.0
    moving: bool = False

    @classmethod
    def from_reading(
        cls,
        t: float,
        ax: float,
        ay: float,
        az: float,
        gx: float = 0.0,
        gy: float = 0.0,
        gz: float = 0.0,
        *,
        moving: bool = False,
    ) -> "IMUSample":
        """Build a sample from raw axes, computing the acceleration magnitude."""
        return cls(
            t=t,
            ax=ax,
            ay=ay,
            az=az,
            a_mag=math.sqrt(ax * ax + ay * ay + az * az),
            gx=gx,
            gy=gy,
            gz=gz,
            moving=moving,
        )

    @property
    def g_mag(self) -> float:
        return math.sqrt(self.gx * self.gx + self.gy * self.gy + self.gz * self.gz)


def _frozen(values: np.ndarray) -> np.ndarray:
    values.flags.writeable = False
    return values


@dataclass(frozen=True)
class SignalView:
    """Immutable column arrays extracted from a run of samples.

    Components receive a view plus explicit index triples instead of sharing
    the caller's sample list, so nothing downstream can mutate the input.
    """

    a_mag: np.ndarray
    g_mag: np.ndarray
    t: np.ndarray
    moving: np.ndarray

    @classmethod
    def from_samples(cls, samples: Sequence[IMUSample]) -> "SignalView":
        a_mag = np.fromiter((s.a_mag for s in samples), dtype=float, count=len(samples))
        g_mag = np.fromiter((s.g_mag for s in samples), dtype=float, count=len(samples))
        t = np.fromiter((s.t for s in samples), dtype=float, count=len(samples))
        moving = np.fromiter((s.moving for s in samples), dtype=bool, count=len(samples))
        return cls(a_mag=_frozen(a_mag), g_mag=_frozen(g_mag), t=_frozen(t), moving=_frozen(moving))

    @classmethod
    def from_magnitudes(cls, a_mag: Sequence[float], *, interval_ms: float = 10.0) -> "SignalView":
        """Build a view from bare magnitudes with evenly spaced timestamps."""
        mags = np.asarray(a_mag, dtype=float).copy()
        n = len(mags)
        return cls(
            a_mag=_frozen(mags),
            g_mag=_frozen(np.zeros(n)),
            t=_frozen(np.arange(n, dtype=float) * interval_ms),
            moving=_frozen(np.zeros(n, dtype=bool)),
        )

    def __len__(self) -> int:
        return len(self.a_mag)
