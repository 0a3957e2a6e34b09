"""Fixed-length feature vectors summarising a peak/dip/recovery triple."""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from typing import Dict, Tuple

import numpy as np

from shotsense.samples import SignalView


@dataclass(frozen=True)
class FeatureVector:
    """Twelve shape features of one candidate motion.

    Magnitudes are in m/s^2, gyro values in rad/s, ``*_samples`` are sample
    counts and ``total_duration`` is peak-to-recovery time in milliseconds.
    ``gyro_dip_to_rec`` is the mean angular speed between dip and recovery.
    """

    peak_mag: float
    dip_mag: float
    recovery_mag: float
    range: float
    dip_ratio: float
    peak_to_dip_samples: float
    dip_to_rec_samples: float
    total_duration: float
    gyro_mag_at_peak: float
    gyro_mag_at_dip: float
    max_gyro_in_window: float
    gyro_dip_to_rec: float

    def as_dict(self) -> Dict[str, float]:
        return asdict(self)


FEATURE_NAMES: Tuple[str, ...] = tuple(f.name for f in fields(FeatureVector))


def extract_features(
    view: SignalView, peak: int, dip: int, rec: int, baseline_mean: float
) -> FeatureVector:
    """Summarise the triple ``(peak, dip, rec)`` of ``view``.

    ``baseline_mean`` normalises the dip depth; a non-positive mean yields a
    ``dip_ratio`` of 0.
    """
    a_mag = view.a_mag
    g_mag = view.g_mag
    peak_mag = float(a_mag[peak])
    dip_mag = float(a_mag[dip])
    window_end = max(rec, dip) + 1
    dip_to_rec = g_mag[dip:window_end]

    return FeatureVector(
        peak_mag=peak_mag,
        dip_mag=dip_mag,
        recovery_mag=float(a_mag[rec]),
        range=peak_mag - dip_mag,
        dip_ratio=dip_mag / baseline_mean if baseline_mean > 0 else 0.0,
        peak_to_dip_samples=float(dip - peak),
        dip_to_rec_samples=float(rec - dip),
        total_duration=float(view.t[rec] - view.t[peak]),
        gyro_mag_at_peak=float(g_mag[peak]),
        gyro_mag_at_dip=float(g_mag[dip]),
        max_gyro_in_window=float(np.max(g_mag[peak:window_end])),
        gyro_dip_to_rec=float(np.mean(dip_to_rec)) if len(dip_to_rec) else 0.0,
    )
