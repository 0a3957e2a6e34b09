"""Per-user motion calibration: pattern mining, profiles and classification.

Calibration runs offline over four labeled recordings. Every shot-shaped
motion in each recording is harvested with deliberately relaxed thresholds so
the profiles describe the whole feature distribution of an activity, including
the near-miss shapes that walking, running and dribbling produce. Live
candidates are then classified by their weighted distance to each profile.

A calibration set is configuration, not a trained model: recalibrating means
re-running :func:`calibrate` over fresh recordings.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, MutableMapping, Optional, Sequence, Union

import numpy as np
from pydantic import ValidationError

from shotsense.calibration.features import FEATURE_NAMES, FeatureVector, extract_features
from shotsense.calibration.profile import (
    NOISE_LABELS,
    ActivityLabel,
    ActivityProfile,
    CalibrationSet,
    FeatureStats,
)
from shotsense.calibration.store import save_calibration
from shotsense.config import CalibrationConfig
from shotsense.samples import IMUSample, SignalView
from shotsense.signals.stats import argmax_in, argmin_in, trailing_baseline

logger = logging.getLogger(__name__)

Recording = Union[Sequence[IMUSample], SignalView]

# Dip depth, dip ratio, post-dip rotation and range separate shots from gait
# far better than timing or raw peak height.
FEATURE_WEIGHTS: Dict[str, float] = {
    "dip_mag": 3.0,
    "dip_ratio": 3.0,
    "gyro_dip_to_rec": 2.0,
    "range": 2.0,
}


@dataclass(frozen=True)
class ClassificationResult:
    is_shot: bool
    confidence: float
    reason: str
    nearest: Optional[str] = None
    distances: Dict[str, float] = field(default_factory=dict)


def _as_view(recording: Recording) -> SignalView:
    if isinstance(recording, SignalView):
        return recording
    return SignalView.from_samples(recording)


def extract_patterns(
    recording: Recording, config: Optional[CalibrationConfig] = None
) -> List[FeatureVector]:
    """Harvest every shot-shaped peak/dip/recovery triple in one recording.

    Thresholds are relative to the recording's global statistics and looser
    than the live detector's gates.
    """
    cfg = config or CalibrationConfig()
    view = _as_view(recording)
    a_mag = view.a_mag
    n = len(a_mag)
    if n < 3:
        return []

    global_mean = float(np.mean(a_mag))
    global_std = float(np.std(a_mag))
    threshold = max(global_mean + cfg.peak_sigma * global_std, cfg.min_peak_abs)

    patterns: List[FeatureVector] = []
    last_peak: Optional[int] = None
    for i in range(1, n - 1):
        if a_mag[i] < threshold:
            continue
        if not (a_mag[i] > a_mag[i + 1] and a_mag[i] >= a_mag[i - 1]):
            continue
        if last_peak is not None and i - last_peak < cfg.min_spacing:
            continue

        dip = argmin_in(a_mag, i + 1, i + cfg.dip_search_window)
        if dip is None or a_mag[i] - a_mag[dip] < cfg.min_drop:
            continue
        rec = argmax_in(a_mag, dip + 1, dip + cfg.recovery_search_window)
        if rec is None or a_mag[rec] - a_mag[dip] < cfg.min_rise:
            continue

        base = trailing_baseline(a_mag, i - cfg.baseline_offset, cfg.baseline_window, 10)
        baseline_mean = base.mean if base is not None else global_mean
        patterns.append(extract_features(view, i, dip, rec, baseline_mean))
        last_peak = i

    return patterns


def compute_profile(patterns: Sequence[FeatureVector]) -> Optional[ActivityProfile]:
    """Per-feature mean/std/min/max across ``patterns``; None when empty."""
    if not patterns:
        return None
    matrix = np.array([[getattr(p, name) for name in FEATURE_NAMES] for p in patterns], dtype=float)
    means = matrix.mean(axis=0)
    stds = matrix.std(axis=0)
    mins = matrix.min(axis=0)
    maxs = matrix.max(axis=0)
    features = {
        name: FeatureStats(
            mean=float(means[k]), std=float(stds[k]), min=float(mins[k]), max=float(maxs[k])
        )
        for k, name in enumerate(FEATURE_NAMES)
    }
    return ActivityProfile(count=len(patterns), features=features)


def profile_distance(
    features: FeatureVector, profile: ActivityProfile, min_std: float = 0.1
) -> float:
    """Weighted mean absolute z-score of ``features`` against ``profile``."""
    total = 0.0
    weight_sum = 0.0
    for name in FEATURE_NAMES:
        weight = FEATURE_WEIGHTS.get(name, 1.0)
        stats = profile.features[name]
        z = abs(getattr(features, name) - stats.mean) / max(stats.std, min_std)
        total += weight * z
        weight_sum += weight
    return total / weight_sum


def coerce_calibration(calibration: Any) -> Optional[CalibrationSet]:
    """Validate a persisted blob into a calibration set; anything unusable is None."""
    if calibration is None or isinstance(calibration, CalibrationSet):
        return calibration
    if isinstance(calibration, Mapping):
        try:
            return CalibrationSet.model_validate(calibration)
        except ValidationError as exc:
            logger.debug("Ignoring malformed calibration mapping: %s", exc)
    return None


def _pass_through(reason: str) -> ClassificationResult:
    return ClassificationResult(is_shot=True, confidence=0.0, reason=reason)


def classify(
    features: FeatureVector,
    calibration: Union[CalibrationSet, Mapping[str, Any], None],
    config: Optional[CalibrationConfig] = None,
) -> ClassificationResult:
    """Accept or reject a candidate by comparing it with activity profiles.

    Missing, malformed or shooting-less calibrations pass every candidate
    through unchanged.
    """
    cfg = config or CalibrationConfig()
    cal = coerce_calibration(calibration)
    if cal is None:
        return _pass_through("no_calibration")
    shooting = cal.profile(ActivityLabel.SHOOTING)
    if shooting is None:
        return _pass_through("no_shooting_profile")

    noise = {label: cal.profile(label) for label in NOISE_LABELS}
    noise = {label: p for label, p in noise.items() if p is not None}

    ratio = features.dip_ratio
    shoot_ratio = shooting.features["dip_ratio"]
    if ratio > shoot_ratio.mean + cfg.reject_sigma * shoot_ratio.std:
        for label, profile in noise.items():
            noise_ratio = profile.features["dip_ratio"]
            if abs(ratio - noise_ratio.mean) <= noise_ratio.std:
                return ClassificationResult(
                    is_shot=False,
                    confidence=cfg.hard_reject_confidence,
                    reason="shallow_dip",
                    nearest=label.value,
                )

    distances = {ActivityLabel.SHOOTING.value: profile_distance(features, shooting, cfg.min_std)}
    for label, profile in noise.items():
        distances[label.value] = profile_distance(features, profile, cfg.min_std)

    shoot_dist = distances[ActivityLabel.SHOOTING.value]
    if not noise:
        return ClassificationResult(
            is_shot=True,
            confidence=1.0 / (1.0 + shoot_dist),
            reason="no_noise_profiles",
            nearest=ActivityLabel.SHOOTING.value,
            distances=distances,
        )

    nearest_noise = min(noise, key=lambda label: distances[label.value]).value
    noise_dist = distances[nearest_noise]
    spread = max(noise_dist, shoot_dist, 1e-6)
    confidence = float(min(1.0, abs(noise_dist - shoot_dist) / spread))
    if shoot_dist <= noise_dist + cfg.margin:
        return ClassificationResult(
            is_shot=True,
            confidence=confidence,
            reason="nearest_shooting",
            nearest=ActivityLabel.SHOOTING.value,
            distances=distances,
        )
    return ClassificationResult(
        is_shot=False,
        confidence=confidence,
        reason=f"nearest_{nearest_noise}",
        nearest=nearest_noise,
        distances=distances,
    )


def calibrate(
    walking: Recording,
    running: Recording,
    dribbling: Recording,
    shooting: Recording,
    *,
    config: Optional[CalibrationConfig] = None,
    store: Optional[MutableMapping[str, str]] = None,
    created_at: Optional[float] = None,
) -> CalibrationSet:
    """Mine all four recordings, build profiles and optionally persist them."""
    recordings = {
        ActivityLabel.WALKING: walking,
        ActivityLabel.RUNNING: running,
        ActivityLabel.DRIBBLING: dribbling,
        ActivityLabel.SHOOTING: shooting,
    }
    profiles: Dict[ActivityLabel, Optional[ActivityProfile]] = {}
    counts: Dict[ActivityLabel, int] = {}
    for label, recording in recordings.items():
        patterns = extract_patterns(recording, config)
        counts[label] = len(patterns)
        profiles[label] = compute_profile(patterns)
        logger.info("Calibration %s: %d patterns", label.value, len(patterns))

    if profiles[ActivityLabel.SHOOTING] is None:
        logger.warning("No shooting patterns found; classification will pass candidates through")

    calibration = CalibrationSet(
        profiles=profiles,
        pattern_counts=counts,
        created_at=created_at if created_at is not None else time.time() * 1000.0,
    )
    if store is not None:
        save_calibration(store, calibration)
    return calibration
