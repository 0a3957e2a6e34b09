"""Shared configuration used across the detection engine.

Every threshold the detector, tracker, voter and calibrator apply is a field on
one of these frozen dataclasses so tuning never requires touching the
algorithms. Defaults match the field-tested tuning.
"""

from dataclasses import dataclass, field
from typing import Optional


def _require_positive(name: str, value: float) -> None:
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {value}")


@dataclass(frozen=True)
class BufferConfig:
    """Rolling sample buffer sizing.

    Attributes:
        capacity: Number of samples held before compaction triggers.
        shift: Number of oldest samples dropped per compaction.
    """

    capacity: int = 3000
    shift: int = 1000

    def __post_init__(self) -> None:
        _require_positive("capacity", self.capacity)
        _require_positive("shift", self.shift)
        if self.shift > self.capacity:
            raise ValueError("shift cannot exceed capacity")


@dataclass(frozen=True)
class MovementConfig:
    """Rolling-variance movement tracker parameters."""

    window: int = 20
    std_threshold: float = 0.8
    hysteresis_ms: float = 800.0
    intensity_floor: float = 0.3
    intensity_span: float = 1.5
    walk_intensity: float = 0.5

    def __post_init__(self) -> None:
        _require_positive("window", self.window)
        _require_positive("intensity_span", self.intensity_span)


@dataclass(frozen=True)
class BurstPruneConfig:
    """Retrospective thinning of shot clusters.

    Clusters of ``min_cluster`` or more shots inside ``window_ms`` are reduced
    to at most one shot per ``keep_interval_ms``.
    """

    window_ms: float = 12000.0
    min_cluster: int = 3
    keep_interval_ms: float = 8000.0


@dataclass(frozen=True)
class DetectorConfig:
    """Thresholds for the peak/dip/recovery shot detector.

    Sigma multipliers are applied to baseline statistics; the ``*_abs`` values
    are absolute magnitudes in m/s^2 that must hold independently of the
    baseline.
    """

    peak_sigma: float = 2.5
    dip_sigma: float = 1.5
    recovery_sigma: float = 1.0
    peak_to_dip_sigma: float = 5.0
    min_peak_abs: float = 14.0
    max_dip_abs: float = 6.0
    min_rise_from_dip: float = 5.0
    min_peak_to_dip_abs: float = 8.0
    max_effective_std: float = 1.5

    moving_std_threshold: float = 0.8
    moving_peak_sigma: Optional[float] = 2.0

    baseline_window: int = 80
    baseline_offset: int = 20
    min_baseline_samples: int = 10
    dip_search_window: int = 35
    recovery_search_window: int = 30

    scan_start_offset: int = 90
    scan_end_offset: int = 50
    stream_context: int = 400

    min_shot_interval_ms: float = 1200.0
    min_shot_samples: int = 60

    use_consensus: bool = False
    use_calibration: bool = True
    prune_bursts: bool = False
    burst: BurstPruneConfig = field(default_factory=BurstPruneConfig)

    def __post_init__(self) -> None:
        for name in (
            "baseline_window",
            "dip_search_window",
            "recovery_search_window",
            "min_shot_samples",
            "stream_context",
        ):
            _require_positive(name, getattr(self, name))
        if self.scan_end_offset >= self.scan_start_offset:
            raise ValueError("scan_end_offset must be smaller than scan_start_offset")
        if self.max_effective_std <= 0:
            raise ValueError("max_effective_std must be positive")
        if self.stream_context < self.min_stream_samples:
            raise ValueError("stream_context must cover the scan window and its baseline")

    @property
    def min_stream_samples(self) -> int:
        """Buffer length required before streaming detection scans anything."""
        return self.scan_start_offset + self.baseline_window + self.baseline_offset


@dataclass(frozen=True)
class ConsensusConfig:
    """Parameters for the four consensus methods and the quorum rule."""

    window_size: int = 200
    sigma_threshold: float = 4.0
    short_window: int = 50
    long_window: int = 200
    ratio_threshold: float = 4.0
    dip_ceiling: float = 5.0
    prominence_window: int = 100
    min_prominence: float = 5.0
    min_votes: int = 3

    def __post_init__(self) -> None:
        if not 1 <= self.min_votes <= 4:
            raise ValueError("min_votes must be between 1 and 4")
        for name in ("window_size", "short_window", "long_window", "prominence_window"):
            _require_positive(name, getattr(self, name))


@dataclass(frozen=True)
class CalibrationConfig:
    """Relaxed pattern mining and profile-distance classification settings."""

    peak_sigma: float = 1.0
    min_peak_abs: float = 11.0
    min_drop: float = 3.0
    min_rise: float = 2.0
    min_spacing: int = 20
    dip_search_window: int = 35
    recovery_search_window: int = 30
    baseline_window: int = 80
    baseline_offset: int = 20

    reject_sigma: float = 2.0
    margin: float = 0.5
    min_std: float = 0.1
    hard_reject_confidence: float = 0.9


@dataclass(frozen=True)
class EngineConfig:
    """Bundle of component configs handed to a tracking session."""

    buffer: BufferConfig = field(default_factory=BufferConfig)
    movement: MovementConfig = field(default_factory=MovementConfig)
    detector: DetectorConfig = field(default_factory=DetectorConfig)
    consensus: ConsensusConfig = field(default_factory=ConsensusConfig)
    calibration: CalibrationConfig = field(default_factory=CalibrationConfig)
