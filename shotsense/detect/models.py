"""Data models produced by the shot detector."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, Optional

from shotsense.signals.stats import BaselineStats

if TYPE_CHECKING:
    from shotsense.calibration.calibrator import ClassificationResult
    from shotsense.consensus.voter import ConsensusResult


class Gate(str, Enum):
    """Gates that can reject a local maximum, in evaluation order."""

    BASELINE = "baseline"
    PEAK = "peak"
    SEPARATION = "separation"
    DIP = "dip"
    RANGE = "range"
    RECOVERY = "recovery"


@dataclass(frozen=True)
class ShotCandidate:
    """Peak/dip/recovery triple that cleared every detector gate.

    Indices refer to the signal view the detector scanned.
    """

    peak_index: int
    dip_index: int
    recovery_index: int
    peak_mag: float
    dip_mag: float
    recovery_mag: float
    timestamp: float
    baseline: BaselineStats

    @property
    def range(self) -> float:
        return self.peak_mag - self.dip_mag


@dataclass(frozen=True)
class ShotRecord:
    """An accepted shot, immutable once emitted.

    Attributes:
        index: Absolute sample index of the peak (streaming) or array index
            (batch).
        timestamp: Timestamp (ms) of the peak sample.
        moving: Movement flag recorded on the peak sample.
        consensus: Voter result when the consensus stage ran.
        classification: Calibration result when the calibration stage ran.
    """

    index: int
    timestamp: float
    peak_mag: float
    dip_mag: float
    recovery_mag: float
    range: float
    dip_offset: int
    recovery_offset: int
    moving: bool = False
    consensus: Optional["ConsensusResult"] = None
    classification: Optional["ClassificationResult"] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
