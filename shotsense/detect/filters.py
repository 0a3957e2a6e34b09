"""Post-filter stages applied to candidates that cleared the detector gates.

Stages run in order; the first rejection discards the candidate. Each stage
may attach its result to the emitted shot record.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Protocol

from shotsense.calibration.calibrator import ClassificationResult, classify
from shotsense.calibration.features import extract_features
from shotsense.calibration.profile import CalibrationSet
from shotsense.config import CalibrationConfig, DetectorConfig
from shotsense.consensus.voter import ConsensusResult, ConsensusVoter
from shotsense.detect.models import ShotCandidate
from shotsense.samples import SignalView


@dataclass(frozen=True)
class StageVerdict:
    accepted: bool
    consensus: Optional[ConsensusResult] = None
    classification: Optional[ClassificationResult] = None


class CandidateStage(Protocol):
    name: str

    def __call__(self, candidate: ShotCandidate, view: SignalView) -> StageVerdict:
        ...


class ConsensusStage:
    name = "consensus"

    def __init__(self, voter: ConsensusVoter) -> None:
        self.voter = voter

    def __call__(self, candidate: ShotCandidate, view: SignalView) -> StageVerdict:
        result = self.voter.vote(
            view.a_mag, candidate.peak_index, candidate.dip_index, candidate.recovery_index
        )
        return StageVerdict(accepted=result.is_shot, consensus=result)


class CalibrationStage:
    name = "calibration"

    def __init__(self, calibration: CalibrationSet, config: Optional[CalibrationConfig] = None) -> None:
        self.calibration = calibration
        self.config = config or CalibrationConfig()

    def __call__(self, candidate: ShotCandidate, view: SignalView) -> StageVerdict:
        features = extract_features(
            view,
            candidate.peak_index,
            candidate.dip_index,
            candidate.recovery_index,
            candidate.baseline.mean,
        )
        result = classify(features, self.calibration, self.config)
        return StageVerdict(accepted=result.is_shot, classification=result)


def build_stages(
    config: DetectorConfig,
    voter: ConsensusVoter,
    calibration: Optional[CalibrationSet],
    calibration_config: Optional[CalibrationConfig] = None,
) -> List[CandidateStage]:
    """Ordered stage list for the given toggles.

    The calibration stage is omitted entirely when no usable calibration is
    available, so detection falls back to the three-phase gates alone.
    """
    stages: List[CandidateStage] = []
    if config.use_consensus:
        stages.append(ConsensusStage(voter))
    if config.use_calibration and calibration is not None and calibration.is_active:
        stages.append(CalibrationStage(calibration, calibration_config))
    return stages
