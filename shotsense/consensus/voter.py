"""Multi-method consensus check for shot candidates.

Four independent criteria each cast a vote on a peak/dip/recovery triple; the
candidate is accepted when at least ``min_votes`` agree. A quorum keeps any
single method's false positive from accepting a candidate on its own, and any
single method's blind spot from rejecting a shot the others agree on.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional

import numpy as np

from shotsense.config import ConsensusConfig

logger = logging.getLogger(__name__)

_EPS = 1e-6


@dataclass(frozen=True)
class MethodVote:
    vote: bool
    confidence: float
    score: Optional[float] = None


ABSTAIN = MethodVote(vote=False, confidence=0.0)

METHODS = ("window_sigma", "envelope_ratio", "dip_depth", "peak_prominence")


@dataclass(frozen=True)
class ConsensusResult:
    is_shot: bool
    votes: int
    min_votes: int
    confidence: float
    methods: Dict[str, MethodVote] = field(default_factory=dict)


def _clip01(value: float) -> float:
    return float(min(1.0, max(0.0, value)))


class ConsensusVoter:
    def __init__(self, config: Optional[ConsensusConfig] = None) -> None:
        self.config = config or ConsensusConfig()

    def window_sigma(self, signal: np.ndarray, peak: int, dip: int, rec: int) -> MethodVote:
        """Z-score of the peak against a symmetric window centred on it."""
        half = self.config.window_size // 2
        window = signal[max(0, peak - half) : peak + half]
        if len(window) < half:
            return ABSTAIN
        std = float(np.std(window))
        if std < _EPS:
            return ABSTAIN
        z = (float(signal[peak]) - float(np.mean(window))) / std
        threshold = self.config.sigma_threshold
        return MethodVote(vote=z > threshold, confidence=_clip01(z / (2 * threshold)), score=z)

    def envelope_ratio(self, signal: np.ndarray, peak: int, dip: int, rec: int) -> MethodVote:
        """Short-window range around the peak over long-window pre-peak std."""
        half = self.config.short_window // 2
        short = signal[max(0, peak - half) : peak + half]
        long = signal[max(0, peak - self.config.long_window) : peak]
        if len(short) < half or len(long) < self.config.long_window // 2:
            return ABSTAIN
        ratio = float(np.ptp(short)) / max(float(np.std(long)), _EPS)
        threshold = self.config.ratio_threshold
        return MethodVote(
            vote=ratio > threshold, confidence=_clip01(ratio / (2 * threshold)), score=ratio
        )

    def dip_depth(self, signal: np.ndarray, peak: int, dip: int, rec: int) -> MethodVote:
        """Near-free-fall dip below an absolute ceiling."""
        if not 0 <= dip < len(signal):
            return ABSTAIN
        value = float(signal[dip])
        ceiling = self.config.dip_ceiling
        return MethodVote(
            vote=value < ceiling, confidence=_clip01((ceiling - value) / ceiling), score=value
        )

    def peak_prominence(self, signal: np.ndarray, peak: int, dip: int, rec: int) -> MethodVote:
        """Height of the peak above the higher of its neighbouring minima."""
        n = self.config.prominence_window
        left = signal[max(0, peak - n) : peak]
        right = signal[peak + 1 : peak + 1 + n]
        if len(left) == 0 or len(right) == 0:
            return ABSTAIN
        prominence = float(signal[peak]) - max(float(np.min(left)), float(np.min(right)))
        minimum = self.config.min_prominence
        return MethodVote(
            vote=prominence > minimum,
            confidence=_clip01(prominence / (2 * minimum)),
            score=prominence,
        )

    def vote(self, signal: np.ndarray, peak: int, dip: int, rec: int) -> ConsensusResult:
        """Run all methods and apply the quorum rule. Never raises on edge input."""
        signal = np.asarray(signal, dtype=float)
        if not 0 <= peak < len(signal):
            results = {name: ABSTAIN for name in METHODS}
        else:
            results = {name: getattr(self, name)(signal, peak, dip, rec) for name in METHODS}
        votes = sum(1 for r in results.values() if r.vote)
        confidence = float(np.mean([r.confidence for r in results.values()]))
        result = ConsensusResult(
            is_shot=votes >= self.config.min_votes,
            votes=votes,
            min_votes=self.config.min_votes,
            confidence=confidence,
            methods=results,
        )
        logger.debug(
            "Consensus peak=%d votes=%d/%d -> %s",
            peak,
            votes,
            len(results),
            "shot" if result.is_shot else "reject",
        )
        return result
