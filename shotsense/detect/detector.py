"""Three-phase jump-shot detector.

A jump shot shows up in the acceleration magnitude as a sharp peak (take-off),
a near-free-fall dip, and a recovery (landing). Each candidate index must pass
five hard gates:

1. local maximum;
2. peak above ``mean + peak_sigma * eff_std`` of a trailing baseline and above
   an absolute floor (plus a stricter sigma check while the baseline is noisy);
3. minimum sample and time separation from the previous accepted shot;
4. dip within ``dip_search_window`` below both a sigma threshold (unclamped
   std) and an absolute ceiling, with a large enough peak-to-dip range;
5. recovery within ``recovery_search_window`` of the dip.

``eff_std`` is the baseline std clamped to ``max_effective_std`` so that a
baseline inflated by an earlier shot does not push the peak, range and
recovery thresholds out of reach. The dip threshold keeps the raw std and
stays strict during noisy passages.

Candidates surviving the gates then pass through the configured post-filter
stages (consensus voting, calibration classification). Detection never raises
on data problems; a failed gate simply moves the scan on.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, List, Mapping, Optional, Sequence, Union

from shotsense.calibration.calibrator import coerce_calibration
from shotsense.calibration.profile import CalibrationSet
from shotsense.config import CalibrationConfig, ConsensusConfig, DetectorConfig
from shotsense.consensus.voter import ConsensusVoter
from shotsense.detect.filters import CandidateStage, build_stages
from shotsense.detect.models import Gate, ShotCandidate, ShotRecord
from shotsense.detect.pruning import prune_bursts
from shotsense.samples import IMUSample, SignalView
from shotsense.signals.buffer import SampleBuffer
from shotsense.signals.stats import argmax_in, argmin_in, trailing_baseline

logger = logging.getLogger(__name__)


class ShotDetector:
    """Shot detector owned by a single session.

    The separation gate state (``last_shot_index``, ``last_shot_time``) only
    applies to streaming mode; :meth:`detect_all` keeps its own locals.
    """

    def __init__(
        self,
        config: Optional[DetectorConfig] = None,
        *,
        consensus_config: Optional[ConsensusConfig] = None,
        calibration_config: Optional[CalibrationConfig] = None,
        calibration: Union[CalibrationSet, Mapping[str, Any], None] = None,
    ) -> None:
        self.config = config or DetectorConfig()
        self.voter = ConsensusVoter(consensus_config)
        self.calibration_config = calibration_config or CalibrationConfig()
        self.last_shot_index: Optional[int] = None
        self.last_shot_time: Optional[float] = None
        self._calibration = self._validated(calibration)
        self.stages: List[CandidateStage] = self._build_stages()

    @staticmethod
    def _validated(calibration: Any) -> Optional[CalibrationSet]:
        cal = coerce_calibration(calibration)
        if cal is None and calibration is not None:
            logger.warning("Ignoring malformed calibration; classification disabled")
        return cal

    def _build_stages(self) -> List[CandidateStage]:
        return build_stages(self.config, self.voter, self._calibration, self.calibration_config)

    @property
    def calibration(self) -> Optional[CalibrationSet]:
        return self._calibration

    @calibration.setter
    def calibration(self, calibration: Union[CalibrationSet, Mapping[str, Any], None]) -> None:
        # Stages are rebuilt and swapped in one assignment.
        self._calibration = self._validated(calibration)
        self.stages = self._build_stages()

    def _reject(self, gate: Gate, index: int) -> None:
        logger.debug("Candidate %d rejected at %s gate", index, gate.value)
        return None

    def check_candidate(
        self,
        view: SignalView,
        i: int,
        *,
        last_index: Optional[int] = None,
        last_time: Optional[float] = None,
        index: Optional[int] = None,
    ) -> Optional[ShotCandidate]:
        """Apply the five gates at position ``i`` of ``view``.

        ``index`` is the separation-gate index of ``i`` (absolute buffer index
        in streaming mode); it defaults to ``i``.
        """
        cfg = self.config
        a_mag = view.a_mag
        n = len(a_mag)
        if i < 1 or i + 1 >= n:
            return None
        peak = float(a_mag[i])
        if not (peak > a_mag[i + 1] and peak >= a_mag[i - 1]):
            return None

        base = trailing_baseline(
            a_mag, i - cfg.baseline_offset, cfg.baseline_window, cfg.min_baseline_samples
        )
        if base is None:
            return self._reject(Gate.BASELINE, i)
        eff_std = base.effective_std(cfg.max_effective_std)

        if peak < base.mean + cfg.peak_sigma * eff_std or peak < cfg.min_peak_abs:
            return self._reject(Gate.PEAK, i)
        if (
            cfg.moving_peak_sigma is not None
            and base.std > cfg.moving_std_threshold
            and peak < base.mean + cfg.moving_peak_sigma * base.std
        ):
            return self._reject(Gate.PEAK, i)

        index = i if index is None else index
        timestamp = float(view.t[i])
        if last_index is not None and index - last_index < cfg.min_shot_samples:
            return self._reject(Gate.SEPARATION, i)
        if last_time is not None and timestamp - last_time < cfg.min_shot_interval_ms:
            return self._reject(Gate.SEPARATION, i)

        dip = argmin_in(a_mag, i + 1, i + cfg.dip_search_window)
        if dip is None:
            return self._reject(Gate.DIP, i)
        dip_mag = float(a_mag[dip])
        if dip_mag > base.mean - cfg.dip_sigma * base.std or dip_mag > cfg.max_dip_abs:
            return self._reject(Gate.DIP, i)
        if peak - dip_mag < max(cfg.min_peak_to_dip_abs, eff_std * cfg.peak_to_dip_sigma):
            return self._reject(Gate.RANGE, i)

        rec = argmax_in(a_mag, dip + 1, dip + cfg.recovery_search_window)
        if rec is None:
            return self._reject(Gate.RECOVERY, i)
        rec_mag = float(a_mag[rec])
        if (
            rec_mag < base.mean + cfg.recovery_sigma * eff_std
            or rec_mag - dip_mag < cfg.min_rise_from_dip
        ):
            return self._reject(Gate.RECOVERY, i)

        return ShotCandidate(
            peak_index=i,
            dip_index=dip,
            recovery_index=rec,
            peak_mag=peak,
            dip_mag=dip_mag,
            recovery_mag=rec_mag,
            timestamp=timestamp,
            baseline=base,
        )

    def _finalize(self, candidate: ShotCandidate, view: SignalView, index: int) -> Optional[ShotRecord]:
        record = ShotRecord(
            index=index,
            timestamp=candidate.timestamp,
            peak_mag=candidate.peak_mag,
            dip_mag=candidate.dip_mag,
            recovery_mag=candidate.recovery_mag,
            range=candidate.range,
            dip_offset=candidate.dip_index - candidate.peak_index,
            recovery_offset=candidate.recovery_index - candidate.peak_index,
            moving=bool(view.moving[candidate.peak_index]),
        )
        for stage in self.stages:
            verdict = stage(candidate, view)
            if verdict.consensus is not None:
                record = replace(record, consensus=verdict.consensus)
            if verdict.classification is not None:
                record = replace(record, classification=verdict.classification)
            if not verdict.accepted:
                logger.debug("Candidate %d rejected by %s stage", index, stage.name)
                return None
        return record

    def process_sample(self, buffer: SampleBuffer) -> Optional[ShotRecord]:
        """Streaming mode: scan the look-back window after a new sample arrived.

        Only samples roughly 50-90 positions behind the newest one are
        scanned, so their dip and recovery phases are already buffered.
        Returns the first accepted shot, if any.
        """
        cfg = self.config
        n = len(buffer)
        if n < cfg.min_stream_samples:
            return None

        view_start = max(0, n - cfg.stream_context)
        view = SignalView.from_samples(buffer.window(view_start))
        for i in range(n - cfg.scan_start_offset - view_start, n - cfg.scan_end_offset - view_start):
            index = buffer.absolute_index(view_start + i)
            candidate = self.check_candidate(
                view,
                i,
                last_index=self.last_shot_index,
                last_time=self.last_shot_time,
                index=index,
            )
            if candidate is None:
                continue
            record = self._finalize(candidate, view, index)
            if record is None:
                continue
            self.last_shot_index = index
            self.last_shot_time = candidate.timestamp
            logger.info(
                "Shot at sample %d: peak=%.1f dip=%.1f range=%.1f",
                index,
                record.peak_mag,
                record.dip_mag,
                record.range,
            )
            return record
        return None

    def detect_all(self, samples: Union[Sequence[IMUSample], SignalView]) -> List[ShotRecord]:
        """Batch mode: detect every shot in a complete recording.

        Uses only local separation state, so repeated calls on the same input
        return the same shots. Safe to run off the session's thread.
        """
        cfg = self.config
        view = samples if isinstance(samples, SignalView) else SignalView.from_samples(samples)
        shots: List[ShotRecord] = []
        last_index: Optional[int] = None
        last_time: Optional[float] = None

        start = cfg.baseline_window + cfg.baseline_offset
        end = len(view) - cfg.dip_search_window - cfg.recovery_search_window
        for i in range(start, end):
            candidate = self.check_candidate(view, i, last_index=last_index, last_time=last_time)
            if candidate is None:
                continue
            record = self._finalize(candidate, view, i)
            if record is None:
                continue
            shots.append(record)
            last_index = i
            last_time = candidate.timestamp

        if cfg.prune_bursts:
            shots = prune_bursts(shots, cfg.burst)
        logger.info("Batch detection found %d shots in %d samples", len(shots), len(view))
        return shots

    def reset(self) -> None:
        self.last_shot_index = None
        self.last_shot_time = None
