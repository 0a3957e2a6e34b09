"""Per-session orchestration of the live detection pipeline.

A :class:`TrackingSession` owns one buffer, movement tracker and detector.
The host pushes one reading per sensor event; the session stamps the movement
state on the sample, buffers it, records movement transitions and runs
streaming detection. It also routes samples into labeled recordings while a
motion calibration is in progress.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, replace
from typing import Dict, List, MutableMapping, Optional

from shotsense.calibration.calibrator import calibrate
from shotsense.calibration.profile import ActivityLabel, CalibrationSet
from shotsense.config import EngineConfig
from shotsense.detect.detector import ShotDetector
from shotsense.detect.models import ShotRecord
from shotsense.samples import IMUSample
from shotsense.signals.buffer import SampleBuffer
from shotsense.signals.movement import MovementState, MovementTracker

logger = logging.getLogger(__name__)


def _movement_label(moving: bool) -> str:
    return "moving" if moving else "stationary"


@dataclass(frozen=True)
class MovementEvent:
    t: float
    from_state: str
    to_state: str
    type: str = "movement_change"


class TrackingSession:
    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        *,
        calibration: Optional[CalibrationSet] = None,
    ) -> None:
        self.config = config or EngineConfig()
        self.buffer = SampleBuffer(self.config.buffer)
        self.tracker = MovementTracker(self.config.movement)
        self.detector = ShotDetector(
            self.config.detector,
            consensus_config=self.config.consensus,
            calibration_config=self.config.calibration,
            calibration=calibration,
        )
        self.shots: List[ShotRecord] = []
        self.events: List[MovementEvent] = []
        self._calibration_label: Optional[ActivityLabel] = None
        self._recordings: Dict[ActivityLabel, List[IMUSample]] = {}

    @property
    def movement(self) -> MovementState:
        return self.tracker.state

    @property
    def calibration(self) -> Optional[CalibrationSet]:
        return self.detector.calibration

    @calibration.setter
    def calibration(self, calibration: Optional[CalibrationSet]) -> None:
        self.detector.calibration = calibration

    def ingest(
        self,
        t: float,
        ax: float,
        ay: float,
        az: float,
        gx: float = 0.0,
        gy: float = 0.0,
        gz: float = 0.0,
    ) -> Optional[ShotRecord]:
        """Process one raw reading; gyroscope rates are given in deg/s."""
        to_rad = math.pi / 180.0
        sample = IMUSample.from_reading(t, ax, ay, az, gx * to_rad, gy * to_rad, gz * to_rad)
        return self.add_sample(sample)

    def add_sample(self, sample: IMUSample) -> Optional[ShotRecord]:
        """Process one sample and return a shot record if one was accepted."""
        was_moving = self.tracker.is_moving
        moving = self.tracker.process_sample(sample.a_mag, sample.t)
        sample = replace(sample, moving=moving)

        self.buffer.push(sample)
        if self._calibration_label is not None:
            self._recordings[self._calibration_label].append(sample)
        if moving != was_moving:
            self.events.append(
                MovementEvent(t=sample.t, from_state=_movement_label(was_moving), to_state=_movement_label(moving))
            )

        shot = self.detector.process_sample(self.buffer)
        if shot is not None:
            self.shots.append(shot)
        return shot

    def begin_calibration(self, label: ActivityLabel) -> None:
        """Start (or restart) recording samples for one calibration activity."""
        label = ActivityLabel(label)
        self._calibration_label = label
        self._recordings[label] = []
        logger.info("Recording calibration activity %s", label.value)

    def end_calibration_step(self) -> None:
        self._calibration_label = None

    def cancel_calibration(self) -> None:
        self._calibration_label = None
        self._recordings = {}

    def finish_calibration(self, store: Optional[MutableMapping[str, str]] = None) -> CalibrationSet:
        """Build a calibration set from the recorded activities and install it.

        Activities that were skipped contribute an empty recording.
        """
        self._calibration_label = None
        recordings = self._recordings
        self._recordings = {}
        calibration = calibrate(
            recordings.get(ActivityLabel.WALKING, []),
            recordings.get(ActivityLabel.RUNNING, []),
            recordings.get(ActivityLabel.DRIBBLING, []),
            recordings.get(ActivityLabel.SHOOTING, []),
            config=self.config.calibration,
            store=store,
        )
        self.calibration = calibration
        return calibration

    def reset(self) -> None:
        self.buffer.clear()
        self.tracker.reset()
        self.detector.reset()
        self.shots = []
        self.events = []
        self.cancel_calibration()
