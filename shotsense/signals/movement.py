"""Walking/running state tracking from rolling acceleration variance.

The tracker enters the moving state as soon as the rolling std crosses the
threshold, but only returns to stationary after the std has stayed low for the
hysteresis dwell. A false "stationary" would relax detection during motion, so
the asymmetry is biased toward reporting movement.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from typing import Optional

import numpy as np

from shotsense.config import MovementConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MovementState:
    """Snapshot of the tracker after the most recent sample."""

    is_moving: bool
    intensity: float
    last_transition_time: float
    walk_intensity: float = 0.5

    @property
    def label(self) -> str:
        """Coarse activity label: ``still``, ``walk`` or ``run``."""
        if not self.is_moving:
            return "still"
        return "walk" if self.intensity < self.walk_intensity else "run"


class MovementTracker:
    def __init__(self, config: Optional[MovementConfig] = None) -> None:
        self.config = config or MovementConfig()
        self._window: deque = deque(maxlen=self.config.window)
        self.is_moving = False
        self.intensity = 0.0
        self.last_transition_time = 0.0

    def process_sample(self, a_mag: float, t: float) -> bool:
        """Feed one magnitude and return the (possibly unchanged) moving flag."""
        self._window.append(a_mag)
        if len(self._window) < self.config.window:
            return self.is_moving

        std = float(np.std(np.fromiter(self._window, dtype=float)))
        self.intensity = float(
            np.clip((std - self.config.intensity_floor) / self.config.intensity_span, 0.0, 1.0)
        )

        now_moving = std > self.config.std_threshold
        if now_moving == self.is_moving:
            self.last_transition_time = t
        elif now_moving:
            self.is_moving = True
            self.last_transition_time = t
            logger.debug("Movement started at t=%.0f (std=%.2f)", t, std)
        elif t - self.last_transition_time > self.config.hysteresis_ms:
            self.is_moving = False
            self.last_transition_time = t
            logger.debug("Movement stopped at t=%.0f (std=%.2f)", t, std)

        return self.is_moving

    @property
    def state(self) -> MovementState:
        return MovementState(
            is_moving=self.is_moving,
            intensity=self.intensity,
            last_transition_time=self.last_transition_time,
            walk_intensity=self.config.walk_intensity,
        )

    def reset(self) -> None:
        self._window.clear()
        self.is_moving = False
        self.intensity = 0.0
        self.last_transition_time = 0.0
