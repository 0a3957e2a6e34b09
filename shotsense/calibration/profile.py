"""Per-activity calibration profiles and the versioned calibration set.

The calibration set is validated via Pydantic so a blob coming back from an
external key-value store is either a complete, well-formed set or rejected as
a whole.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from shotsense.calibration.features import FEATURE_NAMES

SCHEMA_VERSION = 1


class ActivityLabel(str, Enum):
    WALKING = "walking"
    RUNNING = "running"
    DRIBBLING = "dribbling"
    SHOOTING = "shooting"


NOISE_LABELS = (ActivityLabel.WALKING, ActivityLabel.RUNNING, ActivityLabel.DRIBBLING)


class FeatureStats(BaseModel):
    model_config = ConfigDict(frozen=True)

    mean: float
    std: float = Field(..., ge=0.0)
    min: float
    max: float


class ActivityProfile(BaseModel):
    """Statistical fingerprint of one activity over all its mined patterns."""

    model_config = ConfigDict(frozen=True)

    count: int = Field(..., ge=1)
    features: Dict[str, FeatureStats]

    @field_validator("features")
    @classmethod
    def all_features_present(cls, v: Dict[str, FeatureStats]) -> Dict[str, FeatureStats]:
        missing = [name for name in FEATURE_NAMES if name not in v]
        if missing:
            raise ValueError(f"profile is missing features: {', '.join(missing)}")
        return v


class CalibrationSet(BaseModel):
    """All four activity profiles plus pattern counts and a creation time (ms)."""

    model_config = ConfigDict(frozen=True)

    schema_version: Literal[1] = SCHEMA_VERSION
    profiles: Dict[ActivityLabel, Optional[ActivityProfile]]
    pattern_counts: Dict[ActivityLabel, int] = Field(default_factory=dict)
    created_at: float = 0.0

    def profile(self, label: ActivityLabel) -> Optional[ActivityProfile]:
        return self.profiles.get(label)

    @property
    def is_active(self) -> bool:
        """True when a shooting profile exists, i.e. classification can run."""
        return self.profile(ActivityLabel.SHOOTING) is not None
