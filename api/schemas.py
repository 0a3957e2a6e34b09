import math
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from shotsense.calibration.profile import CalibrationSet


class SampleIn(BaseModel):
    """
    One recorded IMU sample, using the field names of exported session files.
    """
    t: float = Field(..., description="Monotonic timestamp in milliseconds.")
    ax: float
    ay: float
    az: float
    aMag: Optional[float] = Field(None, description="Acceleration magnitude; derived from the axes when omitted.")
    gx: float = 0.0
    gy: float = 0.0
    gz: float = 0.0
    moving: bool = False

    @field_validator("t", "ax", "ay", "az", "gx", "gy", "gz")
    @classmethod
    def finite(cls, v: float) -> float:
        if math.isnan(v) or math.isinf(v):
            raise ValueError("sample values must be finite numbers")
        return v


class DetectRequest(BaseModel):
    samples: List[SampleIn] = Field(..., min_length=1, description="Complete ordered recording.")
    consensus: bool = Field(False, description="Require the consensus quorum for every shot.")
    prune_bursts: bool = Field(False, description="Thin dense clusters of shots after detection.")
    calibration: Optional[CalibrationSet] = Field(None, description="Optional calibration set to filter with.")


class ShotOut(BaseModel):
    index: int
    timestamp: float
    peak_mag: float
    dip_mag: float
    recovery_mag: float
    range: float
    dip_offset: int
    recovery_offset: int
    moving: bool
    consensus: Optional[Dict[str, Any]] = None
    classification: Optional[Dict[str, Any]] = None


class DetectResponse(BaseModel):
    count: int
    shots: List[ShotOut]


class CalibrateRequest(BaseModel):
    """
    Labeled recordings for each calibration activity; skipped activities may be empty.
    """
    walking: List[SampleIn] = Field(default_factory=list)
    running: List[SampleIn] = Field(default_factory=list)
    dribbling: List[SampleIn] = Field(default_factory=list)
    shooting: List[SampleIn] = Field(default_factory=list)
