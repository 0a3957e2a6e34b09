"""
Service helpers running the detection engine for API requests.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import List, Sequence

from fastapi import HTTPException

from api.schemas import CalibrateRequest, DetectRequest, DetectResponse, SampleIn, ShotOut
from shotsense.calibration.calibrator import calibrate
from shotsense.calibration.profile import CalibrationSet
from shotsense.config import DetectorConfig
from shotsense.detect.detector import ShotDetector
from shotsense.io.session_file import SessionFileError, samples_from_records
from shotsense.samples import IMUSample

logger = logging.getLogger(__name__)


def _to_samples(samples: Sequence[SampleIn]) -> List[IMUSample]:
    """
    Convert validated request samples, rejecting out-of-order recordings with a 400.
    """
    try:
        return samples_from_records(s.model_dump() for s in samples)
    except SessionFileError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


def run_detection(payload: DetectRequest) -> DetectResponse:
    samples = _to_samples(payload.samples)
    config = replace(DetectorConfig(), use_consensus=payload.consensus, prune_bursts=payload.prune_bursts)
    shots = ShotDetector(config, calibration=payload.calibration).detect_all(samples)
    logger.info("Detected %d shots in %d uploaded samples", len(shots), len(samples))
    return DetectResponse(
        count=len(shots),
        shots=[ShotOut(**shot.to_dict()) for shot in shots],
    )


def run_calibration(payload: CalibrateRequest) -> CalibrationSet:
    return calibrate(
        _to_samples(payload.walking),
        _to_samples(payload.running),
        _to_samples(payload.dribbling),
        _to_samples(payload.shooting),
    )
