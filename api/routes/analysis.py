from __future__ import annotations

from fastapi import APIRouter

from api.schemas import CalibrateRequest, DetectRequest, DetectResponse
from api.services.analysis import run_calibration, run_detection
from shotsense.calibration.profile import CalibrationSet

router = APIRouter(prefix="/shots", tags=["shots"])


@router.post("/detect", response_model=DetectResponse)
def detect_shots(payload: DetectRequest) -> DetectResponse:
    """
    Batch re-analysis of a complete recording. Detection itself never fails on
    noisy input; an empty shot list means no candidate cleared the gates.
    """
    return run_detection(payload)


@router.post("/calibrate", response_model=CalibrationSet)
def build_calibration(payload: CalibrateRequest) -> CalibrationSet:
    """
    Build a calibration set from labeled activity recordings. Persisting it is up to the caller.
    """
    return run_calibration(payload)
