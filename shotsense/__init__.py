"""shotsense: jump-shot detection engine for phone IMU streams.

This package hosts the sample buffer, movement tracker, three-phase shot
detector, consensus voter and motion calibrator. Sensor acquisition, court
positioning and session persistence live with the caller.
"""

__all__ = [
    "cli",
    "config",
    "session",
]

__version__ = "0.1.0"
