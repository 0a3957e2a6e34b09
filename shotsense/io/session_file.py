"""Loading recorded sessions for offline re-analysis.

A recorded session is a JSON object whose ``imu`` array holds one object per
sample (``t``, ``ax``, ``ay``, ``az`` and optionally ``aMag``, ``gx``, ``gy``,
``gz``, ``moving``). Only the fields the detector needs are read; everything
else in the export (GPS, zones, edits) belongs to other collaborators.
"""

from __future__ import annotations

import json
import math
from pathlib import Path
from typing import Any, Dict, Iterable, List, Union

from shotsense.samples import IMUSample


class SessionFileError(ValueError):
    """Raised when a session file is missing or malformed."""


def _number(record: Dict[str, Any], key: str, default: float | None = None) -> float:
    value = record.get(key, default)
    if value is None:
        raise SessionFileError(f"sample is missing '{key}'")
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise SessionFileError(f"sample field '{key}' is not numeric: {value!r}") from exc
    if not math.isfinite(number):
        raise SessionFileError(f"sample field '{key}' is not finite: {value!r}")
    return number


def _timestamp(record: Dict[str, Any]) -> float:
    if record.get("t") is not None:
        return _number(record, "t")
    return _number(record, "tRel")


def sample_from_record(record: Dict[str, Any]) -> IMUSample:
    """Convert one exported sample object to an :class:`IMUSample`."""
    if not isinstance(record, dict):
        raise SessionFileError(f"sample must be an object, got {type(record).__name__}")
    ax = _number(record, "ax")
    ay = _number(record, "ay")
    az = _number(record, "az")
    a_mag = record.get("aMag")
    return IMUSample(
        t=_timestamp(record),
        ax=ax,
        ay=ay,
        az=az,
        a_mag=_number(record, "aMag") if a_mag is not None else math.sqrt(ax * ax + ay * ay + az * az),
        gx=_number(record, "gx", 0.0),
        gy=_number(record, "gy", 0.0),
        gz=_number(record, "gz", 0.0),
        moving=bool(record.get("moving", False)),
    )


def samples_from_records(records: Iterable[Dict[str, Any]]) -> List[IMUSample]:
    samples = [sample_from_record(r) for r in records]
    for prev, cur in zip(samples, samples[1:]):
        if cur.t < prev.t:
            raise SessionFileError(f"timestamps must be non-decreasing ({cur.t} after {prev.t})")
    return samples


def sample_to_record(sample: IMUSample) -> Dict[str, Any]:
    return {
        "t": sample.t,
        "ax": sample.ax,
        "ay": sample.ay,
        "az": sample.az,
        "aMag": sample.a_mag,
        "gx": sample.gx,
        "gy": sample.gy,
        "gz": sample.gz,
        "moving": sample.moving,
    }


def load_session_samples(path: Union[str, Path]) -> List[IMUSample]:
    """Read the ``imu`` array of a recorded session file.

    A bare JSON array of samples is accepted as well.
    """
    path = Path(path)
    if not path.exists():
        raise SessionFileError(f"Session file does not exist: {path}")
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise SessionFileError(f"Invalid session JSON: {exc}") from exc

    records = data.get("imu") if isinstance(data, dict) else data
    if not isinstance(records, list):
        raise SessionFileError("Session file has no 'imu' sample array")
    return samples_from_records(records)
