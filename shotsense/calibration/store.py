"""Key-value persistence helpers for calibration sets.

The engine only needs a string-to-string mapping: the host app supplies its
own store (browser storage, preferences, a database row). :class:`FileStore`
is a small directory-backed mapping for the CLI and tests.

Loading is fail-open: a missing, truncated or schema-invalid blob yields None
("no calibration") and a warning, never an exception.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterator, Mapping, MutableMapping, Optional, Union

from pydantic import ValidationError

from shotsense.calibration.profile import CalibrationSet

logger = logging.getLogger(__name__)

CALIBRATION_KEY = "shotsense.motion_calibration"
DEFAULT_STORE_DIR = Path(os.getenv("SHOTSENSE_STORE_DIR", str(Path.home() / ".shotsense")))


def dump_calibration(calibration: CalibrationSet) -> str:
    return calibration.model_dump_json()


def load_calibration(raw: Union[str, bytes, None]) -> Optional[CalibrationSet]:
    """Parse a persisted calibration blob, returning None when unusable."""
    if not raw:
        return None
    try:
        return CalibrationSet.model_validate_json(raw)
    except ValidationError as exc:
        logger.warning("Discarding invalid calibration blob: %s", exc.errors()[:1])
        return None


def save_calibration(
    store: MutableMapping[str, str], calibration: CalibrationSet, key: str = CALIBRATION_KEY
) -> None:
    store[key] = dump_calibration(calibration)


def read_calibration(store: Mapping[str, str], key: str = CALIBRATION_KEY) -> Optional[CalibrationSet]:
    return load_calibration(store.get(key))


class FileStore(MutableMapping[str, str]):
    """Directory-backed string store; one ``<key>.json`` file per key."""

    def __init__(self, base: Path = DEFAULT_STORE_DIR) -> None:
        self.base = Path(base)

    def _path(self, key: str) -> Path:
        if not key or "/" in key or "\\" in key:
            raise KeyError(key)
        return self.base / f"{key}.json"

    def __getitem__(self, key: str) -> str:
        path = self._path(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError as exc:
            raise KeyError(key) from exc

    def __setitem__(self, key: str, value: str) -> None:
        path = self._path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(value, encoding="utf-8")

    def __delitem__(self, key: str) -> None:
        path = self._path(key)
        if not path.exists():
            raise KeyError(key)
        path.unlink()

    def __iter__(self) -> Iterator[str]:
        if not self.base.exists():
            return iter(())
        return iter(sorted(p.stem for p in self.base.glob("*.json")))

    def __len__(self) -> int:
        return sum(1 for _ in self)
