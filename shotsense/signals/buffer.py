"""Bounded rolling store of IMU samples with stable absolute indexing."""

from __future__ import annotations

import logging
from typing import List, Optional

from shotsense.config import BufferConfig
from shotsense.samples import IMUSample

logger = logging.getLogger(__name__)


class SampleBuffer:
    """Append-only sample window that compacts by dropping its oldest block.

    Indices passed to :meth:`get` are relative to the live window; the
    ``offset`` counts samples discarded by compaction so that
    ``absolute_index(i)`` keeps identifying the same sample for the lifetime
    of the buffer.
    """

    def __init__(self, config: Optional[BufferConfig] = None) -> None:
        self.config = config or BufferConfig()
        self._data: List[IMUSample] = []
        self.offset = 0
        self.total_pushed = 0

    def push(self, sample: IMUSample) -> None:
        self._data.append(sample)
        self.total_pushed += 1
        if len(self._data) > self.config.capacity:
            del self._data[: self.config.shift]
            self.offset += self.config.shift
            logger.debug("Buffer compacted; offset now %d", self.offset)

    def __len__(self) -> int:
        return len(self._data)

    def get(self, index: int) -> IMUSample:
        return self._data[index]

    def absolute_index(self, index: int) -> int:
        """Translate a live-window index into the never-reused absolute index."""
        return index + self.offset

    def tail(self, n: int) -> List[IMUSample]:
        """Return (a copy of) the last ``n`` samples."""
        start = max(0, len(self._data) - n)
        return self._data[start:]

    def window(self, start: int, end: Optional[int] = None) -> List[IMUSample]:
        return self._data[start:end]

    def clear(self) -> None:
        self._data = []
        self.offset = 0
        self.total_pushed = 0
