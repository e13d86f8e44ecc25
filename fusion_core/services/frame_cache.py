"""Bounded, thread-safe history of point-cloud frames."""

from __future__ import annotations

import threading
from collections import deque
from dataclasses import dataclass
from typing import Optional

from ..core_types import PointCloudFrame


@dataclass(frozen=True)
class CacheEntry:
    frame_time: float
    frame: PointCloudFrame


class FrameCache:
    """
    Keeps the last ``capacity`` frames in arrival order.

    Inserts come from the point-cloud ingestion path and lookups from the
    fusion path, possibly on different threads. Both go through a single
    lock so a lookup never sees a half-applied insert/evict.
    """

    def __init__(self, capacity: int = 100):
        if capacity < 1:
            raise ValueError("capacity must be >= 1")
        self.capacity = capacity
        self._entries: deque[CacheEntry] = deque(maxlen=capacity)
        self._lock = threading.Lock()

    def insert(self, frame: PointCloudFrame) -> None:
        entry = CacheEntry(frame.frame_time, frame)
        with self._lock:
            # deque(maxlen) drops the oldest arrival on overflow
            self._entries.append(entry)

    def lookup_before(self, t: float) -> Optional[PointCloudFrame]:
        """
        Return the stored frame with the greatest ``frame_time <= t``.

        Among frames sharing that timestamp the latest arrival wins.
        Returns None when the cache is empty or every frame is newer than ``t``.
        """
        with self._lock:
            entries = tuple(self._entries)

        best: Optional[CacheEntry] = None
        for entry in entries:
            if entry.frame_time > t:
                continue
            if best is None or entry.frame_time >= best.frame_time:
                best = entry
        return best.frame if best is not None else None

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
