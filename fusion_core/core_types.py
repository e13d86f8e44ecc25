from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

import numpy as np


def valid_points(points: np.ndarray) -> np.ndarray:
    """Drop rows of an (N, 3) array that contain any NaN."""
    return points[~np.isnan(points).any(axis=1)]


@dataclass(frozen=True)
class Detection2D:
    """One labelled pixel box.

    The capture timestamp lives on the enclosing :class:`DetectionBatch`;
    every detection in a batch shares it.
    """

    label: str
    confidence: float
    xmin: int
    xmax: int
    ymin: int
    ymax: int

    def __post_init__(self):
        if self.xmin < 0 or self.ymin < 0 or self.xmax < self.xmin or self.ymax < self.ymin:
            raise ValueError(
                f"invalid pixel box x=[{self.xmin},{self.xmax}] y=[{self.ymin},{self.ymax}]"
            )

    @property
    def center(self) -> tuple[int, int]:
        return (self.xmax + self.xmin) // 2, (self.ymax + self.ymin) // 2


@dataclass(frozen=True)
class DetectionBatch:
    capture_time: float
    detections: tuple[Detection2D, ...] = ()
    image_width: int = 0
    image_height: int = 0


class PointCloudFrame:
    """Organized point cloud, ``height`` rows by ``width`` columns.

    Points are stored as a read-only ``(height, width, 3)`` float array.
    Invalid samples carry NaN coordinates.
    """

    def __init__(self, frame_time: float, points: Any, width: Optional[int] = None,
                 height: Optional[int] = None, frame_id: str = ""):
        arr = np.array(points, dtype=np.float32)
        if arr.ndim == 2:
            if width is None or height is None:
                raise ValueError("flat point arrays need explicit width and height")
            if arr.shape != (width * height, 3):
                raise ValueError(f"expected {width * height} points, got {arr.shape[0]}")
            arr = arr.reshape(height, width, 3)
        elif arr.ndim != 3 or arr.shape[2] != 3:
            raise ValueError(f"points must be (H, W, 3) or (H*W, 3), got {arr.shape}")
        if width is not None and arr.shape[1] != width:
            raise ValueError(f"width mismatch: {arr.shape[1]} != {width}")
        if height is not None and arr.shape[0] != height:
            raise ValueError(f"height mismatch: {arr.shape[0]} != {height}")

        arr.flags.writeable = False
        self.frame_time = float(frame_time)
        self.frame_id = frame_id
        self._points = arr

    @property
    def width(self) -> int:
        return self._points.shape[1]

    @property
    def height(self) -> int:
        return self._points.shape[0]

    @property
    def grid(self) -> np.ndarray:
        return self._points

    @property
    def flat(self) -> np.ndarray:
        return self._points.reshape(-1, 3)

    def index(self, col: int, row: int) -> int:
        return row * self.width + col

    def in_bounds(self, col: int, row: int) -> bool:
        return 0 <= col < self.width and 0 <= row < self.height

    def point_at(self, col: int, row: int) -> Optional[np.ndarray]:
        """Return the point at pixel ``(col, row)``, or None if out of bounds or invalid."""
        if not self.in_bounds(col, row):
            return None
        p = self.flat[self.index(col, row)]
        if np.isnan(p).any():
            return None
        return p

    def with_points(self, points: np.ndarray, frame_id: str) -> "PointCloudFrame":
        return PointCloudFrame(self.frame_time, points, frame_id=frame_id)

    def __repr__(self) -> str:
        return (
            f"PointCloudFrame(frame_time={self.frame_time}, frame_id={self.frame_id!r}, "
            f"{self.width}x{self.height})"
        )


@dataclass(frozen=True)
class Detection3D:
    label: str
    confidence: float
    xmin: float
    xmax: float
    ymin: float
    ymax: float
    zmin: float
    zmax: float

    @property
    def center(self) -> tuple[float, float, float]:
        return (
            (self.xmax + self.xmin) / 2.0,
            (self.ymax + self.ymin) / 2.0,
            (self.zmax + self.zmin) / 2.0,
        )

    @property
    def size(self) -> tuple[float, float, float]:
        return (self.xmax - self.xmin, self.ymax - self.ymin, self.zmax - self.zmin)


@dataclass(frozen=True)
class Detection3DBatch:
    frame_time: float
    frame_id: str
    boxes: tuple[Detection3D, ...] = ()


@dataclass(frozen=True)
class CuboidMarker:
    marker_id: int
    namespace: str
    frame_id: str
    stamp: float
    center: tuple[float, float, float]
    scale: tuple[float, float, float]
    color: tuple[float, float, float, float]  # r, g, b, a
    lifetime_sec: float
    orientation: tuple[float, float, float, float] = field(default=(0.0, 0.0, 0.0, 1.0))
