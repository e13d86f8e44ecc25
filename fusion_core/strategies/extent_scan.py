from __future__ import annotations

from typing import Optional

import numpy as np

from ..core_types import Detection2D, PointCloudFrame, valid_points


class ExtentEstimator:
    """Axis-aligned 3D extent of the valid points inside a pixel box.

    Points whose depth (x) differs from the anchor's by more than
    ``depth_threshold`` are treated as foreground/background bleed. Lateral
    (y, z) distance is not checked.
    """

    def __init__(self, depth_threshold: float = 0.5):
        self.depth_threshold = depth_threshold

    def estimate(
        self,
        frame: PointCloudFrame,
        det: Detection2D,
        anchor: np.ndarray,
    ) -> Optional[tuple[np.ndarray, np.ndarray]]:
        """Return ``(mins, maxs)`` per axis, or None when no point survives."""
        x0, x1 = max(det.xmin, 0), min(det.xmax, frame.width)
        y0, y1 = max(det.ymin, 0), min(det.ymax, frame.height)
        if x1 <= x0 or y1 <= y0:
            return None

        pts = valid_points(frame.grid[y0:y1, x0:x1].reshape(-1, 3))
        pts = pts[np.abs(pts[:, 0] - anchor[0]) <= self.depth_threshold]
        if pts.shape[0] == 0:
            return None
        return pts.min(axis=0), pts.max(axis=0)
