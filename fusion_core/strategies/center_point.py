"""Robust anchor point for a 2D detection inside an organized point cloud."""

from __future__ import annotations

from typing import Optional

import numpy as np

from ..core_types import Detection2D, PointCloudFrame, valid_points


class CenterEstimator:
    """
    Samples a sparse grid of pixels around the box center and keeps the
    valid sample closest to the sensor (smallest x, the forward axis of the
    working frame).

    The grid spans ``width_fraction`` of the box width and
    ``height_fraction`` of its height with ``num_samples + 1`` offsets per
    axis. Boxes too small for an integer stride on either axis are scanned
    pixel by pixel instead.
    """

    def __init__(
        self,
        num_samples: int = 500,
        width_fraction: float = 0.55,
        height_fraction: float = 0.35,
    ):
        if num_samples < 1:
            raise ValueError("num_samples must be >= 1")
        self.num_samples = num_samples
        self.width_fraction = width_fraction
        self.height_fraction = height_fraction

    def strides(self, det: Detection2D) -> tuple[int, int]:
        w = det.xmax - det.xmin
        h = det.ymax - det.ymin
        step_x = int(w * self.width_fraction) // self.num_samples
        step_y = int(h * self.height_fraction) // self.num_samples
        return step_x, step_y

    def estimate(self, frame: PointCloudFrame, det: Detection2D) -> Optional[np.ndarray]:
        """
        Args:
            frame: Aligned point cloud
            det: 2D detection in pixel coordinates of ``frame``

        Returns:
            (3,) anchor point, or None when no valid sample was found
        """
        step_x, step_y = self.strides(det)
        if step_x == 0 or step_y == 0:
            candidates = self._scan_box(frame, det)
        else:
            cx, cy = det.center
            candidates = self._sample_grid(frame, cx, cy, step_x, step_y)

        if candidates.shape[0] == 0:
            return None
        # argmin keeps the first minimum
        return candidates[int(np.argmin(candidates[:, 0]))].astype(np.float64)

    def _sample_grid(self, frame: PointCloudFrame, cx: int, cy: int,
                     step_x: int, step_y: int) -> np.ndarray:
        half = self.num_samples // 2
        offsets = np.arange(-half, half + 1)
        xs = cx + offsets * step_x
        ys = cy + offsets * step_y
        xs = xs[(xs >= 0) & (xs < frame.width)]
        ys = ys[(ys >= 0) & (ys < frame.height)]
        if xs.size == 0 or ys.size == 0:
            return np.empty((0, 3), dtype=np.float32)

        # x-offset-major: [i, j] -> pixel (xs[i], ys[j])
        samples = frame.grid[ys[np.newaxis, :], xs[:, np.newaxis]]
        return valid_points(samples.reshape(-1, 3))

    @staticmethod
    def _scan_box(frame: PointCloudFrame, det: Detection2D) -> np.ndarray:
        x0, x1 = max(det.xmin, 0), min(det.xmax, frame.width)
        y0, y1 = max(det.ymin, 0), min(det.ymax, frame.height)
        if x1 <= x0 or y1 <= y0:
            return np.empty((0, 3), dtype=np.float32)

        patch = frame.grid[y0:y1, x0:x1].transpose(1, 0, 2)
        return valid_points(patch.reshape(-1, 3))
