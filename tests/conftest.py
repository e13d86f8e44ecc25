import logging

import numpy as np
import pytest

from fusion_core.core_types import PointCloudFrame


def make_frame(width, height, frame_time=0.0, frame_id="camera_link", fill=None):
    """Build a frame whose point at (col, row) is (1 + 0.1*col, 0.1*row, 1.0)."""
    cols, rows = np.meshgrid(np.arange(width), np.arange(height))
    pts = np.stack(
        [1.0 + 0.1 * cols, 0.1 * rows, np.ones_like(cols, dtype=np.float64)], axis=-1
    )
    if fill is not None:
        pts[...] = fill
    return PointCloudFrame(frame_time, pts, frame_id=frame_id)


def nan_grid(width, height):
    return np.full((height, width, 3), np.nan)


@pytest.fixture
def quiet_logger():
    logger = logging.getLogger("detection-fusion-test")
    logger.handlers.clear()
    logger.addHandler(logging.NullHandler())
    logger.propagate = False
    return logger
