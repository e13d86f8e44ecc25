import numpy as np
import pytest

from fusion_core.core_types import Detection2D, Detection3D, DetectionBatch, PointCloudFrame


def test_flat_points_are_row_major():
    """Linear index is row * width + col."""
    flat = np.arange(6 * 3, dtype=np.float32).reshape(6, 3)
    frame = PointCloudFrame(0.0, flat, width=3, height=2)

    assert frame.index(2, 1) == 5
    assert np.array_equal(frame.point_at(2, 1), flat[5])
    assert np.array_equal(frame.grid[1, 0], flat[3])


def test_point_at_checks_bounds_and_validity():
    grid = np.zeros((2, 2, 3))
    grid[0, 1] = np.nan
    frame = PointCloudFrame(0.0, grid)

    assert frame.point_at(1, 0) is None
    assert frame.point_at(2, 0) is None
    assert frame.point_at(0, -1) is None
    assert frame.point_at(0, 0) is not None


def test_frame_points_are_read_only():
    frame = PointCloudFrame(0.0, np.zeros((2, 2, 3)))
    with pytest.raises(ValueError):
        frame.grid[0, 0, 0] = 1.0


def test_frame_rejects_bad_shapes():
    with pytest.raises(ValueError):
        PointCloudFrame(0.0, np.zeros((5, 3)), width=2, height=2)
    with pytest.raises(ValueError):
        PointCloudFrame(0.0, np.zeros((2, 2, 4)))
    with pytest.raises(ValueError):
        PointCloudFrame(0.0, np.zeros((4, 3)))


def test_inverted_detection_box_rejected():
    with pytest.raises(ValueError):
        Detection2D("person", 0.5, 5, 2, 0, 1)
    with pytest.raises(ValueError):
        Detection2D("person", 0.5, -1, 2, 0, 1)
    assert Detection2D("person", 0.5, 3, 3, 4, 4).center == (3, 4)


def test_detection3d_center_and_size():
    box = Detection3D("cup", 0.5, 1.0, 3.0, -1.0, 1.0, 0.0, 0.5)
    assert box.center == (2.0, 0.0, 0.25)
    assert box.size == (2.0, 2.0, 0.5)


def test_capture_time_is_carried_by_the_batch():
    dets = (Detection2D("person", 0.9, 0, 4, 0, 4), Detection2D("cup", 0.6, 1, 2, 1, 2))
    batch = DetectionBatch(3.5, dets)
    assert batch.capture_time == 3.5
    assert all(not hasattr(d, "capture_time") for d in batch.detections)
