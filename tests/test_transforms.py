import numpy as np
import pytest

from detection_fusion.config import ExtrinsicConfig
from detection_fusion.transforms import (
    AlignmentError,
    StaticTransformAligner,
    rvec_tvec_to_matrix,
    transform_points,
)
from fusion_core.core_types import PointCloudFrame


def test_rvec_tvec_to_matrix():
    """Test conversion from rvec/tvec to 4x4 matrix."""
    rvec = np.array([0.1, 0.2, 0.3])
    tvec = np.array([1.0, 2.0, 3.0])

    T = rvec_tvec_to_matrix(rvec, tvec)

    assert T.shape == (4, 4)
    assert np.allclose(T[3, :], [0, 0, 0, 1])
    assert np.allclose(T[:3, 3], tvec)

    R = T[:3, :3]
    assert np.allclose(R @ R.T, np.eye(3), atol=1e-6)
    assert np.allclose(np.linalg.det(R), 1.0, atol=1e-6)


def test_transform_points_rotates_and_keeps_nan():
    """90 degrees about z maps x onto y; invalid points stay invalid."""
    T = rvec_tvec_to_matrix([0.0, 0.0, np.pi / 2], [0.0, 0.0, 1.0])
    pts = np.array([[1.0, 0.0, 0.0], [np.nan, np.nan, np.nan]])

    out = transform_points(T, pts)

    assert np.allclose(out[0], [0.0, 1.0, 1.0], atol=1e-6)
    assert np.isnan(out[1]).all()


def test_aligner_passes_through_frames_already_in_target():
    frame = PointCloudFrame(1.0, np.zeros((2, 2, 3)), frame_id="camera_link")
    assert StaticTransformAligner("camera_link").align(frame, "camera_link") is frame


def test_aligner_applies_extrinsics():
    frame = PointCloudFrame(3.0, np.ones((2, 2, 3)), frame_id="depth")
    aligner = StaticTransformAligner(
        "camera_link", [ExtrinsicConfig("depth", tvec=(1.0, 0.0, -1.0))]
    )

    out = aligner.align(frame, "camera_link")

    assert out.frame_id == "camera_link"
    assert out.frame_time == 3.0
    assert np.allclose(out.grid, [2.0, 1.0, 0.0])


def test_aligner_unknown_source_raises():
    frame = PointCloudFrame(0.0, np.zeros((1, 1, 3)), frame_id="lidar")
    with pytest.raises(AlignmentError):
        StaticTransformAligner("camera_link").align(frame, "camera_link")


def test_aligner_unknown_target_raises():
    frame = PointCloudFrame(0.0, np.zeros((1, 1, 3)), frame_id="depth")
    aligner = StaticTransformAligner("camera_link", [ExtrinsicConfig("depth")])
    with pytest.raises(AlignmentError):
        aligner.align(frame, "map")
