"""Rigid transforms and the point-cloud alignment collaborator."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterable

import cv2
import numpy as np

from fusion_core.core_types import PointCloudFrame

from .config import ExtrinsicConfig


class AlignmentError(Exception):
    """A frame cannot be expressed in the requested target frame."""


def rvec_tvec_to_matrix(rvec, tvec) -> np.ndarray:
    """
    Convert rotation vector and translation vector to 4x4 transformation matrix.

    Args:
        rvec: Rotation vector (3,) or (3,1)
        tvec: Translation vector (3,) or (3,1)

    Returns:
        4x4 homogeneous transformation matrix
    """
    rvec = np.asarray(rvec, dtype=np.float64).reshape(3)
    tvec = np.asarray(tvec, dtype=np.float64).reshape(3)

    R, _ = cv2.Rodrigues(rvec)

    T = np.eye(4)
    T[:3, :3] = R
    T[:3, 3] = tvec
    return T


def transform_points(T: np.ndarray, points: np.ndarray) -> np.ndarray:
    """
    Apply a 4x4 transform to an (..., 3) array of points.

    NaN points stay NaN, so invalid samples survive alignment unchanged.
    """
    R = T[:3, :3]
    t = T[:3, 3]
    return points @ R.T + t


class Aligner(ABC):
    @abstractmethod
    def align(self, frame: PointCloudFrame, target_frame: str) -> PointCloudFrame: ...


class StaticTransformAligner(Aligner):
    """Aligns frames using fixed per-sensor extrinsics into a single target frame."""

    def __init__(self, target_frame: str, extrinsics: Iterable[ExtrinsicConfig] = ()):
        self.target_frame = target_frame
        self._transforms: dict[str, np.ndarray] = {
            e.source_frame: rvec_tvec_to_matrix(e.rvec, e.tvec) for e in extrinsics
        }

    def align(self, frame: PointCloudFrame, target_frame: str) -> PointCloudFrame:
        if frame.frame_id in ("", target_frame):
            return frame
        if target_frame != self.target_frame:
            raise AlignmentError(
                f"no transform into {target_frame!r} (aligner targets {self.target_frame!r})"
            )
        T = self._transforms.get(frame.frame_id)
        if T is None:
            raise AlignmentError(f"no transform from {frame.frame_id!r} to {target_frame!r}")

        moved = transform_points(T, frame.grid.astype(np.float64))
        return frame.with_points(moved, frame_id=target_frame)
