"""Fuses 2D object detections with point clouds into 3D bounding boxes."""

from .config import FusionConfig
from .pipeline import FusionPipeline

__all__ = ["FusionConfig", "FusionPipeline"]
