from __future__ import annotations

from fusion_core.core_types import CuboidMarker, Detection3DBatch

MARKER_NAMESPACE = "darknet3d"
MARKER_ALPHA = 0.4


def confidence_color(confidence: float) -> tuple[float, float, float, float]:
    """Red at confidence 0, green at confidence 1."""
    p = min(max(float(confidence), 0.0), 1.0)
    return (1.0 - p, p, 0.0, MARKER_ALPHA)


def build_markers(batch: Detection3DBatch, lifetime_sec: float = 0.5) -> list[CuboidMarker]:
    return [
        CuboidMarker(
            marker_id=i,
            namespace=MARKER_NAMESPACE,
            frame_id=batch.frame_id,
            stamp=batch.frame_time,
            center=box.center,
            scale=box.size,
            color=confidence_color(box.confidence),
            lifetime_sec=lifetime_sec,
        )
        for i, box in enumerate(batch.boxes)
    ]
