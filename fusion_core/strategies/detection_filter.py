from __future__ import annotations

from typing import Iterable

from ..core_types import Detection2D


def filter_detections(
    detections: Iterable[Detection2D],
    min_confidence: float,
    allowed_classes: Iterable[str],
) -> list[Detection2D]:
    allowed = set(allowed_classes)
    return [
        d for d in detections
        if d.confidence >= min_confidence and d.label in allowed
    ]


class DetectionFilter:
    def __init__(self, min_confidence: float, allowed_classes: Iterable[str]):
        self.min_confidence = min_confidence
        self.allowed_classes = frozenset(allowed_classes)

    def apply(self, detections: Iterable[Detection2D]) -> list[Detection2D]:
        return filter_detections(detections, self.min_confidence, self.allowed_classes)
