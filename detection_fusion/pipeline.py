"""Fuses 2D detection batches with cached point-cloud frames into 3D boxes."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Sequence

from fusion_core.core_types import (
    CuboidMarker,
    Detection2D,
    Detection3D,
    Detection3DBatch,
    DetectionBatch,
    PointCloudFrame,
)
from fusion_core.services.frame_cache import FrameCache
from fusion_core.strategies.center_point import CenterEstimator
from fusion_core.strategies.detection_filter import DetectionFilter
from fusion_core.strategies.extent_scan import ExtentEstimator

from .config import FusionConfig
from .logging_utils import setup_logger
from .markers import build_markers
from .output import OutputSink
from .transforms import AlignmentError, Aligner


class BatchStatus(Enum):
    PUBLISHED = "published"
    NO_INTEREST = "no_interest"
    NO_MATCHING_FRAME = "no_matching_frame"
    ALIGNMENT_FAILED = "alignment_failed"


@dataclass
class FusionResult:
    status: BatchStatus
    boxes: Optional[Detection3DBatch] = None
    markers: list[CuboidMarker] = field(default_factory=list)
    candidates: int = 0  # detections left after filtering
    dropped: int = 0     # candidates with no anchor or no extent

    @property
    def published(self) -> bool:
        return self.status is BatchStatus.PUBLISHED


class FusionPipeline:
    """
    Per-batch flow: Received -> Aligned -> Filtered -> Estimated -> Published.

    A batch is aborted when no sink wants output, when no cached frame is at
    or before its capture time, or when the aligner rejects the frame.
    Individual detections without an anchor or extent are dropped; the rest
    of the batch is still published.
    """

    def __init__(
        self,
        config: FusionConfig,
        cache: FrameCache,
        aligner: Aligner,
        outputs: Optional[list[OutputSink]] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.config = config
        self.cache = cache
        self.aligner = aligner
        self.outputs = outputs if outputs is not None else []
        self.logger = logger or setup_logger(config.node_name)

        self.detection_filter = DetectionFilter(
            config.minimum_probability, config.interested_classes
        )
        self.center = CenterEstimator(
            config.num_samples, config.width_fraction, config.height_fraction
        )
        self.extent = ExtentEstimator(config.depth_threshold)

    def has_interest(self) -> bool:
        return any(out.wants_boxes or out.wants_markers for out in self.outputs)

    def process(self, batch: DetectionBatch) -> FusionResult:
        if not self.has_interest():
            return FusionResult(BatchStatus.NO_INTEREST)

        closest = self.cache.lookup_before(batch.capture_time)
        if closest is None:
            self.logger.warning(
                "No matching point cloud found for image timestamp: %f", batch.capture_time
            )
            return FusionResult(BatchStatus.NO_MATCHING_FRAME)

        try:
            frame = self.aligner.align(closest, self.config.working_frame)
        except AlignmentError as exc:
            self.logger.error("Transform error of sensor data: %s, dropping batch", exc)
            return FusionResult(BatchStatus.ALIGNMENT_FAILED)

        candidates = self.detection_filter.apply(batch.detections)

        t0 = time.perf_counter()
        boxes = self.estimate_boxes(frame, candidates)
        self.logger.debug(
            "estimated %d/%d boxes in %.2f ms",
            len(boxes), len(candidates), (time.perf_counter() - t0) * 1e3,
        )

        out_batch = Detection3DBatch(
            frame_time=frame.frame_time,
            frame_id=self.config.working_frame,
            boxes=tuple(boxes),
        )
        markers = build_markers(out_batch, self.config.marker_lifetime_sec)
        self._publish(out_batch, markers)

        self.logger.info(
            "capture=%f cloud=%f boxes=%d dropped=%d",
            batch.capture_time, frame.frame_time, len(boxes), len(candidates) - len(boxes),
        )
        return FusionResult(
            BatchStatus.PUBLISHED,
            boxes=out_batch,
            markers=markers,
            candidates=len(candidates),
            dropped=len(candidates) - len(boxes),
        )

    def estimate_boxes(
        self, frame: PointCloudFrame, detections: Sequence[Detection2D]
    ) -> list[Detection3D]:
        boxes: list[Detection3D] = []
        for det in detections:
            anchor = self.center.estimate(frame, det)
            if anchor is None:
                self.logger.debug("no anchor for %s %s", det.label, det)
                continue

            extent = self.extent.estimate(frame, det, anchor)
            if extent is None:
                self.logger.debug("empty extent for %s %s", det.label, det)
                continue

            mins, maxs = extent
            boxes.append(
                Detection3D(
                    label=det.label,
                    confidence=det.confidence,
                    xmin=float(mins[0]),
                    xmax=float(maxs[0]),
                    ymin=float(mins[1]),
                    ymax=float(maxs[1]),
                    zmin=float(mins[2]),
                    zmax=float(maxs[2]),
                )
            )
        return boxes

    def _publish(self, batch: Detection3DBatch, markers: list[CuboidMarker]) -> None:
        for out in self.outputs:
            try:
                if out.wants_boxes:
                    out.publish_boxes(batch)
                if out.wants_markers:
                    out.publish_markers(markers)
            except Exception as e:
                self.logger.warning("Output publish failed on %s: %s", type(out).__name__, e)
