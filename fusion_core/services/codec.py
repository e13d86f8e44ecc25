"""Payload encoding for detections, point clouds, boxes and markers."""

from __future__ import annotations

import io
import json
from dataclasses import asdict
from typing import Any, Iterable

import numpy as np

from ..core_types import (
    CuboidMarker,
    Detection2D,
    Detection3D,
    Detection3DBatch,
    DetectionBatch,
    PointCloudFrame,
)


def _loads(payload: bytes | str) -> Any:
    try:
        return json.loads(payload)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"payload is not valid JSON: {exc}") from exc


def decode_detection_batch(payload: bytes | str) -> DetectionBatch:
    raw = _loads(payload)
    if not isinstance(raw, dict):
        raise ValueError("detection payload root must be an object")
    try:
        dets = tuple(
            Detection2D(
                label=str(d["class"]),
                confidence=float(d["confidence"]),
                xmin=int(d["xmin"]),
                xmax=int(d["xmax"]),
                ymin=int(d["ymin"]),
                ymax=int(d["ymax"]),
            )
            for d in raw.get("detections", [])
        )
        return DetectionBatch(
            capture_time=float(raw["capture_time"]),
            detections=dets,
            image_width=int(raw.get("image_width", 0)),
            image_height=int(raw.get("image_height", 0)),
        )
    except (KeyError, TypeError) as exc:
        raise ValueError(f"malformed detection payload: {exc}") from exc


def encode_detection_batch(batch: DetectionBatch) -> str:
    return json.dumps({
        "capture_time": batch.capture_time,
        "image_width": batch.image_width,
        "image_height": batch.image_height,
        "detections": [
            {
                "class": d.label,
                "confidence": d.confidence,
                "xmin": d.xmin,
                "xmax": d.xmax,
                "ymin": d.ymin,
                "ymax": d.ymax,
            }
            for d in batch.detections
        ],
    })


def encode_point_cloud(frame: PointCloudFrame) -> bytes:
    buf = io.BytesIO()
    np.savez(
        buf,
        points=frame.grid,
        frame_time=np.float64(frame.frame_time),
        frame_id=np.str_(frame.frame_id),
    )
    return buf.getvalue()


def decode_point_cloud(payload: bytes) -> PointCloudFrame:
    try:
        data = np.load(io.BytesIO(payload), allow_pickle=False)
        if not isinstance(data, np.lib.npyio.NpzFile):
            raise ValueError("expected an .npz archive")
        with data:
            points = data["points"]
            frame_time = float(data["frame_time"])
            frame_id = str(data["frame_id"]) if "frame_id" in data.files else ""
        return PointCloudFrame(frame_time, points, frame_id=frame_id)
    except (OSError, KeyError, TypeError, ValueError) as exc:
        raise ValueError(f"malformed point cloud payload: {exc}") from exc


def box_to_dict(box: Detection3D) -> dict[str, Any]:
    d = asdict(box)
    d["class"] = d.pop("label")
    d["probability"] = d.pop("confidence")
    return d


def encode_boxes(batch: Detection3DBatch) -> str:
    return json.dumps({
        "frame_time": batch.frame_time,
        "frame_id": batch.frame_id,
        "bounding_boxes": [box_to_dict(b) for b in batch.boxes],
    })


def encode_markers(markers: Iterable[CuboidMarker]) -> str:
    return json.dumps({"markers": [asdict(m) for m in markers]})
