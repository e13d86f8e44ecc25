from __future__ import annotations

import json
from dataclasses import dataclass, asdict, replace
from pathlib import Path
from typing import Any, Optional


@dataclass(frozen=True)
class ExtrinsicConfig:
    """Fixed transform from ``source_frame`` into the working frame."""

    source_frame: str
    rvec: tuple[float, float, float] = (0.0, 0.0, 0.0)
    tvec: tuple[float, float, float] = (0.0, 0.0, 0.0)


@dataclass(frozen=True)
class FusionConfig:
    node_name: str = "darknet3d"
    detection_topic: str = "darknet_ros/bounding_boxes"
    output_topic: str = "darknet_ros_3d/bounding_boxes"
    markers_topic: str = "darknet_ros_3d/markers"
    point_cloud_topic: str = "camera/depth_registered/points"
    working_frame: str = "camera_link"
    depth_threshold: float = 0.5
    minimum_probability: float = 0.3
    interested_classes: tuple[str, ...] = ()  # empty: nothing passes
    cache_size: int = 100
    num_samples: int = 500
    width_fraction: float = 0.55
    height_fraction: float = 0.35
    marker_lifetime_sec: float = 0.5
    broker_ip: str = "127.0.0.1"
    broker_port: int = 1883
    csv_path: Optional[str] = None
    extrinsics: tuple[ExtrinsicConfig, ...] = ()

    def __post_init__(self):
        if self.cache_size < 1:
            raise ValueError("cache_size must be >= 1")
        if self.num_samples < 1:
            raise ValueError("num_samples must be >= 1")
        if self.depth_threshold < 0:
            raise ValueError("depth_threshold must be >= 0")
        if not 0.0 <= self.minimum_probability <= 1.0:
            raise ValueError("minimum_probability must be within [0, 1]")

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)

    def apply_overrides(self, **kwargs: Any) -> "FusionConfig":
        changes = {
            key: value for key, value in kwargs.items()
            if value is not None and hasattr(self, key)
        }
        if "interested_classes" in changes:
            changes["interested_classes"] = tuple(changes["interested_classes"])
        return replace(self, **changes)


def _normalize_classes(value: Any) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    if isinstance(value, (list, tuple, set)):
        return tuple(str(v) for v in value)
    raise ValueError("interested_classes must be a list of class names")


def _vec3(value: Any, name: str) -> tuple[float, float, float]:
    if not isinstance(value, (list, tuple)) or len(value) != 3:
        raise ValueError(f"{name} must be a list of 3 numbers")
    return tuple(float(v) for v in value)


def _parse_extrinsics(value: Any) -> tuple[ExtrinsicConfig, ...]:
    if value is None:
        return ()
    if not isinstance(value, list):
        raise ValueError("extrinsics must be a list of mappings")
    out = []
    for item in value:
        if not isinstance(item, dict) or "source_frame" not in item:
            raise ValueError("each extrinsic needs a source_frame")
        out.append(
            ExtrinsicConfig(
                source_frame=str(item["source_frame"]),
                rvec=_vec3(item.get("rvec", (0.0, 0.0, 0.0)), "rvec"),
                tvec=_vec3(item.get("tvec", (0.0, 0.0, 0.0)), "tvec"),
            )
        )
    return tuple(out)


def _load_yaml(path: Path) -> dict[str, Any]:
    import yaml

    with path.open("r", encoding="utf-8") as fp:
        data = yaml.safe_load(fp) or {}
    if not isinstance(data, dict):
        raise ValueError("YAML config root must be a mapping")
    return data


def load_config(path: str | Path) -> FusionConfig:
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Config not found: {p}")

    if p.suffix.lower() in {".yaml", ".yml"}:
        raw = _load_yaml(p)
    else:
        with p.open("r", encoding="utf-8") as fp:
            raw = json.load(fp)

    if not isinstance(raw, dict):
        raise ValueError("Config root must be a JSON/YAML object")

    d = FusionConfig()
    csv_path = raw.get("csv_path", d.csv_path)
    return FusionConfig(
        node_name=str(raw.get("node_name", d.node_name)),
        detection_topic=str(raw.get("detection_topic", d.detection_topic)),
        output_topic=str(raw.get("output_topic", d.output_topic)),
        markers_topic=str(raw.get("markers_topic", d.markers_topic)),
        point_cloud_topic=str(raw.get("point_cloud_topic", d.point_cloud_topic)),
        working_frame=str(raw.get("working_frame", d.working_frame)),
        depth_threshold=float(raw.get("depth_threshold", d.depth_threshold)),
        minimum_probability=float(raw.get("minimum_probability", d.minimum_probability)),
        interested_classes=_normalize_classes(raw.get("interested_classes")),
        cache_size=int(raw.get("cache_size", d.cache_size)),
        num_samples=int(raw.get("num_samples", d.num_samples)),
        width_fraction=float(raw.get("width_fraction", d.width_fraction)),
        height_fraction=float(raw.get("height_fraction", d.height_fraction)),
        marker_lifetime_sec=float(raw.get("marker_lifetime_sec", d.marker_lifetime_sec)),
        broker_ip=str(raw.get("broker_ip", d.broker_ip)),
        broker_port=int(raw.get("broker_port", d.broker_port)),
        csv_path=str(csv_path) if csv_path is not None else None,
        extrinsics=_parse_extrinsics(raw.get("extrinsics")),
    )
