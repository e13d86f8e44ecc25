from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Optional, Sequence

from fusion_core.core_types import CuboidMarker, Detection3DBatch
from fusion_core.services.codec import encode_boxes, encode_markers
from fusion_core.services.csv_writer import CsvWriter


class OutputSink(ABC):
    @property
    @abstractmethod
    def wants_boxes(self) -> bool: ...

    @property
    @abstractmethod
    def wants_markers(self) -> bool: ...

    @abstractmethod
    def open(self) -> None: ...

    @abstractmethod
    def publish_boxes(self, batch: Detection3DBatch) -> None: ...

    @abstractmethod
    def publish_markers(self, markers: Sequence[CuboidMarker]) -> None: ...

    @abstractmethod
    def close(self) -> None: ...


class CsvOutput(OutputSink):
    def __init__(self, csv_path: str):
        self.csv_path = csv_path
        self._writer: Optional[CsvWriter] = None

    @property
    def wants_boxes(self) -> bool:
        return self._writer is not None

    @property
    def wants_markers(self) -> bool:
        return False

    def open(self) -> None:
        self._writer = CsvWriter(self.csv_path)
        self._writer.open()

    def publish_boxes(self, batch: Detection3DBatch) -> None:
        if self._writer is None:
            return
        for box in batch.boxes:
            self._writer.append(batch.frame_time, batch.frame_id, box)

    def publish_markers(self, markers: Sequence[CuboidMarker]) -> None:
        return None

    def close(self) -> None:
        if self._writer is not None:
            self._writer.close()
            self._writer = None


class MqttOutput(OutputSink):
    """Publishes box and marker batches as JSON through a connected paho-mqtt client."""

    def __init__(self, client: Any, boxes_topic: str, markers_topic: str, qos: int = 0):
        self.client = client
        self.boxes_topic = boxes_topic
        self.markers_topic = markers_topic
        self.qos = qos

    def _connected(self) -> bool:
        return bool(self.client is not None and self.client.is_connected())

    @property
    def wants_boxes(self) -> bool:
        return self._connected()

    @property
    def wants_markers(self) -> bool:
        return self._connected()

    def open(self) -> None:
        return None

    def publish_boxes(self, batch: Detection3DBatch) -> None:
        self.client.publish(self.boxes_topic, encode_boxes(batch), qos=self.qos)

    def publish_markers(self, markers: Sequence[CuboidMarker]) -> None:
        self.client.publish(self.markers_topic, encode_markers(markers), qos=self.qos)

    def close(self) -> None:
        return None


class NullOutput(OutputSink):
    @property
    def wants_boxes(self) -> bool:
        return False

    @property
    def wants_markers(self) -> bool:
        return False

    def open(self) -> None:
        return None

    def publish_boxes(self, batch: Detection3DBatch) -> None:
        return None

    def publish_markers(self, markers: Sequence[CuboidMarker]) -> None:
        return None

    def close(self) -> None:
        return None
