"""MQTT transport feeding the frame cache and the fusion pipeline."""

from __future__ import annotations

import logging
from typing import Any, Optional

import paho.mqtt.client as mqtt

from fusion_core.services.codec import decode_detection_batch, decode_point_cloud
from fusion_core.services.frame_cache import FrameCache

from .config import FusionConfig
from .logging_utils import setup_logger
from .pipeline import FusionPipeline, FusionResult


def make_client(client_id: str) -> mqtt.Client:
    return mqtt.Client(mqtt.CallbackAPIVersion.VERSION2, client_id=client_id)


class MqttBridge:
    def __init__(
        self,
        config: FusionConfig,
        cache: FrameCache,
        pipeline: FusionPipeline,
        client: Any,
        logger: Optional[logging.Logger] = None,
    ):
        self.config = config
        self.cache = cache
        self.pipeline = pipeline
        self.client = client
        self.logger = logger or setup_logger(config.node_name)

    def start(self) -> None:
        self.client.on_connect = self._on_connect
        self.client.on_message = self._on_message
        self.client.connect(self.config.broker_ip, self.config.broker_port, 60)
        self.client.loop_start()
        self.logger.info(
            "bridge started broker=%s:%d", self.config.broker_ip, self.config.broker_port
        )

    def stop(self) -> None:
        self.client.loop_stop()
        self.client.disconnect()

    def _on_connect(self, client, _userdata, _flags, reason_code, _properties=None):
        if getattr(reason_code, "is_failure", False):
            self.logger.error("MQTT connect failed: %s", reason_code)
            return
        # subscribing here restores subscriptions after a reconnect
        client.subscribe(self.config.point_cloud_topic)
        client.subscribe(self.config.detection_topic)
        self.logger.info(
            "subscribed to %s and %s", self.config.point_cloud_topic, self.config.detection_topic
        )

    def _on_message(self, _client, _userdata, msg):
        self.handle_message(msg.topic, msg.payload)

    def handle_message(self, topic: str, payload: bytes) -> Optional[FusionResult]:
        if topic == self.config.point_cloud_topic:
            try:
                frame = decode_point_cloud(payload)
            except ValueError as e:
                self.logger.warning("Dropping point cloud payload: %s", e)
                return None
            self.cache.insert(frame)
            return None

        if topic == self.config.detection_topic:
            try:
                batch = decode_detection_batch(payload)
            except ValueError as e:
                self.logger.warning("Dropping detection payload: %s", e)
                return None
            return self.pipeline.process(batch)

        self.logger.debug("ignoring message on %s", topic)
        return None
