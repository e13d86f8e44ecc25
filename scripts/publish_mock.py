import argparse
import time

import numpy as np
import paho.mqtt.client as mqtt

from fusion_core.core_types import Detection2D, DetectionBatch, PointCloudFrame
from fusion_core.services.codec import encode_detection_batch, encode_point_cloud

WIDTH, HEIGHT = 64, 48


def make_mock_cloud(frame_time: float, frame_id: str) -> PointCloudFrame:
    """Flat wall at x=4 with a box-shaped object at x=2 in the middle."""
    cols, rows = np.meshgrid(np.arange(WIDTH), np.arange(HEIGHT))
    pts = np.stack([np.full(cols.shape, 4.0), -0.02 * cols, -0.02 * rows], axis=-1)
    pts[16:32, 24:40, 0] = 2.0
    pts[0:4, :] = np.nan
    return PointCloudFrame(frame_time, pts, frame_id=frame_id)


def make_mock_batch(capture_time: float) -> DetectionBatch:
    return DetectionBatch(
        capture_time,
        (Detection2D("person", 0.8, 24, 40, 16, 32),),
        WIDTH,
        HEIGHT,
    )


def main():
    ap = argparse.ArgumentParser(description="Publish mock point clouds and detections")
    ap.add_argument("--broker-ip", default="127.0.0.1")
    ap.add_argument("--broker-port", type=int, default=1883)
    ap.add_argument("--cloud-topic", default="camera/depth_registered/points")
    ap.add_argument("--detection-topic", default="darknet_ros/bounding_boxes")
    ap.add_argument("--frame-id", default="camera_link")
    ap.add_argument("--count", type=int, default=5)
    args = ap.parse_args()

    client = mqtt.Client(mqtt.CallbackAPIVersion.VERSION2)
    client.connect(args.broker_ip, args.broker_port, 60)
    client.loop_start()

    print(f"Publishing {args.count} mock cloud/detection pairs...")
    for _ in range(args.count):
        now = time.time()
        client.publish(args.cloud_topic, encode_point_cloud(make_mock_cloud(now, args.frame_id)))
        msg = encode_detection_batch(make_mock_batch(now + 0.01))
        print(" ->", msg)
        client.publish(args.detection_topic, msg)
        time.sleep(1)

    client.loop_stop()
    client.disconnect()
    print("Done.")


if __name__ == "__main__":
    main()
