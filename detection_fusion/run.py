import argparse
import signal
import sys
import threading

from fusion_core.services.frame_cache import FrameCache

from .config import FusionConfig, load_config
from .logging_utils import LEVEL_NAMES, add_file_handler, setup_logger
from .output import CsvOutput, MqttOutput
from .pipeline import FusionPipeline
from .transforms import StaticTransformAligner
from .transport import MqttBridge, make_client


def _build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Fuse 2D detections with point clouds into 3D boxes")
    ap.add_argument("--config", required=True, help="Path to JSON/YAML config")

    ap.add_argument("--node-name")
    ap.add_argument("--working-frame")
    ap.add_argument("--depth-threshold", type=float)
    ap.add_argument("--minimum-probability", type=float)
    ap.add_argument("--classes", nargs="+", help="Interested detection classes")
    ap.add_argument("--broker-ip")
    ap.add_argument("--broker-port", type=int)
    ap.add_argument("--csv", help="Also append boxes to this CSV file")
    ap.add_argument("--log-file")
    ap.add_argument("--log-level", choices=LEVEL_NAMES, default="INFO")
    ap.add_argument("--log-file-level", choices=LEVEL_NAMES,
                    help="Level for --log-file (default: same as --log-level)")

    return ap


def _apply_args(cfg: FusionConfig, args: argparse.Namespace) -> FusionConfig:
    return cfg.apply_overrides(
        node_name=args.node_name,
        working_frame=args.working_frame,
        depth_threshold=args.depth_threshold,
        minimum_probability=args.minimum_probability,
        interested_classes=args.classes,
        broker_ip=args.broker_ip,
        broker_port=args.broker_port,
        csv_path=args.csv,
    )


def main() -> int:
    ap = _build_parser()
    args = ap.parse_args()

    cfg = _apply_args(load_config(args.config), args)

    logger = setup_logger(cfg.node_name, level=args.log_level)
    if args.log_file:
        add_file_handler(logger, cfg.node_name, args.log_file, level=args.log_file_level or args.log_level)
    if not cfg.interested_classes:
        logger.warning("interested_classes is empty: every detection will be filtered out")

    client = make_client(cfg.node_name)
    outputs = [MqttOutput(client, cfg.output_topic, cfg.markers_topic)]
    if cfg.csv_path:
        outputs.append(CsvOutput(cfg.csv_path))

    cache = FrameCache(cfg.cache_size)
    aligner = StaticTransformAligner(cfg.working_frame, cfg.extrinsics)
    pipeline = FusionPipeline(cfg, cache, aligner, outputs=outputs, logger=logger)
    bridge = MqttBridge(cfg, cache, pipeline, client, logger=logger)

    stop_event = threading.Event()

    def _handle_signal(_sig, _frame):
        stop_event.set()

    signal.signal(signal.SIGINT, _handle_signal)
    if hasattr(signal, "SIGTERM"):
        signal.signal(signal.SIGTERM, _handle_signal)

    for out in outputs:
        out.open()
    bridge.start()
    try:
        while not stop_event.wait(0.5):
            pass
    finally:
        bridge.stop()
        for out in outputs:
            try:
                out.close()
            except Exception as e:
                logger.warning("Failed to close %s: %s", type(out).__name__, e)

    logger.info("stopped")
    return 0


if __name__ == "__main__":
    sys.exit(main())
