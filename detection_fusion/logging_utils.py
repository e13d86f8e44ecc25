import logging
from typing import Union

LOG_FORMAT = "%(asctime)s %(levelname)s [%(node)s] %(message)s"
LEVEL_NAMES = ("DEBUG", "INFO", "WARNING", "ERROR")


class NodeNameFilter(logging.Filter):
    """Stamp every record with the fusion node it came from."""

    def __init__(self, node_name: str):
        super().__init__()
        self.node_name = node_name

    def filter(self, record: logging.LogRecord) -> bool:
        record.node = self.node_name
        return True


def parse_level(level: Union[int, str]) -> int:
    if isinstance(level, int):
        return level
    name = level.strip().upper()
    if name not in LEVEL_NAMES:
        raise ValueError(f"unknown log level: {level!r}")
    return getattr(logging, name)


def _attach(logger: logging.Logger, handler: logging.Handler, node_name: str, level: int) -> None:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.addFilter(NodeNameFilter(node_name))
    logger.addHandler(handler)


def setup_logger(node_name: str, level: Union[int, str] = logging.INFO) -> logging.Logger:
    """Return the ``detection_fusion.<node_name>`` logger with one console handler.

    Calling it again for the same node only updates the level.
    """
    logger = logging.getLogger(f"detection_fusion.{node_name}")
    logger.setLevel(parse_level(level))

    if not logger.handlers:
        _attach(logger, logging.StreamHandler(), node_name, logging.NOTSET)

    return logger


def add_file_handler(logger: logging.Logger, node_name: str, log_path: str,
                     level: Union[int, str] = logging.NOTSET) -> logging.FileHandler:
    # NOTSET defers to the logger's own level
    handler = logging.FileHandler(log_path)
    _attach(logger, handler, node_name, parse_level(level))
    return handler
