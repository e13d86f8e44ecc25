import logging

import pytest

from detection_fusion.logging_utils import add_file_handler, parse_level, setup_logger


def _drop_file_handlers(logger):
    for h in list(logger.handlers):
        if isinstance(h, logging.FileHandler):
            logger.removeHandler(h)
            h.close()


def test_setup_logger_is_idempotent():
    logger = setup_logger("idem")
    again = setup_logger("idem")
    assert logger is again
    assert len(logger.handlers) == 1
    assert logger.name == "detection_fusion.idem"


def test_setup_logger_accepts_level_names():
    logger = setup_logger("named", level="warning")
    assert logger.level == logging.WARNING


def test_parse_level_rejects_unknown_names():
    assert parse_level("DEBUG") == logging.DEBUG
    assert parse_level(logging.ERROR) == logging.ERROR
    with pytest.raises(ValueError):
        parse_level("chatty")


def test_file_handler_tags_node_name(tmp_path):
    log_path = tmp_path / "node.log"
    logger = setup_logger("filecheck", level=logging.DEBUG)
    add_file_handler(logger, "filecheck", str(log_path))

    logger.warning("no matching point cloud")
    for h in logger.handlers:
        h.flush()

    text = log_path.read_text()
    assert "[filecheck]" in text
    assert "no matching point cloud" in text
    _drop_file_handlers(logger)


def test_file_handler_level_filters_lower_records(tmp_path):
    """A file handler at WARNING keeps debug chatter out of the file."""
    log_path = tmp_path / "warn.log"
    logger = setup_logger("filelevel", level=logging.DEBUG)
    handler = add_file_handler(logger, "filelevel", str(log_path), level="WARNING")
    assert handler.level == logging.WARNING

    logger.debug("sampled 42 points")
    logger.warning("dropping point cloud payload")
    handler.flush()

    text = log_path.read_text()
    assert "sampled 42 points" not in text
    assert "dropping point cloud payload" in text
    _drop_file_handlers(logger)
