"""Tests for umlscope.logging."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from umlscope import logging as umlscope_logging
from umlscope.logging import configure_logging, get_logger, log_duration


@pytest.fixture
def restore_root_logger():
    logger = logging.getLogger("umlscope")
    handlers = list(logger.handlers)
    level, propagate = logger.level, logger.propagate
    yield
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    for handler in handlers:
        logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = propagate


def test_get_logger_names() -> None:
    assert get_logger().name == "umlscope"
    assert get_logger("layout").name == "umlscope.layout"


def test_configure_logging_replaces_handlers(tmp_path: Path, restore_root_logger) -> None:
    log_file = tmp_path / "umlscope.log"

    configure_logging(verbose=True, log_file=log_file)
    logger = configure_logging(verbose=True, log_file=log_file)

    assert logger.level == logging.DEBUG
    assert len(logger.handlers) == 2
    get_logger("pipeline").debug("hello")
    for handler in logger.handlers:
        handler.flush()
    assert "umlscope.pipeline: hello" in log_file.read_text(encoding="utf-8")


def test_log_duration_records_elapsed(caplog) -> None:
    logger = get_logger("tests")

    with caplog.at_level(logging.DEBUG, logger="umlscope"):
        with log_duration(logger, "layout", nodes=3) as timing:
            pass

    assert timing["elapsed_ms"] >= 0
    assert "layout took" in caplog.text
    assert "nodes=3" in caplog.text


def test_slow_stage_logs_warning(caplog, monkeypatch) -> None:
    monkeypatch.setattr(umlscope_logging, "SLOW_STAGE_THRESHOLD_MS", -1.0)
    logger = get_logger("tests")

    with caplog.at_level(logging.DEBUG, logger="umlscope"):
        with log_duration(logger, "extraction"):
            pass

    assert [record.levelno for record in caplog.records] == [logging.WARNING]
