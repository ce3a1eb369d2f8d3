"""Logging and stage timing helpers for the diagram pipeline."""

from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator

_LOGGER_NAME = "umlscope"

SLOW_STAGE_THRESHOLD_MS = 1000.0


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a module-scoped logger under the umlscope hierarchy."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


def configure_logging(
    *, verbose: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Attach console (and optionally file) handlers to the umlscope logger.

    Host editors call this once per session; repeated calls replace the
    previously installed handlers instead of stacking them.
    """
    level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler()
    console.setLevel(level)
    console.setFormatter(logging.Formatter("[umlscope] %(levelname)s %(message)s"))
    logger.addHandler(console)

    if log_file is not None:
        sink = logging.FileHandler(log_file, encoding="utf-8")
        sink.setLevel(level)
        sink.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
        logger.addHandler(sink)

    return logger


@contextmanager
def log_duration(
    logger: logging.Logger, stage: str, **metadata: Any
) -> Iterator[dict[str, float]]:
    """Time a pipeline stage and log it at debug level.

    The yielded dict receives ``elapsed_ms`` once the block exits. Stages slower
    than ``SLOW_STAGE_THRESHOLD_MS`` are logged as warnings.
    """
    timing: dict[str, float] = {}
    start = time.perf_counter()
    try:
        yield timing
    finally:
        elapsed = (time.perf_counter() - start) * 1000.0
        timing["elapsed_ms"] = elapsed
        details = ", ".join(f"{key}={value}" for key, value in sorted(metadata.items()))
        if elapsed > SLOW_STAGE_THRESHOLD_MS:
            logger.warning("%s took %.2fms (%s)", stage, elapsed, details)
        else:
            logger.debug("%s took %.2fms (%s)", stage, elapsed, details)


__all__ = ["configure_logging", "get_logger", "log_duration", "SLOW_STAGE_THRESHOLD_MS"]
