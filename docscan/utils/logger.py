"""Centralized logging setup for the document scan pipeline.

Every stage (scanning, OCR, analysis, storage) logs through named
loggers that share the root handler installed by :func:`setup_logging`.
"""

import logging
import sys
import time
from collections.abc import Iterator
from contextlib import contextmanager

_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: str = "INFO") -> None:
    """Install a stdout handler on the root logger.

    Does nothing if the root logger already has handlers, so repeated
    calls from the CLI and the API entry point are safe.

    Args:
        level: Logging level name. Unknown names fall back to INFO.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    root = logging.getLogger()

    if root.handlers:
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    root.addHandler(handler)
    root.setLevel(numeric_level)


def get_logger(name: str) -> logging.Logger:
    """Return the logger for ``name`` (usually the caller's ``__name__``)."""
    return logging.getLogger(name)


@contextmanager
def log_stage(logger: logging.Logger, stage: str) -> Iterator[None]:
    """Log the wall-clock duration of a pipeline stage at DEBUG level.

    Args:
        logger: Logger to write to.
        stage: Human-readable stage name, e.g. ``"scan"`` or ``"ocr"``.
    """
    start = time.perf_counter()
    try:
        yield
    finally:
        logger.debug("Stage %s took %.1f ms", stage, (time.perf_counter() - start) * 1000)
