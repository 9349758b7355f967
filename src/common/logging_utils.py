"""Centralized logging helpers.

Modules log through ``logging.getLogger(__name__)``; this module only owns
root configuration and the structured ``extra=`` payloads used by debug traces.
"""

from __future__ import annotations

import logging
import os
import time
from typing import Any, Dict, Iterable, Optional

from constants import Constants


def configure_logging(level: Optional[str] = None, log_file: Optional[str] = None) -> None:
    """Configure the root logger.

    Args:
        level: Level name; falls back to the SPM2TUIST_LOG_LEVEL environment
            variable, then INFO.
        log_file: Optional path of an additional timestamped log file.
    """
    level_name = str(level or os.environ.get(Constants.ENV_LOG_LEVEL, "INFO")).upper()
    level_value = getattr(logging, level_name, logging.INFO)
    if not isinstance(level_value, int):
        level_value = logging.INFO

    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(format=Constants.LOG_FORMAT)
    root.setLevel(level_value)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter(Constants.LOG_FILE_FORMAT))
        root.addHandler(file_handler)
        root.info("Logging to file: %s", log_file)


def is_debug_enabled(logger: logging.Logger) -> bool:
    """Return True when DEBUG records would be emitted by this logger."""
    return logger.isEnabledFor(logging.DEBUG)


def extra_context(**fields: Any) -> Dict[str, Any]:
    """Build an ``extra=`` mapping for structured log records.

    None values are dropped so optional fields do not clutter the record.
    """
    return {key: value for key, value in fields.items() if value is not None}


def log_discovered_manifests(logger: logging.Logger, manifests: Iterable[str]) -> None:
    """Debug-log every manifest found during discovery."""
    paths = list(manifests)
    logger.debug(
        "Discovered %d manifest(s)",
        len(paths),
        extra=extra_context(event="discovery", component="scanner", count=len(paths)),
    )
    for path in paths:
        logger.debug("Found package: %s", path)


class Timer:
    """Context manager measuring wall-clock time of a block."""

    def __init__(self) -> None:
        self._start = 0.0
        self._end: Optional[float] = None

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        self._end = None
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self._end = time.perf_counter()

    def duration_ms(self) -> int:
        """Elapsed milliseconds; measured up to now while the block is running."""
        end = self._end if self._end is not None else time.perf_counter()
        return int((end - self._start) * 1000)
