"""Logging configuration for the keyword clustering service."""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

DEFAULT_LOG_DIR = Path(os.getenv("APP_LOG_DIR", "logs"))
DEFAULT_LOG_FILE = os.getenv("APP_LOG_FILENAME", "latest-run.log")
# Page extraction runs in worker threads, so the thread name is part of every line.
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(threadName)s %(name)s - %(message)s"

# HTTP and API clients that log every request at INFO.
_CLIENT_LOGGERS = ("httpx", "openai", "urllib3", "multipart")


def _normalise_level(level: Optional[str | int]) -> int:
    if isinstance(level, int):
        return level
    if not isinstance(level, str) or not level.strip():
        return logging.INFO
    value = level.strip().upper()
    if value.isdigit():
        return int(value)
    named = logging.getLevelName(value)
    return named if isinstance(named, int) else logging.INFO


def configure_logging(level: Optional[str | int] = None, log_dir: Optional[Path] = None) -> Path:
    """Log to the console and to a file that each run truncates.

    The ``keyword_clusters`` loggers follow ``level``. HTTP client loggers
    stay at WARNING or above so search and embedding calls do not flood
    the file. Returns the log file path.
    """

    log_level = _normalise_level(level)
    directory = log_dir or DEFAULT_LOG_DIR
    directory.mkdir(parents=True, exist_ok=True)
    log_path = directory / DEFAULT_LOG_FILE

    logging.basicConfig(
        level=log_level,
        format=LOG_FORMAT,
        handlers=[
            logging.StreamHandler(),
            logging.FileHandler(log_path, mode="w", encoding="utf-8"),
        ],
        force=True,
    )
    logging.getLogger("keyword_clusters").setLevel(log_level)
    for name in _CLIENT_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))
    logging.getLogger(__name__).info("Keyword cluster logs writing to %s", log_path)
    return log_path
