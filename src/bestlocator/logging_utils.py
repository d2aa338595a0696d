from __future__ import annotations

import logging
from pathlib import Path

LOGGER_NAME = "bestlocator"
LOG_FORMAT = "%(asctime)s %(levelname)s %(message)s"


def build_logger(log_dir: Path | None = None, level: int = logging.INFO) -> logging.Logger:
    logger = logging.getLogger(LOGGER_NAME)
    if logger.handlers:
        return logger

    logger.setLevel(level)
    logger.propagate = False
    try:
        directory = log_dir or (Path.home() / ".bestlocator" / "logs")
        directory.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(directory / "bestlocator.log", encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(file_handler)
    except OSError:
        stream_handler = logging.StreamHandler()
        stream_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(stream_handler)
    return logger
