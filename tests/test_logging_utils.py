import logging
from pathlib import Path

import pytest

from bestlocator.logging_utils import LOGGER_NAME, build_logger


@pytest.fixture
def clean_logger():
    logger = logging.getLogger(LOGGER_NAME)
    saved = list(logger.handlers)
    for handler in saved:
        logger.removeHandler(handler)
    yield logger
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    for handler in saved:
        logger.addHandler(handler)


def test_build_logger_writes_to_file(tmp_path: Path, clean_logger: logging.Logger) -> None:
    logger = build_logger(tmp_path)
    assert logger is clean_logger
    assert not logger.propagate
    logger.info("selector chosen")
    for handler in logger.handlers:
        handler.flush()
    assert "INFO selector chosen" in (tmp_path / "bestlocator.log").read_text(encoding="utf-8")


def test_build_logger_is_idempotent(tmp_path: Path, clean_logger: logging.Logger) -> None:
    build_logger(tmp_path)
    build_logger(tmp_path)
    assert len(clean_logger.handlers) == 1


def test_build_logger_falls_back_to_stream(tmp_path: Path, clean_logger: logging.Logger) -> None:
    blocker = tmp_path / "file"
    blocker.write_text("", encoding="utf-8")
    logger = build_logger(blocker / "logs")
    assert len(logger.handlers) == 1
    assert type(logger.handlers[0]) is logging.StreamHandler
