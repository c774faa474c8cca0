import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from focus_rank.config import get_log_file, get_log_level

LOGGER_NAME = "focus_rank"


def setup_logger(level: int | None = None, log_file: Path | None = None) -> logging.Logger:
    log_file = log_file or get_log_file()
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level if level is not None else get_log_level())

    if not logger.handlers:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handler = RotatingFileHandler(
            log_file,
            maxBytes=1_000_000,
            backupCount=3,
            encoding="utf-8",
        )
        fmt = logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s")
        handler.setFormatter(fmt)
        logger.addHandler(handler)

    return logger
