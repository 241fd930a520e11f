"""Logging for ingestion runs: console on stderr plus a rotating run log."""

import logging
import os
import sys
from logging.handlers import RotatingFileHandler

LOG_FILE = "ingest.log"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(threadName)s %(name)s: %(message)s"


def setup_logger(log_dir: str = "logs", level: int = logging.INFO,
                 file_level: int = logging.DEBUG) -> logging.Logger:
    """Configure the trec_ingest logger for one run.

    The console follows `level` and writes to stderr, leaving stdout to the
    per-file progress lines. The run log under log_dir records down to
    `file_level`, so per-file worker messages are kept even on a quiet
    console. Calling it again replaces the previous handlers.
    """
    os.makedirs(log_dir, exist_ok=True)

    logger = logging.getLogger("trec_ingest")
    logger.setLevel(min(level, file_level))
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    fmt = logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    ch = logging.StreamHandler(sys.stderr)
    ch.setLevel(level)
    ch.setFormatter(fmt)
    logger.addHandler(ch)

    # Rotating run log (10MB per file, keep 5)
    fh = RotatingFileHandler(
        os.path.join(log_dir, LOG_FILE),
        maxBytes=10 * 1024 * 1024,
        backupCount=5,
        encoding="utf-8",
    )
    fh.setLevel(file_level)
    fh.setFormatter(fmt)
    logger.addHandler(fh)

    return logger
