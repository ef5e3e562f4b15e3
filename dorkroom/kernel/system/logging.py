import logging
import sys
from typing import TextIO


def setup_logging(level: int = logging.INFO, stream: TextIO | None = None) -> logging.Logger:
    """
    Sets up the global logging configuration for the application.
    Logs go to stdout unless another stream is given (the CLI keeps stdout
    for results and logs to stderr).
    """
    logger = logging.getLogger("dorkroom")
    logger.setLevel(level)

    # Prevent duplicate handlers if called multiple times
    if logger.handlers:
        if stream is None:
            for existing in logger.handlers:
                existing.setLevel(level)
            return logger
        # setStream flushes the old stream, which may already be closed
        for existing in list(logger.handlers):
            if isinstance(existing, logging.StreamHandler):
                logger.removeHandler(existing)
            else:
                existing.setLevel(level)

    handler = logging.StreamHandler(stream if stream is not None else sys.stdout)
    handler.setLevel(level)

    formatter = logging.Formatter(
        "[%(asctime)s] %(levelname)-8s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)

    return logger


def get_logger(name: str | None = None) -> logging.Logger:
    """
    Helper to get a sub-logger for a specific module.
    """
    if name:
        if name.startswith("dorkroom."):
            return logging.getLogger(name)
        return logging.getLogger(f"dorkroom.{name}")
    return logging.getLogger("dorkroom")
