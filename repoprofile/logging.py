"""Logging setup for the repoprofile command line and analysis stages."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TextIO

_LOGGER_NAME = "repoprofile"
_CONSOLE_FORMAT = "[repoprofile] %(levelname)s %(message)s"
_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return `repoprofile.<name>`, or the package logger when `name` is empty."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


def resolve_level(*, verbose: bool = False, quiet: bool = False) -> int:
    """Map CLI verbosity flags to a level; `verbose` wins over `quiet`."""
    if verbose:
        return logging.DEBUG
    if quiet:
        return logging.WARNING
    return logging.INFO


def configure_logging(
    *,
    verbose: bool = False,
    quiet: bool = False,
    log_file: Path | None = None,
    stream: TextIO | None = None,
) -> logging.Logger:
    """Install console (stderr by default) and optional file handlers.

    Stdout is reserved for the JSON analysis, so console output never goes
    there unless a stream is passed explicitly. Existing handlers are replaced,
    which keeps repeated `main()` calls in one process from duplicating lines.
    """
    level = resolve_level(verbose=verbose, quiet=quiet)
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler(stream)
    console.setLevel(level)
    console.setFormatter(logging.Formatter(_CONSOLE_FORMAT))
    logger.addHandler(console)

    if log_file is not None:
        # The file always records debug detail, whatever the console level.
        logger.setLevel(logging.DEBUG)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(_FILE_FORMAT))
        logger.addHandler(file_handler)

    return logger


def log_skipped(logger: logging.Logger, stage: str, path: str, reason: str) -> None:
    """Record a file a stage could not use; skips are never fatal."""
    logger.debug("Skipping %s for %s: %s", path, stage, reason)


__all__ = ["configure_logging", "get_logger", "log_skipped", "resolve_level"]
