"""Console and run-log setup for the manifestgen CLI and service."""

from __future__ import annotations

import logging
from pathlib import Path

ROOT_LOGGER = "manifestgen"
CONSOLE_FORMAT = "[manifestgen] %(levelname)s %(message)s"
VERBOSE_CONSOLE_FORMAT = "[manifestgen] %(levelname)s %(name)s: %(message)s"
RUN_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

# httpx reports every request at INFO; a full build issues hundreds.
HTTP_LOGGERS = ("httpx", "httpcore")


def get_logger(name: str | None = None) -> logging.Logger:
    """Return ``manifestgen.<name>``, e.g. ``manifest`` or ``retriever.fields``."""
    return logging.getLogger(f"{ROOT_LOGGER}.{name}" if name else ROOT_LOGGER)


def configure_logging(
    *, verbose: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Route manifestgen records to stderr and, optionally, a run log.

    The console shows INFO and above unless ``verbose`` is set. A run log always
    captures DEBUG records, so per-type listing detail and skipped listings can
    be inspected after a quiet run. Raises ``OSError`` when the run log cannot
    be opened.
    """
    console_level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(logging.DEBUG if verbose or log_file is not None else logging.INFO)
    logger.propagate = False
    _close_handlers(logger)

    console = logging.StreamHandler()
    console.setLevel(console_level)
    console.setFormatter(logging.Formatter(VERBOSE_CONSOLE_FORMAT if verbose else CONSOLE_FORMAT))
    logger.addHandler(console)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        run_log = logging.FileHandler(log_file, encoding="utf-8")
        run_log.setLevel(logging.DEBUG)
        run_log.setFormatter(logging.Formatter(RUN_LOG_FORMAT))
        logger.addHandler(run_log)

    for name in HTTP_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if verbose else logging.WARNING)

    return logger


def _close_handlers(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


__all__ = ["configure_logging", "get_logger"]
