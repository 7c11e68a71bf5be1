"""
Logging configuration — set up once by the CLI entrypoint.

Every module does ``logger = logging.getLogger(__name__)``; all of them
sit under the ``protobuild`` logger, which is the only one configured
here. A host build system that imports protobuild keeps its own
root logger untouched.

Console level precedence:
    --debug / --verbose / --quiet  >  PROTOBUILD_LOG_LEVEL  >  WARNING

Optional file output via PROTOBUILD_LOG_FILE (level from
PROTOBUILD_LOG_FILE_LEVEL, default: same as the console).
"""

from __future__ import annotations

import logging
import os
import sys

LOG_LEVEL_ENV = "PROTOBUILD_LOG_LEVEL"
LOG_FILE_ENV = "PROTOBUILD_LOG_FILE"
LOG_FILE_LEVEL_ENV = "PROTOBUILD_LOG_FILE_LEVEL"

PACKAGE_LOGGER = "protobuild"

# ── Formats (by console level) ──────────────────────────────────

_CONSOLE_FORMATS: dict[int, tuple[str, str | None]] = {
    # compiler diagnostics are printed by the CLI; warnings stay one line
    logging.WARNING: ("protobuild: %(message)s", None),
    logging.INFO: ("%(asctime)s [%(name)s] %(message)s", "%H:%M:%S"),
    logging.DEBUG: ("%(asctime)s %(levelname)-5s %(name)s:%(lineno)d — %(message)s", "%H:%M:%S"),
}

_FILE_FORMAT = ("%(asctime)s %(levelname)-5s %(name)s:%(lineno)d — %(message)s", "%Y-%m-%d %H:%M:%S")

# Marks handlers we installed, so repeated setup replaces only ours
_HANDLER_TAG = "_protobuild_handler"


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    log_file_level: str | None = None,
) -> logging.Logger:
    """Configure the ``protobuild`` logger hierarchy.

    Args:
        level: Console level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_file: Optional path of a log file to append to.
        log_file_level: Level for the file; defaults to ``level``.

    Returns:
        The configured package logger.
    """
    console_level = _parse_level(level)
    logger = logging.getLogger(PACKAGE_LOGGER)

    for handler in [h for h in logger.handlers if getattr(h, _HANDLER_TAG, False)]:
        logger.removeHandler(handler)
        handler.close()

    fmt, datefmt = _console_format(console_level)
    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(logging.Formatter(fmt, datefmt=datefmt))
    setattr(console, _HANDLER_TAG, True)
    logger.addHandler(console)

    lowest = console_level
    if log_file:
        file_level = _parse_level(log_file_level) if log_file_level else console_level
        lowest = min(lowest, file_level)
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setLevel(file_level)
        fh.setFormatter(logging.Formatter(*_FILE_FORMAT))
        setattr(fh, _HANDLER_TAG, True)
        logger.addHandler(fh)

    logger.setLevel(lowest)
    logger.propagate = False

    # A closed console stream must not turn a log call into a crash
    logging.raiseExceptions = False
    return logger


def resolve_level(
    *,
    debug: bool = False,
    verbose: bool = False,
    quiet: bool = False,
    env_level: str | None = None,
) -> str:
    """Pick the console level from CLI flags, falling back to the env var."""
    if debug:
        return "DEBUG"
    if verbose:
        return "INFO"
    if quiet:
        return "ERROR"
    if env_level is None:
        env_level = os.environ.get(LOG_LEVEL_ENV)
    return (env_level or "WARNING").upper()


def _console_format(level: int) -> tuple[str, str | None]:
    if level <= logging.DEBUG:
        return _CONSOLE_FORMATS[logging.DEBUG]
    if level <= logging.INFO:
        return _CONSOLE_FORMATS[logging.INFO]
    return _CONSOLE_FORMATS[logging.WARNING]


def _parse_level(level: str | None) -> int:
    """Level name to its numeric value; unknown names mean WARNING."""
    if not level:
        return logging.WARNING
    numeric = logging.getLevelName(level.upper())
    return numeric if isinstance(numeric, int) else logging.WARNING
