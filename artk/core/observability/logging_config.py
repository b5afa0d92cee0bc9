"""
Diagnostic logging setup for the ``artk`` CLI.

This is the developer-facing log (stderr, optionally a file).  The
user-facing operation history is the NDJSON install log in
``artk.core.persistence.install_log``; the two never share handlers.

Level precedence:
    --debug / --verbose / --quiet  >  ARTK_LOG_LEVEL  >  WARNING

Optional file output via ARTK_LOG_FILE / ARTK_LOG_FILE_LEVEL.  The file
rotates at the same 10 MiB threshold as the install log.
"""

from __future__ import annotations

import logging
import os
import sys
from logging.handlers import RotatingFileHandler

ENV_LEVEL = "ARTK_LOG_LEVEL"
ENV_FILE = "ARTK_LOG_FILE"
ENV_FILE_LEVEL = "ARTK_LOG_FILE_LEVEL"

# WARNING and above: bare messages, the CLI prints its own status lines
_FMT_CONSOLE = "%(message)s"

# INFO: which component said it, and when
_FMT_VERBOSE = "%(asctime)s [%(name)s] %(message)s"

# DEBUG and file output: everything
_FMT_DEBUG = "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d — %(message)s"

_DATEFMT_SHORT = "%H:%M:%S"
_DATEFMT_FILE = "%Y-%m-%d %H:%M:%S"

_FILE_MAX_BYTES = 10 * 1024 * 1024
_FILE_BACKUPS = 3


def resolve_level(debug: bool = False, verbose: bool = False, quiet: bool = False) -> str:
    """Pick the console level from CLI flags, falling back to the environment."""
    if debug:
        return "DEBUG"
    if verbose:
        return "INFO"
    if quiet:
        return "ERROR"
    return os.environ.get(ENV_LEVEL, "WARNING")


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    log_file_level: str | None = None,
) -> None:
    """Configure the root logger once per process.

    Args:
        level: Console level name.
        log_file: Optional diagnostic log file (defaults to ARTK_LOG_FILE).
        log_file_level: Level for the file (defaults to ARTK_LOG_FILE_LEVEL,
            then to ``level``).
    """
    console_level = _parse_level(level)

    if console_level <= logging.DEBUG:
        fmt, datefmt = _FMT_DEBUG, _DATEFMT_SHORT
    elif console_level <= logging.INFO:
        fmt, datefmt = _FMT_VERBOSE, _DATEFMT_SHORT
    else:
        fmt, datefmt = _FMT_CONSOLE, None

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(logging.Formatter(fmt, datefmt=datefmt))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(console)
    effective = console_level

    log_file = log_file or os.environ.get(ENV_FILE)
    if log_file:
        file_level = _parse_level(log_file_level or os.environ.get(ENV_FILE_LEVEL) or level)
        effective = min(effective, file_level)

        fh = RotatingFileHandler(
            log_file,
            maxBytes=_FILE_MAX_BYTES,
            backupCount=_FILE_BACKUPS,
            encoding="utf-8",
        )
        fh.setLevel(file_level)
        fh.setFormatter(logging.Formatter(_FMT_DEBUG, datefmt=_DATEFMT_FILE))
        root.addHandler(fh)

    root.setLevel(effective)

    # Logging problems must never abort an install.
    logging.raiseExceptions = False


def _parse_level(level: str | None) -> int:
    """Level name → numeric constant (unknown names fall back to WARNING)."""
    if not level:
        return logging.WARNING
    numeric = getattr(logging, level.upper(), None)
    return numeric if isinstance(numeric, int) else logging.WARNING
