"""
Logging configuration for plopctl entrypoints.

``configure_from_flags`` is called once by the CLI group; every module
logs through ``logging.getLogger(__name__)`` and inherits the result.

Console level precedence:
    --debug / --verbose / --quiet  >  PLOPCTL_LOG_LEVEL  >  WARNING

A log file is added when PLOPCTL_LOG_FILE is set; its level comes from
PLOPCTL_LOG_FILE_LEVEL (default: the console level).
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Mapping

ENV_LEVEL = "PLOPCTL_LOG_LEVEL"
ENV_FILE = "PLOPCTL_LOG_FILE"
ENV_FILE_LEVEL = "PLOPCTL_LOG_FILE_LEVEL"

# Console formats by level: WARNING+ plain, INFO timestamped, DEBUG with file:line
_FORMATS: dict[int, tuple[str, str | None]] = {
    logging.DEBUG: ("%(asctime)s %(levelname)-5s %(name)s:%(lineno)d: %(message)s", "%H:%M:%S"),
    logging.INFO: ("%(asctime)s [%(name)s] %(message)s", "%H:%M:%S"),
    logging.WARNING: ("%(message)s", None),
}
_FMT_FILE = "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d: %(message)s"
_DATEFMT_FILE = "%Y-%m-%d %H:%M:%S"

# The web host's request log is noisy below WARNING
_NOISY_LOGGERS = ("werkzeug", "urllib3")


def resolve_level(
    *,
    verbose: bool = False,
    quiet: bool = False,
    debug: bool = False,
    env: Mapping[str, str] | None = None,
) -> str:
    """Pick the console level name from CLI flags, then the environment."""
    if debug:
        return "DEBUG"
    if verbose:
        return "INFO"
    if quiet:
        return "ERROR"
    env = os.environ if env is None else env
    return env.get(ENV_LEVEL) or "WARNING"


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    log_file_level: str | None = None,
    quiet_third_party: bool = True,
) -> None:
    """Configure the root logger for the whole process.

    Args:
        level: Console level name.
        log_file: Optional log file path.
        log_file_level: Level for the file handler; defaults to ``level``.
        quiet_third_party: Hold noisy library loggers at WARNING unless
            the console runs at DEBUG.
    """
    numeric_level = _parse_level(level)

    if numeric_level <= logging.DEBUG:
        fmt, datefmt = _FORMATS[logging.DEBUG]
    elif numeric_level <= logging.INFO:
        fmt, datefmt = _FORMATS[logging.INFO]
    else:
        fmt, datefmt = _FORMATS[logging.WARNING]

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(numeric_level)
    console.setFormatter(logging.Formatter(fmt, datefmt=datefmt))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(console)
    effective_level = numeric_level

    if log_file:
        file_level = _parse_level(log_file_level) if log_file_level else numeric_level
        effective_level = min(effective_level, file_level)
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setLevel(file_level)
        fh.setFormatter(logging.Formatter(_FMT_FILE, datefmt=_DATEFMT_FILE))
        root.addHandler(fh)

    root.setLevel(effective_level)

    if quiet_third_party and numeric_level > logging.DEBUG:
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    logging.raiseExceptions = False


def configure_from_flags(
    *,
    verbose: bool = False,
    quiet: bool = False,
    debug: bool = False,
    env: Mapping[str, str] | None = None,
) -> str:
    """Set up logging from CLI flags and PLOPCTL_* variables.

    Returns the console level name that was applied.
    """
    env = os.environ if env is None else env
    level = resolve_level(verbose=verbose, quiet=quiet, debug=debug, env=env)
    setup_logging(
        level=level,
        log_file=env.get(ENV_FILE),
        log_file_level=env.get(ENV_FILE_LEVEL),
        quiet_third_party=not debug,
    )
    return level


def _parse_level(level: str | None) -> int:
    """Level name → numeric level; unknown names mean WARNING."""
    if not level:
        return logging.WARNING
    numeric = getattr(logging, level.upper(), None)
    if not isinstance(numeric, int):
        return logging.WARNING
    return numeric
