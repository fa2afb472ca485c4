"""Centralized logging configuration for narration splice.

This module provides consistent logging setup across the CLI and any host
application embedding the editor session. Configuration respects environment
variables and provides sensible defaults for production and development.
"""

from __future__ import annotations

import logging
import os
import sys
import warnings
from typing import Literal

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

# librosa pulls in numba, whose JIT compiler logs every pass at DEBUG.
_NOISY_LOGGERS: tuple[str, ...] = ("numba", "numba.core", "pydub.converter")


def _configure_third_party_log_levels(*, verbose: bool) -> None:
    """Set explicit levels for noisy third-party loggers.

    Args:
        verbose: When ``True`` pydub's ffmpeg command log is kept at DEBUG.
    """
    for name in _NOISY_LOGGERS:
        level = logging.DEBUG if verbose and name.startswith("pydub") else logging.WARNING
        logging.getLogger(name).setLevel(level)


def configure_logging(
    *,
    level: LogLevel | None = None,
    verbose: bool = False,
    quiet: bool = False,
    format_string: str | None = None,
) -> None:
    """Configure centralized logging for the application.

    This should be called once at application startup (CLI entry or host
    application launch).

    Args:
        level: Explicit log level (overrides verbose/quiet and ``LOG_LEVEL``).
        verbose: Enable verbose logging (DEBUG level).
        quiet: Suppress all non-critical logs and library warnings.
        format_string: Custom log format (uses default if None).

    Examples:
        >>> configure_logging(verbose=True)
        >>> configure_logging(level="DEBUG")
        >>> configure_logging(quiet=True)
    """
    if level is not None:
        log_level = getattr(logging, level.upper())
    elif verbose:
        log_level = logging.DEBUG
    elif quiet:
        log_level = logging.CRITICAL
    else:
        log_level = getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO)

    if format_string is None:
        format_string = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(
        level=log_level,
        format=format_string,
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
        force=True,  # Reconfigure even if already configured
    )
    _configure_third_party_log_levels(verbose=verbose)

    if quiet:
        # librosa emits UserWarnings for very short buffers during time scaling
        warnings.filterwarnings("ignore")
    else:
        logger = logging.getLogger(__name__)
        logger.debug(f"Logging configured: level={logging.getLevelName(log_level)}")


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance with the given name.

    Args:
        name: Logger name (typically __name__ of calling module).

    Returns:
        Configured logger instance.
    """
    return logging.getLogger(name)
