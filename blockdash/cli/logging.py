"""CLI logging configuration with file output.

Log files live under ``~/.local/share/blockdash/logs/<command>.log``.
Console output belongs to the dashboard while it is open, so INFO and
above are mirrored into its log strip instead of stderr.

Usage::

    from blockdash.cli.logging import configure_cli_logging

    configure_cli_logging("demo", verbose=verbose)
"""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

# Standard log directory follows XDG convention
LOG_DIR = Path.home() / ".local" / "share" / "blockdash" / "logs"


def get_log_dir() -> Path:
    """Return the CLI log directory, creating it if needed."""
    LOG_DIR.mkdir(parents=True, exist_ok=True)
    return LOG_DIR


def get_log_file(command: str) -> Path:
    """Return the log file path for a given CLI command."""
    return get_log_dir() / f"{command}.log"


def configure_cli_logging(
    command: str,
    *,
    verbose: bool = False,
    file_level: int = logging.DEBUG,
    max_bytes: int = 10 * 1024 * 1024,  # 10 MB
    backup_count: int = 3,
) -> Path:
    """Configure the ``blockdash`` logger for a CLI command.

    Sets up a DEBUG-level rotating file handler.  The package logger level
    is INFO (DEBUG when ``verbose``) so the dashboard log strip receives
    INFO records.

    Args:
        command: CLI command name (e.g., "demo").
        verbose: Also let DEBUG records reach the package handlers.
        file_level: File log level.
        max_bytes: Max size per log file before rotation.
        backup_count: Number of rotated backups to keep.

    Returns:
        Path to the log file.
    """
    log_file = get_log_file(command)

    package_logger = logging.getLogger("blockdash")

    # Remove existing file handlers to avoid duplicates on repeated calls
    for handler in package_logger.handlers[:]:
        if isinstance(handler, logging.FileHandler):
            package_logger.removeHandler(handler)
            handler.close()

    file_handler = RotatingFileHandler(
        log_file,
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding="utf-8",
    )
    file_handler.setLevel(file_level)
    file_handler.setFormatter(
        logging.Formatter(
            "%(asctime)s %(levelname)-8s %(threadName)s %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    package_logger.addHandler(file_handler)
    package_logger.setLevel(logging.DEBUG if verbose else logging.INFO)

    return log_file
