"""
Logging setup for the MEGASCORE command line.

Console messages go to stderr (stdout carries tables and JSON). A rotating
log file under ~/.megascore/logs keeps the full DEBUG trail unless the
[logging] section of the config file turns it off.
"""

import logging
import logging.config
import os
import sys

from pathlib import Path
from typing import Any

from megascore.constants import (
    DEFAULT_LOG_BACKUP_COUNT,
    DEFAULT_LOG_DIR,
    DEFAULT_LOG_FILE,
)

LOGGING_SECTION = "logging"
DEFAULT_LOG_MAX_SIZE_MB = 10

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_logging_configured = False


def get_log_path() -> Path:
    """
    Path to the active log file, creating its directory if needed.

    Returns:
        ~/.megascore/logs/megascore.log
    """
    os.makedirs(DEFAULT_LOG_DIR, mode=0o700, exist_ok=True)
    return DEFAULT_LOG_DIR / DEFAULT_LOG_FILE


def _get_user_logging_config() -> dict[str, Any]:
    """The [logging] table from the config file, or {} if absent or malformed."""
    from megascore.config import load_config

    settings = load_config().get(LOGGING_SECTION, {})
    return settings if isinstance(settings, dict) else {}


def _file_handler_config(settings: dict[str, Any]) -> dict[str, Any]:
    max_size_mb = settings.get("max_size_mb", DEFAULT_LOG_MAX_SIZE_MB)
    return {
        "class": "logging.handlers.RotatingFileHandler",
        "level": str(settings.get("level", "DEBUG")).upper(),
        "formatter": "file",
        "filename": str(get_log_path()),
        "maxBytes": int(max_size_mb * 1024 * 1024),
        "backupCount": int(settings.get("backup_count", DEFAULT_LOG_BACKUP_COUNT)),
        "encoding": "utf-8",
    }


def _build_logging_config(
    verbose: bool = False,
    console_format: str | None = None,
) -> dict[str, Any]:
    """
    Build the dictConfig configuration dictionary.

    Args:
        verbose: If True, show DEBUG messages on the console (default WARNING)
        console_format: Override console format string

    Returns:
        Dictionary suitable for logging.config.dictConfig()
    """
    settings = _get_user_logging_config()

    handlers: dict[str, Any] = {
        "console": {
            "class": "logging.StreamHandler",
            "level": "DEBUG" if verbose else "WARNING",
            "formatter": "console",
            "stream": "ext://sys.stderr",
        },
    }
    if settings.get("enabled", True):
        handlers["file"] = _file_handler_config(settings)

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "console": {"format": console_format or LOG_FORMAT},
            "file": {"format": LOG_FORMAT},
        },
        "handlers": handlers,
        "root": {"level": "DEBUG", "handlers": list(handlers)},
    }


def setup_logging(
    *,
    verbose: bool = False,
    console_format: str | None = None,
) -> None:
    """
    Configure logging once per process; later calls are no-ops.

    Falls back to basicConfig on stderr if the configuration cannot be
    applied (e.g., the log directory is not writable).
    """
    global _logging_configured

    if _logging_configured:
        return

    try:
        logging.config.dictConfig(
            _build_logging_config(verbose=verbose, console_format=console_format)
        )
    except (OSError, ValueError) as e:
        sys.stderr.write(f"WARNING: Failed to configure logging: {e}\n")
        logging.basicConfig(
            level=logging.DEBUG if verbose else logging.WARNING,
            format=console_format or "%(levelname)s: %(message)s",
        )

    _logging_configured = True
