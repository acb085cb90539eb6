"""Logging setup for hook and CLI invocations."""

from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Mapping

from ccguard.config.models import LoggingSettings

LOG_FILENAME = "debug.log"
DEBUG_ENV_VAR = "CCGUARD_DEBUG"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def debug_requested(settings: LoggingSettings, env: Mapping[str, str] | None = None) -> bool:
    """Return True if debug logging is forced by settings or ``CCGUARD_DEBUG``."""
    environ = env if env is not None else os.environ
    flag = environ.get(DEBUG_ENV_VAR, "").strip().lower()
    return settings.debug or flag in {"1", "true"}


def configure_logging(
    settings: LoggingSettings,
    state_dir: Path,
    *,
    env: Mapping[str, str] | None = None,
) -> Path | None:
    """Route the ``ccguard`` logger to a rotating file under ``state_dir``.

    Stdout carries the hook decision, so nothing is ever logged there.

    Args:
        settings: Logging section of the active configuration.
        state_dir: Directory that receives ``debug.log``.
        env: Environment mapping consulted for ``CCGUARD_DEBUG``.

    Returns:
        Path | None: Log file path, or None when the directory is not writable.
    """
    logger = logging.getLogger("ccguard")
    level = logging.DEBUG if debug_requested(settings, env) else _level(settings.level)
    logger.setLevel(level)

    for handler in list(logger.handlers):
        if isinstance(handler, RotatingFileHandler):
            logger.removeHandler(handler)
            handler.close()

    directory = state_dir.expanduser()
    log_path = directory / LOG_FILENAME
    try:
        directory.mkdir(parents=True, exist_ok=True)
        handler = RotatingFileHandler(
            log_path,
            maxBytes=settings.max_size_mb * 1024 * 1024,
            backupCount=settings.backup_count,
            encoding="utf-8",
        )
    except OSError:
        logger.addHandler(logging.NullHandler())
        return None

    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    return log_path


def _level(name: str) -> int:
    value = logging.getLevelName(name.upper())
    return value if isinstance(value, int) else logging.WARNING


__all__ = ["DEBUG_ENV_VAR", "LOG_FILENAME", "configure_logging", "debug_requested"]
