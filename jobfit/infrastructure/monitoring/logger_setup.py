"""Centralized logging configuration for the jobfit application.

The root logger gets a stderr handler and, when ``logging.file`` is set, a
file handler. Anything not passed explicitly is read from the settings
module (``logging.level``, ``logging.format``, ``logging.file``), so the
console output of the CLI is never interleaved with log records.
"""

import logging
import sys
from typing import Optional, Union

from jobfit.infrastructure.config.settings import get_config

DEFAULT_LOG_LEVEL = logging.INFO
DEFAULT_LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
# Third-party loggers that are chatty at INFO
NOISY_LOGGERS = ("httpx", "httpcore", "openai", "groq")


def resolve_log_level(level: Union[int, str, None]) -> int:
    """Accepts a logging constant or a level name ('debug', 'WARNING', ...)."""
    if isinstance(level, int) and not isinstance(level, bool):
        return level
    if level is None:
        return DEFAULT_LOG_LEVEL
    resolved = logging.getLevelName(str(level).strip().upper())
    return resolved if isinstance(resolved, int) else DEFAULT_LOG_LEVEL


def setup_logging(
    log_level: Union[int, str, None] = None,
    log_format: Optional[str] = None,
    log_file: Optional[str] = None,
) -> int:
    """Configures the root logger and returns the level that was applied.

    Args:
        log_level: Level constant or name; defaults to ``logging.level``.
        log_format: Record format; defaults to ``logging.format``.
        log_file: Extra file destination; defaults to ``logging.file``.
    """
    level = resolve_log_level(log_level if log_level is not None else get_config('logging.level'))
    log_format = log_format or get_config('logging.format') or DEFAULT_LOG_FORMAT
    log_file = log_file or get_config('logging.file')

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    formatter = logging.Formatter(log_format)
    destinations = [logging.StreamHandler(sys.stderr)]
    file_error = None
    if log_file:
        try:
            destinations.append(logging.FileHandler(log_file, encoding='utf-8'))
        except OSError as e:
            file_error = e
    for handler in destinations:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)

    log = logging.getLogger(__name__)
    if file_error is not None:
        log.error(f"Failed to set up file logging to {log_file}: {file_error}")

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    log.debug(
        f"Logging configured: level={logging.getLevelName(level)}, file={log_file or '-'}"
    )
    return level
