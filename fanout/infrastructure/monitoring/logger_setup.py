"""Centralized logging configuration for the fanout application.

The root logger gets one console handler and, when ``logging.file`` is set,
a size-rotated file handler. Console output goes to stderr so that results
printed on stdout (``--json``) stay machine readable.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from typing import Any, Callable, Optional, TextIO

DEFAULT_LOG_LEVEL = logging.INFO
DEFAULT_LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DEFAULT_MAX_BYTES = 1_000_000
DEFAULT_BACKUP_COUNT = 3

# Marks the handlers installed here so a reconfiguration only replaces its own
_HANDLER_ATTR = "_fanout_handler"


def resolve_log_level(level_name: Optional[str], default: int = DEFAULT_LOG_LEVEL) -> int:
    """Maps a level name such as 'debug' to its logging constant."""
    if not level_name:
        return default
    level = logging.getLevelName(str(level_name).upper())
    return level if isinstance(level, int) else default


def _install(root_logger: logging.Logger, handler: logging.Handler, level: int, formatter: logging.Formatter) -> None:
    handler.setLevel(level)
    handler.setFormatter(formatter)
    setattr(handler, _HANDLER_ATTR, True)
    root_logger.addHandler(handler)


def setup_logging(
    log_level: int = DEFAULT_LOG_LEVEL,
    log_format: str = DEFAULT_LOG_FORMAT,
    log_file: Optional[str] = None,
    stream: Optional[TextIO] = None,
    max_bytes: int = DEFAULT_MAX_BYTES,
    backup_count: int = DEFAULT_BACKUP_COUNT,
) -> None:
    """Configures the root logger for the application.

    Calling it again (e.g. ``--verbose``) replaces the handlers it installed
    earlier and leaves foreign handlers, such as pytest's capture, alone.

    Args:
        log_level: The minimum logging level (e.g., logging.DEBUG, logging.INFO).
        log_format: The format string for log messages.
        log_file: Optional path to a file for logging output.
        stream: Console stream, stderr by default.
        max_bytes: Size at which the log file is rotated.
        backup_count: Number of rotated log files kept.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    for handler in [h for h in root_logger.handlers if getattr(h, _HANDLER_ATTR, False)]:
        root_logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(log_format)
    _install(root_logger, logging.StreamHandler(stream or sys.stderr), log_level, formatter)

    if log_file:
        try:
            file_handler = RotatingFileHandler(
                log_file, maxBytes=max_bytes, backupCount=backup_count, encoding='utf-8',
            )
        except OSError as e:
            logging.error(f"Failed to set up file logging to {log_file}: {e}")
        else:
            _install(root_logger, file_handler, log_level, formatter)
            logging.debug(f"Logging to file: {log_file}")

    logging.debug(f"Logging configured. Level={logging.getLevelName(log_level)}")


def setup_logging_from_config(get_config: Callable[[str, Any], Any]) -> None:
    """Configures logging from the ``logging.*`` configuration keys."""
    setup_logging(
        log_level=resolve_log_level(get_config('logging.level', None)),
        log_format=get_config('logging.format', None) or DEFAULT_LOG_FORMAT,
        log_file=get_config('logging.file', None),
    )
