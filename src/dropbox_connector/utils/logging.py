"""Structured logging for the connector.

Events are emitted through structlog on top of the stdlib root logger, so
SDK and APScheduler records end up in the same handlers as connector events.
"""

import functools
import logging
import logging.handlers
import sys
import time
from pathlib import Path
from typing import Dict, Optional

import structlog
import colorlog
from structlog.typing import Processor


CONSOLE_FORMAT = "%(log_color)s%(asctime)s [%(levelname)s] %(name)s: %(message)s"
FILE_FORMAT = (
    '{"timestamp": "%(asctime)s", "level": "%(levelname)s", '
    '"logger": "%(name)s", "message": "%(message)s"}'
)
LOG_COLORS = {
    'DEBUG': 'cyan',
    'INFO': 'green',
    'WARNING': 'yellow',
    'ERROR': 'red',
    'CRITICAL': 'red,bg_white',
}

# Handlers installed by this module, keyed by kind; replaced on each setup call
_handlers: Dict[str, logging.Handler] = {}


def _to_level(level: str) -> int:
    return getattr(logging, level.upper(), logging.INFO)


def _install_handler(kind: str, handler: logging.Handler) -> None:
    root = logging.getLogger()
    previous = _handlers.pop(kind, None)
    if previous is not None:
        root.removeHandler(previous)
        previous.close()
    root.addHandler(handler)
    _handlers[kind] = handler


def setup_logging(
    log_level: Optional[str] = None,
    log_format: Optional[str] = None,
    log_file: Optional[str] = None
) -> None:
    """Configure structlog and the root logger handlers.

    Arguments override the ``logging`` section of the current settings.
    ``log_format`` is ``json`` (machine readable) or ``console`` (colored).
    """
    # Imported here: the config package logs through this module
    from ..config.settings import get_settings

    logging_settings = get_settings().logging

    level = log_level or logging_settings.level
    format_type = log_format or logging_settings.format
    file_path = log_file or logging_settings.file_path

    logging.getLogger().setLevel(_to_level(level))

    processors: list[Processor] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if format_type == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    if file_path:
        setup_file_logging(file_path, level)

    setup_console_logging(level)


def setup_file_logging(file_path: str, level: str) -> None:
    """Log to a size-rotated file (10MB, five backups)."""
    Path(file_path).parent.mkdir(parents=True, exist_ok=True)

    handler = logging.handlers.RotatingFileHandler(
        file_path,
        maxBytes=10 * 1024 * 1024,
        backupCount=5,
        encoding="utf-8"
    )
    handler.setLevel(_to_level(level))
    handler.setFormatter(logging.Formatter(FILE_FORMAT))

    _install_handler("file", handler)


def setup_console_logging(level: str) -> None:
    """Log to stdout with colored level names."""
    handler = colorlog.StreamHandler(sys.stdout)
    handler.setLevel(_to_level(level))
    handler.setFormatter(colorlog.ColoredFormatter(
        CONSOLE_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
        reset=True,
        log_colors=LOG_COLORS
    ))

    _install_handler("console", handler)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)


def _log_duration(func, started: float, error: Optional[BaseException] = None) -> None:
    logger = get_logger(func.__module__)
    elapsed = f"{time.monotonic() - started:.4f}s"
    if error is None:
        logger.debug("Call completed", function=func.__qualname__, execution_time=elapsed)
    else:
        logger.error("Call failed", function=func.__qualname__, execution_time=elapsed, error=str(error))


def log_execution_time(func):
    """Log how long a call took, and its error if it raised."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        started = time.monotonic()
        try:
            result = func(*args, **kwargs)
        except Exception as e:
            _log_duration(func, started, e)
            raise
        _log_duration(func, started)
        return result

    return wrapper


def log_async_execution_time(func):
    """Coroutine version of :func:`log_execution_time`."""

    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        started = time.monotonic()
        try:
            result = await func(*args, **kwargs)
        except Exception as e:
            _log_duration(func, started, e)
            raise
        _log_duration(func, started)
        return result

    return wrapper
