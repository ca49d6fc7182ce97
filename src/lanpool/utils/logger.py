"""
Logging setup for lanpool.

All modules log through loguru via ``get_logger(__name__)``. Output goes to
stderr only: stdout carries the key=value assignments consumed by scripts.
"""

import logging
import sys

from loguru import logger as _logger

from lanpool.models.enums import LogLevel

_LEVEL_MAP = {
    LogLevel.FULL: "TRACE",
    LogLevel.DEBUG: "DEBUG",
    LogLevel.INFO: "INFO",
    LogLevel.WARNING: "WARNING",
}

_FORMAT = (
    "<green>{time:YYYY-MM-DDTHH:mm:ssZ}</green> "
    "<level>[{level: <7}]</level> "
    "<cyan>{extra[name]}</cyan> - <level>{message}</level>"
)


class InterceptHandler(logging.Handler):
    """Route standard-library logging records into loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = _logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        _logger.bind(name=record.name).opt(
            depth=depth, exception=record.exc_info
        ).log(level, record.getMessage())


def configure_logging(level: LogLevel = LogLevel.INFO, log_file: str = "") -> None:
    """
    Configure loguru sinks.

    Args:
        level: Verbosity for all sinks.
        log_file: Optional path for an additional file sink.
    """
    loguru_level = _LEVEL_MAP.get(level, "INFO")

    _logger.remove()
    _logger.configure(extra={"name": "lanpool"})
    _logger.add(sys.stderr, level=loguru_level, format=_FORMAT, colorize=None)
    if log_file:
        _logger.add(log_file, level=loguru_level, format=_FORMAT, colorize=False)

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)


def get_logger(name: str):
    """Get a logger bound to a module name."""
    return _logger.bind(name=name)
