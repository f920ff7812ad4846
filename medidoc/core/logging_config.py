"""Logging setup for the API process.

Records from the standard ``logging`` module are written as JSON lines
through structlog's ProcessorFormatter:
- info.log: INFO level and above
- error.log: ERROR level and above

The console gets a short human-readable format.
"""

import logging
import sys

import structlog

from medidoc.core.config import Settings, get_settings

_FILE_PRE_CHAIN = [
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.format_exc_info,
]


def _json_formatter() -> logging.Formatter:
    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=_FILE_PRE_CHAIN,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.JSONRenderer(),
        ],
    )


def _file_handler(path, level: int) -> logging.Handler:
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(_json_formatter())
    return handler


def setup_logging(settings: Settings | None = None) -> logging.Logger:
    """Attach file and console handlers to the root logger.

    Safe to call more than once; handlers from a previous call are closed
    and replaced.

    Args:
        settings: Optional settings. If None, uses global settings.

    Returns:
        The configured root logger.
    """
    settings = settings or get_settings()

    log_dir = settings.log_dir
    log_dir.mkdir(parents=True, exist_ok=True)

    level = logging.DEBUG if settings.log_level == "DEBUG" else logging.INFO

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    root_logger.addHandler(_file_handler(log_dir / "info.log", logging.INFO))
    root_logger.addHandler(_file_handler(log_dir / "error.log", logging.ERROR))

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    root_logger.addHandler(console_handler)

    return root_logger
