"""
Logging configuration

Everything goes through loguru. The HTTP server and client libraries log
through the standard `logging` module, so their loggers are bridged into
loguru by `InterceptHandler` and share its sinks and format.
"""
import logging
import os
import sys

from loguru import logger

from sku_metrics.config import get_settings

settings = get_settings()

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>"
)

# Standard-library loggers of the server and the API clients
BRIDGED_LOGGERS = (
    "uvicorn",
    "uvicorn.error",
    "uvicorn.access",
    "fastapi",
    "aiohttp.client",
    "pyactiveresource",
)


class InterceptHandler(logging.Handler):
    """Forward standard `logging` records to loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Find the caller outside the logging module so {name}:{function} is useful
        frame, depth = logging.currentframe(), 2
        while frame is not None and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def bridge_std_logging(names=BRIDGED_LOGGERS) -> None:
    """Route the named standard loggers into loguru instead of their own handlers."""
    handler = InterceptHandler()
    for name in names:
        std_logger = logging.getLogger(name)
        std_logger.handlers = [handler]
        std_logger.setLevel(settings.log_level.upper())
        std_logger.propagate = False


def setup_logger():
    """Configure logger with appropriate settings"""
    logger.remove()  # Remove default handler

    logger.add(sys.stdout, colorize=True, format=LOG_FORMAT, level=settings.log_level)

    if settings.log_to_file:
        logger.add(
            os.path.join(settings.log_dir, "sku_metrics_{time:YYYY-MM-DD}.log"),
            rotation="00:00",
            retention="30 days",
            compression="zip",
            level="INFO"
        )
        logger.add(
            os.path.join(settings.log_dir, "errors_{time:YYYY-MM-DD}.log"),
            rotation="00:00",
            retention="90 days",
            level="ERROR"
        )

    bridge_std_logging()
    return logger


# Initialize logger
log = setup_logger()
