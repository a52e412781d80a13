"""Logging configuration for the Upwork job catalog"""
import logging
import sys
from typing import Optional

from loguru import logger

from .config import get_config, get_project_root

CONSOLE_FORMAT = "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"

# stdlib loggers that the web server and HTTP stack write to
FORWARDED_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access", "fastapi", "httpx")


class InterceptHandler(logging.Handler):
    """Forward stdlib logging records into loguru"""

    def emit(self, record: logging.LogRecord):
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Walk back to the frame that issued the logging call
        frame, depth = logging.currentframe(), 2
        while frame is not None and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def setup_logging(level: Optional[str] = None):
    """Configure logging based on config settings"""
    log_config = get_config().logging
    level = (level or log_config.level).upper()

    # Remove default handler
    logger.remove()

    logger.add(sys.stderr, level=level, format=CONSOLE_FORMAT)

    # Create logs directory if it doesn't exist
    log_path = get_project_root() / log_config.file
    log_path.parent.mkdir(parents=True, exist_ok=True)

    # Add file handler with rotation
    logger.add(
        log_path,
        level=level,
        format=FILE_FORMAT,
        rotation=f"{log_config.max_size_mb} MB",
        retention=log_config.backup_count,
        compression="zip"
    )

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    for name in FORWARDED_LOGGERS:
        std_logger = logging.getLogger(name)
        std_logger.handlers = [InterceptHandler()]
        std_logger.propagate = False

    return logger


def get_logger():
    """Get the configured logger instance"""
    return logger
