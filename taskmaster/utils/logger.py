"""
Logging configuration
"""
import logging
import sys
from taskmaster.config import get_settings

settings = get_settings()


def get_logger(name: str = "taskmaster") -> logging.Logger:
    """
    Get a configured logger instance. Configuring the package logger once
    covers every module logger created with logging.getLogger(__name__).
    """
    logger = logging.getLogger(name)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    logger.setLevel(logging.DEBUG if settings.DEBUG else logging.INFO)
    return logger
