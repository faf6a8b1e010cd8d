"""
Logging Configuration
Centralized logging setup for the M-Pesa client
"""

import logging
from logging.handlers import RotatingFileHandler
import os

from mpesa_gateway.config import Config


def get_logger(name: str) -> logging.Logger:
    """
    Get a configured logger instance

    Records propagate to the application's logging setup; the library adds
    only a NullHandler, plus a rotating file handler when MPESA_LOG_DIR is set.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured logger
    """
    logger = logging.getLogger(name)

    # Only configure if not already configured
    if not logger.handlers:
        logger.addHandler(logging.NullHandler())

        log_dir = Config.MPESA_LOG_DIR
        if log_dir:
            try:
                os.makedirs(log_dir, exist_ok=True)
            except OSError as exc:
                logger.warning("Could not create log directory %s: %s", log_dir, exc)

        if log_dir and os.path.isdir(log_dir):
            file_handler = RotatingFileHandler(
                os.path.join(log_dir, 'mpesa-gateway.log'),
                maxBytes=10485760,  # 10MB
                backupCount=10
            )
            file_handler.setLevel(logging.INFO)

            file_formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
            file_handler.setFormatter(file_formatter)
            logger.addHandler(file_handler)

    return logger
