"""
Logging setup shared by the gateway, server and CLI
"""

import logging

from ..config import get_settings

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logger(name: str) -> logging.Logger:
    """Return a named logger with a stream handler attached once"""
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, get_settings().log_level, logging.INFO))

    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)

    return logger
