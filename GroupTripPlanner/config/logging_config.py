"""
Logging setup shared by the API server and scripts.

Usage:
    from config.logging_config import setup_logging
    setup_logging()
"""

import logging
import sys
from typing import Optional

from config.settings import get_settings


LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Client libraries that log every RPC at INFO
NOISY_LOGGERS = ["google", "grpc", "urllib3", "xhtml2pdf"]


def setup_logging(level: Optional[str] = None) -> logging.Logger:
    """
    Configure the root logger with a single console handler.

    Args:
        level: Level name; defaults to LOG_LEVEL from settings.

    Returns:
        logging.Logger: The configured root logger.
    """
    level_name = (level or get_settings().log_level).upper()
    root = logging.getLogger()
    root.setLevel(getattr(logging, level_name, logging.INFO))

    # Avoid duplicate handlers when called twice (uvicorn reload)
    for handler in list(root.handlers):
        root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, LOG_DATE_FORMAT))
    root.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return root
