# app/core/logging_config.py
"""
Centralized logging configuration for the application.

App loggers follow LOG_LEVEL; database, HTTP client and access loggers are
held at WARNING so quote traffic doesn't drown the shipping rule logs.
"""

import logging
from typing import Optional

from app.core.config import get_settings

QUIET_LOGGERS = (
    "httpx",
    "httpcore",
    "sqlalchemy",
    "sqlalchemy.engine",
    "asyncpg",
    "alembic",
    "uvicorn.access",
)


def configure_logging(log_level: Optional[str] = None):
    """
    Configure logging for the application.

    Args:
        log_level: Level name for app loggers; defaults to the LOG_LEVEL setting
    """
    log_level = (log_level or get_settings().LOG_LEVEL).upper()
    level = getattr(logging, log_level, logging.INFO)

    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[logging.StreamHandler()]
    )

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    # Keep app loggers at configured level
    logging.getLogger("app").setLevel(level)
    logging.getLogger("__main__").setLevel(level)

    logging.getLogger(__name__).info(f"Logging configured at level: {log_level}")
