"""Logging setup with signed-in user context."""
import logging
import sys
from typing import Optional

LOGGER_NAME = "expense_insights"


class UserContextFilter(logging.Filter):
    """Add user_id to log records."""

    def __init__(self):
        super().__init__()
        self.user_id: Optional[str] = None

    def filter(self, record):
        record.user_id = self.user_id or "anonymous"
        return True


_user_filter = UserContextFilter()
_configured = False


def configure_logging(log_level: str = "INFO") -> logging.Logger:
    """Attach a console handler to the package logger. Safe to call more than once."""
    global _configured
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    if not _configured:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(
            "%(asctime)s [%(levelname)s] [user:%(user_id)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        ))
        handler.addFilter(_user_filter)
        logger.addHandler(handler)
        _configured = True
    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return the package logger or one of its children."""
    if name:
        return logging.getLogger(f"{LOGGER_NAME}.{name}")
    return logging.getLogger(LOGGER_NAME)


def set_user_context(user_id: Optional[str]) -> None:
    _user_filter.user_id = user_id
