"""Logging configuration."""

import logging
import sys
from logging.handlers import RotatingFileHandler
from typing import Optional

from paperledger.config.settings import Settings, get_settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(profile)s] %(message)s"

# Loggers of libraries that are chatty at INFO
QUIET_LOGGERS = ("sqlalchemy.engine", "yfinance", "urllib3", "httpx")


class ProfileFilter(logging.Filter):
    """Stamp every record with the profile the process serves."""

    def __init__(self, profile_id: str):
        super().__init__()
        self.profile_id = profile_id

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "profile"):
            record.profile = self.profile_id
        return True


def build_handlers(settings: Settings) -> list[logging.Handler]:
    """Stdout handler, plus a file handler when settings.log_file is set."""
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    log_path = settings.get_log_path()
    if log_path is not None:
        handlers.append(
            RotatingFileHandler(log_path, maxBytes=1_000_000, backupCount=5, encoding="utf-8")
        )

    formatter = logging.Formatter(LOG_FORMAT)
    profile_filter = ProfileFilter(settings.profile_id)
    for handler in handlers:
        handler.setFormatter(formatter)
        handler.addFilter(profile_filter)
    return handlers


def setup_logging(settings: Optional[Settings] = None) -> None:
    """Configure application logging once per process."""
    settings = settings or get_settings()
    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    logging.basicConfig(level=level, handlers=build_handlers(settings))
    logging.getLogger("paperledger").setLevel(level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
