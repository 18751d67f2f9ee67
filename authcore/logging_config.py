"""Logging setup for the service."""

import json
import logging
import sys
from datetime import datetime, timezone

from authcore.config import Settings

PLAIN_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


class JSONFormatter(logging.Formatter):
    """Formats log records as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger_name": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info and not record.exc_text:
            record.exc_text = self.formatException(record.exc_info)
        if record.exc_text:
            entry["exception"] = record.exc_text
        return json.dumps(entry, ensure_ascii=False)


def configure_logging(settings: Settings) -> None:
    """
    Configure the ``authcore`` logger tree.

    Production emits JSON lines; other environments use a plain format.

    Args:
        settings: Application settings (LOG_LEVEL, ENV)
    """
    logger = logging.getLogger("authcore")
    logger.setLevel(settings.LOG_LEVEL.upper())

    # Prevent duplicate handlers when the app is created more than once
    if logger.handlers:
        return

    handler = logging.StreamHandler(sys.stdout)
    if settings.is_production:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(PLAIN_FORMAT))
    logger.addHandler(handler)
