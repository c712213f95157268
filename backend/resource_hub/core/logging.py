"""Logging setup: JSON lines in production, readable text elsewhere."""
import logging
import sys

from pythonjsonlogger import jsonlogger

from resource_hub.core.config import settings

LOG_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"

# Libraries that log every request or statement at INFO
_NOISY_LOGGERS = ("sqlalchemy.engine", "httpx", "httpcore")


def setup_logging() -> None:
    level = logging.getLevelName(settings.LOG_LEVEL.upper())
    if not isinstance(level, int):
        level = logging.INFO

    if settings.APP_ENV == "production":
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(jsonlogger.JsonFormatter(
            LOG_FORMAT,
            rename_fields={"asctime": "timestamp", "levelname": "level"},
            static_fields={"service": "resource-hub-import"},
        ))
        logging.root.handlers = [handler]
        logging.root.setLevel(level)
    else:
        logging.basicConfig(level=level, format=LOG_FORMAT)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
