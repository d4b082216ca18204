"""
dictConfig payload for the standard library handlers.

Console output is always on; LOG_FILE adds a rotating JSON file.
"""

import logging
from pathlib import Path
from typing import Any, Dict

from pythonjsonlogger import jsonlogger

from komuniteti.config.settings import Settings

LOG_FILE_MAX_BYTES = 10 * 1024 * 1024
LOG_FILE_BACKUPS = 10

CORRELATION_FIELDS = ("request_id", "operation_id")


class MaintenanceJsonFormatter(jsonlogger.JsonFormatter):
    """JSON lines with level, logger, environment and correlation ids."""

    def __init__(self, *args, environment: str = "development", **kwargs):
        super().__init__(*args, **kwargs)
        self.environment = environment

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]):
        super().add_fields(log_record, record, message_dict)
        log_record["level"] = record.levelname
        log_record["logger"] = record.name
        log_record["environment"] = self.environment
        for name in CORRELATION_FIELDS:
            value = getattr(record, name, None)
            if value:
                log_record[name] = value


def build_logging_config(settings: Settings) -> Dict[str, Any]:
    handlers: Dict[str, Dict[str, Any]] = {
        "console": {
            "class": "logging.StreamHandler",
            "level": "DEBUG" if settings.DEBUG else settings.LOG_LEVEL,
            "formatter": "json" if settings.LOG_FORMAT == "json" else "standard",
        },
    }
    if settings.LOG_FILE:
        Path(settings.LOG_FILE).parent.mkdir(parents=True, exist_ok=True)
        handlers["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "level": settings.LOG_LEVEL,
            "filename": settings.LOG_FILE,
            "maxBytes": LOG_FILE_MAX_BYTES,
            "backupCount": LOG_FILE_BACKUPS,
            "formatter": "json",
            "encoding": "utf8",
        }

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {"format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s"},
            "json": {
                "()": MaintenanceJsonFormatter,
                "format": "%(asctime)s %(levelname)s %(name)s %(message)s",
                "environment": settings.ENVIRONMENT,
            },
        },
        "handlers": handlers,
        "loggers": {
            "": {"handlers": list(handlers), "level": settings.LOG_LEVEL},
            "sqlalchemy.engine": {"level": "INFO" if settings.LOG_SQL_QUERIES else "WARNING"},
        },
    }
