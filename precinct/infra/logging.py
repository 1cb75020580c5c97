from __future__ import annotations

import logging
import logging.config
import os
from typing import Any

from pythonjsonlogger.json import JsonFormatter

from precinct.infra.request_context import get_principal_id

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FORMAT = os.getenv("LOG_FORMAT", "text").lower()


class RequestContextFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "principal_id"):
            record.principal_id = get_principal_id()
        return True


def build_logging_config(level: str = LOG_LEVEL, fmt: str = LOG_FORMAT) -> dict[str, Any]:
    formatter = "json" if fmt == "json" else "standard"
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {
            "request_context": {"()": RequestContextFilter},
        },
        "formatters": {
            "standard": {
                "format": "%(asctime)s [%(levelname)s] %(name)s principal=%(principal_id)s: %(message)s",
            },
            "json": {
                "()": JsonFormatter,
                "format": "%(asctime)s %(levelname)s %(name)s %(principal_id)s %(message)s",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": formatter,
                "filters": ["request_context"],
            },
        },
        "loggers": {
            "precinct": {"handlers": ["console"], "level": level, "propagate": False},
            "sqlalchemy.engine": {"handlers": ["console"], "level": "WARNING", "propagate": False},
        },
        "root": {"handlers": ["console"], "level": "WARNING"},
    }


def configure_logging() -> None:
    logging.config.dictConfig(build_logging_config())
