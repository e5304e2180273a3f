"""
Structured JSON logging for the key inventory service.

Every record carries the service name and environment; records emitted
inside a span also carry its trace and span ids so logs can be joined
with traces.
"""

import logging
import sys

from opentelemetry import trace
from pythonjsonlogger.json import JsonFormatter

SERVICE_NAME = "key-inventory-service"

# Loggers owned by this project
APP_LOGGERS = ("core", "inventory", "allocation", "KeyInventoryService")

LEVELS = {
    "development": "DEBUG",
    "test": "WARNING",
}


class ServiceContextFilter(logging.Filter):
    """Stamps records with the service name and deployment environment."""

    def __init__(self, environment: str = "production"):
        super().__init__()
        self.environment = environment

    def filter(self, record: logging.LogRecord) -> bool:
        record.service = SERVICE_NAME
        record.environment = self.environment
        return True


class TraceContextJsonFormatter(JsonFormatter):
    """JSON formatter that adds the active trace context."""

    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)

        span_context = trace.get_current_span().get_span_context()
        if span_context.is_valid:
            log_record["trace_id"] = format(span_context.trace_id, "032x")
            log_record["span_id"] = format(span_context.span_id, "016x")


def _logger(handlers, level):
    return {"handlers": list(handlers), "level": level, "propagate": False}


def get_logging_config(environment: str = "development", log_file: str = None) -> dict:
    """
    Build the Django ``LOGGING`` dict.

    Args:
        environment: Deployment environment, e.g. ``"development"``
        log_file: Optional path of a rotating JSON log file

    Returns:
        Logging configuration dictionary
    """
    app_level = LEVELS.get(environment, "INFO")

    handlers = {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "json",
            "filters": ["service_context"],
            "stream": sys.stdout,
        },
    }
    if log_file:
        handlers["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "formatter": "json",
            "filters": ["service_context"],
            "filename": log_file,
            "maxBytes": 10 * 1024 * 1024,
            "backupCount": 5,
        }
    names = list(handlers)

    loggers = {
        "django": _logger(names, "INFO"),
        "django.db.backends": _logger(names, "WARNING"),
        "celery": _logger(names, "INFO"),
    }
    loggers.update({name: _logger(names, app_level) for name in APP_LOGGERS})

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {
            "service_context": {
                "()": ServiceContextFilter,
                "environment": environment,
            },
        },
        "formatters": {
            "json": {
                "()": TraceContextJsonFormatter,
                "format": "%(asctime)s %(name)s %(levelname)s %(message)s "
                "%(service)s %(environment)s",
            },
        },
        "handlers": handlers,
        "root": {"handlers": names, "level": app_level},
        "loggers": loggers,
    }
