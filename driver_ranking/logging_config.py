"""
Structured logging configuration.
Supports JSON format for log shipping and a colored console format for development.
"""

import logging
import sys
from typing import Optional

import structlog
from pythonjsonlogger import jsonlogger

from driver_ranking.config import LogFormat, settings
from driver_ranking.utils.context import get_request_context


def configure_logging(
    log_level: Optional[str] = None,
    log_format: Optional[str] = None,
) -> None:
    """
    Configure structured logging for the application.

    Args:
        log_level: Override log level from settings
        log_format: Override log format from settings ("json" or "console")
    """
    level = (log_level or settings.log_level).upper()
    fmt = LogFormat(log_format or settings.log_format)

    if fmt == LogFormat.JSON:
        configure_json_logging(level)
    else:
        configure_standard_logging(level)


def add_context_to_log(logger, method_name, event_dict):
    """
    Structlog processor adding the evaluation context (correlation_id,
    evaluation_id, evaluator_name) to every log entry.
    """
    event_dict.update(get_request_context())
    return event_dict


class ContextJsonFormatter(jsonlogger.JsonFormatter):
    """JSON formatter stamping service and context fields on each record."""

    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = record.created
        log_record["level"] = record.levelname
        log_record["logger"] = record.name
        log_record["service"] = settings.app_name
        log_record.update(get_request_context())


def configure_json_logging(level: str) -> None:
    """Configure JSON logging for production."""
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        ContextJsonFormatter(
            "%(timestamp)s %(level)s %(name)s %(message)s"
        )
    )

    logging.root.handlers = [handler]
    logging.root.setLevel(level)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            add_context_to_log,
            structlog.processors.JSONRenderer(),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def configure_standard_logging(level: str) -> None:
    """Configure standard logging for development."""
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[logging.StreamHandler(sys.stderr)],
        force=True,
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            add_context_to_log,
            structlog.dev.ConsoleRenderer(colors=True),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger instance.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Configured structlog logger
    """
    return structlog.get_logger(name)
