"""Structured logging configuration using structlog.

Every FleetOS service logs JSON lines carrying the service name, the
deployment environment and, when a span is active, the OpenTelemetry trace
and span IDs. Credentials never reach the log output.
"""

import logging
import sys
from typing import Iterable, Optional

import structlog
from opentelemetry import trace
from structlog.types import EventDict, Processor

APP_NAME = "fleetos-notifications"

REDACTED = "***"
SENSITIVE_KEYS = frozenset({"password", "token", "access_token", "refresh_token", "authorization", "jwt_secret", "key"})

# Chatty transport loggers of the Supabase client stack
NOISY_LOGGERS = ("httpx", "httpcore", "hpack", "urllib3")


class AppContext:
    """Processor stamping the application and environment on every entry."""

    def __init__(self, environment: str):
        self.environment = environment

    def __call__(self, logger: logging.Logger, method_name: str, event_dict: EventDict) -> EventDict:
        event_dict.setdefault("app", APP_NAME)
        event_dict.setdefault("environment", self.environment)
        return event_dict


def add_trace_context(logger: logging.Logger, method_name: str, event_dict: EventDict) -> EventDict:
    """Add the IDs of the current OpenTelemetry span, if one is recording."""
    span = trace.get_current_span()
    if span.is_recording():
        span_context = span.get_span_context()
        event_dict["trace_id"] = format(span_context.trace_id, "032x")
        event_dict["span_id"] = format(span_context.span_id, "016x")
    return event_dict


def redact_secrets(logger: logging.Logger, method_name: str, event_dict: EventDict) -> EventDict:
    for key in event_dict.keys() & SENSITIVE_KEYS:
        if event_dict[key]:
            event_dict[key] = REDACTED
    return event_dict


def configure_logging(
    log_level: str = "INFO",
    json_logs: bool = True,
    service_name: Optional[str] = None,
    environment: str = "development",
    quiet_loggers: Iterable[str] = NOISY_LOGGERS,
) -> None:
    """Configure structured logging for the application.

    Args:
        log_level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_logs: Whether to output logs in JSON format
        service_name: Name of the service for log tagging
        environment: Deployment environment added to every entry
        quiet_loggers: Standard loggers capped at WARNING
    """
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        AppContext(environment),
        add_trace_context,
        redact_secrets,
    ]

    if json_logs:
        # Greek plates and names stay readable
        processors.append(structlog.processors.JSONRenderer(ensure_ascii=False))
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper()),
        force=True,
    )
    for name in quiet_loggers:
        logging.getLogger(name).setLevel(logging.WARNING)

    if service_name:
        structlog.contextvars.bind_contextvars(service=service_name)
