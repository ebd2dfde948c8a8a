"""Structured logging module using structlog."""

from .structured_logger import configure_logging, redact_secrets

__all__ = ["configure_logging", "redact_secrets"]
