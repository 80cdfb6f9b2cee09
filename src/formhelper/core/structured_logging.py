"""Structured logging for the form helper.

This module provides:
- Idempotent root logger setup (JSON in production, readable elsewhere)
- A correlation id bound to the active generation attempt
- A structured logger that redacts sensitive keys before emitting
"""

import logging
import sys
from contextvars import ContextVar
from typing import Any

from pythonjsonlogger.json import JsonFormatter

from formhelper.core.config import get_settings
from formhelper.core.security_config import REDACTED, is_sensitive_key


# Context variable for correlating every log line of one generation attempt
_correlation_id_var: ContextVar[str | None] = ContextVar("correlation_id", default=None)


def get_correlation_id() -> str:
    """Return the correlation id of the current context, or ``"-"``."""
    correlation_id = _correlation_id_var.get()
    if not correlation_id:
        return "-"
    return correlation_id


def set_correlation_id(correlation_id: str | None) -> None:
    """Set the correlation ID for the current context."""
    _correlation_id_var.set(correlation_id)


class StructuredLogger:
    """Structured logger that includes correlation IDs and sanitized data."""

    def __init__(self, logger_name: str):
        self.logger = logging.getLogger(logger_name)

    def _log_with_context(
        self,
        level: int,
        message: str,
        extra_data: dict[str, Any] | None = None,
        exc_info: bool = False,
    ) -> None:
        """Log with correlation ID and structured data."""
        correlation_id = get_correlation_id()

        # Sanitize extra data to prevent PII leakage
        sanitized_data = self._sanitize_data(extra_data or {})

        log_data = {
            "correlation_id": correlation_id,
            **sanitized_data,
        }

        self.logger.log(
            level,
            f"[{correlation_id}] {message}",
            extra={"structured_data": log_data},
            exc_info=exc_info,
        )

    def _sanitize_data(self, data: dict[str, Any]) -> dict[str, Any]:
        """Remove or mask sensitive data from log entries."""
        sanitized: dict[str, Any] = {}

        field_redaction = self._redact_field_like(data)
        if field_redaction is not None:
            return field_redaction

        for key, value in data.items():
            if is_sensitive_key(key):
                sanitized[key] = REDACTED
            else:
                sanitized[key] = self._sanitize_value(value)

        return sanitized

    def _sanitize_value(self, value: Any) -> Any:
        """Sanitize a single value which may be a dict, list, or primitive."""
        if isinstance(value, dict):
            return self._sanitize_data(value)
        if isinstance(value, list):
            return [self._sanitize_value(item) for item in value]
        return value

    def _redact_field_like(self, data: dict[str, Any]) -> dict[str, Any] | None:
        """Redact the value of a field-like dict whose field name is sensitive.

        A field-like dict has a ``field`` (or ``name``) key next to ``value``,
        e.g. ``{"field": "password", "value": "hunter2"}``.
        """
        if "value" not in data or not ("field" in data or "name" in data):
            return None

        field_name = data.get("field") or data.get("name")
        if isinstance(field_name, list):
            field_name = ".".join(str(part) for part in field_name)
        if not isinstance(field_name, str) or not is_sensitive_key(field_name):
            return None

        redacted: dict[str, Any] = {}
        for sub_k, sub_v in data.items():
            if sub_k == "value":
                redacted[sub_k] = REDACTED
            else:
                redacted[sub_k] = self._sanitize_value(sub_v)
        return redacted

    def debug(self, message: str, **kwargs: Any) -> None:
        """Log debug level message."""
        self._log_with_context(logging.DEBUG, message, kwargs)

    def info(self, message: str, **kwargs: Any) -> None:
        """Log info level message."""
        self._log_with_context(logging.INFO, message, kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        """Log warning level message."""
        self._log_with_context(logging.WARNING, message, kwargs)

    def error(self, message: str, **kwargs: Any) -> None:
        """Log error level message."""
        self._log_with_context(logging.ERROR, message, kwargs)

    def exception(self, message: str, **kwargs: Any) -> None:
        """Log exception with traceback."""
        self._log_with_context(logging.ERROR, message, kwargs, exc_info=True)


def setup_logging() -> None:
    """Configure application logging with proper JSON structure and idempotent setup."""
    settings = get_settings()

    log_level = logging.DEBUG if settings.ENVIRONMENT == "development" else logging.INFO
    root_logger = logging.getLogger()

    # Make setup idempotent - avoid duplicate handlers
    if root_logger.handlers:
        return

    formatter: logging.Formatter
    if settings.ENVIRONMENT == "production":
        formatter = JsonFormatter(
            "%(asctime)s %(levelname)s %(name)s %(message)s",
            rename_fields={"asctime": "timestamp", "levelname": "level"},
        )
    else:
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )

    # Logs go to stderr so the CLI can stream explanations on stdout
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)
    handler.setLevel(log_level)

    root_logger.setLevel(log_level)
    root_logger.addHandler(handler)

    # Model client libraries are chatty at debug level
    for noisy in ("httpx", "httpcore", "openai", "google_genai"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
