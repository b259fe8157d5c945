"""Structured logging for keyset construction and MAC operations.

Provides:
- JSON structured output for log aggregation
- Human-readable output for development
- Masking of secret-looking fields and raw byte values
- Operation timing

Usage:
    from keysetmac.logging import get_logger

    logger = get_logger(__name__)
    logger.info("Built primitive set", key_count=3, primary_key_id=42)

Key material must never be passed to a logger. Byte values are masked
regardless of the field name as a second line of defence.
"""

import json
import logging
import sys
import threading
import time
from datetime import datetime, timezone
from functools import wraps
from typing import Any, Callable

from keysetmac.config import Settings, get_settings

# Field names whose values are always masked
SENSITIVE_FIELDS = {
    "password", "secret", "token", "credential", "authorization",
    "key_material", "key_value", "master_key", "private_key", "secret_key",
}

SENSITIVE_SUFFIXES = ("_secret", "_material", "_password")


def _is_sensitive(name: str) -> bool:
    name = name.lower()
    return name in SENSITIVE_FIELDS or name.endswith(SENSITIVE_SUFFIXES)


def mask_sensitive(data: dict[str, Any]) -> dict[str, Any]:
    """Mask sensitive values in a dictionary."""
    masked = {}
    for key, value in data.items():
        if _is_sensitive(key) or isinstance(value, (bytes, bytearray, memoryview)):
            masked[key] = "[REDACTED]"
        elif isinstance(value, dict):
            masked[key] = mask_sensitive(value)
        else:
            masked[key] = value
    return masked


class StructuredFormatter(logging.Formatter):
    """JSON structured log formatter."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if hasattr(record, "extra_fields"):
            log_entry.update(mask_sensitive(record.extra_fields))

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        if record.levelno >= logging.WARNING:
            log_entry["source"] = {
                "file": record.pathname,
                "line": record.lineno,
                "function": record.funcName,
            }

        return json.dumps(log_entry, default=str)


class HumanFormatter(logging.Formatter):
    """Human-readable log formatter for development."""

    COLORS = {
        "DEBUG": "\033[36m",    # Cyan
        "INFO": "\033[32m",     # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",    # Red
        "CRITICAL": "\033[35m", # Magenta
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, "")

        extra_str = ""
        if hasattr(record, "extra_fields") and record.extra_fields:
            masked = mask_sensitive(record.extra_fields)
            extra_str = " | " + " ".join(f"{k}={v}" for k, v in masked.items())

        timestamp = datetime.now().strftime("%H:%M:%S.%f")[:-3]
        level = record.levelname[:4]

        message = (
            f"{color}{timestamp} {level}{self.RESET} "
            f"[{record.name}] {record.getMessage()}{extra_str}"
        )

        if record.exc_info:
            message += "\n" + self.formatException(record.exc_info)

        return message


class StructuredLogger(logging.Logger):
    """Logger that accepts structured fields as keyword arguments."""

    def _log_with_extra(
        self,
        level: int,
        msg: str,
        args: tuple,
        exc_info: Any = None,
        **kwargs,
    ):
        extra = {"extra_fields": kwargs} if kwargs else {}
        super()._log(level, msg, args, exc_info=exc_info, extra=extra)

    def debug(self, msg: str, *args, **kwargs):
        if self.isEnabledFor(logging.DEBUG):
            self._log_with_extra(logging.DEBUG, msg, args, **kwargs)

    def info(self, msg: str, *args, **kwargs):
        if self.isEnabledFor(logging.INFO):
            self._log_with_extra(logging.INFO, msg, args, **kwargs)

    def warning(self, msg: str, *args, **kwargs):
        if self.isEnabledFor(logging.WARNING):
            self._log_with_extra(logging.WARNING, msg, args, **kwargs)

    def error(self, msg: str, *args, exc_info: Any = None, **kwargs):
        if self.isEnabledFor(logging.ERROR):
            self._log_with_extra(logging.ERROR, msg, args, exc_info=exc_info, **kwargs)

    def critical(self, msg: str, *args, exc_info: Any = None, **kwargs):
        if self.isEnabledFor(logging.CRITICAL):
            self._log_with_extra(logging.CRITICAL, msg, args, exc_info=exc_info, **kwargs)


class StructuredLoggerAdapter(logging.LoggerAdapter):
    """Keyword-field logging on top of a logger created elsewhere."""

    RESERVED = ("exc_info", "stack_info", "stacklevel", "extra")

    def process(self, msg, kwargs):
        fields = {k: kwargs.pop(k) for k in list(kwargs) if k not in self.RESERVED}
        if fields:
            kwargs["extra"] = {**kwargs.get("extra", {}), "extra_fields": fields}
        return msg, kwargs


_logger_class_lock = threading.Lock()


def get_logger(name: str) -> StructuredLogger | StructuredLoggerAdapter:
    """Get a structured logger for a module.

    If a plain logger with this name already exists it is wrapped in a
    ``StructuredLoggerAdapter`` so keyword fields still work.
    """
    with _logger_class_lock:
        previous = logging.getLoggerClass()
        logging.setLoggerClass(StructuredLogger)
        try:
            logger = logging.getLogger(name)
        finally:
            logging.setLoggerClass(previous)
    if isinstance(logger, StructuredLogger):
        return logger
    return StructuredLoggerAdapter(logger, {})


def setup_logging(json_output: bool = False, level: str = "INFO") -> None:
    """Attach a single stdout handler to the ``keysetmac`` logger.

    Only the library's own logger tree is touched; the host application's
    root logger configuration is left alone.

    Args:
        json_output: Use JSON format
        level: Logging level (DEBUG, INFO, WARNING, ERROR)
    """
    package_logger = logging.getLogger("keysetmac")
    package_logger.setLevel(getattr(logging, level.upper()))

    for handler in package_logger.handlers[:]:
        package_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    if json_output:
        handler.setFormatter(StructuredFormatter())
    else:
        handler.setFormatter(HumanFormatter())

    package_logger.addHandler(handler)


def configure_logging(settings: Settings | None = None) -> None:
    """Configure library logging from settings."""
    settings = settings or get_settings()
    setup_logging(json_output=settings.log_json, level=settings.log_level)


def log_operation(operation: str):
    """Decorator to log function execution with timing."""
    def decorator(func: Callable):
        logger = get_logger(func.__module__)

        @wraps(func)
        def wrapper(*args, **kwargs):
            start = time.monotonic()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                duration_ms = (time.monotonic() - start) * 1000
                logger.warning(
                    f"{operation} failed",
                    operation=operation,
                    error=type(e).__name__,
                    detail=str(e),
                    duration_ms=round(duration_ms, 2),
                )
                raise
            duration_ms = (time.monotonic() - start) * 1000
            logger.info(
                f"{operation} completed",
                operation=operation,
                duration_ms=round(duration_ms, 2),
            )
            return result

        return wrapper

    return decorator
