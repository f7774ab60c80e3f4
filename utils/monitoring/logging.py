"""Structured logging with correlation IDs."""

import json
import logging
import sys
import uuid
from typing import Optional
from datetime import datetime, timezone
from pathlib import Path
from contextvars import ContextVar

from config import Settings, settings as default_settings

# Context variable for correlation ID (task-local)
correlation_id_var: ContextVar[Optional[str]] = ContextVar('correlation_id', default=None)


def get_correlation_id() -> str:
    """Get or generate correlation ID for request tracking."""
    correlation_id = correlation_id_var.get()
    if correlation_id is None:
        correlation_id = str(uuid.uuid4())
        correlation_id_var.set(correlation_id)
    return correlation_id


def set_correlation_id(correlation_id: str):
    """Set correlation ID for current context."""
    correlation_id_var.set(correlation_id)


def clear_correlation_id():
    """Clear correlation ID from context."""
    correlation_id_var.set(None)


class StructuredFormatter(logging.Formatter):
    """Formatter emitting one JSON object per record, or a readable block in development."""

    def __init__(self, pretty: bool = False):
        super().__init__()
        self.pretty = pretty

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.now(timezone.utc).isoformat()
        correlation_id = get_correlation_id()

        if self.pretty:
            parts = [f"{timestamp} [{record.levelname}] {record.name} [{correlation_id[:8]}]"]
            parts.append(f"  Message: {record.getMessage()}")
            if hasattr(record, "context"):
                parts.append(f"  Context: {record.context}")
            if record.exc_info:
                parts.append(f"  Error: {self.formatException(record.exc_info)}")
            return "\n".join(parts)

        log_data = {
            "timestamp": timestamp,
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "correlation_id": correlation_id,
        }
        if hasattr(record, "context"):
            log_data["context"] = record.context
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_data, default=str)


def setup_logging(settings: Optional[Settings] = None):
    """Setup root logging from settings."""
    settings = settings or default_settings

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(getattr(logging, settings.log_level))

    if settings.is_development:
        console_handler.setFormatter(StructuredFormatter(pretty=True))
    else:
        console_handler.setFormatter(StructuredFormatter())

    root_logger.addHandler(console_handler)

    if settings.log_to_file and not settings.testing:
        try:
            log_dir = Path("logs")
            log_dir.mkdir(exist_ok=True)
            file_handler = logging.FileHandler(
                log_dir / "app.log",
                mode='a',
                encoding='utf-8',
                delay=True
            )
            file_handler.setFormatter(StructuredFormatter())
            file_handler.setLevel(logging.INFO)
            root_logger.addHandler(file_handler)
        except OSError as e:
            print(f"Warning: Could not setup file logging: {e}", file=sys.stderr)

    root_logger.setLevel(getattr(logging, settings.log_level))

    # Reduce noise from third-party libraries
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


class AppLogger:
    """Logger wrapper that attaches keyword context to each record."""

    def __init__(self, name: str):
        self.logger = logging.getLogger(name)

    def info(self, message: str, **context):
        extra = {"context": context} if context else {}
        self.logger.info(message, extra=extra)

    def error(self, message: str, error: Optional[BaseException] = None, **context):
        extra = {"context": context} if context else {}
        self.logger.error(message, exc_info=error, extra=extra)

    def warning(self, message: str, **context):
        extra = {"context": context} if context else {}
        self.logger.warning(message, extra=extra)

    def debug(self, message: str, **context):
        extra = {"context": context} if context else {}
        self.logger.debug(message, extra=extra)

    def request_end(
        self,
        method: str,
        path: str,
        status_code: int,
        latency_ms: int,
        **context
    ):
        """Log completion of an HTTP request."""
        level = "info" if status_code < 500 else "error"
        getattr(self, level)(
            f"{method} {path} -> {status_code}",
            method=method,
            path=path,
            status_code=status_code,
            latency_ms=latency_ms,
            **context
        )


def get_logger(name: str) -> AppLogger:
    """Get logger instance for a module."""
    if not logging.getLogger().handlers:
        setup_logging()
    return AppLogger(name)
