"""Logging with structured JSON output and context injection.

Log records carry the current operation context (action, cluster,
host_id, vm_pattern) and the OpenTelemetry trace context (trace_id,
span_id). Records go to stderr so that reports printed on stdout stay
machine readable.
"""

import logging
import sys
import time
from contextlib import contextmanager
from functools import wraps
from typing import Optional, Callable, Any

from pythonjsonlogger import jsonlogger

from oneinv.config import settings
from oneinv.utils.context import get_context, get_trace_context


class ContextInjectionFilter(logging.Filter):
    """Logging filter that injects context variables into log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        """Add context to log record.

        Args:
            record: Log record to enhance

        Returns:
            True (always include record)
        """
        for key, value in get_context().items():
            setattr(record, key, value)

        for key, value in get_trace_context().items():
            setattr(record, key, value)

        return True


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with additional fields."""

    CONTEXT_FIELDS = (
        "action",
        "cluster",
        "host_id",
        "vm_pattern",
        "trace_id",
        "span_id",
    )

    def add_fields(
        self, log_record: dict, record: logging.LogRecord, message_dict: dict
    ) -> None:
        """Add custom fields to log record.

        Args:
            log_record: Dictionary to be logged as JSON
            record: Original log record
            message_dict: Message dictionary from logger call
        """
        super().add_fields(log_record, record, message_dict)

        if "timestamp" not in log_record:
            log_record["timestamp"] = record.created

        log_record["level"] = record.levelname
        log_record["logger"] = record.name

        for field in self.CONTEXT_FIELDS:
            if hasattr(record, field):
                value = getattr(record, field)
                if value is not None:
                    log_record[field] = value


class ColoredConsoleFormatter(logging.Formatter):
    """Colored console formatter for non-JSON output."""

    COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        """Format log record with colors."""
        if record.levelname in self.COLORS:
            record.levelname = (
                f"{self.COLORS[record.levelname]}{record.levelname}{self.RESET}"
            )
        return super().format(record)


def setup_logging(
    level: Optional[str] = None, log_format: Optional[str] = None
) -> None:
    """Configure application logging.

    Args:
        level: Log level name, defaults to settings.LOG_LEVEL
        log_format: "json" or "console", defaults to settings.LOG_FORMAT
    """
    level = level or settings.LOG_LEVEL
    log_format = log_format or settings.LOG_FORMAT

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(logging.DEBUG)
    console_handler.addFilter(ContextInjectionFilter())

    if log_format == "json":
        formatter = CustomJsonFormatter(
            "%(timestamp)s %(level)s %(logger)s %(message)s",
            timestamp=True,
        )
    else:
        formatter = ColoredConsoleFormatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    console_handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))
    root_logger.handlers.clear()
    root_logger.addHandler(console_handler)

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("opentelemetry").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance with the specified name.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured logger instance
    """
    return logging.getLogger(name)


@contextmanager
def log_timer(operation_name: str, logger: Optional[logging.Logger] = None):
    """Context manager to log operation duration.

    Args:
        operation_name: Name of the operation being timed
        logger: Optional logger to use (creates one if not provided)

    Example:
        with log_timer("vmpool_fetch"):
            await client.fetch_pool(vm_pool)
        # Logs: {"message": "Operation completed: vmpool_fetch", "duration_ms": 1234}
    """
    if logger is None:
        logger = logging.getLogger(__name__)

    start_time = time.time()

    try:
        yield
    finally:
        duration_ms = (time.time() - start_time) * 1000
        logger.info(
            f"Operation completed: {operation_name}",
            extra={"operation": operation_name, "duration_ms": round(duration_ms, 2)},
        )


def log_duration(operation_name: Optional[str] = None):
    """Decorator to log function execution duration.

    Args:
        operation_name: Optional custom operation name. Uses function name if not provided.
    """

    def decorator(func: Callable) -> Callable:
        name = operation_name or func.__name__
        func_logger = logging.getLogger(func.__module__)

        @wraps(func)
        def wrapper(*args, **kwargs) -> Any:
            start_time = time.time()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                duration_ms = (time.time() - start_time) * 1000
                func_logger.error(
                    f"Function failed: {name}",
                    extra={
                        "function": name,
                        "duration_ms": round(duration_ms, 2),
                        "error": str(e),
                        "error_type": type(e).__name__,
                    },
                )
                raise
            duration_ms = (time.time() - start_time) * 1000
            func_logger.debug(
                f"Function completed: {name}",
                extra={"function": name, "duration_ms": round(duration_ms, 2)},
            )
            return result

        return wrapper

    return decorator
