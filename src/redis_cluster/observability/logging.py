"""Structured JSON logging with node session context."""
import logging
import sys
from typing import Any

from pythonjsonlogger import jsonlogger

from redis_cluster.config import get_settings


_CONTEXT_FIELDS = ("node_type", "operation", "channel", "item_index")


class SessionContextFilter(logging.Filter):
    """Add session context to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        """Add default session context fields if not present."""
        for field in _CONTEXT_FIELDS:
            if not hasattr(record, field):
                setattr(record, field, None)
        return True


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with standardized field names."""

    def add_fields(
        self,
        log_record: dict[str, Any],
        record: logging.LogRecord,
        message_dict: dict[str, Any],
    ) -> None:
        """Add custom fields to the log record."""
        super().add_fields(log_record, record, message_dict)

        if not log_record.get("timestamp"):
            log_record["timestamp"] = self.formatTime(record, self.datefmt)

        log_record["level"] = record.levelname
        log_record["logger"] = record.name

        # item_index 0 is meaningful, so only drop None
        for field in _CONTEXT_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                log_record[field] = value
            else:
                log_record.pop(field, None)


class SessionLoggerAdapter(logging.LoggerAdapter):
    """LoggerAdapter that merges per-call extra with the adapter extra."""

    def process(self, msg: Any, kwargs: Any) -> tuple[Any, Any]:
        kwargs["extra"] = {**self.extra, **kwargs.get("extra", {})}
        return msg, kwargs


def setup_logging() -> None:
    """Configure structured JSON logging for the application."""
    settings = get_settings()

    handler = logging.StreamHandler(sys.stdout)

    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
    )
    handler.setFormatter(formatter)
    handler.addFilter(SessionContextFilter())

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(settings.log_level)

    # Reduce noise from the client library
    logging.getLogger("redis").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.LoggerAdapter:
    """
    Get a logger with session context support.

    Args:
        name: Logger name (typically __name__)

    Returns:
        LoggerAdapter that can accept session context in extra dict
    """
    logger = logging.getLogger(name)
    return SessionLoggerAdapter(logger, extra={})


def with_session_context(
    node_type: str | None = None,
    operation: str | None = None,
    channel: str | None = None,
    item_index: int | None = None,
    **kwargs: Any,
) -> dict[str, Any]:
    """
    Create an extra dict with session context for logging.

    Args:
        node_type: Node type identifier
        operation: Operation being executed
        channel: Pub/sub channel or pattern
        item_index: Index of the input item being processed
        **kwargs: Additional context fields

    Returns:
        Dict to pass as extra parameter to logger methods
    """
    extra = kwargs.copy()
    if node_type:
        extra["node_type"] = node_type
    if operation:
        extra["operation"] = operation
    if channel:
        extra["channel"] = channel
    if item_index is not None:
        extra["item_index"] = item_index
    return extra
