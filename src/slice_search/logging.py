"""
Structured JSON logging for production observability.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime
from typing import Any

__all__ = [
    "JSONFormatter",
    "get_logger",
    "setup_logging",
]

PACKAGE_LOGGER = "slice_search"

VALID_LOG_LEVELS: frozenset[str] = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})

LOG_FORMATS: frozenset[str] = frozenset({"json", "text"})

TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

# Attributes every LogRecord carries; anything else came in through `extra=`
_STANDARD_ATTRS: frozenset[str] = frozenset(
    {
        "name",
        "msg",
        "args",
        "created",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "exc_info",
        "exc_text",
        "thread",
        "threadName",
        "taskName",
        "message",
    }
)


class JSONFormatter(logging.Formatter):
    """
    One JSON object per line.

    Every line carries the service name so logs from the engine modules
    (`slice_search.*`) and the HTTP layer can be filtered together. Fields
    passed through `extra=` are nested under `"extra"`.
    """

    def __init__(self, service_name: str | None = None) -> None:
        super().__init__()
        self.service_name = service_name

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=UTC)
        log_data: dict[str, Any] = {
            "timestamp": created.isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if self.service_name is not None:
            log_data["service"] = self.service_name

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        extra = {k: v for k, v in record.__dict__.items() if k not in _STANDARD_ATTRS}
        if extra:
            log_data["extra"] = extra

        return json.dumps(log_data, default=str)


def setup_logging(level: str, service_name: str, fmt: str = "json") -> logging.Logger:
    """
    Send service and engine logs to stdout.

    Both the `service_name` logger and the `slice_search` package logger get
    the same handler and stop propagating to the root logger.

    Args:
        level: DEBUG, INFO, WARNING, ERROR or CRITICAL (case-insensitive)
        service_name: Logger name used by the HTTP layer
        fmt: "json" for one JSON object per line, "text" for plain lines

    Returns:
        The service logger

    Raises:
        ValueError: If level or fmt is not recognized
    """
    level_upper = level.upper()
    if level_upper not in VALID_LOG_LEVELS:
        raise ValueError(f"Invalid log level: {level}. Must be one of {sorted(VALID_LOG_LEVELS)}")

    if fmt not in LOG_FORMATS:
        raise ValueError(f"Invalid log format: {fmt}. Must be one of {sorted(LOG_FORMATS)}")

    numeric_level = getattr(logging, level_upper)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(numeric_level)
    if fmt == "json":
        handler.setFormatter(JSONFormatter(service_name))
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT))

    # Core modules log under the package namespace via logging.getLogger(__name__)
    for name in dict.fromkeys((service_name, PACKAGE_LOGGER)):
        configured = logging.getLogger(name)
        configured.setLevel(numeric_level)
        configured.handlers.clear()
        configured.addHandler(handler)
        configured.propagate = False

    return logging.getLogger(service_name)


def get_logger(component: str | None = None) -> logging.Logger:
    """
    Get the service logger, or a component logger beneath it.

    Args:
        component: Optional component name, e.g. "scanner"

    Returns:
        Logger named `<service>` or `<service>.<component>`
    """
    # Import lazily to avoid import-time settings evaluation.
    from slice_search.config import get_settings  # noqa: PLC0415

    service_name = get_settings().service.name
    if component is None:
        return logging.getLogger(service_name)
    return logging.getLogger(f"{service_name}.{component}")
