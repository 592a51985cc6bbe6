"""Logging configuration with run context support."""

import json
import logging
import logging.config
from typing import Any

from .filters import RunContextFilter

_STANDARD_ATTRS = frozenset(
    {
        "name",
        "msg",
        "args",
        "levelname",
        "levelno",
        "pathname",
        "filename",
        "module",
        "lineno",
        "funcName",
        "created",
        "msecs",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "taskName",
        "getMessage",
        "exc_info",
        "exc_text",
        "stack_info",
        "run_id",
        "node_id",
        "run_context_added",
    }
)


class RunContextFormatter(logging.Formatter):
    """Formatter that renders records as JSON including run context."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record with run context."""
        log_entry: dict[str, Any] = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if hasattr(record, "run_id"):
            log_entry["run_id"] = record.run_id
        if hasattr(record, "node_id"):
            log_entry["node_id"] = record.node_id

        for key, value in record.__dict__.items():
            if key not in _STANDARD_ATTRS and not key.startswith("_"):
                log_entry[key] = value

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


def setup_logging(level: str = "INFO", enable_structured_logging: bool = False) -> None:
    """Set up logging for the engine and its CLI.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        enable_structured_logging: Whether to use structured JSON logging
    """
    level = level.upper()
    config: dict[str, Any] = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {"format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s"},
            "structured": {
                "()": RunContextFormatter,
            },
        },
        "filters": {
            "run_context": {
                "()": RunContextFilter,
                # JSON output already carries the ids as fields
                "prefix_messages": not enable_structured_logging,
            }
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": level,
                "formatter": "structured" if enable_structured_logging else "standard",
                "filters": ["run_context"],
                "stream": "ext://sys.stderr",
            }
        },
        "loggers": {
            "agentarea_workflows": {"level": level, "handlers": ["console"], "propagate": False},
            # LiteLLM is chatty at INFO
            "LiteLLM": {"level": "WARNING"},
            "httpx": {"level": "WARNING"},
        },
        "root": {"level": level, "handlers": ["console"]},
    }

    logging.config.dictConfig(config)
