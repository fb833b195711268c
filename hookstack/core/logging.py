"""Structured JSON logging for hookstack."""

import json
import logging
from datetime import UTC, datetime
from typing import Any

# Derived from a blank LogRecord so attributes added by newer Pythons are skipped too
_STANDARD_LOGRECORD_KEYS: frozenset[str] = frozenset(
    logging.LogRecord(
        name="", level=0, pathname="", lineno=0, msg="", args=(), exc_info=None
    ).__dict__.keys()
)

HOOKS_LOGGER_NAME = "hookstack.hooks"


class JSONFormatter(logging.Formatter):
    """JSON formatter with UTC ISO8601 timestamps."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
        }

        for field in ("event_name", "interceptor_id", "interceptors", "bucket"):
            if hasattr(record, field):
                log_data[field] = getattr(record, field)

        for key, value in vars(record).items():
            if key not in _STANDARD_LOGRECORD_KEYS and key not in log_data:
                log_data[key] = value

        if record.exc_info:
            log_data["exc_info"] = self.formatException(record.exc_info)

        try:
            return json.dumps(log_data, default=str)
        except (TypeError, ValueError):
            return str(log_data)


def _setup_json_handler(logger: logging.Logger, level: int) -> None:
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(JSONFormatter())
        logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False


def configure_hooks_logger(level: int = logging.INFO) -> logging.Logger:
    """Configure and return the default Hooks logger with JSON formatting.

    Args:
        level: The logging level to set. Defaults to logging.INFO.
    """
    return get_logger(HOOKS_LOGGER_NAME, level)


def get_logger(name: str = "hookstack", level: int = logging.INFO) -> logging.Logger:
    """Get a logger with JSON formatting.

    Args:
        name: The logger name. Defaults to "hookstack".
        level: The logging level to set. Defaults to logging.INFO.
    """
    logger = logging.getLogger(name)
    _setup_json_handler(logger, level)
    return logger
