"""
Logging configuration for structured JSON logging.

Production runs emit one JSON object per record so conversation turns can be
followed by session id; development runs use a readable single-line format.
"""

import logging
import os
import sys
from typing import Any, Optional

from pythonjsonlogger import jsonlogger

from constants import LOG_FORMAT_JSON, LOG_LEVEL_DEVELOPMENT, LOG_LEVEL_PRODUCTION


class ContextualJsonFormatter(jsonlogger.JsonFormatter):
    """
    JSON formatter that always carries timestamp, level and logger name.

    Fields passed through ``extra`` (session_id, attempt, strategy...) are
    merged by the base formatter.
    """

    def __init__(self, *args, rename_fields: Optional[dict] = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.rename_fields = rename_fields or {}

    def add_fields(self, log_record: dict, record: logging.LogRecord, message_dict: dict) -> None:
        super().add_fields(log_record, record, message_dict)

        log_record.setdefault("timestamp", self.formatTime(record, self.datefmt))
        if not log_record.get("level"):
            log_record["level"] = record.levelname
        if not log_record.get("logger"):
            log_record["logger"] = record.name

        for old_name, new_name in self.rename_fields.items():
            if old_name in log_record:
                log_record[new_name] = log_record.pop(old_name)


def _env_wants_json() -> bool:
    return os.getenv("LOG_FORMAT_JSON", str(LOG_FORMAT_JSON)).lower() in ("true", "1", "yes")


def _env_log_level() -> str:
    env = os.getenv("ENV", "production").lower()
    return LOG_LEVEL_DEVELOPMENT if env in ("dev", "development") else LOG_LEVEL_PRODUCTION


def setup_logging(use_json: Optional[bool] = None, log_level: Optional[str] = None) -> None:
    """
    Configure root logging once for the process.

    Args:
        use_json: Force JSON (True) or readable (False) output. None reads
                  LOG_FORMAT_JSON from the environment.
        log_level: Level name such as "INFO". None picks DEBUG when ENV is
                   development and INFO otherwise.
    """
    if use_json is None:
        use_json = _env_wants_json()
    if log_level is None:
        log_level = _env_log_level()

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    if use_json:
        formatter = ContextualJsonFormatter(
            "%(timestamp)s %(level)s %(logger)s %(message)s",
            rename_fields={"timestamp": "@timestamp", "level": "severity"},
        )
    else:
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    handler.setFormatter(formatter)
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, log_level.upper()))


class StructuredLoggerAdapter(logging.LoggerAdapter):
    """
    Logger adapter that stamps every record with session context.

    Usage:
        log = StructuredLoggerAdapter(logging.getLogger(__name__), {"session_id": sid})
        log.warning_event("parse_retry", "Reply was not valid JSON", attempt=2)
    """

    def process(self, msg: str, kwargs: dict) -> tuple[str, dict]:
        extra = dict(kwargs.get("extra") or {})
        extra.update(self.extra)
        kwargs["extra"] = extra
        return msg, kwargs

    def log_event(self, level: int, event_type: str, message: str, **context: Any) -> None:
        """
        Log a typed event with arbitrary context fields.

        Args:
            level: Logging level (e.g., logging.INFO)
            event_type: Machine-readable event name (e.g., "chat_transport_failed")
            message: Human-readable message
            **context: Additional key-value pairs merged into the record
        """
        context["event_type"] = event_type
        self.log(level, message, extra=context)

    def info_event(self, event_type: str, message: str, **context: Any) -> None:
        self.log_event(logging.INFO, event_type, message, **context)

    def error_event(self, event_type: str, message: str, **context: Any) -> None:
        self.log_event(logging.ERROR, event_type, message, **context)

    def warning_event(self, event_type: str, message: str, **context: Any) -> None:
        self.log_event(logging.WARNING, event_type, message, **context)

    def debug_event(self, event_type: str, message: str, **context: Any) -> None:
        self.log_event(logging.DEBUG, event_type, message, **context)
