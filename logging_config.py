"""
logging_config.py - Centralized logging configuration.

Every query-engine module logs through `get_logger(__name__)` with messages in
the `event_name | key=value | key=value` shape. Output goes to stderr so stdout
stays reserved for serialized tool results.

Two line formats:
    plain   12:00:01 [handlers    ] INFO    tool_complete | tool=list_grantees | listed=4
    json    {"timestamp": "12:00:01", "level": "INFO", "module": "handlers",
             "event": "tool_complete", "fields": {"tool": "list_grantees", "listed": "4"}}
"""

from __future__ import annotations

import functools
import json
import logging
import sys
from typing import Any, Callable, TextIO, TypeVar

T = TypeVar("T")

PLAIN_FORMAT = "%(asctime)s [%(name)-12s] %(levelname)-7s %(message)s"
TIME_FORMAT = "%H:%M:%S"


def split_event(message: str) -> tuple[str, dict[str, str]]:
    """Split 'event | a=1 | b=2' into ('event', {'a': '1', 'b': '2'}).

    Segments without '=' are kept under 'detail'.
    """
    parts = [part.strip() for part in message.split(" | ")]
    event = parts[0] if parts else ""
    fields: dict[str, str] = {}
    for part in parts[1:]:
        key, sep, value = part.partition("=")
        if sep:
            fields[key.strip()] = value.strip()
        elif part:
            fields["detail"] = f"{fields['detail']} {part}" if "detail" in fields else part
    return event, fields


class JsonLineFormatter(logging.Formatter):
    """One JSON object per record, with the key=value pairs broken out."""

    def format(self, record: logging.LogRecord) -> str:
        event, fields = split_event(record.getMessage())
        payload: dict[str, Any] = {
            "timestamp": self.formatTime(record, TIME_FORMAT),
            "level": record.levelname,
            "module": record.name,
            "event": event,
        }
        if fields:
            payload["fields"] = fields
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def setup_logging(
    level: int = logging.INFO,
    json_format: bool = False,
    stream: TextIO | None = None,
) -> None:
    """Configure the root logger.

    Args:
        level: Logging level.
        json_format: Emit JSON lines instead of plain text.
        stream: Destination; stderr when omitted.
    """
    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    handler = logging.StreamHandler(stream or sys.stderr)
    if json_format:
        handler.setFormatter(JsonLineFormatter())
    else:
        handler.setFormatter(logging.Formatter(PLAIN_FORMAT, datefmt=TIME_FORMAT))
    root.addHandler(handler)


def level_from_name(name: str | None, default: int = logging.INFO) -> int:
    """Translate a level name such as 'debug' into a logging constant."""
    if not name:
        return default
    value = logging.getLevelName(str(name).strip().upper())
    return value if isinstance(value, int) else default


def get_logger(name: str) -> logging.Logger:
    """Get a named logger."""
    return logging.getLogger(name)


def graceful(default_factory: Callable[[], T], log_level: int = logging.ERROR):
    """Log any exception raised by the wrapped loader and return a default.

    Used for optional inputs such as the grantee metadata file: a corrupt
    table degrades to an empty one and queries keep working.
    """

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> T:
            try:
                return func(*args, **kwargs)
            except (KeyboardInterrupt, SystemExit):
                raise
            except Exception as exc:
                logging.getLogger(func.__module__).log(
                    log_level,
                    "graceful_fallback | function=%s | error_type=%s | error=%s",
                    func.__name__,
                    type(exc).__name__,
                    exc,
                    exc_info=True,
                )
                return default_factory()

        return wrapper

    return decorator
