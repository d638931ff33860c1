"""
Logging for shopgate.

Library modules log through get_logger() and pass structured fields as
keyword arguments. Identifiers bound with LogContext (the request id and
shop domain of the call being served) are attached to every line emitted
inside the block; the binding is per asyncio task. Handlers are installed
only by configure_logging(), which the CLI calls.

Usage:
    logger = get_logger(__name__)

    with LogContext(request_id="r123", shop_domain="demo.myshopify.com"):
        logger.warning("Rate limited", endpoint="/shop.json", attempt=2)
"""

import json
import logging
import logging.handlers
import os
import sys
import threading
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional

LOG_LEVEL = os.environ.get("SHOPGATE_LOG_LEVEL", "INFO").upper()
LOG_FORMAT = os.environ.get("SHOPGATE_LOG_FORMAT", "json")  # "json" or "text"
LOG_FILE = os.environ.get("SHOPGATE_LOG_FILE", "")
LOG_MAX_BYTES = int(os.environ.get("SHOPGATE_LOG_MAX_BYTES", 10 * 1024 * 1024))
LOG_BACKUP_COUNT = int(os.environ.get("SHOPGATE_LOG_BACKUP_COUNT", 5))

# Identifiers rendered ahead of the structured fields, in this order
CONTEXT_FIELDS = ("request_id", "shop_domain")

_bound_fields: ContextVar[Dict[str, Any]] = ContextVar("shopgate_log_fields", default={})


class LogContext:
    """Bind identifiers to every log line emitted inside a ``with`` block."""

    def __init__(self, **fields: Any):
        self._fields = fields
        self._token = None

    def __enter__(self) -> "LogContext":
        self._token = _bound_fields.set({**_bound_fields.get(), **self._fields})
        return self

    def __exit__(self, *exc_info) -> None:
        _bound_fields.reset(self._token)


class _ShopgateFormatter(logging.Formatter):
    """Shared pieces of the JSON and text renderings."""

    @staticmethod
    def created_at(record: logging.LogRecord) -> datetime:
        return datetime.fromtimestamp(record.created, tz=timezone.utc)

    @staticmethod
    def context(record: logging.LogRecord) -> Dict[str, Any]:
        # Bound context wins; `extra=` attributes cover stdlib loggers
        bound = _bound_fields.get()
        found = {}
        for key in CONTEXT_FIELDS:
            value = bound.get(key) or getattr(record, key, None)
            if value:
                found[key] = value
        return found

    @staticmethod
    def fields(record: logging.LogRecord) -> Dict[str, Any]:
        return getattr(record, "structured_fields", None) or {}


class JSONFormatter(_ShopgateFormatter):
    """One JSON object per line: ts, level, logger, msg, context, fields."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "ts": self.created_at(record).isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        entry.update(self.context(record))
        entry.update(self.fields(record))
        if record.exc_info:
            exc_type, exc, _ = record.exc_info
            entry["exception"] = {
                "type": exc_type.__name__ if exc_type else "Unknown",
                "message": str(exc) if exc else "",
                "traceback": self.formatException(record.exc_info),
            }
        return json.dumps(entry, default=str)


class TextFormatter(_ShopgateFormatter):
    """Console rendering: ``<ts> [LEVEL] [module] [ids] message k=v``."""

    def format(self, record: logging.LogRecord) -> str:
        parts = [
            self.created_at(record).strftime("%Y-%m-%d %H:%M:%S"),
            f"[{record.levelname}]",
            f"[{record.name.rsplit('.', 1)[-1]}]",
        ]
        parts.extend(f"[{value}]" for value in self.context(record).values())
        parts.append(record.getMessage())
        parts.extend(f"{key}={value}" for key, value in self.fields(record).items())
        line = " ".join(parts)
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


class StructuredLogger:
    """Stdlib logger whose keyword arguments travel as structured fields."""

    def __init__(self, name: str):
        self._logger = logging.getLogger(name)

    def _emit(self, level: int, message: str, fields: Dict[str, Any]) -> None:
        if self._logger.isEnabledFor(level):
            # stacklevel points the record at the caller of debug()/info()/...
            self._logger.log(level, message, extra={"structured_fields": fields}, stacklevel=3)

    def debug(self, message: str, **fields: Any) -> None:
        self._emit(logging.DEBUG, message, fields)

    def info(self, message: str, **fields: Any) -> None:
        self._emit(logging.INFO, message, fields)

    def warning(self, message: str, **fields: Any) -> None:
        self._emit(logging.WARNING, message, fields)

    def error(self, message: str, **fields: Any) -> None:
        self._emit(logging.ERROR, message, fields)


_loggers: Dict[str, StructuredLogger] = {}
_loggers_lock = threading.Lock()


def get_logger(name: str) -> StructuredLogger:
    """Return the cached StructuredLogger for ``name`` (thread-safe)."""
    with _loggers_lock:
        if name not in _loggers:
            _loggers[name] = StructuredLogger(name)
        return _loggers[name]


def _build_handlers(file_path: str) -> list:
    handlers: list = [logging.StreamHandler(sys.stderr)]
    if file_path:
        handlers.append(
            logging.handlers.RotatingFileHandler(
                file_path, maxBytes=LOG_MAX_BYTES, backupCount=LOG_BACKUP_COUNT
            )
        )
    return handlers


def configure_logging(
    level: Optional[str] = None,
    json_output: Optional[bool] = None,
    log_file: Optional[str] = None,
    propagate: bool = True,
) -> None:
    """
    Install stderr (and optional rotating file) handlers on the root logger.

    Arguments left as None fall back to the SHOPGATE_LOG_* environment
    variables. Existing root handlers are replaced.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_output: JSON lines if True, human-readable text if False
        log_file: Optional path of a rotating log file
        propagate: Whether the "shopgate" logger propagates to the root
    """
    log_level = getattr(logging, (level or LOG_LEVEL).upper(), logging.INFO)
    use_json = json_output if json_output is not None else LOG_FORMAT == "json"
    formatter = JSONFormatter() if use_json else TextFormatter()

    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)
    root.setLevel(log_level)

    for handler in _build_handlers(log_file or LOG_FILE):
        handler.setFormatter(formatter)
        handler.setLevel(log_level)
        root.addHandler(handler)

    package_logger = logging.getLogger("shopgate")
    package_logger.setLevel(log_level)
    package_logger.propagate = propagate
