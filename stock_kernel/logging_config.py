"""
Structured JSON logging for the stock-control kernel.

Every record is rendered as one JSON object per line:

    {"ts": "...", "level": "INFO", "logger": "stock_kernel.engines.ledger",
     "message": "count_line_reconciled", "session_id": "scan-3",
     "item_id": "flour", "quantity_variance": "-0.7"}

Fields come from three places, later sources never overwriting earlier
ones: the fixed header (ts, level, logger, message), the ambient
``LogContext`` (which scan session, location and user the work is for), and
the ``extra={...}`` mapping of the call.  Exceptions add ``exc_*`` fields,
including every public attribute of a ``StockKernelError``.
"""

__all__ = [
    "StructuredFormatter",
    "LogContext",
    "get_logger",
    "configure_logging",
    "reset_logging",
]

import json
import logging
import sys
import threading
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

# ---------------------------------------------------------------------------
# Ambient context
# ---------------------------------------------------------------------------

_CONTEXT_FIELDS = ("correlation_id", "session_id", "actor_id", "location_id")

_context: ContextVar[Mapping[str, str]] = ContextVar("stock_log_context", default={})


class LogContext:
    """
    Per-thread / per-task fields stamped onto every log record.

    The whole context is one immutable mapping held in a ``ContextVar``, so
    a scan thread binding its session id never leaks into another thread.
    """

    @staticmethod
    def _updated(**fields: str | None) -> dict[str, str]:
        unknown = set(fields) - set(_CONTEXT_FIELDS)
        if unknown:
            raise TypeError(f"Unknown log context field(s): {sorted(unknown)}")
        merged = dict(_context.get())
        merged.update({k: v for k, v in fields.items() if v is not None})
        return merged

    @classmethod
    def set(
        cls,
        *,
        correlation_id: str | None = None,
        session_id: str | None = None,
        actor_id: str | None = None,
        location_id: str | None = None,
    ) -> None:
        """Set context fields; ``None`` leaves a field as it was."""
        _context.set(cls._updated(
            correlation_id=correlation_id,
            session_id=session_id,
            actor_id=actor_id,
            location_id=location_id,
        ))

    @staticmethod
    def get_all() -> dict[str, str]:
        current = _context.get()
        return {name: current[name] for name in _CONTEXT_FIELDS if name in current}

    @staticmethod
    def clear() -> None:
        _context.set({})

    @classmethod
    @contextmanager
    def bind(cls, **fields: str | None) -> Iterator[type["LogContext"]]:
        """Set ``fields`` for the duration of a ``with`` block."""
        token = _context.set(cls._updated(**fields))
        try:
            yield cls
        finally:
            _context.reset(token)


# ---------------------------------------------------------------------------
# JSON rendering
# ---------------------------------------------------------------------------

# Attributes every LogRecord carries; anything else arrived through ``extra``.
_RECORD_ATTRS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None))
) | {"message", "asctime", "taskName"}


def _json_default(obj: Any) -> Any:
    match obj:
        case Decimal() | UUID():
            return str(obj)
        case datetime() | date():
            return obj.isoformat()
        case Enum():
            return obj.value
        case set() | frozenset() | tuple():
            return list(obj)
        case _:
            return str(obj)


def _exception_fields(exc: BaseException) -> dict[str, Any]:
    fields: dict[str, Any] = {
        "exc_type": type(exc).__name__,
        "exc_message": str(exc),
    }
    code = getattr(exc, "code", None)
    if code is not None:
        fields["exc_code"] = code
    for name, value in vars(exc).items():
        if not name.startswith("_") and name not in ("args", "code"):
            fields[f"exc_{name}"] = value
    return fields


class StructuredFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, value in LogContext.get_all().items():
            payload.setdefault(key, value)
        for key, value in vars(record).items():
            if key not in _RECORD_ATTRS:
                payload.setdefault(key, value)

        if record.exc_info and record.exc_info[1] is not None:
            payload.update(_exception_fields(record.exc_info[1]))
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=_json_default)


# ---------------------------------------------------------------------------
# Setup
# ---------------------------------------------------------------------------

_ROOT_NAME = "stock_kernel"
_setup_lock = threading.Lock()
_configured = False


def get_logger(name: str) -> logging.Logger:
    """Logger ``stock_kernel.<name>``."""
    return logging.getLogger(f"{_ROOT_NAME}.{name}")


def configure_logging(
    *,
    level: int = logging.INFO,
    stream: Any = None,
    handler: logging.Handler | None = None,
) -> None:
    """
    Attach a JSON handler to the ``stock_kernel`` logger.

    Only the first call has an effect until ``reset_logging()``.
    """
    global _configured
    with _setup_lock:
        if _configured:
            return
        _configured = True

        if handler is None:
            handler = logging.StreamHandler(stream or sys.stderr)
        handler.setFormatter(StructuredFormatter())

        root = logging.getLogger(_ROOT_NAME)
        root.setLevel(level)
        root.propagate = False
        root.addHandler(handler)


def reset_logging() -> None:
    """Undo ``configure_logging``.  For tests."""
    global _configured
    with _setup_lock:
        _configured = False
        root = logging.getLogger(_ROOT_NAME)
        root.handlers.clear()
        root.setLevel(logging.WARNING)
        root.propagate = True
