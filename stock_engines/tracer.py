"""
stock_engines.tracer -- ``@traced_engine`` decorator.

Every decorated engine call that returns normally logs one
``STOCK_ENGINE_TRACE`` record carrying:

    engine_name, engine_version   which calculation ran
    input_fingerprint             16 hex chars of SHA-256 over the chosen
                                  arguments, so two dashboards that showed
                                  different numbers can be compared
    duration_ms                   wall time of the call
    function                      qualified name of the wrapped function

A call that raises logs nothing; the exception reaches the caller untouched.
The decorator reads arguments only and never mutates them.

Fingerprint encoding:
    Each chosen parameter becomes ``name=<canonical>`` and the parts are
    joined with ``|``.  Records (items, movements, sessions) are reduced to
    ``TypeName:id`` so the fingerprint names *which* records went in, not
    their full contents.  Absent parameters encode as ``null``.
"""

from __future__ import annotations

import functools
import hashlib
import inspect
import time
from collections.abc import Callable, Mapping
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from stock_kernel.logging_config import get_logger

logger = get_logger("engines.tracer")

TRACE_EVENT = "STOCK_ENGINE_TRACE"
FINGERPRINT_LENGTH = 16


def _canonical(value: Any) -> str:
    match value:
        case None:
            return "null"
        case Enum():
            return str(value.value)
        case bool() | int() | float() | Decimal():
            return str(value)
        case str():
            return value
        case datetime() | date():
            return value.isoformat()
        case Mapping():
            body = ",".join(f"{key}:{_canonical(value[key])}" for key in sorted(value))
            return "{" + body + "}"
        case list() | tuple():
            return "[" + ",".join(_canonical(v) for v in value) + "]"
        case _:
            record_id = getattr(value, "id", None)
            if isinstance(record_id, str):
                return f"{type(value).__name__}:{record_id}"
            return str(value)


def compute_input_fingerprint(
    fingerprint_fields: tuple[str, ...],
    arguments: Mapping[str, Any],
) -> str:
    """Hash the named arguments into a short, stable hex fingerprint."""
    canonical = "|".join(
        f"{name}={_canonical(arguments.get(name))}" for name in fingerprint_fields
    )
    digest = hashlib.sha256(canonical.encode("utf-8")).hexdigest()
    return digest[:FINGERPRINT_LENGTH]


def traced_engine(
    engine_name: str,
    engine_version: str,
    fingerprint_fields: tuple[str, ...] = (),
) -> Callable:
    """Wrap a pure engine function so each successful call is traced."""

    def decorator(func: Callable) -> Callable:
        signature = inspect.signature(func)

        def _fingerprint(args: tuple, kwargs: dict) -> str:
            if not fingerprint_fields:
                return ""
            try:
                arguments = signature.bind_partial(*args, **kwargs).arguments
            except TypeError:
                # Let the real call raise the binding error.
                arguments = kwargs
            return compute_input_fingerprint(fingerprint_fields, arguments)

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            fingerprint = _fingerprint(args, kwargs)
            started = time.perf_counter()
            result = func(*args, **kwargs)
            elapsed_ms = (time.perf_counter() - started) * 1000

            logger.info(
                TRACE_EVENT,
                extra={
                    "trace_type": TRACE_EVENT,
                    "engine_name": engine_name,
                    "engine_version": engine_version,
                    "input_fingerprint": fingerprint,
                    "duration_ms": round(elapsed_ms, 2),
                    "function": func.__qualname__,
                },
            )
            return result

        return wrapper

    return decorator
