"""
Values -- Decimal coercion shared by every domain record.

Responsibility:
    Stock quantities, costs and rates are ``Decimal`` end to end.  Callers
    may hand in ints, strings or floats at the boundary; ``to_decimal``
    normalizes them through ``str`` so that ``0.1`` becomes ``Decimal("0.1")``
    rather than its binary expansion.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Failure modes:
    - ValueError on values that are not numeric or are NaN/infinite.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any

ZERO = Decimal("0")
ONE = Decimal("1")
HUNDRED = Decimal("100")

Numeric = Decimal | int | float | str


def to_decimal(value: Any) -> Decimal:
    """Coerce a numeric value to a finite ``Decimal``."""
    if isinstance(value, bool):
        raise ValueError(f"Invalid numeric value: {value!r}")
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value))
        except (InvalidOperation, ValueError) as e:
            raise ValueError(f"Invalid numeric value: {value!r}") from e
    if not result.is_finite():
        raise ValueError(f"Numeric value must be finite, got {value!r}")
    return result


def to_optional_decimal(value: Any) -> Decimal | None:
    """Like ``to_decimal`` but passes ``None`` through."""
    if value is None:
        return None
    return to_decimal(value)


def coerce_fields(instance: object, *names: str, optional: tuple[str, ...] = ()) -> None:
    """Normalize numeric fields of a frozen dataclass in ``__post_init__``."""
    for name in names:
        object.__setattr__(instance, name, to_decimal(getattr(instance, name)))
    for name in optional:
        object.__setattr__(instance, name, to_optional_decimal(getattr(instance, name)))
