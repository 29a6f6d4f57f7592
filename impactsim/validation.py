from __future__ import annotations
from math import isfinite

from .errors import InvalidInput


def require_finite(name: str, value) -> float:
    if isinstance(value, bool):
        raise InvalidInput(name, f"expected a number, got {value!r}")
    try:
        v = float(value)
    except (TypeError, ValueError):
        raise InvalidInput(name, f"expected a number, got {value!r}") from None
    if not isfinite(v):
        raise InvalidInput(name, "must be a finite number")
    return v


def require_positive(name: str, value) -> float:
    v = require_finite(name, value)
    if v <= 0.0:
        raise InvalidInput(name, "must be greater than 0")
    return v


def require_non_negative(name: str, value) -> float:
    v = require_finite(name, value)
    if v < 0.0:
        raise InvalidInput(name, "must be 0 or greater")
    return v


def require_range(name: str, value, lo: float, hi: float) -> float:
    v = require_finite(name, value)
    if not lo <= v <= hi:
        raise InvalidInput(name, f"must be between {lo:g} and {hi:g}")
    return v
