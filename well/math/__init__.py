"""Exact integer and rational helpers for Well pricing."""

from well.math.rounding import (
    Numeric,
    as_rational,
    floor_root,
    floor_root_ratio,
    round_up,
)
from well.math.safe_int import DivisionByZero, S, SafeInt, SafeIntError, Underflow

__all__ = [
    "Numeric",
    "as_rational",
    "floor_root",
    "floor_root_ratio",
    "round_up",
    "S",
    "SafeInt",
    "SafeIntError",
    "DivisionByZero",
    "Underflow",
]
