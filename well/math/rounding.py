"""Directed rounding for pricing-function outputs.

Pricing functions may return exact rationals (``fractions.Fraction``). The
engines never hand such a value to a caller: amounts paid out by the Well are
rounded down and amounts paid in are rounded up, so rounding error always
accrues to the pool.
"""

from __future__ import annotations

import math
from fractions import Fraction
from numbers import Rational

from well.errors import PricingFunctionError

Numeric = int | Fraction


def as_rational(value: object, *, what: str = "value", nonnegative: bool = True) -> Fraction:
    """Validate a pricing-function output and convert it to a Fraction.

    Args:
        value: Raw pricing-function output
        what: Name used in error messages
        nonnegative: Reject negative values. Solved reserves may legitimately
            come back negative on curves that cannot reach the target; the
            engines check those themselves.

    Raises:
        PricingFunctionError: If value is not an exact rational, or is
            negative when nonnegative=True
    """
    if isinstance(value, bool) or not isinstance(value, Rational):
        raise PricingFunctionError(f"{what} must be an exact rational, got {type(value).__name__}")
    result = Fraction(value)
    if nonnegative and result < 0:
        raise PricingFunctionError(f"{what} must be non-negative, got {result}")
    return result


def round_up(value: Numeric) -> int:
    return math.ceil(value)


def floor_root(n: int, k: int) -> int:
    """Largest integer r with r**k <= n.

    Args:
        n: Non-negative radicand
        k: Root degree (>= 1)
    """
    if n < 0:
        raise ValueError(f"Cannot take root of negative value: {n}")
    if k < 1:
        raise ValueError(f"Root degree must be >= 1, got {k}")
    if k == 1 or n < 2:
        return n
    if k == 2:
        return math.isqrt(n)

    # Newton iteration from above; 2**ceil(bits/k) is always >= the true root
    x = 1 << ((n.bit_length() + k - 1) // k)
    while True:
        y = ((k - 1) * x + n // x ** (k - 1)) // k
        if y >= x:
            return x
        x = y


def floor_root_ratio(numerator: int, denominator: int, k: int) -> int:
    """Largest integer r with r**k <= numerator / denominator."""
    if denominator <= 0:
        raise ValueError(f"Denominator must be positive, got {denominator}")
    return floor_root(numerator // denominator, k)
