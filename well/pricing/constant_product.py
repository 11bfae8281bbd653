"""Constant product pricing function.

Invariant: k = x_0 * x_1 * ... * x_{n-1}

For two tokens this is the familiar x * y = k curve. Solving for one
reserve is exact: x_j = k / prod(x_i for i != j), returned as a Fraction so
the engine can round in the pool's favour.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from fractions import Fraction

from well.errors import IndexOutOfRange, InsufficientReserves
from well.math.rounding import Numeric


class ConstantProduct:
    """Product of reserves. Homogeneous of degree N."""

    name = "constant_product"

    def degree(self, token_count: int) -> int:
        return token_count

    def invariant(self, reserves: Sequence[int], data: bytes) -> Numeric:
        _ = data  # Interface-required param
        return math.prod(reserves)

    def reserve_at_invariant(
        self,
        reserves: Sequence[int],
        invariant: Numeric,
        token_index: int,
        data: bytes,
    ) -> Numeric:
        _ = data
        if token_index < 0 or token_index >= len(reserves):
            raise IndexOutOfRange(
                f"token_index {token_index} out of range for {len(reserves)} tokens"
            )

        others = math.prod(r for i, r in enumerate(reserves) if i != token_index)
        if others == 0:
            # Every other reserve must be positive for x_j to be defined
            raise InsufficientReserves(
                f"Cannot solve reserve {token_index}: another reserve is zero"
            )
        return Fraction(invariant) / others


constant_product = ConstantProduct()
