"""Constant sum pricing function: k = sum(reserves), a 1:1 peg with no slippage."""

from __future__ import annotations

from collections.abc import Sequence

from well.errors import IndexOutOfRange
from well.math.rounding import Numeric


class ConstantSum:
    """Sum of reserves. Homogeneous of degree 1."""

    name = "constant_sum"

    def degree(self, token_count: int) -> int:
        _ = token_count
        return 1

    def invariant(self, reserves: Sequence[int], data: bytes) -> Numeric:
        _ = data
        return sum(reserves)

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
        # Negative when the other reserves already exceed the invariant
        return invariant - sum(r for i, r in enumerate(reserves) if i != token_index)


constant_sum = ConstantSum()
