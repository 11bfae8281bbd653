"""Pricing function interface.

A pricing function is the bonding curve a Well prices against. The engines
only ever talk to it through this protocol, so any curve that can evaluate
its invariant and solve for one reserve given the others can be plugged in.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from well.math.rounding import Numeric


@runtime_checkable
class PricingFunction(Protocol):
    """Protocol for Well pricing functions.

    Implementations must be pure: identical inputs give identical outputs.
    Results may be ints or exact ``Fraction`` values; the engines apply
    directed rounding, so implementations should not round in the caller's
    favour.
    """

    name: str

    def degree(self, token_count: int) -> int:
        """Homogeneity degree of the invariant.

        invariant(c * reserves) == c**degree * invariant(reserves). LP supply
        scales with invariant ** (1 / degree).

        Args:
            token_count: Number of tokens in the Well

        Returns:
            The degree (>= 1)
        """
        ...

    def invariant(self, reserves: Sequence[int], data: bytes) -> Numeric:
        """Evaluate the curve's invariant at the given reserves.

        Args:
            reserves: Reserve per token index
            data: Opaque auxiliary payload from the Well's config

        Returns:
            Invariant value (>= 0)
        """
        ...

    def reserve_at_invariant(
        self,
        reserves: Sequence[int],
        invariant: Numeric,
        token_index: int,
        data: bytes,
    ) -> Numeric:
        """Solve for reserves[token_index] holding every other reserve fixed.

        Args:
            reserves: Reserve per token index (the entry at token_index is ignored)
            invariant: Invariant value to hit
            token_index: Index of the reserve to solve for
            data: Opaque auxiliary payload from the Well's config

        Returns:
            The reserve at token_index that makes invariant(reserves) == invariant.
            May be negative when the target is unreachable on this curve.
        """
        ...
