"""Liquidity quoting against a pluggable pricing function.

LP supply tracks the invariant: if the pricing function is homogeneous of
degree d, then for a fixed LP supply L

    L_new = L * (I_new / I_old) ** (1 / d)

so balanced deposits mint LP in proportion to the deposit, and imbalanced
deposits are priced against the curve rather than a naive weighted sum.
The first deposit mints I ** (1 / d) (for constant product with two tokens,
sqrt(x * y)).

Rounding always favours the pool: LP minted and tokens paid out round down,
LP burned rounds up.
"""

from __future__ import annotations

from collections.abc import Sequence
from fractions import Fraction

import structlog

from well.errors import (
    DivideByZero,
    IndexOutOfRange,
    InsufficientLiquidity,
    InsufficientReserves,
    InvalidAmounts,
)
from well.math.rounding import as_rational, floor_root_ratio, round_up
from well.pricing.base import PricingFunction

logger = structlog.get_logger()


class LiquidityEngine:
    """Add / remove liquidity quotes for one pricing function. Stateless."""

    def __init__(self, pricing_function: PricingFunction, data: bytes = b"") -> None:
        self.pricing_function = pricing_function
        self.data = data

    def quote_add_liquidity(
        self,
        amounts_in: Sequence[int],
        reserves: Sequence[int],
        lp_supply: int,
    ) -> int:
        """LP minted for depositing amounts_in (any mix of tokens).

        Args:
            amounts_in: Amount deposited per token index
            reserves: Reserves before the deposit
            lp_supply: Outstanding LP supply

        Returns:
            LP amount to mint, rounded down

        Raises:
            InvalidAmounts: If len(amounts_in) != len(reserves)
            DivideByZero: If LP is outstanding but the invariant is zero
        """
        _check_amounts(amounts_in, reserves)
        degree = self._degree(len(reserves))
        new_reserves = [r + a for r, a in zip(reserves, amounts_in, strict=True)]
        new_invariant = self._invariant(new_reserves)

        if lp_supply == 0:
            lp_out = floor_root_ratio(new_invariant.numerator, new_invariant.denominator, degree)
            logger.debug("initial_lp_mint", lp_out=lp_out, invariant=str(new_invariant))
            return lp_out

        old_invariant = self._invariant(reserves)
        if old_invariant == 0:
            raise DivideByZero(f"Invariant is zero with {lp_supply} LP outstanding")

        new_supply = _scaled_supply_floor(lp_supply, new_invariant / old_invariant, degree)
        return max(new_supply - lp_supply, 0)

    def quote_remove_liquidity_balanced(
        self,
        lp_in: int,
        reserves: Sequence[int],
        lp_supply: int,
    ) -> tuple[int, ...]:
        """Proportional withdrawal: reserves[i] * lp_in / lp_supply, rounded down.

        Does not call the pricing function; proportional withdrawal preserves
        the reserve ratios on any homogeneous curve.

        Raises:
            DivideByZero: If lp_supply == 0
            InsufficientLiquidity: If lp_in > lp_supply
        """
        self._check_lp_in(lp_in, lp_supply)
        return tuple(r * lp_in // lp_supply for r in reserves)

    def quote_remove_liquidity_one_token(
        self,
        lp_in: int,
        token_index: int,
        reserves: Sequence[int],
        lp_supply: int,
    ) -> int:
        """Amount of a single token paid out for burning lp_in.

        The invariant shrinks by the same factor a balanced removal of lp_in
        would cause: I_new = I_old * ((L - lp_in) / L) ** d, rounded up.

        Raises:
            IndexOutOfRange: If token_index is outside [0, N)
            DivideByZero: If lp_supply == 0
            InsufficientLiquidity: If lp_in > lp_supply
            InsufficientReserves: If the curve cannot reach the target invariant
        """
        n = len(reserves)
        if token_index < 0 or token_index >= n:
            raise IndexOutOfRange(f"token_index {token_index} out of range for {n} tokens")
        self._check_lp_in(lp_in, lp_supply)
        if lp_in == 0:
            return 0

        degree = self._degree(n)
        old_invariant = self._invariant(reserves)
        target_invariant = round_up(old_invariant * Fraction(lp_supply - lp_in, lp_supply) ** degree)

        new_reserve = as_rational(
            self.pricing_function.reserve_at_invariant(
                tuple(reserves), target_invariant, token_index, self.data
            ),
            what="reserve",
            nonnegative=False,
        )
        if new_reserve < 0:
            raise InsufficientReserves(
                f"Removing {lp_in} LP in token {token_index} is not reachable on this curve"
            )
        return max(reserves[token_index] - round_up(new_reserve), 0)

    def quote_remove_liquidity_imbalanced(
        self,
        amounts_out: Sequence[int],
        reserves: Sequence[int],
        lp_supply: int,
    ) -> int:
        """LP that must be burned to withdraw exactly amounts_out.

        Raises:
            InvalidAmounts: If len(amounts_out) != len(reserves)
            InsufficientReserves: If any amounts_out[i] > reserves[i]
            DivideByZero: If lp_supply == 0 or the invariant is zero
        """
        _check_amounts(amounts_out, reserves)
        for i, (amount, reserve) in enumerate(zip(amounts_out, reserves, strict=True)):
            if amount > reserve:
                raise InsufficientReserves(
                    f"amount_out {amount} exceeds reserve {i} ({reserve})"
                )
        if lp_supply == 0:
            raise DivideByZero("No LP supply outstanding")

        degree = self._degree(len(reserves))
        old_invariant = self._invariant(reserves)
        if old_invariant == 0:
            raise DivideByZero(f"Invariant is zero with {lp_supply} LP outstanding")
        new_reserves = [r - a for r, a in zip(reserves, amounts_out, strict=True)]
        new_invariant = self._invariant(new_reserves)

        # Supply left after the burn rounds down, so the burn rounds up
        remaining = _scaled_supply_floor(lp_supply, new_invariant / old_invariant, degree)
        return lp_supply - min(remaining, lp_supply)

    def _degree(self, token_count: int) -> int:
        degree = self.pricing_function.degree(token_count)
        if degree < 1:
            raise ValueError(f"Pricing function degree must be >= 1, got {degree}")
        return degree

    def _invariant(self, reserves: Sequence[int]) -> Fraction:
        return as_rational(
            self.pricing_function.invariant(tuple(reserves), self.data), what="invariant"
        )

    @staticmethod
    def _check_lp_in(lp_in: int, lp_supply: int) -> None:
        if lp_in < 0:
            raise ValueError(f"lp_in must be non-negative, got {lp_in}")
        if lp_supply == 0:
            raise DivideByZero("No LP supply outstanding")
        if lp_in > lp_supply:
            raise InsufficientLiquidity(f"lp_in {lp_in} exceeds LP supply {lp_supply}")


def _scaled_supply_floor(lp_supply: int, ratio: Fraction, degree: int) -> int:
    """floor(lp_supply * ratio ** (1 / degree)), computed exactly."""
    return floor_root_ratio(lp_supply**degree * ratio.numerator, ratio.denominator, degree)


def _check_amounts(amounts: Sequence[int], reserves: Sequence[int]) -> None:
    if len(amounts) != len(reserves):
        raise InvalidAmounts(f"Expected {len(reserves)} amounts, got {len(amounts)}")
    for i, amount in enumerate(amounts):
        if amount < 0:
            raise InvalidAmounts(f"Amount at index {i} must be non-negative, got {amount}")
