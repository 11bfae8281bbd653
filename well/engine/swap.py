"""Swap quoting against a pluggable pricing function.

Both directions hold the pricing function's invariant constant:

    exact in:  amount_out = floor(x_out - solve(x_in + amount_in))
    exact out: amount_in  = ceil(solve(x_out - amount_out) - x_in)

Out-amounts round down and in-amounts round up, so the pool is never a net
payer of rounding error.
"""

from __future__ import annotations

from collections.abc import Sequence
from fractions import Fraction

from well.errors import (
    IndexOutOfRange,
    InsufficientReserves,
    InvalidTokenPair,
    PricingFunctionError,
)
from well.math.rounding import as_rational, round_up
from well.pricing.base import PricingFunction


class SwapEngine:
    """Exact-in / exact-out swap solver for one pricing function.

    The engine is stateless: reserves are passed on every call and nothing is
    mutated. Slippage enforcement belongs to the caller.
    """

    def __init__(self, pricing_function: PricingFunction, data: bytes = b"") -> None:
        self.pricing_function = pricing_function
        self.data = data

    def quote_exact_in(
        self,
        from_index: int,
        to_index: int,
        amount_in: int,
        reserves: Sequence[int],
    ) -> int:
        """Output amount for an exact input amount.

        Args:
            from_index: Index of the token paid in
            to_index: Index of the token paid out
            amount_in: Exact input amount
            reserves: Reserves before the swap

        Returns:
            Output amount, rounded down

        Raises:
            IndexOutOfRange: If an index is outside [0, N)
            InvalidTokenPair: If from_index == to_index
            InsufficientReserves: If the curve cannot pay out without draining to_index
        """
        _check_pair(from_index, to_index, len(reserves))
        _check_amount(amount_in, "amount_in")
        if amount_in == 0:
            return 0

        invariant = self._invariant(reserves)
        new_reserves = list(reserves)
        new_reserves[from_index] += amount_in
        new_reserve_out = self._solve(new_reserves, invariant, to_index)

        reserve_out = reserves[to_index]
        if new_reserve_out <= 0:
            raise InsufficientReserves(
                f"Swap of {amount_in} would drain reserve {to_index} ({reserve_out})"
            )
        # Reserve kept by the pool rounds up, so the payout rounds down.
        # round_up(new_reserve_out) >= 1 here, hence amount_out < reserve_out.
        amount_out = reserve_out - round_up(new_reserve_out)
        if amount_out <= 0:
            return 0
        return amount_out

    def quote_exact_out(
        self,
        from_index: int,
        to_index: int,
        amount_out: int,
        reserves: Sequence[int],
    ) -> int:
        """Input amount required for an exact output amount.

        Args:
            from_index: Index of the token paid in
            to_index: Index of the token paid out
            amount_out: Exact output amount
            reserves: Reserves before the swap

        Returns:
            Required input amount, rounded up

        Raises:
            IndexOutOfRange: If an index is outside [0, N)
            InvalidTokenPair: If from_index == to_index
            InsufficientReserves: If amount_out >= reserves[to_index]
        """
        _check_pair(from_index, to_index, len(reserves))
        _check_amount(amount_out, "amount_out")
        if amount_out >= reserves[to_index]:
            raise InsufficientReserves(
                f"amount_out {amount_out} must be less than reserve {to_index} "
                f"({reserves[to_index]})"
            )
        if amount_out == 0:
            return 0

        invariant = self._invariant(reserves)
        new_reserves = list(reserves)
        new_reserves[to_index] -= amount_out
        new_reserve_in = self._solve(new_reserves, invariant, from_index)

        amount_in = round_up(new_reserve_in) - reserves[from_index]
        if amount_in <= 0:
            raise PricingFunctionError(
                f"Pricing function requires no input for {amount_out} of token {to_index}"
            )
        return amount_in

    def quote_shift(
        self,
        to_index: int,
        reserves: Sequence[int],
        balances: Sequence[int],
    ) -> int:
        """Output for swapping whatever the pool holds above its reserves into one token.

        The invariant is taken at the tracked reserves and solved for to_index
        at the actual balances.

        Args:
            to_index: Index of the token paid out
            reserves: Tracked reserves
            balances: Balances actually held (>= reserves where tokens were sent in)

        Returns:
            Output amount, rounded down (0 if nothing to shift)
        """
        n = len(reserves)
        if to_index < 0 or to_index >= n:
            raise IndexOutOfRange(f"to_index {to_index} out of range for {n} tokens")
        if len(balances) != n:
            raise ValueError(f"Expected {n} balances, got {len(balances)}")

        invariant = self._invariant(reserves)
        new_reserve_out = self._solve(balances, invariant, to_index)
        if new_reserve_out <= 0:
            raise InsufficientReserves(f"Shift would drain reserve {to_index}")
        return max(balances[to_index] - round_up(new_reserve_out), 0)

    def swap_deltas(
        self, from_index: int, to_index: int, amount_in: int, amount_out: int, token_count: int
    ) -> list[int]:
        """Signed reserve delta for a swap: +amount_in at from, -amount_out at to."""
        delta = [0] * token_count
        delta[from_index] = amount_in
        delta[to_index] = -amount_out
        return delta

    def _invariant(self, reserves: Sequence[int]) -> Fraction:
        return as_rational(
            self.pricing_function.invariant(tuple(reserves), self.data), what="invariant"
        )

    def _solve(self, reserves: Sequence[int], invariant: Fraction, token_index: int) -> Fraction:
        return as_rational(
            self.pricing_function.reserve_at_invariant(
                tuple(reserves), invariant, token_index, self.data
            ),
            what="reserve",
            nonnegative=False,
        )


def _check_pair(from_index: int, to_index: int, token_count: int) -> None:
    for name, index in (("from_index", from_index), ("to_index", to_index)):
        if index < 0 or index >= token_count:
            raise IndexOutOfRange(f"{name} {index} out of range for {token_count} tokens")
    if from_index == to_index:
        raise InvalidTokenPair(f"Cannot swap token {from_index} with itself")


def _check_amount(amount: int, name: str) -> None:
    if amount < 0:
        raise ValueError(f"{name} must be non-negative, got {amount}")
