"""StableSwap pricing function.

Curve-style stable invariant D, solved with Newton-Raphson iteration:

    A * n * sum(x) + D = A * n * D + D**(n+1) / (n**n * prod(x))

The amplification coefficient A lives in the Well's auxiliary data as an
ABI-encoded uint256, so the same StableSwap instance can serve pools with
different amplification.

Newton iterations use SafeInt so that a degenerate pool state fails loudly
instead of returning a wrapped or negative value. Each Newton result is then
settled against the exact integer residual of the invariant equation: D is
the exact floor of the root and a solved balance is the exact ceiling.
"""

from __future__ import annotations

import math
from collections.abc import Sequence

from eth_abi import decode, encode  # type: ignore[attr-defined]
from eth_abi.exceptions import DecodingError

from well.errors import IndexOutOfRange, InsufficientReserves, PricingFunctionError
from well.math.rounding import Numeric
from well.math.safe_int import S

# Amplification is scaled by this factor internally
AMP_PRECISION = 1000

# Maximum iterations for Newton-Raphson convergence
_STABLE_MAX_ITERATIONS = 255


class StableInvariantDidNotConverge(PricingFunctionError):
    """Newton-Raphson iteration for stable invariant D did not converge."""

    pass


class StableGetBalanceDidNotConverge(PricingFunctionError):
    """Newton-Raphson iteration for a stable reserve did not converge."""

    pass


def calculate_invariant(amp: int, balances: Sequence[int]) -> int:
    """Calculate the StableSwap invariant D.

    Algorithm:
        1. Initial guess: D = sum(balances)
        2. Iterate Newton-Raphson until |D_new - D_old| <= 1
        3. Max iterations: 255

    Args:
        amp: Amplification (scaled by AMP_PRECISION)
        balances: Reserve per token index

    Returns:
        The invariant D (0 for an empty pool)

    Raises:
        InsufficientReserves: If some but not all balances are zero
        StableInvariantDidNotConverge: If iteration doesn't converge
    """
    n_coins = len(balances)
    sum_balances = S(sum(balances))
    if sum_balances == 0:
        return 0

    for i, bal in enumerate(balances):
        if bal <= 0:
            raise InsufficientReserves(f"Balance at index {i} must be positive")

    d_prev = sum_balances
    amp_times_n = S(amp) * S(n_coins)

    for _ in range(_STABLE_MAX_ITERATIONS):
        # d_p = D^(n+1) / (n^n * prod(balances)), built up one balance at a time
        d_p = d_prev
        for bal in balances:
            d_p = (d_p * d_prev) // (S(n_coins) * S(bal))

        term1 = (amp_times_n * sum_balances) // S(AMP_PRECISION)
        numerator = (term1 + d_p * S(n_coins)) * d_prev

        term2 = ((amp_times_n - S(AMP_PRECISION)) * d_prev) // S(AMP_PRECISION)
        denominator = term2 + S(n_coins + 1) * d_p

        d_new = numerator // denominator

        if d_new.abs_diff(d_prev) <= 1:
            return _floor_invariant(amp, balances, d_new.value)

        d_prev = d_new

    raise StableInvariantDidNotConverge(
        f"Stable invariant did not converge after {_STABLE_MAX_ITERATIONS} iterations"
    )


def invariant_residual(amp: int, balances: Sequence[int], d: int) -> int:
    """Signed residual of the invariant equation, scaled to an exact integer.

    Positive when the balances sit above the curve for D, zero on it,
    negative below it. Increasing in every balance and decreasing in D.
    """
    n_coins = len(balances)
    amp_times_n = amp * n_coins
    prod_balances = math.prod(balances)
    return (
        amp_times_n * sum(balances) + (AMP_PRECISION - amp_times_n) * d
    ) * n_coins**n_coins * prod_balances - AMP_PRECISION * d ** (n_coins + 1)


def _floor_invariant(amp: int, balances: Sequence[int], d: int) -> int:
    while d > 0 and invariant_residual(amp, balances, d) < 0:
        d -= 1
    while invariant_residual(amp, balances, d + 1) >= 0:
        d += 1
    return d


def _ceil_balance(
    amp: int, balances: Sequence[int], d: int, token_index: int, guess: int
) -> int:
    trial = list(balances)

    def residual(balance: int) -> int:
        trial[token_index] = balance
        return invariant_residual(amp, trial, d)

    balance = max(guess, 1)
    while balance > 1 and residual(balance - 1) >= 0:
        balance -= 1
    while residual(balance) < 0:
        balance += 1
    return balance


def get_balance_given_invariant(
    amp: int,
    balances: Sequence[int],
    invariant: Numeric,
    token_index: int,
) -> int:
    """Solve for balances[token_index] given D and all other balances.

    The result is the smallest integer balance that keeps the pool at or
    above D, so it never understates the reserve the pool must keep.

    Args:
        amp: Amplification (scaled by AMP_PRECISION)
        balances: Reserve per token index (the entry at token_index is ignored)
        invariant: The invariant D to hit
        token_index: Index of the balance to solve for

    Returns:
        The solved balance

    Raises:
        IndexOutOfRange: If token_index is out of range
        InsufficientReserves: If another balance is zero
        StableGetBalanceDidNotConverge: If iteration doesn't converge
    """
    n_coins = len(balances)
    if token_index < 0 or token_index >= n_coins:
        raise IndexOutOfRange(f"token_index {token_index} out of range for {n_coins} tokens")

    d = S(math.ceil(invariant))
    if d == 0:
        return 0

    amp_times_n = S(amp) * S(n_coins)

    # c = D^(n+1) / (n^n * prod(others) * A * n), sum over the other balances
    c = d
    sum_others = S(0)
    for j, bal in enumerate(balances):
        if j == token_index:
            continue
        if bal <= 0:
            raise InsufficientReserves(f"Balance at index {j} must be positive")
        sum_others = sum_others + S(bal)
        c = (c * d) // (S(bal) * S(n_coins))
    c = (c * d * S(AMP_PRECISION)).ceiling_div(amp_times_n * S(n_coins))

    b = sum_others + (d * S(AMP_PRECISION)) // amp_times_n

    token_balance = d
    for _ in range(_STABLE_MAX_ITERATIONS):
        prev_token_balance = token_balance

        # y = (y^2 + c) / (2y + b - D)
        numerator = token_balance * token_balance + c
        denominator = 2 * token_balance.value + b.value - d.value
        if denominator <= 0:
            raise StableGetBalanceDidNotConverge("Denominator became non-positive")

        token_balance = numerator.ceiling_div(denominator)

        if token_balance.abs_diff(prev_token_balance) <= 1:
            return _ceil_balance(amp, balances, d.value, token_index, token_balance.value)

    raise StableGetBalanceDidNotConverge(
        f"Stable get_balance did not converge after {_STABLE_MAX_ITERATIONS} iterations"
    )


class StableSwap:
    """StableSwap curve. Homogeneous of degree 1.

    Auxiliary data: ``encode(["uint256"], [amplification])``; see encode_data().
    """

    name = "stable_swap"

    @staticmethod
    def encode_data(amplification: int) -> bytes:
        """Encode the amplification coefficient as the Well's auxiliary data."""
        return encode(["uint256"], [amplification])

    @staticmethod
    def decode_amplification(data: bytes) -> int:
        """Decode the amplification coefficient, scaled by AMP_PRECISION.

        Raises:
            PricingFunctionError: If data is not a positive ABI-encoded uint256
        """
        try:
            (amplification,) = decode(["uint256"], data)
        except DecodingError as err:
            raise PricingFunctionError(f"Invalid stable swap data: 0x{data.hex()}") from err
        if amplification <= 0:
            raise PricingFunctionError("Amplification must be positive")
        return amplification * AMP_PRECISION

    def degree(self, token_count: int) -> int:
        _ = token_count
        return 1

    def invariant(self, reserves: Sequence[int], data: bytes) -> Numeric:
        return calculate_invariant(self.decode_amplification(data), reserves)

    def reserve_at_invariant(
        self,
        reserves: Sequence[int],
        invariant: Numeric,
        token_index: int,
        data: bytes,
    ) -> Numeric:
        return get_balance_given_invariant(
            self.decode_amplification(data), reserves, invariant, token_index
        )


stable_swap = StableSwap()
