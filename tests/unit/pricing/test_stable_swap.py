"""Tests for the StableSwap pricing function."""

import pytest

from well.errors import IndexOutOfRange, InsufficientReserves, PricingFunctionError
from well.pricing import AMP_PRECISION, PricingFunction, StableSwap, stable_swap
from well.pricing.stable import (
    calculate_invariant,
    get_balance_given_invariant,
    invariant_residual,
)

ONE = 10**18
DATA = StableSwap.encode_data(100)
AMP = 100 * AMP_PRECISION


class TestAuxiliaryData:
    def test_encode_is_abi_uint256(self):
        assert DATA == (100).to_bytes(32, "big")

    def test_decode_scales_by_precision(self):
        assert StableSwap.decode_amplification(DATA) == AMP

    def test_short_data_rejected(self):
        with pytest.raises(PricingFunctionError):
            StableSwap.decode_amplification(b"\x01")

    def test_zero_amplification_rejected(self):
        with pytest.raises(PricingFunctionError):
            StableSwap.decode_amplification(StableSwap.encode_data(0))


class TestInvariant:
    def test_satisfies_protocol(self):
        assert isinstance(stable_swap, PricingFunction)
        assert stable_swap.degree(2) == 1

    def test_balanced_pool_invariant_is_sum(self):
        assert stable_swap.invariant((ONE, ONE), DATA) == 2 * ONE

    @pytest.mark.parametrize(
        "balances", [[ONE, 2 * ONE], [12345, 678], [10**6, 3 * 10**6, 5 * 10**5]]
    )
    def test_invariant_is_exact_floor(self, balances):
        d = calculate_invariant(AMP, balances)
        assert invariant_residual(AMP, balances, d) >= 0
        assert invariant_residual(AMP, balances, d + 1) < 0

    def test_imbalanced_pool_invariant_below_sum(self):
        d = calculate_invariant(AMP, [ONE, 2 * ONE])
        assert d < 3 * ONE
        # Still far above the constant-product geometric mean
        assert d > 2 * 1414213562373095048

    def test_empty_pool(self):
        assert calculate_invariant(AMP, [0, 0]) == 0

    def test_partially_empty_pool_raises(self):
        with pytest.raises(InsufficientReserves):
            calculate_invariant(AMP, [ONE, 0])


class TestReserveAtInvariant:
    def test_recovers_balance(self):
        """Solving for a balance at its own invariant gives back at most that balance."""
        balances = [ONE, 2 * ONE]
        d = calculate_invariant(AMP, balances)
        solved = get_balance_given_invariant(AMP, balances, d, 1)
        assert 2 * ONE - 10 <= solved <= 2 * ONE

    @pytest.mark.parametrize(
        "balances,token_index",
        [([ONE, ONE], 0), ([ONE, 2 * ONE], 1), ([10**6, 3 * 10**6, 5 * 10**5], 2), ([7000, 1_000_003], 0)],
    )
    def test_smallest_balance_on_or_above_curve(self, balances, token_index):
        d = calculate_invariant(AMP, balances)
        solved = get_balance_given_invariant(AMP, balances, d, token_index)

        above = list(balances)
        above[token_index] = solved
        below = list(balances)
        below[token_index] = solved - 1
        assert invariant_residual(AMP, above, d) >= 0
        assert invariant_residual(AMP, below, d) < 0

    def test_index_out_of_range(self):
        with pytest.raises(IndexOutOfRange):
            get_balance_given_invariant(AMP, [ONE, ONE], 2 * ONE, 2)

    def test_zero_other_balance_raises(self):
        with pytest.raises(InsufficientReserves):
            get_balance_given_invariant(AMP, [ONE, 0], 2 * ONE, 0)

    def test_zero_invariant(self):
        assert get_balance_given_invariant(AMP, [ONE, ONE], 0, 0) == 0
