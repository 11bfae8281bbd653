"""Tests for the in-memory custody and LP-token ledgers."""

import pytest

from tests.conftest import ALICE, BOB, TOKEN_A, WELL_ADDRESS
from well.custody import Custody, InMemoryCustody, InMemoryLpToken, InsufficientBalance, LpToken


class TestInMemoryCustody:
    def test_satisfies_protocol(self):
        assert isinstance(InMemoryCustody(WELL_ADDRESS), Custody)

    def test_transfer_in_and_out(self):
        custody = InMemoryCustody(WELL_ADDRESS)
        custody.credit(ALICE, TOKEN_A, 100)

        custody.transfer_in(TOKEN_A, 60, ALICE)
        custody.transfer_out(TOKEN_A, 25, BOB)

        assert custody.balance_of(ALICE, TOKEN_A) == 40
        assert custody.balance_of(BOB, TOKEN_A) == 25
        assert custody.balance_of_well(TOKEN_A) == 35

    def test_insufficient_balance(self):
        custody = InMemoryCustody(WELL_ADDRESS)
        custody.credit(ALICE, TOKEN_A, 10)
        with pytest.raises(InsufficientBalance):
            custody.transfer_in(TOKEN_A, 11, ALICE)
        assert custody.balance_of(ALICE, TOKEN_A) == 10

    def test_address_case_insensitive(self):
        custody = InMemoryCustody(WELL_ADDRESS)
        custody.credit(ALICE.upper().replace("0X", "0x"), TOKEN_A, 5)
        assert custody.balance_of(ALICE, TOKEN_A.upper().replace("0X", "0x")) == 5

    def test_negative_amount(self):
        with pytest.raises(ValueError):
            InMemoryCustody(WELL_ADDRESS).credit(ALICE, TOKEN_A, -1)


class TestInMemoryLpToken:
    def test_satisfies_protocol(self):
        assert isinstance(InMemoryLpToken(), LpToken)

    def test_mint_and_burn(self):
        lp = InMemoryLpToken()
        lp.mint(ALICE, 100)
        lp.burn(ALICE, 40)
        assert lp.balance_of(ALICE) == 60
        assert lp.total_supply() == 60

    def test_burn_more_than_held(self):
        lp = InMemoryLpToken()
        lp.mint(ALICE, 10)
        with pytest.raises(InsufficientBalance):
            lp.burn(ALICE, 11)
        assert lp.total_supply() == 10
