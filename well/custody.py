"""Token custody and LP-token collaborators.

The Well never moves tokens itself. It tells a custody collaborator what to
pull in and pay out, and an LP-token collaborator what to mint and burn. The
in-memory implementations here are ledgers suitable for tests and simulation.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Protocol, runtime_checkable

import structlog

from well.models.types import normalize_address

logger = structlog.get_logger()


class CustodyError(Exception):
    """Base error for custody and LP-token collaborators."""

    pass


class InsufficientBalance(CustodyError):
    """Account does not hold enough of a token (or LP) for a transfer or burn."""

    pass


@runtime_checkable
class Custody(Protocol):
    """Protocol for the token custody collaborator of one Well."""

    def transfer_in(self, token: str, amount: int, sender: str) -> None:
        """Move amount of token from sender into the Well's custody."""
        ...

    def transfer_out(self, token: str, amount: int, recipient: str) -> None:
        """Move amount of token from the Well's custody to recipient."""
        ...

    def balance_of_well(self, token: str) -> int:
        """Amount of token currently held for the Well."""
        ...


@runtime_checkable
class LpToken(Protocol):
    """Protocol for the LP-share token collaborator of one Well."""

    def total_supply(self) -> int: ...

    def mint(self, recipient: str, amount: int) -> None: ...

    def burn(self, owner: str, amount: int) -> None: ...


class InMemoryCustody:
    """Ledger of token balances per account, including the Well's own account.

    Usage:
        custody = InMemoryCustody(well_account="0x...")
        custody.credit(alice, weth, 10**18)      # fund an account
        custody.transfer_in(weth, 10**18, alice)  # Well pulls from alice
    """

    def __init__(self, well_account: str) -> None:
        self.well_account = normalize_address(well_account)
        self._balances: dict[tuple[str, str], int] = defaultdict(int)

    def balance_of(self, account: str, token: str) -> int:
        return self._balances[(normalize_address(account), normalize_address(token))]

    def balance_of_well(self, token: str) -> int:
        return self.balance_of(self.well_account, token)

    def credit(self, account: str, token: str, amount: int) -> None:
        """Create tokens in an account (test faucet / direct donation)."""
        if amount < 0:
            raise ValueError(f"amount must be non-negative, got {amount}")
        self._balances[(normalize_address(account), normalize_address(token))] += amount

    def transfer(self, token: str, amount: int, sender: str, recipient: str) -> None:
        if amount < 0:
            raise ValueError(f"amount must be non-negative, got {amount}")
        token_norm = normalize_address(token)
        sender_key = (normalize_address(sender), token_norm)
        available = self._balances[sender_key]
        if available < amount:
            raise InsufficientBalance(
                f"{sender} holds {available} of {token}, needs {amount}"
            )
        self._balances[sender_key] = available - amount
        self._balances[(normalize_address(recipient), token_norm)] += amount

    def transfer_in(self, token: str, amount: int, sender: str) -> None:
        self.transfer(token, amount, sender, self.well_account)

    def transfer_out(self, token: str, amount: int, recipient: str) -> None:
        self.transfer(token, amount, self.well_account, recipient)


class InMemoryLpToken:
    """LP-share ledger."""

    def __init__(self) -> None:
        self._balances: dict[str, int] = defaultdict(int)
        self._total_supply = 0

    def total_supply(self) -> int:
        return self._total_supply

    def balance_of(self, account: str) -> int:
        return self._balances[normalize_address(account)]

    def mint(self, recipient: str, amount: int) -> None:
        if amount < 0:
            raise ValueError(f"amount must be non-negative, got {amount}")
        self._balances[normalize_address(recipient)] += amount
        self._total_supply += amount

    def burn(self, owner: str, amount: int) -> None:
        if amount < 0:
            raise ValueError(f"amount must be non-negative, got {amount}")
        key = normalize_address(owner)
        if self._balances[key] < amount:
            raise InsufficientBalance(f"{owner} holds {self._balances[key]} LP, needs {amount}")
        self._balances[key] -= amount
        self._total_supply -= amount
