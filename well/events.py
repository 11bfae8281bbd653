"""Events emitted by a Well, one per successful state-changing call."""

from __future__ import annotations

import re
from dataclasses import asdict, dataclass
from typing import Any


@dataclass(frozen=True)
class WellEvent:
    """Base class for Well events."""

    @property
    def name(self) -> str:
        return type(self).__name__

    @property
    def log_name(self) -> str:
        """snake_case event name, e.g. "remove_liquidity_one_token"."""
        return re.sub(r"(?<!^)(?=[A-Z])", "_", self.name).lower()

    def to_log_fields(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class Swap(WellEvent):
    from_token: str
    to_token: str
    amount_in: int
    amount_out: int
    recipient: str


@dataclass(frozen=True)
class AddLiquidity(WellEvent):
    token_amounts_in: tuple[int, ...]
    lp_amount_out: int
    recipient: str


@dataclass(frozen=True)
class RemoveLiquidity(WellEvent):
    lp_amount_in: int
    token_amounts_out: tuple[int, ...]
    recipient: str


@dataclass(frozen=True)
class RemoveLiquidityOneToken(WellEvent):
    lp_amount_in: int
    token_out: str
    token_amount_out: int
    recipient: str


@dataclass(frozen=True)
class Shift(WellEvent):
    """Excess custody balance swapped into to_token."""

    reserves: tuple[int, ...]
    to_token: str
    amount_out: int
    recipient: str


@dataclass(frozen=True)
class Sync(WellEvent):
    """Reserves reset to custody balances."""

    reserves: tuple[int, ...]
