"""Pydantic models for a Well's identity.

A WellConfig is the full identity of a pool: its ordered tokens, the
pricing function it prices against and the pumps it reports to. Callers pass
a copy of it on every operation; the Well compares it structurally against
the config it was initialized with.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator

from well.errors import InvalidConfig
from well.models.types import Address, HexBytes


class Call(BaseModel):
    """Reference to an external component plus its opaque auxiliary data."""

    model_config = ConfigDict(frozen=True)

    target: Address
    data: HexBytes = b""


class WellConfig(BaseModel):
    """Immutable identity of a Well.

    Attributes:
        tokens: Ordered token addresses; index i is the canonical index of
            reserves[i] everywhere in the engine
        pricing_function: The pricing function reference
        pumps: Pumps in attachment order (may be empty)
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    tokens: tuple[Address, ...]
    pricing_function: Call = Field(alias="pricingFunction")
    pumps: tuple[Call, ...] = ()

    @model_validator(mode="after")
    def _check_tokens(self) -> WellConfig:
        if len(self.tokens) < 2:
            raise InvalidConfig(f"A Well needs at least 2 tokens, got {len(self.tokens)}")
        if len(set(self.tokens)) != len(self.tokens):
            raise InvalidConfig(f"Well tokens must be pairwise distinct: {self.tokens}")
        return self

    @property
    def token_count(self) -> int:
        return len(self.tokens)

    def index_of(self, token: str) -> int | None:
        """Index of a token address (any case), or None if not in the Well."""
        token_norm = token.lower()
        for i, t in enumerate(self.tokens):
            if t == token_norm:
                return i
        return None
