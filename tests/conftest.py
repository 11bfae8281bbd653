"""Pytest configuration and fixtures."""

import time
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

import pytest

from well.custody import InMemoryCustody, InMemoryLpToken
from well.models.config import Call, WellConfig
from well.pricing import constant_product
from well.pricing.base import PricingFunction
from well.pumps.base import Pump
from well.well import ComponentResolver, Well

WELL_ADDRESS = "0x" + "11" * 20
TOKEN_A = "0x" + "aa" * 20
TOKEN_B = "0x" + "bb" * 20
TOKEN_C = "0x" + "cc" * 20
ALICE = "0x" + "a1" * 20
BOB = "0x" + "b0" * 20

PRICING_ADDRESS = "0x" + "0f" * 20
PUMP_ADDRESSES = ["0x" + f"{i:02x}" * 20 for i in range(0x50, 0x58)]

FUNDING = 10**12


class RecordingPump:
    """Pump that records every call into a shared log."""

    def __init__(self, name: str, log: list[tuple[str, Any]] | None = None) -> None:
        self.name = name
        self.log = log if log is not None else []
        self.attached: list[tuple[str, int, bytes]] = []
        self.updates: list[tuple[int, ...]] = []

    def attach(self, well_id: str, token_count: int, data: bytes) -> None:
        self.attached.append((well_id, token_count, data))

    def update(self, well_id: str, reserves: tuple[int, ...], data: bytes) -> None:
        self.updates.append(reserves)
        self.log.append((self.name, reserves))

    def read(self, well_id: str, query: str) -> Any:
        return self.updates[-1] if self.updates else None


class FailingPump(RecordingPump):
    """Pump whose update always raises (after logging the call)."""

    def update(self, well_id: str, reserves: tuple[int, ...], data: bytes) -> None:
        super().update(well_id, reserves, data)
        raise RuntimeError("oracle offline")


class MalformedPump(RecordingPump):
    """Pump whose update returns a value instead of None."""

    def update(self, well_id: str, reserves: tuple[int, ...], data: bytes) -> Any:  # type: ignore[override]
        super().update(well_id, reserves, data)
        return {"unexpected": True}


class SlowPump(RecordingPump):
    """Pump whose update sleeps before recording the call."""

    def __init__(
        self, name: str, delay_s: float, log: list[tuple[str, Any]] | None = None
    ) -> None:
        super().__init__(name, log)
        self.delay_s = delay_s

    def update(self, well_id: str, reserves: tuple[int, ...], data: bytes) -> None:
        time.sleep(self.delay_s)
        super().update(well_id, reserves, data)


class FailingAttachPump(RecordingPump):
    """Pump that refuses to attach."""

    def attach(self, well_id: str, token_count: int, data: bytes) -> None:
        raise RuntimeError("attach refused")


class ReentrantPump(RecordingPump):
    """Pump that calls back into the Well during update."""

    def __init__(self, name: str, log: list[tuple[str, Any]] | None = None) -> None:
        super().__init__(name, log)
        self.well: Well | None = None
        self.config: WellConfig | None = None
        self.errors: list[Exception] = []

    def update(self, well_id: str, reserves: tuple[int, ...], data: bytes) -> None:
        super().update(well_id, reserves, data)
        assert self.well is not None and self.config is not None
        try:
            self.well.get_reserves(self.config)
        except Exception as err:
            self.errors.append(err)
            raise


def wait_until(condition, timeout_s: float = 5.0) -> None:
    """Poll until condition() is true; fail the test after timeout_s."""
    deadline = time.monotonic() + timeout_s
    while not condition():
        if time.monotonic() > deadline:
            pytest.fail("condition not reached in time")
        time.sleep(0.01)


@dataclass
class WellHarness:
    """A Well with its collaborators, for tests."""

    well: Well
    config: WellConfig
    custody: InMemoryCustody
    lp_token: InMemoryLpToken
    pumps: list[Pump] = field(default_factory=list)

    @property
    def tokens(self) -> tuple[str, ...]:
        return self.config.tokens

    def reserves(self) -> tuple[int, ...]:
        return self.well.get_reserves(self.config)


def make_config(
    tokens: Sequence[str] = (TOKEN_A, TOKEN_B),
    pump_count: int = 0,
    data: bytes = b"",
) -> WellConfig:
    """Create a WellConfig with the test pricing function and pump addresses."""
    return WellConfig(
        tokens=tuple(tokens),
        pricing_function=Call(target=PRICING_ADDRESS, data=data),
        pumps=tuple(Call(target=PUMP_ADDRESSES[i]) for i in range(pump_count)),
    )


def make_well(
    pumps: Sequence[Pump] = (),
    pricing_function: PricingFunction = constant_product,
    tokens: Sequence[str] = (TOKEN_A, TOKEN_B),
    data: bytes = b"",
    initial_amounts: Sequence[int] | None = (1000, 1000),
    clock: Any = None,
) -> WellHarness:
    """Create an initialized Well, optionally seeded by ALICE with initial_amounts.

    Args:
        pumps: Pumps in attachment order
        pricing_function: Pricing function implementation
        tokens: Token addresses
        data: Pricing function auxiliary data
        initial_amounts: First deposit, or None for an empty Well
        clock: Optional clock for deadline checks
    """
    config = make_config(tokens, len(pumps), data)
    resolver = ComponentResolver(
        pricing_functions={PRICING_ADDRESS: pricing_function},
        pumps={PUMP_ADDRESSES[i]: pump for i, pump in enumerate(pumps)},
    )
    custody = InMemoryCustody(well_account=WELL_ADDRESS)
    lp_token = InMemoryLpToken()
    kwargs = {"clock": clock} if clock is not None else {}
    well = Well(WELL_ADDRESS, custody, lp_token, resolver, **kwargs)
    well.initialize(config)

    for account in (ALICE, BOB):
        for token in tokens:
            custody.credit(account, token, FUNDING)

    harness = WellHarness(well, config, custody, lp_token, list(pumps))
    if initial_amounts is not None:
        well.add_liquidity(config, list(initial_amounts), 0, ALICE, ALICE)
    return harness


@pytest.fixture
def harness() -> WellHarness:
    """Constant-product Well seeded with [1000, 1000] and no pumps."""
    return make_well()


@pytest.fixture
def config() -> WellConfig:
    return make_config()
