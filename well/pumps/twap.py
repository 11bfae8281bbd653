"""Time-weighted average reserve pump.

Keeps, per Well, the running integral of each reserve over time. Given two
readings of the cumulative values, the time-weighted average reserve over the
interval is (cum_end - cum_start) / (t_end - t_start).

Each update is told the reserves *before* the current operation, which are the
reserves that prevailed since the previous update, so:

    cumulative += reserves * (now - last_timestamp)
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass, replace
from typing import Any

import structlog

from well.reserves import Reserves

logger = structlog.get_logger()


class PumpNotAttached(LookupError):
    """Update or read for a Well that never attached."""

    pass


@dataclass(frozen=True)
class TwapState:
    """Per-Well accumulator state."""

    token_count: int
    last_reserves: Reserves
    last_timestamp: int
    cumulative: Reserves


class TwapPump:
    """Cumulative-reserve oracle.

    Supported read queries: ``"last"`` (last reported reserves),
    ``"cumulative"`` (reserve integrals), ``"timestamp"`` (time of last update).
    """

    QUERIES = ("last", "cumulative", "timestamp")

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._states: dict[str, TwapState] = {}

    def _now(self) -> int:
        return int(self._clock())

    def attach(self, well_id: str, token_count: int, data: bytes) -> None:
        _ = data
        if well_id in self._states:
            raise ValueError(f"Well {well_id} already attached")
        if token_count < 2:
            raise ValueError(f"token_count must be >= 2, got {token_count}")
        zeros = (0,) * token_count
        self._states[well_id] = TwapState(
            token_count=token_count,
            last_reserves=zeros,
            last_timestamp=self._now(),
            cumulative=zeros,
        )
        logger.debug("twap_pump_attached", well=well_id[-8:], token_count=token_count)

    def update(self, well_id: str, reserves: Reserves, data: bytes) -> None:
        _ = data
        state = self._state(well_id)
        if len(reserves) != state.token_count:
            raise ValueError(f"Expected {state.token_count} reserves, got {len(reserves)}")

        now = self._now()
        elapsed = max(now - state.last_timestamp, 0)
        cumulative = tuple(c + r * elapsed for c, r in zip(state.cumulative, reserves, strict=True))

        # Single assignment keeps the state consistent if anything above raised
        self._states[well_id] = replace(
            state,
            last_reserves=tuple(reserves),
            last_timestamp=now,
            cumulative=cumulative,
        )

    def read(self, well_id: str, query: str) -> Any:
        state = self._state(well_id)
        if query == "last":
            return state.last_reserves
        if query == "cumulative":
            return self._cumulative_now(state)
        if query == "timestamp":
            return state.last_timestamp
        raise ValueError(f"Unknown query {query!r}; expected one of {self.QUERIES}")

    def twap(self, well_id: str, start_cumulative: Reserves, start_timestamp: int) -> Reserves:
        """Time-weighted average reserves from a previous cumulative reading until now.

        Raises:
            ValueError: If no time has elapsed since start_timestamp
        """
        state = self._state(well_id)
        now = self._now()
        elapsed = now - start_timestamp
        if elapsed <= 0:
            raise ValueError("TWAP window must be positive")
        end_cumulative = self._cumulative_now(state)
        return tuple(
            (end - start) // elapsed
            for end, start in zip(end_cumulative, start_cumulative, strict=True)
        )

    def _cumulative_now(self, state: TwapState) -> Reserves:
        """Cumulative values extrapolated to now with the last reported reserves."""
        elapsed = max(self._now() - state.last_timestamp, 0)
        return tuple(
            c + r * elapsed for c, r in zip(state.cumulative, state.last_reserves, strict=True)
        )

    def _state(self, well_id: str) -> TwapState:
        try:
            return self._states[well_id]
        except KeyError:
            raise PumpNotAttached(f"Well {well_id} is not attached to this pump") from None
