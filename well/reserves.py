"""Reserve snapshot held by a Well."""

from __future__ import annotations

from collections.abc import Sequence

import structlog

from well.errors import InvalidDelta, NegativeReserve

logger = structlog.get_logger()

Reserves = tuple[int, ...]


class ReserveTracker:
    """Last-known reserve per token index.

    The tracker is the source of truth for every pricing call. All updates
    are exact integer arithmetic and are applied all-or-nothing: a delta
    that would push any entry below zero leaves the snapshot untouched.
    """

    def __init__(self, token_count: int) -> None:
        if token_count < 2:
            raise ValueError(f"token_count must be >= 2, got {token_count}")
        self._reserves: list[int] = [0] * token_count

    @property
    def token_count(self) -> int:
        return len(self._reserves)

    def current(self) -> Reserves:
        """Immutable snapshot of the current reserves."""
        return tuple(self._reserves)

    def apply(self, delta: Sequence[int]) -> Reserves:
        """Add a signed delta to every reserve.

        Args:
            delta: Signed change per token index

        Returns:
            The new reserves

        Raises:
            InvalidDelta: If len(delta) != token_count
            NegativeReserve: If any resulting reserve would be negative
        """
        self._check_length(delta)
        updated = [r + d for r, d in zip(self._reserves, delta, strict=True)]
        self._check_non_negative(updated, delta=delta)
        self._reserves = updated
        return tuple(updated)

    def set(self, reserves: Sequence[int]) -> Reserves:
        """Overwrite the reserves (used when syncing to custody balances)."""
        self._check_length(reserves)
        updated = list(reserves)
        self._check_non_negative(updated)
        self._reserves = updated
        return tuple(updated)

    def _check_length(self, values: Sequence[int]) -> None:
        if len(values) != len(self._reserves):
            raise InvalidDelta(f"Expected {len(self._reserves)} entries, got {len(values)}")

    def _check_non_negative(
        self, updated: Sequence[int], delta: Sequence[int] | None = None
    ) -> None:
        for i, value in enumerate(updated):
            if value < 0:
                logger.error(
                    "negative_reserve",
                    token_index=i,
                    reserve=self._reserves[i],
                    delta=delta[i] if delta is not None else None,
                )
                raise NegativeReserve(f"Reserve {i} would become negative: {value}")
