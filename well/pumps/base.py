"""Pump interface.

Pumps are oracles attached to a Well. After every reserve-changing call the
Well hands each pump the reserves as they were *before* the call, so a price
reading can only be moved by trades that survive across calls.

The ``well_id`` argument identifies the calling Well (a pump may serve many).
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from well.reserves import Reserves


@runtime_checkable
class Pump(Protocol):
    """Protocol for Well pumps."""

    def attach(self, well_id: str, token_count: int, data: bytes) -> None:
        """Register a Well with this pump. Called exactly once per Well at initialization.

        Raising aborts the Well's initialization.
        """
        ...

    def update(self, well_id: str, reserves: Reserves, data: bytes) -> None:
        """Record a pre-operation reserve snapshot.

        Must return None; anything else is treated as a malformed response.
        Failures are contained by the Well and never affect the operation.

        Runs on a worker thread owned by the Well. The Well waits at most its
        update budget; an update still running after that keeps running, and
        its effects land even though the call is reported as BUDGET_EXCEEDED.

        Updates are not transactional with the Well call. A call that fails
        during custody settlement restores the Well reserves but does not undo
        pump updates already made, so a pump can see snapshots from calls that
        later revert. Such a snapshot equals the restored reserves.
        """
        ...

    def read(self, well_id: str, query: str) -> Any:
        """Query pump state. Never called by the Well itself."""
        ...
