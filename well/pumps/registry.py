"""Pump fan-out for a Well.

The registry holds a Well's pumps in attachment order and dispatches reserve
snapshots to them. Attach failures are fatal (the Well is not live yet);
update failures are contained and reported as PumpFailure values so that
oracle liveness never gates liquidity.

Each pump has a single worker thread. An update is submitted to it and waited
on for at most the update budget; a pump that overruns is reported as
BUDGET_EXCEEDED and the fan-out moves on. The overrunning update keeps running
in the background and the pump receives no further snapshots until it returns.
"""

from __future__ import annotations

import contextvars
import time
from collections.abc import Callable, Sequence
from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import dataclass

import structlog

from well.errors import PumpAttachFailed, PumpFailure, PumpFailureKind
from well.pumps.base import Pump
from well.reserves import Reserves

logger = structlog.get_logger()


@dataclass(frozen=True)
class PumpBinding:
    """A pump attached to a Well, with its config target and auxiliary data."""

    target: str
    pump: Pump
    data: bytes = b""


@dataclass(frozen=True)
class PumpCallResult:
    """Outcome of a single pump update.

    Attributes:
        pump_target: Address of the pump
        failure: The contained failure, or None on success
        elapsed_s: Wall time spent in the call
    """

    pump_target: str
    failure: PumpFailure | None = None
    elapsed_s: float = 0.0

    @property
    def ok(self) -> bool:
        return self.failure is None


class PumpRegistry:
    """Ordered pumps of one Well.

    Usage:
        registry = PumpRegistry(well_id, [PumpBinding(addr, twap_pump)])
        registry.attach_all(token_count=2)   # once, at initialization
        results = registry.update(pre_op_reserves)  # after every operation
    """

    def __init__(
        self,
        well_id: str,
        bindings: Sequence[PumpBinding] = (),
        *,
        update_budget_s: float | None = None,
        timer: Callable[[], float] = time.perf_counter,
    ) -> None:
        """Create a registry.

        Args:
            well_id: Identity of the owning Well, passed to every pump call
            bindings: Pumps in attachment order
            update_budget_s: Time the fan-out waits on each update call. A call
                that overruns is reported as BUDGET_EXCEEDED. None waits indefinitely.
            timer: Monotonic clock used to measure calls
        """
        self._well_id = well_id
        self._bindings = tuple(bindings)
        self._update_budget_s = update_budget_s
        self._timer = timer
        self._executors = [
            ThreadPoolExecutor(max_workers=1, thread_name_prefix=f"pump-{position}")
            for position in range(len(self._bindings))
        ]
        self._pending: list[Future[object] | None] = [None] * len(self._bindings)

    def __len__(self) -> int:
        return len(self._bindings)

    @property
    def bindings(self) -> tuple[PumpBinding, ...]:
        return self._bindings

    def attach_all(self, token_count: int) -> None:
        """Attach every pump, in order, exactly once.

        Raises:
            PumpAttachFailed: On the first pump whose attach raises
        """
        for position, binding in enumerate(self._bindings):
            try:
                binding.pump.attach(self._well_id, token_count, binding.data)
            except Exception as err:
                logger.error(
                    "pump_attach_failed",
                    well=self._well_id[-8:],
                    pump=binding.target[-8:],
                    position=position,
                    error=repr(err),
                )
                raise PumpAttachFailed(
                    f"Pump {binding.target} at position {position} failed to attach: {err!r}"
                ) from err

    def update(self, reserves: Reserves) -> list[PumpCallResult]:
        """Present the same reserve snapshot to every pump in attachment order.

        Never raises for pump-side failures.

        Args:
            reserves: Pre-operation reserves (immutable, shared by all pumps)

        Returns:
            One PumpCallResult per pump, in attachment order
        """
        snapshot = tuple(reserves)
        return [
            self._call_update(position, binding, snapshot)
            for position, binding in enumerate(self._bindings)
        ]

    def _call_update(
        self, position: int, binding: PumpBinding, snapshot: Reserves
    ) -> PumpCallResult:
        started = self._timer()
        failure: PumpFailure | None = None
        pending = self._pending[position]
        if pending is not None and not pending.done():
            # A previous update is still running on this pump's worker; skip it.
            failure = PumpFailure(
                binding.target,
                PumpFailureKind.BUDGET_EXCEEDED,
                "previous update still running",
            )
        else:
            # The pump runs with the caller's context so a call back into the Well is detected.
            context = contextvars.copy_context()
            future = self._executors[position].submit(
                context.run, binding.pump.update, self._well_id, snapshot, binding.data
            )
            self._pending[position] = future
            done, _ = wait([future], timeout=self._update_budget_s)
            if not done:
                failure = PumpFailure(
                    binding.target,
                    PumpFailureKind.BUDGET_EXCEEDED,
                    f"no response within {self._update_budget_s:.6f}s",
                )
            elif future.exception() is not None:
                failure = PumpFailure(
                    binding.target, PumpFailureKind.EXCEPTION, repr(future.exception())
                )
            else:
                response = future.result()
                if response is not None:
                    failure = PumpFailure(
                        binding.target,
                        PumpFailureKind.MALFORMED_RESPONSE,
                        f"update returned {type(response).__name__}",
                    )
        elapsed = self._timer() - started

        if failure is not None:
            logger.warning(
                "pump_update_failed",
                well=self._well_id[-8:],
                pump=binding.target[-8:],
                kind=failure.kind.value,
                detail=failure.detail,
            )
        return PumpCallResult(pump_target=binding.target, failure=failure, elapsed_s=elapsed)
