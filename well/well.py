"""The Well: a constant-function liquidity pool with pluggable pricing and pumps.

Every state-changing call runs the same linear pipeline under a
non-reentrant guard:

    validate config -> check deadline -> snapshot reserves -> quote
    -> check slippage -> apply reserve delta -> pump fan-out (pre-op snapshot)
    -> custody settlement -> emit event -> return

Failures before the reserve delta leave the Well untouched. A custody failure
after it restores the snapshot and unwinds completed transfers. Pump failures
are contained by the PumpRegistry and never unwind anything.
"""

from __future__ import annotations

import contextvars
import threading
import time
from collections.abc import Callable, Iterator, Mapping, Sequence
from contextlib import contextmanager
from dataclasses import dataclass

import structlog

from well.config import DEFAULT_SETTINGS, WellSettings
from well.custody import Custody, LpToken
from well.engine.liquidity import LiquidityEngine
from well.engine.swap import SwapEngine
from well.errors import (
    AlreadyInitialized,
    ConfigMismatch,
    Expired,
    IndexOutOfRange,
    InvalidAmounts,
    InvalidConfig,
    NotInitialized,
    ReentrancyDetected,
    SlippageExceeded,
    UnbackedReserves,
)
from well.events import (
    AddLiquidity,
    RemoveLiquidity,
    RemoveLiquidityOneToken,
    Shift,
    Swap,
    Sync,
    WellEvent,
)
from well.models.config import WellConfig
from well.models.types import normalize_address
from well.pricing.base import PricingFunction
from well.pumps.base import Pump
from well.pumps.registry import PumpBinding, PumpCallResult, PumpRegistry
from well.reserves import Reserves, ReserveTracker

logger = structlog.get_logger()

EventListener = Callable[[WellEvent], None]

# Wells the current call chain is inside; carried into pump worker threads.
_active_wells: contextvars.ContextVar[frozenset[int]] = contextvars.ContextVar(
    "active_wells", default=frozenset()
)


class ComponentResolver:
    """Maps config target addresses to live pricing-function and pump objects.

    Usage:
        resolver = ComponentResolver(
            pricing_functions={CP_ADDRESS: ConstantProduct()},
            pumps={TWAP_ADDRESS: TwapPump()},
        )
    """

    def __init__(
        self,
        pricing_functions: Mapping[str, PricingFunction] | None = None,
        pumps: Mapping[str, Pump] | None = None,
    ) -> None:
        self._pricing_functions = {
            normalize_address(k): v for k, v in (pricing_functions or {}).items()
        }
        self._pumps = {normalize_address(k): v for k, v in (pumps or {}).items()}

    def pricing_function(self, target: str) -> PricingFunction:
        """Resolve a pricing function.

        Raises:
            InvalidConfig: If target is unknown or does not implement PricingFunction
        """
        component = self._pricing_functions.get(normalize_address(target))
        if component is None or not isinstance(component, PricingFunction):
            raise InvalidConfig(f"Unknown pricing function: {target}")
        return component

    def pump(self, target: str) -> Pump:
        """Resolve a pump.

        Raises:
            InvalidConfig: If target is unknown or does not implement Pump
        """
        component = self._pumps.get(normalize_address(target))
        if component is None or not isinstance(component, Pump):
            raise InvalidConfig(f"Unknown pump: {target}")
        return component


@dataclass(frozen=True)
class _SettlementStep:
    """A custody action and the action that undoes it."""

    description: str
    run: Callable[[], None]
    undo: Callable[[], None]


class Well:
    """A single liquidity pool.

    Usage:
        well = Well(address, custody, lp_token, resolver)
        well.initialize(config)
        lp = well.add_liquidity(config, [10**18, 2500 * 10**6], 0, alice, alice)
        out = well.swap_from(config, weth, usdc, 10**17, 0, bob, bob)
    """

    def __init__(
        self,
        address: str,
        custody: Custody,
        lp_token: LpToken,
        resolver: ComponentResolver,
        *,
        settings: WellSettings = DEFAULT_SETTINGS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.address = normalize_address(address, validate=True)
        self.custody = custody
        self.lp_token = lp_token
        self.settings = settings
        self._resolver = resolver
        self._clock = clock

        self._config: WellConfig | None = None
        self._reserves: ReserveTracker | None = None
        self._swap_engine: SwapEngine | None = None
        self._liquidity_engine: LiquidityEngine | None = None
        self._pumps: PumpRegistry | None = None

        self._lock = threading.Lock()
        self._events: list[WellEvent] = []
        self._listeners: list[EventListener] = []
        self._last_pump_results: list[PumpCallResult] = []

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def initialize(self, config: WellConfig) -> None:
        """Bind the Well to its config and attach its pumps.

        Raises:
            AlreadyInitialized: If called twice
            InvalidConfig: If a target cannot be resolved
            PumpAttachFailed: If any pump fails to attach (the Well stays uninitialized)
        """
        with self._guard():
            if self._config is not None:
                raise AlreadyInitialized(f"Well {self.address} is already initialized")

            pricing_function = self._resolver.pricing_function(config.pricing_function.target)
            bindings = [
                PumpBinding(target=call.target, pump=self._resolver.pump(call.target), data=call.data)
                for call in config.pumps
            ]
            registry = PumpRegistry(
                self.address,
                bindings,
                update_budget_s=self.settings.pump_update_budget_s,
            )
            registry.attach_all(config.token_count)

            data = config.pricing_function.data
            self._pumps = registry
            self._swap_engine = SwapEngine(pricing_function, data)
            self._liquidity_engine = LiquidityEngine(pricing_function, data)
            self._reserves = ReserveTracker(config.token_count)
            self._config = config

            logger.info(
                "well_initialized",
                well=self.address[-8:],
                tokens=[t[-8:] for t in config.tokens],
                pricing_function=getattr(pricing_function, "name", type(pricing_function).__name__),
                pump_count=len(registry),
            )

    @property
    def initialized(self) -> bool:
        return self._config is not None

    @property
    def config(self) -> WellConfig:
        if self._config is None:
            raise NotInitialized(f"Well {self.address} is not initialized")
        return self._config

    @property
    def tokens(self) -> tuple[str, ...]:
        return self.config.tokens

    @property
    def events(self) -> tuple[WellEvent, ...]:
        return tuple(self._events)

    @property
    def last_pump_results(self) -> tuple[PumpCallResult, ...]:
        """Per-pump outcomes of the most recent fan-out."""
        return tuple(self._last_pump_results)

    def subscribe(self, listener: EventListener) -> None:
        """Register a callback invoked with every event after commit."""
        self._listeners.append(listener)

    # -------------------------------------------------------------------------
    # Swaps
    # -------------------------------------------------------------------------

    def swap_from(
        self,
        config: WellConfig,
        from_token: str,
        to_token: str,
        amount_in: int,
        min_amount_out: int,
        recipient: str,
        sender: str,
        deadline: float | None = None,
    ) -> int:
        """Swap an exact amount of from_token for at least min_amount_out of to_token.

        Returns:
            The amount of to_token paid out

        Raises:
            SlippageExceeded: If the quote is below min_amount_out
        """
        with self._guard():
            self._check_call(config, deadline)
            i, j = self._index(from_token), self._index(to_token)
            snapshot = self._tracker.current()

            amount_out = self._swaps.quote_exact_in(i, j, amount_in, snapshot)
            if amount_out < min_amount_out:
                raise SlippageExceeded(
                    f"amount_out {amount_out} < min_amount_out {min_amount_out}",
                    quoted=amount_out,
                    bound=min_amount_out,
                )

            delta = self._swaps.swap_deltas(i, j, amount_in, amount_out, len(snapshot))
            self._commit(
                snapshot,
                delta,
                [
                    self._pull(self.tokens[i], amount_in, sender),
                    self._push(self.tokens[j], amount_out, recipient),
                ],
                Swap(self.tokens[i], self.tokens[j], amount_in, amount_out, recipient),
            )
            return amount_out

    def swap_to(
        self,
        config: WellConfig,
        from_token: str,
        to_token: str,
        max_amount_in: int,
        amount_out: int,
        recipient: str,
        sender: str,
        deadline: float | None = None,
    ) -> int:
        """Swap at most max_amount_in of from_token for exactly amount_out of to_token.

        Returns:
            The amount of from_token paid in

        Raises:
            SlippageExceeded: If the required input exceeds max_amount_in
        """
        with self._guard():
            self._check_call(config, deadline)
            i, j = self._index(from_token), self._index(to_token)
            snapshot = self._tracker.current()

            amount_in = self._swaps.quote_exact_out(i, j, amount_out, snapshot)
            if amount_in > max_amount_in:
                raise SlippageExceeded(
                    f"amount_in {amount_in} > max_amount_in {max_amount_in}",
                    quoted=amount_in,
                    bound=max_amount_in,
                )

            delta = self._swaps.swap_deltas(i, j, amount_in, amount_out, len(snapshot))
            self._commit(
                snapshot,
                delta,
                [
                    self._pull(self.tokens[i], amount_in, sender),
                    self._push(self.tokens[j], amount_out, recipient),
                ],
                Swap(self.tokens[i], self.tokens[j], amount_in, amount_out, recipient),
            )
            return amount_in

    def shift(
        self,
        config: WellConfig,
        to_token: str,
        min_amount_out: int,
        recipient: str,
        deadline: float | None = None,
    ) -> int:
        """Swap tokens already sent to custody (above the reserves) into to_token.

        Returns:
            The amount of to_token paid out
        """
        with self._guard():
            self._check_call(config, deadline)
            j = self._index(to_token)
            snapshot = self._tracker.current()
            balances = self._custody_balances()

            amount_out = self._swaps.quote_shift(j, snapshot, balances)
            if amount_out < min_amount_out:
                raise SlippageExceeded(
                    f"amount_out {amount_out} < min_amount_out {min_amount_out}",
                    quoted=amount_out,
                    bound=min_amount_out,
                )

            new_reserves = list(balances)
            new_reserves[j] -= amount_out
            delta = [new - old for new, old in zip(new_reserves, snapshot, strict=True)]
            self._commit(
                snapshot,
                delta,
                [self._push(self.tokens[j], amount_out, recipient)],
                Shift(tuple(new_reserves), self.tokens[j], amount_out, recipient),
            )
            return amount_out

    # -------------------------------------------------------------------------
    # Liquidity
    # -------------------------------------------------------------------------

    def add_liquidity(
        self,
        config: WellConfig,
        token_amounts_in: Sequence[int],
        min_lp_out: int,
        recipient: str,
        sender: str,
        deadline: float | None = None,
    ) -> int:
        """Deposit any mix of tokens and mint LP.

        Returns:
            LP minted to recipient

        Raises:
            SlippageExceeded: If the LP quote is below min_lp_out
        """
        with self._guard():
            self._check_call(config, deadline)
            snapshot = self._tracker.current()
            amounts = tuple(token_amounts_in)

            lp_out = self._liquidity.quote_add_liquidity(
                amounts, snapshot, self.lp_token.total_supply()
            )
            if lp_out < min_lp_out:
                raise SlippageExceeded(
                    f"lp_out {lp_out} < min_lp_out {min_lp_out}", quoted=lp_out, bound=min_lp_out
                )

            steps = [
                self._pull(token, amount, sender)
                for token, amount in zip(self.tokens, amounts, strict=True)
                if amount > 0
            ]
            steps.append(self._mint(recipient, lp_out))
            self._commit(snapshot, amounts, steps, AddLiquidity(amounts, lp_out, recipient))
            return lp_out

    def remove_liquidity(
        self,
        config: WellConfig,
        lp_in: int,
        min_token_amounts_out: Sequence[int],
        recipient: str,
        sender: str,
        deadline: float | None = None,
    ) -> tuple[int, ...]:
        """Burn LP for a proportional share of every reserve.

        Returns:
            Token amounts paid out, per token index

        Raises:
            InvalidAmounts: If len(min_token_amounts_out) != N
            SlippageExceeded: If any amount is below its minimum
        """
        with self._guard():
            self._check_call(config, deadline)
            snapshot = self._tracker.current()
            minimums = tuple(min_token_amounts_out)
            if len(minimums) != len(snapshot):
                raise InvalidAmounts(f"Expected {len(snapshot)} minimums, got {len(minimums)}")

            amounts = self._liquidity.quote_remove_liquidity_balanced(
                lp_in, snapshot, self.lp_token.total_supply()
            )
            for amount, minimum in zip(amounts, minimums, strict=True):
                if amount < minimum:
                    raise SlippageExceeded(
                        f"token_amounts_out {amounts} below minimums {minimums}",
                        quoted=amounts,
                        bound=minimums,
                    )

            steps = [self._burn(sender, lp_in)]
            steps.extend(
                self._push(token, amount, recipient)
                for token, amount in zip(self.tokens, amounts, strict=True)
                if amount > 0
            )
            self._commit(
                snapshot,
                [-a for a in amounts],
                steps,
                RemoveLiquidity(lp_in, amounts, recipient),
            )
            return amounts

    def remove_liquidity_one_token(
        self,
        config: WellConfig,
        lp_in: int,
        token_out: str,
        min_amount_out: int,
        recipient: str,
        sender: str,
        deadline: float | None = None,
    ) -> int:
        """Burn LP for a single token.

        Returns:
            Amount of token_out paid out

        Raises:
            SlippageExceeded: If the amount is below min_amount_out
        """
        with self._guard():
            self._check_call(config, deadline)
            j = self._index(token_out)
            snapshot = self._tracker.current()

            amount_out = self._liquidity.quote_remove_liquidity_one_token(
                lp_in, j, snapshot, self.lp_token.total_supply()
            )
            if amount_out < min_amount_out:
                raise SlippageExceeded(
                    f"amount_out {amount_out} < min_amount_out {min_amount_out}",
                    quoted=amount_out,
                    bound=min_amount_out,
                )

            delta = [0] * len(snapshot)
            delta[j] = -amount_out
            self._commit(
                snapshot,
                delta,
                [self._burn(sender, lp_in), self._push(self.tokens[j], amount_out, recipient)],
                RemoveLiquidityOneToken(lp_in, self.tokens[j], amount_out, recipient),
            )
            return amount_out

    def remove_liquidity_imbalanced(
        self,
        config: WellConfig,
        max_lp_in: int,
        token_amounts_out: Sequence[int],
        recipient: str,
        sender: str,
        deadline: float | None = None,
    ) -> int:
        """Withdraw exact token amounts, burning at most max_lp_in.

        Returns:
            LP burned from sender

        Raises:
            SlippageExceeded: If the required LP exceeds max_lp_in
        """
        with self._guard():
            self._check_call(config, deadline)
            snapshot = self._tracker.current()
            amounts = tuple(token_amounts_out)

            lp_in = self._liquidity.quote_remove_liquidity_imbalanced(
                amounts, snapshot, self.lp_token.total_supply()
            )
            if lp_in > max_lp_in:
                raise SlippageExceeded(
                    f"lp_in {lp_in} > max_lp_in {max_lp_in}", quoted=lp_in, bound=max_lp_in
                )

            steps = [self._burn(sender, lp_in)]
            steps.extend(
                self._push(token, amount, recipient)
                for token, amount in zip(self.tokens, amounts, strict=True)
                if amount > 0
            )
            self._commit(
                snapshot,
                [-a for a in amounts],
                steps,
                RemoveLiquidity(lp_in, amounts, recipient),
            )
            return lp_in

    # -------------------------------------------------------------------------
    # Reserve reconciliation
    # -------------------------------------------------------------------------

    def sync(self, config: WellConfig, deadline: float | None = None) -> Reserves:
        """Set the tracked reserves to the balances custody actually holds.

        Returns:
            The new reserves
        """
        with self._guard():
            self._check_call(config, deadline)
            snapshot = self._tracker.current()
            balances = self._custody_balances()
            delta = [new - old for new, old in zip(balances, snapshot, strict=True)]
            self._commit(snapshot, delta, [], Sync(balances))
            return balances

    def skim(self, config: WellConfig, recipient: str) -> tuple[int, ...]:
        """Send custody balances in excess of the reserves to recipient.

        Reserves are unchanged, so pumps are not updated and no event is emitted.

        Returns:
            Amount skimmed per token index
        """
        with self._guard():
            self._check_call(config, None)
            reserves = self._tracker.current()
            balances = self._custody_balances()
            excess = tuple(max(b - r, 0) for b, r in zip(balances, reserves, strict=True))
            self._settle(
                [
                    self._push(token, amount, recipient)
                    for token, amount in zip(self.tokens, excess, strict=True)
                    if amount > 0
                ]
            )
            logger.info("well_skimmed", well=self.address[-8:], excess=excess)
            return excess

    # -------------------------------------------------------------------------
    # Read-only quotes
    # -------------------------------------------------------------------------

    def get_reserves(self, config: WellConfig) -> Reserves:
        with self._guard():
            self._check_call(config, None)
            return self._tracker.current()

    def get_swap_out(self, config: WellConfig, from_token: str, to_token: str, amount_in: int) -> int:
        with self._guard():
            self._check_call(config, None)
            return self._swaps.quote_exact_in(
                self._index(from_token), self._index(to_token), amount_in, self._tracker.current()
            )

    def get_swap_in(self, config: WellConfig, from_token: str, to_token: str, amount_out: int) -> int:
        with self._guard():
            self._check_call(config, None)
            return self._swaps.quote_exact_out(
                self._index(from_token), self._index(to_token), amount_out, self._tracker.current()
            )

    def get_add_liquidity_out(self, config: WellConfig, token_amounts_in: Sequence[int]) -> int:
        with self._guard():
            self._check_call(config, None)
            return self._liquidity.quote_add_liquidity(
                tuple(token_amounts_in), self._tracker.current(), self.lp_token.total_supply()
            )

    def get_remove_liquidity_out(self, config: WellConfig, lp_in: int) -> tuple[int, ...]:
        with self._guard():
            self._check_call(config, None)
            return self._liquidity.quote_remove_liquidity_balanced(
                lp_in, self._tracker.current(), self.lp_token.total_supply()
            )

    def get_remove_liquidity_one_token_out(
        self, config: WellConfig, lp_in: int, token_out: str
    ) -> int:
        with self._guard():
            self._check_call(config, None)
            return self._liquidity.quote_remove_liquidity_one_token(
                lp_in, self._index(token_out), self._tracker.current(), self.lp_token.total_supply()
            )

    def get_remove_liquidity_imbalanced_in(
        self, config: WellConfig, token_amounts_out: Sequence[int]
    ) -> int:
        with self._guard():
            self._check_call(config, None)
            return self._liquidity.quote_remove_liquidity_imbalanced(
                tuple(token_amounts_out), self._tracker.current(), self.lp_token.total_supply()
            )

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    @contextmanager
    def _guard(self) -> Iterator[None]:
        """Serialize calls and reject re-entry from a call chain already inside the Well.

        The marker lives in a context variable, so it follows the call into pump
        worker threads. Unrelated threads block on the lock instead.
        """
        active = _active_wells.get()
        if id(self) in active:
            logger.warning("reentrancy_detected", well=self.address[-8:])
            raise ReentrancyDetected(f"Re-entrant call into Well {self.address}")
        with self._lock:
            token = _active_wells.set(active | {id(self)})
            try:
                yield
            finally:
                _active_wells.reset(token)

    @property
    def _tracker(self) -> ReserveTracker:
        if self._reserves is None:
            raise NotInitialized(f"Well {self.address} is not initialized")
        return self._reserves

    @property
    def _swaps(self) -> SwapEngine:
        if self._swap_engine is None:
            raise NotInitialized(f"Well {self.address} is not initialized")
        return self._swap_engine

    @property
    def _liquidity(self) -> LiquidityEngine:
        if self._liquidity_engine is None:
            raise NotInitialized(f"Well {self.address} is not initialized")
        return self._liquidity_engine

    def _check_call(self, config: WellConfig, deadline: float | None) -> None:
        if self._config is None:
            raise NotInitialized(f"Well {self.address} is not initialized")
        if not isinstance(config, WellConfig) or config != self._config:
            raise ConfigMismatch(f"Supplied config does not match Well {self.address}")
        if deadline is not None and self._clock() > deadline:
            raise Expired(f"Deadline {deadline} has passed")

    def _index(self, token: str) -> int:
        index = self.config.index_of(token)
        if index is None:
            raise IndexOutOfRange(f"Token {token} is not in Well {self.address}")
        return index

    def _custody_balances(self) -> Reserves:
        return tuple(self.custody.balance_of_well(token) for token in self.tokens)

    def _pull(self, token: str, amount: int, sender: str) -> _SettlementStep:
        return _SettlementStep(
            f"transfer_in {token} {amount}",
            lambda: self.custody.transfer_in(token, amount, sender),
            lambda: self.custody.transfer_out(token, amount, sender),
        )

    def _push(self, token: str, amount: int, recipient: str) -> _SettlementStep:
        return _SettlementStep(
            f"transfer_out {token} {amount}",
            lambda: self.custody.transfer_out(token, amount, recipient),
            lambda: self.custody.transfer_in(token, amount, recipient),
        )

    def _mint(self, recipient: str, amount: int) -> _SettlementStep:
        return _SettlementStep(
            f"mint {amount}",
            lambda: self.lp_token.mint(recipient, amount),
            lambda: self.lp_token.burn(recipient, amount),
        )

    def _burn(self, owner: str, amount: int) -> _SettlementStep:
        return _SettlementStep(
            f"burn {amount}",
            lambda: self.lp_token.burn(owner, amount),
            lambda: self.lp_token.mint(owner, amount),
        )

    def _commit(
        self,
        snapshot: Reserves,
        delta: Sequence[int],
        steps: list[_SettlementStep],
        event: WellEvent,
    ) -> None:
        """Apply the reserve delta, fan out to pumps, settle with custody, emit."""
        new_reserves = self._tracker.apply(delta)
        self._last_pump_results = self._pumps.update(snapshot) if self._pumps else []

        try:
            self._settle(steps, verify=lambda: self._check_backed(new_reserves))
        except Exception:
            self._tracker.set(snapshot)
            logger.warning(
                "well_call_reverted",
                well=self.address[-8:],
                event=event.name,
                reserves=snapshot,
            )
            raise

        self._emit(event)

    def _settle(
        self,
        steps: list[_SettlementStep],
        verify: Callable[[], None] | None = None,
    ) -> None:
        """Run custody steps in order, then verify.

        On any failure, completed steps are undone in reverse order and the
        error is re-raised.
        """
        completed: list[_SettlementStep] = []
        try:
            for step in steps:
                step.run()
                completed.append(step)
            if verify is not None:
                verify()
        except Exception:
            for step in reversed(completed):
                try:
                    step.undo()
                except Exception:
                    logger.exception(
                        "settlement_undo_failed", well=self.address[-8:], step=step.description
                    )
            raise

    def _check_backed(self, reserves: Reserves) -> None:
        for token, reserve in zip(self.tokens, reserves, strict=True):
            held = self.custody.balance_of_well(token)
            if held < reserve:
                raise UnbackedReserves(
                    f"Custody holds {held} of {token}, reserve is {reserve}"
                )

    def _emit(self, event: WellEvent) -> None:
        self._events.append(event)
        logger.info(event.log_name, well=self.address[-8:], **event.to_log_fields())
        for listener in self._listeners:
            try:
                listener(event)
            except Exception:
                logger.exception("event_listener_failed", well=self.address[-8:], event=event.name)
