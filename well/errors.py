"""Well error classes.

Every error except pump failures is surfaced to the caller as a failed call
with no reserve mutation. Pump failures are values (see PumpFailure), not
exceptions: the registry records them and keeps going.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class WellError(Exception):
    """Base error for Well operations."""

    pass


class InvalidConfig(WellError):
    """WellConfig is malformed (fewer than 2 tokens, duplicate tokens, unknown targets)."""

    pass


class ConfigMismatch(WellError):
    """Caller-supplied WellConfig does not match the Well's persisted config."""

    pass


class AlreadyInitialized(WellError):
    """Well.initialize() called on an initialized Well."""

    pass


class NotInitialized(WellError):
    """Operation attempted before Well.initialize()."""

    pass


class IndexOutOfRange(WellError, IndexError):
    """Token index outside [0, N) or token not in the Well."""

    pass


class InvalidTokenPair(WellError):
    """Swap requested from a token to itself."""

    pass


class InvalidAmounts(WellError, ValueError):
    """Amount vector length does not match the token count."""

    pass


class InsufficientReserves(WellError):
    """Requested output would drain a reserve to zero or below."""

    pass


class InsufficientLiquidity(WellError):
    """LP amount exceeds the outstanding LP supply."""

    pass


class DivideByZero(WellError, ArithmeticError):
    """Operation is undefined because a divisor (LP supply, invariant) is zero."""

    pass


class SlippageExceeded(WellError):
    """Quote violates the caller's min/max bound."""

    def __init__(self, message: str, *, quoted: int | tuple[int, ...], bound: int | tuple[int, ...]):
        super().__init__(message)
        self.quoted = quoted
        self.bound = bound


class NegativeReserve(WellError):
    """A reserve delta would push a reserve below zero.

    Signals a pricing-function or engine bug, never bad caller input.
    """

    pass


class InvalidDelta(WellError, ValueError):
    """Reserve delta or snapshot has the wrong length."""

    pass


class Expired(WellError):
    """Call deadline has passed."""

    pass


class ReentrancyDetected(WellError):
    """A call re-entered the Well while another call was in flight."""

    pass


class UnbackedReserves(WellError):
    """Custody holds less of a token than the tracked reserve after settlement."""

    pass


class PumpAttachFailed(WellError):
    """A pump raised during attach; pool initialization is aborted."""

    pass


class PricingFunctionError(WellError):
    """Pricing function returned an unusable value (negative, non-numeric)."""

    pass


class PumpFailureKind(str, Enum):
    """Why a pump update was contained."""

    EXCEPTION = "exception"
    MALFORMED_RESPONSE = "malformed_response"
    BUDGET_EXCEEDED = "budget_exceeded"


@dataclass(frozen=True)
class PumpFailure:
    """A contained pump update failure.

    Attributes:
        pump_target: Address of the pump that failed
        kind: Failure category
        detail: Human-readable detail (exception repr, returned value, elapsed time)
    """

    pump_target: str
    kind: PumpFailureKind
    detail: str = ""
