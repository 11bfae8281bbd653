"""Pumps: oracles fed with reserve snapshots on every Well operation."""

from well.pumps.base import Pump
from well.pumps.registry import PumpBinding, PumpCallResult, PumpRegistry
from well.pumps.twap import PumpNotAttached, TwapPump, TwapState

__all__ = [
    "Pump",
    "PumpBinding",
    "PumpCallResult",
    "PumpRegistry",
    "PumpNotAttached",
    "TwapPump",
    "TwapState",
]
