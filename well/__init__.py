"""Well: a constant-function liquidity pool engine with pluggable pricing and pumps."""

from well.custody import InMemoryCustody, InMemoryLpToken
from well.engine import LiquidityEngine, SwapEngine
from well.models import Call, WellConfig
from well.pricing import ConstantProduct, ConstantSum, PricingFunction, StableSwap
from well.pumps import Pump, PumpRegistry, TwapPump
from well.reserves import ReserveTracker
from well.well import ComponentResolver, Well

__all__ = [
    "Call",
    "ComponentResolver",
    "ConstantProduct",
    "ConstantSum",
    "InMemoryCustody",
    "InMemoryLpToken",
    "LiquidityEngine",
    "PricingFunction",
    "Pump",
    "PumpRegistry",
    "ReserveTracker",
    "StableSwap",
    "SwapEngine",
    "TwapPump",
    "Well",
    "WellConfig",
]
