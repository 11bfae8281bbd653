"""Quote engines: swaps and liquidity events against a pricing function."""

from well.engine.liquidity import LiquidityEngine
from well.engine.swap import SwapEngine

__all__ = ["LiquidityEngine", "SwapEngine"]
