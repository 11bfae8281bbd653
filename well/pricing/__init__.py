"""Pricing functions a Well can be configured with."""

from well.pricing.base import PricingFunction
from well.pricing.constant_product import ConstantProduct, constant_product
from well.pricing.constant_sum import ConstantSum, constant_sum
from well.pricing.stable import AMP_PRECISION, StableSwap, stable_swap

__all__ = [
    "PricingFunction",
    "ConstantProduct",
    "constant_product",
    "ConstantSum",
    "constant_sum",
    "StableSwap",
    "stable_swap",
    "AMP_PRECISION",
]
