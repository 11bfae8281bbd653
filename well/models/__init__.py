"""Data models for the Well engine."""

from well.models.config import Call, WellConfig
from well.models.types import (
    UINT256_MAX,
    Address,
    HexBytes,
    Uint256,
    is_valid_address,
    normalize_address,
)

__all__ = [
    "Call",
    "WellConfig",
    "Address",
    "HexBytes",
    "Uint256",
    "UINT256_MAX",
    "is_valid_address",
    "normalize_address",
]
