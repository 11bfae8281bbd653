"""Shared type definitions for Well models.

Token, pricing-function and pump identities are Ethereum-style addresses.
Auxiliary payloads are opaque bytes, accepted as ``bytes`` or 0x-hex strings.
"""

from typing import Annotated, Any

from pydantic import AfterValidator, BeforeValidator, Field, PlainSerializer

# Maximum uint256 value
UINT256_MAX = 2**256 - 1


def normalize_address(address: str, *, validate: bool = False) -> str:
    """Normalize an address to lowercase with 0x prefix.

    Args:
        address: An address (with or without 0x prefix)
        validate: If True, raises ValueError for invalid addresses

    Returns:
        Lowercase address with 0x prefix

    Raises:
        ValueError: If validate=True and address is not a valid address
    """
    addr = address.lower()
    if not addr.startswith("0x"):
        addr = "0x" + addr

    if validate and not is_valid_address(addr):
        raise ValueError(f"Invalid address: {address}")

    return addr


def is_valid_address(address: str) -> bool:
    """Check if a string is a 0x-prefixed 20-byte hex address."""
    if not isinstance(address, str):
        return False
    if not address.startswith("0x"):
        return False
    if len(address) != 42:
        return False
    try:
        int(address, 16)
        return True
    except ValueError:
        return False


def validate_uint256(value: Any) -> int:
    """Validate a uint256 given as int or decimal string and return it as int.

    Raises:
        ValueError: If value is not a non-negative integer within uint256 range
    """
    if isinstance(value, bool):
        raise ValueError("Uint256 cannot be a boolean")
    if isinstance(value, str):
        try:
            value = int(value)
        except ValueError as err:
            raise ValueError(f"Uint256 must be a decimal integer string: '{value}'") from err
    if not isinstance(value, int):
        raise ValueError(f"Uint256 must be string or int, got {type(value).__name__}")
    if value < 0:
        raise ValueError(f"Uint256 cannot be negative: {value}")
    if value > UINT256_MAX:
        raise ValueError(f"Uint256 overflow: {value} > 2^256-1")
    return value


def parse_hex_bytes(value: Any) -> bytes:
    """Accept raw bytes or a 0x-prefixed hex string."""
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    if isinstance(value, str):
        if not value.startswith("0x"):
            raise ValueError(f"Hex bytes must start with 0x: '{value}'")
        try:
            return bytes.fromhex(value[2:])
        except ValueError as err:
            raise ValueError(f"Invalid hex bytes: '{value}'") from err
    raise ValueError(f"Bytes must be bytes or hex string, got {type(value).__name__}")


# 20-byte address, stored lowercase
Address = Annotated[
    str,
    Field(pattern=r"^0x[a-fA-F0-9]{40}$"),
    AfterValidator(normalize_address),
]

# Uint256 accepted as int or decimal string, held as int, serialized as decimal string
Uint256 = Annotated[
    int,
    BeforeValidator(validate_uint256),
    PlainSerializer(str, return_type=str),
]

# Opaque auxiliary payload, serialized as 0x-hex
HexBytes = Annotated[
    bytes,
    BeforeValidator(parse_hex_bytes),
    PlainSerializer(lambda b: "0x" + b.hex(), return_type=str),
]
